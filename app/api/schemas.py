from pydantic import BaseModel, Field
from typing import Any, Optional, Literal

from ..errors import ValidationFailed

def require_text(val: Optional[str], field: str) -> str:
    text = (val or "").strip()
    if not text:
        raise ValidationFailed(f"Please provide a {field}")
    return text

def ok(data: Any = None, message: Optional[str] = None, **extra) -> dict:
    body = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body

class SignupRequest(BaseModel):
    username: str = ""
    email: str = ""
    password: str = ""

class SigninRequest(BaseModel):
    email: str = ""
    password: str = ""

class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    password: Optional[str] = None

class TransactionIn(BaseModel):
    item: str = ""
    amount: float = Field(ge=0, allow_inf_nan=False)
    category: str = ""
    date: Optional[str] = None
    type: Literal["income", "expense"]

class TransactionUpdate(BaseModel):
    item: Optional[str] = None
    amount: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    category: Optional[str] = None
    date: Optional[str] = None
    type: Optional[Literal["income", "expense"]] = None

class TaskIn(BaseModel):
    id: Optional[str] = None
    title: str = ""
    completed: bool = False
    completed_at: Optional[str] = None

class GoalIn(BaseModel):
    title: str = ""
    tasks: list[TaskIn] = Field(default_factory=list)
    target_date: Optional[str] = None

class GoalUpdate(BaseModel):
    title: Optional[str] = None
    tasks: Optional[list[TaskIn]] = None
    target_date: Optional[str] = None

class ExerciseIn(BaseModel):
    id: Optional[str] = None
    name: str = ""
    sets: str = ""
    reps: str = ""
    reps_unit: str = "reps"
    completed: bool = False
    completed_at: Optional[str] = None

class DayIn(BaseModel):
    name: str = "Rest Day"
    exercises: list[ExerciseIn] = Field(default_factory=list)

class WeekDaysIn(BaseModel):
    days: dict[str, DayIn]

class CurrentWeekIn(BaseModel):
    week_id: Optional[str] = None
    days: dict[str, DayIn]

class JournalIn(BaseModel):
    title: str = ""
    content: str = ""
    date: Optional[str] = None

class JournalUpdate(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    date: Optional[str] = None

class TrashIn(BaseModel):
    type: str
    original_id: str

class SnapshotRequest(BaseModel):
    date: Optional[str] = None

class BackfillRequest(BaseModel):
    days: Optional[int] = Field(default=None, ge=1, le=366)

class ArchiveRequest(BaseModel):
    week_id: Optional[str] = None
