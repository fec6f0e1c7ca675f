from typing import Optional

from fastapi import APIRouter, Depends

from .schemas import ArchiveRequest, CurrentWeekIn, WeekDaysIn, ok
from ..auth import current_user
from ..db import get_conn
from ..domain import workouts as workout_rules
from ..errors import NotFound, ValidationFailed
from ..pipeline.archival import archive_all_users, archive_week
from ..pipeline.snapshots import spawn_refresh
from ..stores import workouts as workout_store
from ..utils import now_iso, parse_date, today_local, week_id as week_id_for

router = APIRouter(prefix="/workouts", tags=["Workouts"])

def _week_id(raw: Optional[str]) -> str:
    """Normalize any date inside a week to that week's Sunday id."""
    if not raw:
        return week_id_for(today_local())
    try:
        return week_id_for(parse_date(raw))
    except ValueError:
        raise ValidationFailed("week_id must be a YYYY-MM-DD date")

def _dump_days(days) -> dict:
    return {name: day.model_dump() for name, day in days.items()}

async def _ensure_template(conn, user_id: str) -> dict:
    now = now_iso()
    template = workout_rules.new_workout(
        user_id, workout_store.TEMPLATE_WEEK_ID, None,
        workout_rules.normalize_days(workout_rules.DEFAULT_TEMPLATE_DAYS, now, keep_completion=False),
        now, is_template=True,
    )
    await workout_store.insert_workout(conn, template)
    return await workout_store.get_template(conn, user_id)

async def _ensure_week(conn, user_id: str, week_id: str) -> dict:
    workout = await workout_store.get_week(conn, user_id, week_id)
    if workout is not None:
        return workout
    template = await _ensure_template(conn, user_id)
    now = now_iso()
    workout = workout_rules.new_workout(user_id, week_id, week_id, workout_rules.clone_days(template["days"], now), now)
    # a concurrent request may have created the same week first
    await workout_store.insert_workout(conn, workout)
    return await workout_store.get_week(conn, user_id, week_id)

async def _existing_week(conn, user_id: str, week_id: str) -> dict:
    workout = await workout_store.get_week(conn, user_id, week_id)
    if workout is None:
        raise NotFound("Workout not found")
    return workout

@router.get('/template', summary="Get the weekly template")
async def get_template(user: dict = Depends(current_user)):
    conn = await get_conn()
    return ok(await _ensure_template(conn, user["id"]))

@router.put('/template', summary="Replace the weekly template")
async def update_template(body: WeekDaysIn, user: dict = Depends(current_user)):
    conn = await get_conn()
    template = await _ensure_template(conn, user["id"])
    now = now_iso()
    days = workout_rules.normalize_days(_dump_days(body.days), now, keep_completion=False)
    await workout_store.save_days(conn, template["id"], days, now)
    return ok(await workout_store.get_template(conn, user["id"]), message="Template updated")

@router.get('/current', summary="Get (or create) a week's workout")
async def get_current(week_id: Optional[str] = None, user: dict = Depends(current_user)):
    conn = await get_conn()
    return ok(await _ensure_week(conn, user["id"], _week_id(week_id)))

@router.put('/current', summary="Replace a week's days")
async def update_current(body: CurrentWeekIn, user: dict = Depends(current_user)):
    conn = await get_conn()
    wid = _week_id(body.week_id)
    workout = await _ensure_week(conn, user["id"], wid)
    now = now_iso()
    days = workout_rules.normalize_days(_dump_days(body.days), now)
    await workout_store.save_days(conn, workout["id"], days, now)
    spawn_refresh(user["id"], wid)
    return ok(await workout_store.get_week(conn, user["id"], wid), message="Workout updated")

@router.get('/history', summary="Archived weeks, newest first")
async def history(user: dict = Depends(current_user)):
    conn = await get_conn()
    weeks = await workout_store.list_archived(conn, user["id"])
    return ok(weeks, count=len(weeks))

@router.post('/archive-all', summary="Archive a week for every user")
async def archive_all(body: Optional[ArchiveRequest] = None, user: dict = Depends(current_user)):
    conn = await get_conn()
    week_id = _week_id(body.week_id) if body and body.week_id else None
    return ok(await archive_all_users(conn, week_id=week_id))

@router.patch('/{week_id}/{day}/{exercise_id}/toggle', summary="Toggle one exercise")
async def toggle_exercise(week_id: str, day: str, exercise_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    wid = _week_id(week_id)
    workout = await _existing_week(conn, user["id"], wid)
    now = now_iso()
    days = workout_rules.toggle_exercise(workout["days"], day, exercise_id, now)
    await workout_store.save_days(conn, workout["id"], days, now)
    spawn_refresh(user["id"], wid)
    return ok(await workout_store.get_week(conn, user["id"], wid))

@router.post('/{week_id}/archive', summary="Archive one week")
async def archive(week_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    workout, archived = await archive_week(conn, user["id"], _week_id(week_id))
    if workout is None:
        raise NotFound("Workout not found")
    return ok(workout, message="Week archived" if archived else "Week already archived")

@router.post('/{week_id}/sync', summary="Re-apply the template to a week")
async def sync(week_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    wid = _week_id(week_id)
    workout = await _existing_week(conn, user["id"], wid)
    template = await _ensure_template(conn, user["id"])
    now = now_iso()
    days = workout_rules.sync_with_template(workout["days"], template["days"], now)
    await workout_store.save_days(conn, workout["id"], days, now)
    spawn_refresh(user["id"], wid)
    return ok(await workout_store.get_week(conn, user["id"], wid), message="Week synced with template")

@router.delete('/{week_id}', summary="Delete a week")
async def delete_week(week_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    wid = _week_id(week_id)
    workout = await _existing_week(conn, user["id"], wid)
    await workout_store.delete_workout(conn, workout["id"])
    spawn_refresh(user["id"], wid)
    return ok(message="Workout deleted")
