from __future__ import annotations

from copy import deepcopy
from datetime import date, datetime, time, timedelta

from ..errors import NotFound, ValidationFailed
from ..utils import DAY_NAMES, iso_dt, new_id, parse_datetime

REPS_UNITS = ("reps", "seconds", "minutes", "hours")

DEFAULT_TEMPLATE_DAYS = {
    "Sunday": {"name": "Rest Day", "exercises": []},
    "Monday": {"name": "Push Day", "exercises": [
        {"name": "Push-ups", "sets": "3", "reps": "15", "reps_unit": "reps"},
        {"name": "Bench Press", "sets": "4", "reps": "12", "reps_unit": "reps"},
    ]},
    "Tuesday": {"name": "Leg Day", "exercises": [
        {"name": "Squats", "sets": "4", "reps": "12", "reps_unit": "reps"},
        {"name": "Lunges", "sets": "3", "reps": "10", "reps_unit": "reps"},
    ]},
    "Wednesday": {"name": "Rest Day", "exercises": []},
    "Thursday": {"name": "Pull Day", "exercises": [
        {"name": "Pull-ups", "sets": "3", "reps": "10", "reps_unit": "reps"},
        {"name": "Rows", "sets": "4", "reps": "12", "reps_unit": "reps"},
    ]},
    "Friday": {"name": "Cardio", "exercises": [
        {"name": "Running", "sets": "1", "reps": "30", "reps_unit": "minutes"},
    ]},
    "Saturday": {"name": "Full Body", "exercises": [
        {"name": "Deadlifts", "sets": "3", "reps": "10", "reps_unit": "reps"},
        {"name": "Planks", "sets": "3", "reps": "60", "reps_unit": "seconds"},
    ]},
}

def _exercise(raw: dict, now: str, keep_completion: bool) -> dict:
    name = str(raw.get("name") or "").strip()
    if not name:
        raise ValidationFailed("Exercise name is required")
    unit = raw.get("reps_unit") or "reps"
    if unit not in REPS_UNITS:
        raise ValidationFailed(f"reps_unit must be one of {'|'.join(REPS_UNITS)}")
    completed = keep_completion and raw.get("completed") is True
    completed_at = None
    if completed:
        try:
            completed_at = iso_dt(parse_datetime(raw.get("completed_at"))) or now
        except ValueError:
            raise ValidationFailed("completed_at must be an ISO datetime")
    return {
        "id": str(raw.get("id") or new_id()),
        "name": name,
        "sets": str(raw.get("sets") or ""),
        "reps": str(raw.get("reps") or ""),
        "reps_unit": unit,
        "completed": completed,
        "completed_at": completed_at,
    }

def normalize_days(raw_days, now: str, keep_completion: bool = True) -> dict:
    """Coerce a weekday -> day mapping into the stored shape, one entry per weekday."""
    if not isinstance(raw_days, dict):
        raise ValidationFailed("days must be an object keyed by weekday name")
    unknown = set(raw_days) - set(DAY_NAMES)
    if unknown:
        raise ValidationFailed(f"Unknown day(s): {', '.join(sorted(unknown))}")
    days = {}
    for name in DAY_NAMES:
        raw = raw_days.get(name) or {}
        exercises = raw.get("exercises") or []
        if not isinstance(exercises, list):
            raise ValidationFailed(f"{name}.exercises must be a list")
        days[name] = {
            "name": str(raw.get("name") or "Rest Day"),
            "exercises": [_exercise(ex, now, keep_completion) for ex in exercises if isinstance(ex, dict)],
        }
    return days

def clone_days(template_days: dict, now: str) -> dict:
    """Fresh week days from a template: new exercise ids, nothing completed."""
    fresh = deepcopy(template_days)
    for day in fresh.values():
        for ex in day.get("exercises") or []:
            ex.pop("id", None)
    return normalize_days(fresh, now, keep_completion=False)

def day_progress(day: dict | None) -> tuple[int, int, bool]:
    """(total, completed, is_complete); a day without exercises is never complete."""
    exercises = (day or {}).get("exercises") or []
    total = len(exercises)
    done = sum(1 for ex in exercises if ex.get("completed"))
    return total, done, total > 0 and done == total

def week_completion(days: dict) -> tuple[int, int]:
    """(completed days, planned days) across a week."""
    completed = planned = 0
    for name in DAY_NAMES:
        total, _, is_complete = day_progress(days.get(name))
        if total:
            planned += 1
        if is_complete:
            completed += 1
    return completed, planned

def toggle_exercise(days: dict, day: str, exercise_id: str, now: str) -> dict:
    day_data = days.get(day)
    if day_data is None:
        raise NotFound("Day not found")
    exercise = next((ex for ex in day_data.get("exercises") or [] if ex.get("id") == exercise_id), None)
    if exercise is None:
        raise NotFound("Exercise not found")
    exercise["completed"] = not exercise.get("completed")
    exercise["completed_at"] = now if exercise["completed"] else None
    return days

def sync_with_template(current_days: dict, template_days: dict, now: str) -> dict:
    """Re-apply the template, keeping completion of exercises whose names match."""
    synced = {}
    for name in DAY_NAMES:
        template_day = template_days.get(name)
        current_day = current_days.get(name) or {"name": "Rest Day", "exercises": []}
        if not template_day:
            synced[name] = current_day
            continue
        done = {
            ex["name"].lower(): ex
            for ex in current_day.get("exercises") or []
            if ex.get("completed")
        }
        exercises = []
        for ex in template_day.get("exercises") or []:
            kept = done.get(ex["name"].lower())
            exercises.append({
                "id": kept["id"] if kept else new_id(),
                "name": ex["name"],
                "sets": ex.get("sets", ""),
                "reps": ex.get("reps", ""),
                "reps_unit": ex.get("reps_unit", "reps"),
                "completed": bool(kept),
                "completed_at": (kept.get("completed_at") or now) if kept else None,
            })
        synced[name] = {"name": template_day.get("name", "Rest Day"), "exercises": exercises}
    return synced

def archive_end_date(start: date) -> str:
    return datetime.combine(start + timedelta(days=6), time.max).isoformat(timespec="microseconds")

def new_workout(user_id: str, week_id: str, start: str, days: dict, now: str, is_template: bool = False) -> dict:
    return {
        "id": new_id(),
        "user_id": user_id,
        "week_id": week_id,
        "is_template": is_template,
        "start_date": start,
        "end_date": None,
        "archived_at": None,
        "days": days,
        "created_at": now,
        "updated_at": now,
    }
