"""Goal documents and the completion rules for their embedded tasks.

A goal's ``completed`` flag is always derived from its tasks and
``completed_at`` is set only on the false -> true transition, cleared on any
other state. Every mutation below ends in ``apply_completion``.
"""
from __future__ import annotations

from ..errors import NotFound, ValidationFailed
from ..utils import iso_dt, new_id, parse_datetime

MIN_TITLE_LEN = 3

def _timestamp(val, field: str) -> str | None:
    try:
        return iso_dt(parse_datetime(val))
    except ValueError:
        raise ValidationFailed(f"{field} must be an ISO date or datetime")

def build_tasks(raw_tasks, now: str) -> list[dict]:
    """Normalize incoming tasks, dropping blank titles and keeping existing ids."""
    if not isinstance(raw_tasks, list) or not raw_tasks:
        raise ValidationFailed("Please provide at least one task")
    tasks = []
    for raw in raw_tasks:
        if not isinstance(raw, dict):
            continue
        title = str(raw.get("title") or "").strip()
        if not title:
            continue
        completed = raw.get("completed") is True
        completed_at = None
        if completed:
            completed_at = _timestamp(raw.get("completed_at"), "completed_at") or now
        tasks.append({
            "id": str(raw.get("id") or new_id()),
            "title": title,
            "completed": completed,
            "completed_at": completed_at,
        })
    if not tasks:
        raise ValidationFailed("Please provide at least one valid task")
    return tasks

def clean_title(title) -> str:
    text = str(title or "").strip()
    if len(text) < MIN_TITLE_LEN:
        raise ValidationFailed(f"Goal title must be at least {MIN_TITLE_LEN} characters")
    return text

def apply_completion(goal: dict, now: str) -> dict:
    tasks = goal.get("tasks") or []
    all_done = bool(tasks) and all(t.get("completed") for t in tasks)
    was_completed = bool(goal.get("completed"))
    goal["completed"] = all_done
    if all_done:
        if not was_completed or not goal.get("completed_at"):
            goal["completed_at"] = now
    else:
        goal["completed_at"] = None
    return goal

def new_goal(user_id: str, title, raw_tasks, target_date, now: str) -> dict:
    goal = {
        "id": new_id(),
        "user_id": user_id,
        "title": clean_title(title),
        "tasks": build_tasks(raw_tasks, now),
        "completed": False,
        "completed_at": None,
        "target_date": _timestamp(target_date, "target_date"),
        "created_at": now,
        "updated_at": now,
    }
    return apply_completion(goal, now)

def update_goal(goal: dict, changes: dict, now: str) -> dict:
    if changes.get("title") is not None:
        goal["title"] = clean_title(changes["title"])
    if changes.get("tasks") is not None:
        goal["tasks"] = build_tasks(changes["tasks"], now)
        apply_completion(goal, now)
    if "target_date" in changes:
        goal["target_date"] = _timestamp(changes["target_date"], "target_date")
    goal["updated_at"] = now
    return goal

def toggle_task(goal: dict, task_id: str, now: str) -> dict:
    task = next((t for t in goal.get("tasks") or [] if t.get("id") == task_id), None)
    if task is None:
        raise NotFound("Task not found")
    task["completed"] = not task.get("completed")
    task["completed_at"] = now if task["completed"] else None
    goal["updated_at"] = now
    return apply_completion(goal, now)

def goal_stats(goals: list[dict]) -> dict:
    total = len(goals)
    completed = sum(1 for g in goals if g.get("completed"))
    total_tasks = sum(len(g.get("tasks") or []) for g in goals)
    completed_tasks = sum(1 for g in goals for t in g.get("tasks") or [] if t.get("completed"))
    return {
        "total_goals": total,
        "completed_goals": completed,
        "active_goals": total - completed,
        "total_tasks": total_tasks,
        "completed_tasks": completed_tasks,
        "completion_rate": round(completed / total * 100, 1) if total else 0.0,
        "task_completion_rate": round(completed_tasks / total_tasks * 100, 1) if total_tasks else 0.0,
    }
