from typing import Optional

from fastapi import APIRouter, Depends

from .schemas import GoalIn, GoalUpdate, ok
from ..auth import current_user
from ..db import get_conn
from ..domain import goals as goal_rules
from ..errors import ValidationFailed, require_owned
from ..pipeline.snapshots import spawn_refresh
from ..stores import goals as goal_store
from ..utils import iso_dt, now_iso, range_start, today_local

router = APIRouter(prefix="/goals", tags=["Goals"])

async def _owned_goal(conn, goal_id: str, user: dict) -> dict:
    return require_owned(await goal_store.get_goal(conn, goal_id), user["id"], "Goal")

async def _filtered(conn, user_id: str, completed: Optional[bool], time_range: Optional[str]) -> list[dict]:
    try:
        since = iso_dt(range_start(time_range))
    except ValueError as e:
        raise ValidationFailed(str(e))
    return await goal_store.list_goals(conn, user_id, completed=completed, since=since)

@router.get('', summary="List goals")
async def list_goals(completed: Optional[bool] = None, time_range: Optional[str] = None,
                     user: dict = Depends(current_user)):
    conn = await get_conn()
    goals = await _filtered(conn, user["id"], completed, time_range)
    return ok(goals, count=len(goals))

@router.get('/stats', summary="Goal and task completion rates")
async def goal_stats(time_range: Optional[str] = None, user: dict = Depends(current_user)):
    conn = await get_conn()
    goals = await _filtered(conn, user["id"], None, time_range)
    return ok(goal_rules.goal_stats(goals))

@router.get('/{goal_id}', summary="Get a goal")
async def get_goal(goal_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    return ok(await _owned_goal(conn, goal_id, user))

@router.post('', status_code=201, summary="Create a goal with tasks")
async def create_goal(body: GoalIn, user: dict = Depends(current_user)):
    goal = goal_rules.new_goal(
        user["id"], body.title, [t.model_dump() for t in body.tasks], body.target_date, now_iso(),
    )
    conn = await get_conn()
    await goal_store.insert_goal(conn, goal)
    spawn_refresh(user["id"], goal["created_at"], goal["completed_at"])
    return ok(goal, message="Goal created")

@router.put('/{goal_id}', summary="Update title, tasks or target date")
async def update_goal(goal_id: str, body: GoalUpdate, user: dict = Depends(current_user)):
    conn = await get_conn()
    goal = await _owned_goal(conn, goal_id, user)
    previous_completed_at = goal.get("completed_at")
    changes = body.model_dump(exclude_unset=True)
    if body.tasks is not None:
        changes["tasks"] = [t.model_dump() for t in body.tasks]
    goal = goal_rules.update_goal(goal, changes, now_iso())
    await goal_store.save_goal(conn, goal)
    spawn_refresh(user["id"], today_local(), goal.get("completed_at"), previous_completed_at)
    return ok(goal, message="Goal updated")

@router.patch('/{goal_id}/tasks/{task_id}', summary="Toggle one task")
async def toggle_task(goal_id: str, task_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    goal = await _owned_goal(conn, goal_id, user)
    previous_completed_at = goal.get("completed_at")
    goal = goal_rules.toggle_task(goal, task_id, now_iso())
    await goal_store.save_goal(conn, goal)
    spawn_refresh(user["id"], today_local(), goal.get("completed_at"), previous_completed_at)
    return ok(goal)

@router.delete('/{goal_id}', summary="Delete a goal")
async def delete_goal(goal_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    goal = await _owned_goal(conn, goal_id, user)
    await goal_store.delete_goal(conn, goal_id)
    spawn_refresh(user["id"], today_local(), goal.get("completed_at"))
    return ok(message="Goal deleted")
