from __future__ import annotations

import json

import aiosqlite

from ..db import execute, fetch_all, fetch_one, fetch_value

def _row_to_goal(row: dict) -> dict:
    row["tasks"] = json.loads(row.pop("tasks_json") or "[]")
    row["completed"] = bool(row["completed"])
    return row

async def insert_goal(conn: aiosqlite.Connection, goal: dict) -> dict:
    await execute(
        conn,
        """
        INSERT INTO goals(id, user_id, title, tasks_json, completed, completed_at, target_date, created_at, updated_at)
        VALUES(?,?,?,?,?,?,?,?,?)
        """,
        (
            goal["id"], goal["user_id"], goal["title"], json.dumps(goal["tasks"]),
            int(goal["completed"]), goal.get("completed_at"), goal.get("target_date"),
            goal["created_at"], goal["updated_at"],
        ),
    )
    return goal

async def save_goal(conn: aiosqlite.Connection, goal: dict) -> dict:
    """Write the whole goal document back in one statement."""
    await execute(
        conn,
        """
        UPDATE goals SET title=?, tasks_json=?, completed=?, completed_at=?, target_date=?, updated_at=?
        WHERE id=?
        """,
        (
            goal["title"], json.dumps(goal["tasks"]), int(goal["completed"]), goal.get("completed_at"),
            goal.get("target_date"), goal["updated_at"], goal["id"],
        ),
    )
    return goal

async def get_goal(conn: aiosqlite.Connection, goal_id: str) -> dict | None:
    row = await fetch_one(conn, "SELECT * FROM goals WHERE id=?", (goal_id,))
    return _row_to_goal(row) if row else None

async def list_goals(conn: aiosqlite.Connection, user_id: str, *, completed: bool | None = None,
                     since: str | None = None) -> list[dict]:
    clauses, params = ["user_id=?"], [user_id]
    if completed is not None:
        clauses.append("completed=?")
        params.append(int(completed))
    if since:
        clauses.append("(created_at>=? OR completed_at>=?)")
        params.extend([since, since])
    rows = await fetch_all(
        conn,
        f"SELECT * FROM goals WHERE {' AND '.join(clauses)} ORDER BY created_at DESC",
        tuple(params),
    )
    return [_row_to_goal(row) for row in rows]

async def delete_goal(conn: aiosqlite.Connection, goal_id: str) -> int:
    return await execute(conn, "DELETE FROM goals WHERE id=?", (goal_id,))

async def count_goals(conn: aiosqlite.Connection, user_id: str) -> int:
    return int(await fetch_value(conn, "SELECT COUNT(*) FROM goals WHERE user_id=?", (user_id,)) or 0)

async def count_completed_between(conn: aiosqlite.Connection, user_id: str, start: str, end: str) -> int:
    return int(await fetch_value(
        conn,
        "SELECT COUNT(*) FROM goals WHERE user_id=? AND completed=1 AND completed_at>=? AND completed_at<=?",
        (user_id, start, end),
    ) or 0)

async def completed_between(conn: aiosqlite.Connection, user_id: str, start: str, end: str) -> list[dict]:
    rows = await fetch_all(
        conn,
        """
        SELECT * FROM goals
        WHERE user_id=? AND completed=1 AND completed_at>=? AND completed_at<=?
        ORDER BY completed_at
        """,
        (user_id, start, end),
    )
    return [_row_to_goal(row) for row in rows]

async def count_open_or_completed_since(conn: aiosqlite.Connection, user_id: str, since: str) -> int:
    """Goals still open plus goals completed on or after `since`."""
    return int(await fetch_value(
        conn,
        "SELECT COUNT(*) FROM goals WHERE user_id=? AND (completed=0 OR completed_at>=?)",
        (user_id, since),
    ) or 0)
