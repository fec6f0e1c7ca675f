from __future__ import annotations

import json

import aiosqlite

from ..db import execute, fetch_all, fetch_one

TEMPLATE_WEEK_ID = "template"

def _row_to_workout(row: dict) -> dict:
    row["days"] = json.loads(row.pop("days_json") or "{}")
    row["is_template"] = bool(row["is_template"])
    return row

async def insert_workout(conn: aiosqlite.Connection, workout: dict) -> bool:
    """Insert unless (user_id, week_id) already exists; returns True when this call created it."""
    rowcount = await execute(
        conn,
        """
        INSERT OR IGNORE INTO workouts(id, user_id, week_id, is_template, start_date, end_date, archived_at,
                                       days_json, created_at, updated_at)
        VALUES(?,?,?,?,?,?,?,?,?,?)
        """,
        (
            workout["id"], workout["user_id"], workout["week_id"], int(workout["is_template"]),
            workout["start_date"], workout.get("end_date"), workout.get("archived_at"),
            json.dumps(workout["days"]), workout["created_at"], workout["updated_at"],
        ),
    )
    return rowcount > 0

async def get_workout(conn: aiosqlite.Connection, workout_id: str) -> dict | None:
    row = await fetch_one(conn, "SELECT * FROM workouts WHERE id=?", (workout_id,))
    return _row_to_workout(row) if row else None

async def get_week(conn: aiosqlite.Connection, user_id: str, week_id: str) -> dict | None:
    row = await fetch_one(
        conn,
        "SELECT * FROM workouts WHERE user_id=? AND week_id=? AND is_template=0",
        (user_id, week_id),
    )
    return _row_to_workout(row) if row else None

async def get_template(conn: aiosqlite.Connection, user_id: str) -> dict | None:
    row = await fetch_one(
        conn,
        "SELECT * FROM workouts WHERE user_id=? AND is_template=1",
        (user_id,),
    )
    return _row_to_workout(row) if row else None

async def save_days(conn: aiosqlite.Connection, workout_id: str, days: dict, updated_at: str) -> int:
    return await execute(
        conn,
        "UPDATE workouts SET days_json=?, updated_at=? WHERE id=?",
        (json.dumps(days), updated_at, workout_id),
    )

async def mark_archived(conn: aiosqlite.Connection, user_id: str, week_id: str, end_date: str, archived_at: str) -> int:
    """Stamp a week as archived. Matches only unarchived weeks, so it never re-stamps."""
    return await execute(
        conn,
        """
        UPDATE workouts SET end_date=?, archived_at=?, updated_at=?
        WHERE user_id=? AND week_id=? AND is_template=0 AND archived_at IS NULL
        """,
        (end_date, archived_at, archived_at, user_id, week_id),
    )

async def list_archived(conn: aiosqlite.Connection, user_id: str) -> list[dict]:
    rows = await fetch_all(
        conn,
        """
        SELECT * FROM workouts
        WHERE user_id=? AND is_template=0 AND archived_at IS NOT NULL
        ORDER BY archived_at DESC
        """,
        (user_id,),
    )
    return [_row_to_workout(row) for row in rows]

async def delete_workout(conn: aiosqlite.Connection, workout_id: str) -> int:
    return await execute(conn, "DELETE FROM workouts WHERE id=?", (workout_id,))
