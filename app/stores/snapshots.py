from __future__ import annotations

import aiosqlite

from ..db import execute, fetch_all, fetch_one

METRIC_FIELDS = (
    "income",
    "expenses",
    "savings",
    "total_balance",
    "goals_completed",
    "total_goals",
    "workout_completed",
    "workout_name",
    "exercises_completed",
    "total_exercises",
    "journals_written",
)

def _row_to_snapshot(row: dict) -> dict:
    row["workout_completed"] = bool(row["workout_completed"])
    for key in ("income", "expenses", "savings", "total_balance"):
        row[key] = float(row[key])
    return row

async def upsert_snapshot(conn: aiosqlite.Connection, user_id: str, day: str, metrics: dict, now: str) -> dict:
    """Insert or fully replace the (user_id, date) snapshot in one statement."""
    values = [metrics[f] for f in METRIC_FIELDS]
    values[METRIC_FIELDS.index("workout_completed")] = int(bool(metrics["workout_completed"]))
    columns = ", ".join(METRIC_FIELDS)
    placeholders = ",".join("?" for _ in METRIC_FIELDS)
    updates = ", ".join(f"{f}=excluded.{f}" for f in METRIC_FIELDS)
    await execute(
        conn,
        f"""
        INSERT INTO daily_snapshots(user_id, date, {columns}, created_at, updated_at)
        VALUES(?,?,{placeholders},?,?)
        ON CONFLICT(user_id, date) DO UPDATE SET {updates}, updated_at=excluded.updated_at
        """,
        (user_id, day, *values, now, now),
    )
    return await get_snapshot(conn, user_id, day)

async def get_snapshot(conn: aiosqlite.Connection, user_id: str, day: str) -> dict | None:
    row = await fetch_one(
        conn,
        "SELECT * FROM daily_snapshots WHERE user_id=? AND date=?",
        (user_id, day),
    )
    return _row_to_snapshot(row) if row else None

async def snapshots_between(conn: aiosqlite.Connection, user_id: str, start: str, end: str) -> list[dict]:
    rows = await fetch_all(
        conn,
        "SELECT * FROM daily_snapshots WHERE user_id=? AND date>=? AND date<=? ORDER BY date",
        (user_id, start, end),
    )
    return [_row_to_snapshot(row) for row in rows]

async def count_snapshots(conn: aiosqlite.Connection, user_id: str) -> int:
    row = await fetch_one(conn, "SELECT COUNT(*) AS n FROM daily_snapshots WHERE user_id=?", (user_id,))
    return int(row["n"]) if row else 0
