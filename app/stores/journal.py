from __future__ import annotations

import aiosqlite

from ..db import execute, fetch_all, fetch_one, fetch_value
from ..utils import new_id, now_iso

_MUTABLE = ("title", "content", "date")

async def insert_entry(conn: aiosqlite.Connection, doc: dict) -> dict:
    await execute(
        conn,
        """
        INSERT INTO journals(id, user_id, title, content, date, created_at, updated_at)
        VALUES(?,?,?,?,?,?,?)
        """,
        (doc["id"], doc["user_id"], doc["title"], doc["content"], doc["date"], doc["created_at"], doc["updated_at"]),
    )
    return doc

async def create_entry(conn: aiosqlite.Connection, user_id: str, *, title: str, content: str, date: str) -> dict:
    now = now_iso()
    return await insert_entry(conn, {
        "id": new_id(),
        "user_id": user_id,
        "title": title,
        "content": content,
        "date": date,
        "created_at": now,
        "updated_at": now,
    })

async def get_entry(conn: aiosqlite.Connection, entry_id: str) -> dict | None:
    return await fetch_one(conn, "SELECT * FROM journals WHERE id=?", (entry_id,))

async def list_entries(conn: aiosqlite.Connection, user_id: str, *, since: str | None = None,
                       until: str | None = None) -> list[dict]:
    clauses, params = ["user_id=?"], [user_id]
    if since:
        clauses.append("date>=?")
        params.append(since)
    if until:
        clauses.append("date<=?")
        params.append(until)
    return await fetch_all(
        conn,
        f"SELECT * FROM journals WHERE {' AND '.join(clauses)} ORDER BY date DESC, created_at DESC",
        tuple(params),
    )

async def update_entry(conn: aiosqlite.Connection, entry_id: str, fields: dict) -> dict | None:
    changes = {k: v for k, v in fields.items() if k in _MUTABLE}
    if changes:
        assignments = ", ".join(f"{k}=?" for k in changes)
        await execute(
            conn,
            f"UPDATE journals SET {assignments}, updated_at=? WHERE id=?",
            (*changes.values(), now_iso(), entry_id),
        )
    return await get_entry(conn, entry_id)

async def delete_entry(conn: aiosqlite.Connection, entry_id: str) -> int:
    return await execute(conn, "DELETE FROM journals WHERE id=?", (entry_id,))

async def count_created_between(conn: aiosqlite.Connection, user_id: str, start: str, end: str) -> int:
    return int(await fetch_value(
        conn,
        "SELECT COUNT(*) FROM journals WHERE user_id=? AND created_at>=? AND created_at<=?",
        (user_id, start, end),
    ) or 0)

async def created_between(conn: aiosqlite.Connection, user_id: str, start: str, end: str) -> list[dict]:
    return await fetch_all(
        conn,
        "SELECT * FROM journals WHERE user_id=? AND created_at>=? AND created_at<=? ORDER BY created_at",
        (user_id, start, end),
    )

async def count_by_month(conn: aiosqlite.Connection, user_id: str, year: int) -> dict[int, int]:
    rows = await fetch_all(
        conn,
        """
        SELECT CAST(substr(date, 6, 2) AS INTEGER) AS month, COUNT(*) AS n
        FROM journals WHERE user_id=? AND substr(date, 1, 4)=?
        GROUP BY month ORDER BY month
        """,
        (user_id, f"{year:04d}"),
    )
    return {int(row["month"]): int(row["n"]) for row in rows}
