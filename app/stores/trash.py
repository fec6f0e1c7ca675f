from __future__ import annotations

import json

import aiosqlite

from ..db import execute, fetch_all, fetch_one

TRASH_TYPES = ("goal", "workout", "budget", "journal")

def _row_to_item(row: dict) -> dict:
    row["data"] = json.loads(row.pop("data_json"))
    return row

async def insert_item(conn: aiosqlite.Connection, item: dict) -> dict:
    await execute(
        conn,
        """
        INSERT INTO trash(id, user_id, type, original_id, data_json, trashed_at, expires_at)
        VALUES(?,?,?,?,?,?,?)
        """,
        (
            item["id"], item["user_id"], item["type"], item["original_id"],
            json.dumps(item["data"]), item["trashed_at"], item["expires_at"],
        ),
    )
    return item

async def get_item(conn: aiosqlite.Connection, item_id: str) -> dict | None:
    row = await fetch_one(conn, "SELECT * FROM trash WHERE id=?", (item_id,))
    return _row_to_item(row) if row else None

async def list_items(conn: aiosqlite.Connection, user_id: str) -> list[dict]:
    rows = await fetch_all(
        conn,
        "SELECT * FROM trash WHERE user_id=? ORDER BY trashed_at DESC",
        (user_id,),
    )
    return [_row_to_item(row) for row in rows]

async def delete_item(conn: aiosqlite.Connection, item_id: str) -> int:
    return await execute(conn, "DELETE FROM trash WHERE id=?", (item_id,))

async def empty(conn: aiosqlite.Connection, user_id: str) -> int:
    return await execute(conn, "DELETE FROM trash WHERE user_id=?", (user_id,))

async def purge_expired(conn: aiosqlite.Connection, now: str, user_id: str | None = None) -> int:
    if user_id is None:
        return await execute(conn, "DELETE FROM trash WHERE expires_at<=?", (now,))
    return await execute(conn, "DELETE FROM trash WHERE user_id=? AND expires_at<=?", (user_id, now))
