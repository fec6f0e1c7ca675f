from __future__ import annotations

import aiosqlite

from ..db import execute, fetch_all, fetch_one
from ..utils import new_id, now_iso

def public_user(user: dict) -> dict:
    return {k: v for k, v in user.items() if k != "password_hash"}

async def create_user(conn: aiosqlite.Connection, username: str, email: str, password_hash: str, avatar: str) -> dict:
    now = now_iso()
    user = {
        "id": new_id(),
        "username": username,
        "email": email,
        "password_hash": password_hash,
        "avatar": avatar,
        "created_at": now,
        "updated_at": now,
    }
    await execute(
        conn,
        """
        INSERT INTO users(id, username, email, password_hash, avatar, created_at, updated_at)
        VALUES(?,?,?,?,?,?,?)
        """,
        tuple(user.values()),
    )
    return user

async def get_user(conn: aiosqlite.Connection, user_id: str) -> dict | None:
    return await fetch_one(conn, "SELECT * FROM users WHERE id=?", (user_id,))

async def get_user_by_email(conn: aiosqlite.Connection, email: str) -> dict | None:
    return await fetch_one(conn, "SELECT * FROM users WHERE email=?", (email,))

async def list_user_ids(conn: aiosqlite.Connection) -> list[str]:
    rows = await fetch_all(conn, "SELECT id FROM users ORDER BY created_at")
    return [row["id"] for row in rows]

async def update_user(conn: aiosqlite.Connection, user_id: str, fields: dict) -> dict | None:
    allowed = {k: v for k, v in fields.items() if k in ("username", "email", "avatar", "password_hash")}
    if allowed:
        assignments = ", ".join(f"{k}=?" for k in allowed)
        await execute(
            conn,
            f"UPDATE users SET {assignments}, updated_at=? WHERE id=?",
            (*allowed.values(), now_iso(), user_id),
        )
    return await get_user(conn, user_id)
