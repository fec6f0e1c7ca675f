from __future__ import annotations

import aiosqlite

from ..db import execute, fetch_all, fetch_one
from ..utils import new_id, now_iso

TX_TYPES = ("income", "expense")
_MUTABLE = ("item", "amount", "category", "date", "type")

def _row_to_tx(row: dict) -> dict:
    row["amount"] = float(row["amount"])
    return row

async def insert_transaction(conn: aiosqlite.Connection, doc: dict) -> dict:
    await execute(
        conn,
        """
        INSERT INTO transactions(id, user_id, item, amount, category, date, type, created_at, updated_at)
        VALUES(?,?,?,?,?,?,?,?,?)
        """,
        (
            doc["id"], doc["user_id"], doc["item"], float(doc["amount"]), doc["category"],
            doc["date"], doc["type"], doc["created_at"], doc["updated_at"],
        ),
    )
    return doc

async def create_transaction(conn: aiosqlite.Connection, user_id: str, *, item: str, amount: float,
                             category: str, date: str, type: str) -> dict:
    now = now_iso()
    return await insert_transaction(conn, {
        "id": new_id(),
        "user_id": user_id,
        "item": item,
        "amount": float(amount),
        "category": category,
        "date": date,
        "type": type,
        "created_at": now,
        "updated_at": now,
    })

async def get_transaction(conn: aiosqlite.Connection, tx_id: str) -> dict | None:
    row = await fetch_one(conn, "SELECT * FROM transactions WHERE id=?", (tx_id,))
    return _row_to_tx(row) if row else None

async def list_transactions(conn: aiosqlite.Connection, user_id: str, *, type: str | None = None,
                            since: str | None = None, until: str | None = None) -> list[dict]:
    clauses, params = ["user_id=?"], [user_id]
    if type:
        clauses.append("type=?")
        params.append(type)
    if since:
        clauses.append("date>=?")
        params.append(since)
    if until:
        clauses.append("date<=?")
        params.append(until)
    rows = await fetch_all(
        conn,
        f"SELECT * FROM transactions WHERE {' AND '.join(clauses)} ORDER BY date DESC, created_at DESC",
        tuple(params),
    )
    return [_row_to_tx(row) for row in rows]

async def update_transaction(conn: aiosqlite.Connection, tx_id: str, fields: dict) -> dict | None:
    changes = {k: v for k, v in fields.items() if k in _MUTABLE}
    if changes:
        assignments = ", ".join(f"{k}=?" for k in changes)
        await execute(
            conn,
            f"UPDATE transactions SET {assignments}, updated_at=? WHERE id=?",
            (*changes.values(), now_iso(), tx_id),
        )
    return await get_transaction(conn, tx_id)

async def delete_transaction(conn: aiosqlite.Connection, tx_id: str) -> int:
    return await execute(conn, "DELETE FROM transactions WHERE id=?", (tx_id,))

async def totals_by_type(conn: aiosqlite.Connection, user_id: str, *, since: str | None = None,
                         until: str | None = None) -> dict:
    """Income/expense sums and row count over [since, until]; either bound may be open."""
    clauses, params = ["user_id=?"], [user_id]
    if since:
        clauses.append("date>=?")
        params.append(since)
    if until:
        clauses.append("date<=?")
        params.append(until)
    rows = await fetch_all(
        conn,
        f"""
        SELECT type, COALESCE(SUM(amount), 0) AS total, COUNT(*) AS n
        FROM transactions WHERE {' AND '.join(clauses)}
        GROUP BY type
        """,
        tuple(params),
    )
    out = {"income": 0.0, "expense": 0.0, "count": 0}
    for row in rows:
        out[row["type"]] = float(row["total"])
        out["count"] += int(row["n"])
    return out

async def expenses_by_category(conn: aiosqlite.Connection, user_id: str, since: str | None = None) -> dict[str, float]:
    params = [user_id]
    where = "user_id=? AND type='expense'"
    if since:
        where += " AND date>=?"
        params.append(since)
    rows = await fetch_all(
        conn,
        f"SELECT category, SUM(amount) AS total FROM transactions WHERE {where} GROUP BY category ORDER BY total DESC",
        tuple(params),
    )
    return {row["category"]: round(float(row["total"]), 2) for row in rows}
