from __future__ import annotations

from datetime import timedelta

import aiosqlite
import structlog

from ..config import settings
from ..errors import Conflict, ValidationFailed, require_owned
from ..stores import goals as goal_store
from ..stores import journal as journal_store
from ..stores import ledger
from ..stores import trash as trash_store
from ..stores import workouts as workout_store
from ..utils import iso_dt, new_id, now_iso, now_local

log = structlog.get_logger()

_LABELS = {"goal": "Goal", "workout": "Workout", "budget": "Transaction", "journal": "Journal entry"}


async def _insert_workout(conn, doc):
    if not await workout_store.insert_workout(conn, doc):
        raise Conflict("A workout for this week already exists")
    return doc

# type -> (get by id, delete by id, insert document)
_COLLECTIONS = {
    "goal": (goal_store.get_goal, goal_store.delete_goal, goal_store.insert_goal),
    "workout": (workout_store.get_workout, workout_store.delete_workout, _insert_workout),
    "budget": (ledger.get_transaction, ledger.delete_transaction, ledger.insert_transaction),
    "journal": (journal_store.get_entry, journal_store.delete_entry, journal_store.insert_entry),
}


def _collection(item_type: str):
    if item_type not in _COLLECTIONS:
        raise ValidationFailed(f"type must be one of {'|'.join(trash_store.TRASH_TYPES)}")
    return _COLLECTIONS[item_type]


def affected_dates(item_type: str, doc: dict) -> list:
    """Dates whose snapshots depend on this document."""
    if item_type == "budget":
        return [doc.get("date")]
    if item_type == "journal":
        return [doc.get("created_at")]
    if item_type == "goal":
        return [doc.get("completed_at")]
    if item_type == "workout":
        return [doc.get("start_date")]
    return []


async def list_trash(conn: aiosqlite.Connection, user_id: str) -> list[dict]:
    await trash_store.purge_expired(conn, now_iso(), user_id=user_id)
    return await trash_store.list_items(conn, user_id)


async def move_to_trash(conn: aiosqlite.Connection, user_id: str, item_type: str, original_id: str) -> dict:
    get, delete, _ = _collection(item_type)
    doc = require_owned(await get(conn, original_id), user_id, _LABELS[item_type])
    if item_type == "workout" and doc.get("is_template"):
        raise ValidationFailed("The workout template cannot be moved to trash")
    now = now_local()
    item = {
        "id": new_id(),
        "user_id": user_id,
        "type": item_type,
        "original_id": original_id,
        "data": doc,
        "trashed_at": iso_dt(now),
        "expires_at": iso_dt(now + timedelta(days=settings.trash_retention_days)),
    }
    await trash_store.insert_item(conn, item)
    await delete(conn, original_id)
    log.info("trash_moved", user_id=user_id, type=item_type, original_id=original_id)
    return item


async def restore(conn: aiosqlite.Connection, user_id: str, item_id: str) -> tuple[dict, dict]:
    """Put a trashed document back under its original id. Returns (trash item, restored document)."""
    item = require_owned(await trash_store.get_item(conn, item_id), user_id, "Trash item")
    get, _, insert = _collection(item["type"])
    if await get(conn, item["original_id"]) is not None:
        raise Conflict("An item with this id already exists")
    doc = dict(item["data"])
    doc["id"] = item["original_id"]
    doc["user_id"] = user_id
    await insert(conn, doc)
    await trash_store.delete_item(conn, item_id)
    log.info("trash_restored", user_id=user_id, type=item["type"], original_id=item["original_id"])
    return item, doc


async def delete_permanently(conn: aiosqlite.Connection, user_id: str, item_id: str) -> None:
    require_owned(await trash_store.get_item(conn, item_id), user_id, "Trash item")
    await trash_store.delete_item(conn, item_id)


async def empty_trash(conn: aiosqlite.Connection, user_id: str) -> int:
    return await trash_store.empty(conn, user_id)
