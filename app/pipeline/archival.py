from __future__ import annotations

from datetime import date, timedelta

import aiosqlite
import structlog

from ..domain.workouts import archive_end_date
from ..stores import users as user_store
from ..stores import workouts as workout_store
from ..utils import now_iso, parse_date, today_local, week_start

log = structlog.get_logger()


def previous_week_id(today: date | None = None) -> str:
    """Week id of the last fully ended week relative to `today`."""
    today = today or today_local()
    return (week_start(today) - timedelta(days=7)).isoformat()


async def archive_week(conn: aiosqlite.Connection, user_id: str, week_id: str) -> tuple[dict | None, bool]:
    """Archive one week instance once. Returns (workout, archived_by_this_call)."""
    workout = await workout_store.get_week(conn, user_id, week_id)
    if workout is None:
        return None, False
    if workout.get("archived_at"):
        return workout, False
    end_date = archive_end_date(parse_date(workout["start_date"]))
    changed = await workout_store.mark_archived(conn, user_id, week_id, end_date, now_iso())
    workout = await workout_store.get_week(conn, user_id, week_id)
    if changed:
        log.info("workout_week_archived", user_id=user_id, week_id=week_id)
    return workout, bool(changed)


async def archive_all_users(conn: aiosqlite.Connection, week_id: str | None = None,
                            today: date | None = None) -> dict:
    week_id = week_id or previous_week_id(today)
    user_ids = await user_store.list_user_ids(conn)
    archived = failed = 0
    for user_id in user_ids:
        try:
            _, changed = await archive_week(conn, user_id, week_id)
        except Exception:
            failed += 1
            log.error("workout_archive_failed", user_id=user_id, week_id=week_id, exc_info=True)
            continue
        if changed:
            archived += 1
    log.info("workout_archival_done", week_id=week_id, users=len(user_ids), archived=archived, failed=failed)
    return {"week_id": week_id, "users": len(user_ids), "archived": archived, "failed": failed}
