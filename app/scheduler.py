from __future__ import annotations
from datetime import timedelta
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from zoneinfo import ZoneInfo
import structlog

from .config import settings
from .db import get_conn
from .pipeline.archival import archive_all_users
from .pipeline.snapshots import compute_snapshot
from .stores import trash as trash_store
from .stores import users as user_store
from .utils import now_iso, parse_date, today_local

_log = structlog.get_logger()
_scheduler: AsyncIOScheduler | None = None

def get_scheduler() -> AsyncIOScheduler:
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(timezone=ZoneInfo(settings.local_tz))
    return _scheduler

def schedule_jobs(sched: AsyncIOScheduler | None = None) -> AsyncIOScheduler:
    sched = sched or get_scheduler()
    local = ZoneInfo(settings.local_tz)
    # Just after midnight: yesterday can no longer change
    sched.add_job(run_daily_snapshots, CronTrigger(hour=0, minute=5, timezone=local), id="snapshots_daily", replace_existing=True)
    # Just before midnight: keep today's cached row roughly current
    sched.add_job(run_end_of_day_snapshots, CronTrigger(hour=23, minute=59, timezone=local), id="snapshots_end_of_day", replace_existing=True)
    # Sunday: close out the week that ended on Saturday
    sched.add_job(run_weekly_archival, CronTrigger(day_of_week="sun", hour=0, minute=10, timezone=local), id="workouts_weekly_archive", replace_existing=True)
    sched.add_job(run_trash_purge, CronTrigger(hour=0, minute=30, timezone=local), id="trash_purge", replace_existing=True)
    sched.start()
    _log.info("scheduler_started", jobs=[job.id for job in sched.get_jobs()])
    return sched

def shutdown_scheduler():
    global _scheduler
    if _scheduler is not None and _scheduler.running:
        _scheduler.shutdown(wait=False)
        _log.info("scheduler_stopped")
    _scheduler = None

async def _snapshot_all_users(day, job: str) -> dict:
    conn = await get_conn()
    user_ids = await user_store.list_user_ids(conn)
    computed = failed = 0
    for user_id in user_ids:
        try:
            await compute_snapshot(conn, user_id, day)
            computed += 1
        except Exception:
            failed += 1
            _log.error("scheduler_snapshot_failed", job=job, user_id=user_id, date=day.isoformat(), exc_info=True)
    summary = {"date": day.isoformat(), "users": len(user_ids), "computed": computed, "failed": failed}
    _log.info(f"scheduler_{job}_done", **summary)
    return summary

async def run_daily_snapshots(day=None) -> dict:
    """Recompute one day (default: yesterday) for every user."""
    day = parse_date(day) if day is not None else today_local() - timedelta(days=1)
    return await _snapshot_all_users(day, "daily")

async def run_end_of_day_snapshots() -> dict:
    return await _snapshot_all_users(today_local(), "end_of_day")

async def run_weekly_archival(week_id: str | None = None) -> dict:
    conn = await get_conn()
    return await archive_all_users(conn, week_id=week_id)

async def run_trash_purge() -> dict:
    conn = await get_conn()
    deleted = await trash_store.purge_expired(conn, now_iso())
    _log.info("scheduler_trash_purge_done", deleted=deleted)
    return {"deleted": deleted}
