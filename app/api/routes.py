from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from .auth import router as auth_router
from .budget import router as budget_router
from .dashboard import router as dashboard_router
from .goals import router as goals_router
from .journal import router as journal_router
from .schemas import ArchiveRequest, SnapshotRequest, ok
from .trash import router as trash_router
from .workouts import router as workouts_router
from ..auth import current_user
from ..db import fetch_value, get_conn
from ..errors import ValidationFailed
from ..scheduler import get_scheduler, run_daily_snapshots, run_end_of_day_snapshots, run_trash_purge, run_weekly_archival
from ..utils import parse_date, week_id

router = APIRouter()

api = APIRouter(prefix="/api")
for sub in (auth_router, budget_router, goals_router, workouts_router, journal_router, trash_router, dashboard_router):
    api.include_router(sub)

@router.get(
    '/health',
    summary="Health check",
    description="Returns service and DB connectivity plus the scheduled jobs.",
    tags=["Health"],
)
async def health():
    try:
        conn = await get_conn()
        users = await fetch_value(conn, "SELECT COUNT(*) FROM users")
    except Exception as e:
        raise HTTPException(503, f'db_error: {e}')
    sched = get_scheduler()
    jobs = [{'id': j.id, 'next_run': str(j.next_run_time)} for j in sched.get_jobs()] if sched.running else []
    return {'ok': True, 'db': 'ok', 'users': users, 'jobs': jobs}

@api.post(
    '/scheduler/daily-snapshots',
    summary="Recompute one day for every user",
    description="Defaults to yesterday, as the nightly job does.",
    tags=["Scheduler"],
)
async def trigger_daily(body: Optional[SnapshotRequest] = None, user: dict = Depends(current_user)):
    day = None
    if body and body.date:
        try:
            day = parse_date(body.date)
        except ValueError:
            raise ValidationFailed("date must be a YYYY-MM-DD date")
    return ok(await run_daily_snapshots(day))

@api.post('/scheduler/end-of-day', summary="Capture today for every user", tags=["Scheduler"])
async def trigger_end_of_day(user: dict = Depends(current_user)):
    return ok(await run_end_of_day_snapshots())

@api.post(
    '/scheduler/archive-weeks',
    summary="Archive a week for every user",
    description="Defaults to the week that just ended.",
    tags=["Scheduler"],
)
async def trigger_archive(body: Optional[ArchiveRequest] = None, user: dict = Depends(current_user)):
    wid = None
    if body and body.week_id:
        try:
            wid = week_id(parse_date(body.week_id))
        except ValueError:
            raise ValidationFailed("week_id must be a YYYY-MM-DD date")
    return ok(await run_weekly_archival(wid))

@api.post('/scheduler/purge-trash', summary="Delete expired trash for every user", tags=["Scheduler"])
async def trigger_purge(user: dict = Depends(current_user)):
    return ok(await run_trash_purge())

router.include_router(api)
