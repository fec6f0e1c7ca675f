from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query

from .schemas import BackfillRequest, SnapshotRequest, ok
from ..auth import current_user
from ..config import settings
from ..db import get_conn
from ..errors import ValidationFailed
from ..pipeline import snapshots as snapshot_engine
from ..services.dashboard import dashboard_stats, day_activities
from ..stores import snapshots as snapshot_store
from ..utils import parse_date, today_local, week_start

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

def _date(raw: Optional[str], field: str):
    if not raw:
        return today_local()
    try:
        return parse_date(raw)
    except ValueError:
        raise ValidationFailed(f"{field} must be a YYYY-MM-DD date")

@router.get('/stats', summary="Current-week rollup")
async def stats(user: dict = Depends(current_user)):
    conn = await get_conn()
    return ok(await dashboard_stats(conn, user["id"]))

@router.get('/weekly', summary="Seven daily points for a week, cache first")
async def weekly(week_start_date: Optional[str] = Query(default=None, alias="week_start"),
                 user: dict = Depends(current_user)):
    start = week_start(_date(week_start_date, "week_start"))
    conn = await get_conn()
    days = await snapshot_engine.get_week(conn, user["id"], start)
    return ok(days, week_start=start.isoformat())

@router.get('/day/{day}', summary="Activities recorded on one day")
async def day_detail(day: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    return ok(await day_activities(conn, user["id"], _date(day, "date")))

@router.post('/snapshot', summary="Compute one day's snapshot now")
async def snapshot(body: Optional[SnapshotRequest] = None, user: dict = Depends(current_user)):
    day = _date(body.date if body else None, "date")
    conn = await get_conn()
    return ok(await snapshot_engine.compute_snapshot(conn, user["id"], day), message="Snapshot computed")

@router.post('/backfill', summary="Compute snapshots for the last N days")
async def backfill(body: Optional[BackfillRequest] = None, user: dict = Depends(current_user)):
    days = (body.days if body else None) or settings.backfill_default_days
    conn = await get_conn()
    count = await snapshot_engine.backfill(conn, user["id"], days)
    return ok({"days": count}, message=f"Backfilled {count} days")

@router.get('/history', summary="Stored snapshots for the last N days")
async def history(days: int = Query(default=30, ge=1, le=366), user: dict = Depends(current_user)):
    today = today_local()
    conn = await get_conn()
    rows = await snapshot_store.snapshots_between(
        conn, user["id"], (today - timedelta(days=days - 1)).isoformat(), today.isoformat(),
    )
    return ok(rows, count=len(rows))
