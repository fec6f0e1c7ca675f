from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends

from .schemas import JournalIn, JournalUpdate, ok, require_text
from ..auth import current_user
from ..db import get_conn
from ..errors import ValidationFailed, require_owned
from ..pipeline.snapshots import spawn_refresh
from ..stores import journal as journal_store
from ..utils import iso_dt, now_iso, parse_datetime, today_local

router = APIRouter(prefix="/journal", tags=["Journal"])

def _month_window(month: Optional[int], year: Optional[int]) -> tuple[Optional[str], Optional[str]]:
    """[first, last] instant of a month, or of a whole year when only `year` is given."""
    if month is None and year is None:
        return None, None
    year = year or today_local().year
    if not 1 <= year <= 9999:
        raise ValidationFailed("year is out of range")
    if month is None:
        start, end = date(year, 1, 1), date(year, 12, 31)
    else:
        if not 1 <= month <= 12:
            raise ValidationFailed("month must be between 1 and 12")
        start = date(year, month, 1)
        end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        end = date.fromordinal(end.toordinal() - 1)
    return iso_dt(datetime.combine(start, time.min)), iso_dt(datetime.combine(end, time.max))

def _entry_date(val) -> str:
    if not val:
        return now_iso()
    try:
        return iso_dt(parse_datetime(val))
    except ValueError:
        raise ValidationFailed("date must be an ISO date or datetime")

@router.get('', summary="List entries, optionally for one month")
async def list_entries(month: Optional[int] = None, year: Optional[int] = None,
                       user: dict = Depends(current_user)):
    since, until = _month_window(month, year)
    conn = await get_conn()
    rows = await journal_store.list_entries(conn, user["id"], since=since, until=until)
    return ok(rows, count=len(rows))

@router.get('/stats', summary="Entry counts for a month and per month of the year")
async def journal_stats(month: Optional[int] = None, year: Optional[int] = None,
                        user: dict = Depends(current_user)):
    since, until = _month_window(month, year)
    conn = await get_conn()
    rows = await journal_store.list_entries(conn, user["id"], since=since, until=until)
    by_month = await journal_store.count_by_month(conn, user["id"], year or today_local().year)
    return ok({
        "total_entries": len(rows),
        "entries_by_month": {str(m): by_month.get(m, 0) for m in range(1, 13)},
    })

@router.get('/{entry_id}', summary="Get an entry")
async def get_entry(entry_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    return ok(require_owned(await journal_store.get_entry(conn, entry_id), user["id"], "Journal entry"))

@router.post('', status_code=201, summary="Write an entry")
async def create_entry(body: JournalIn, user: dict = Depends(current_user)):
    conn = await get_conn()
    entry = await journal_store.create_entry(
        conn, user["id"],
        title=require_text(body.title, "title"), content=require_text(body.content, "content"),
        date=_entry_date(body.date),
    )
    spawn_refresh(user["id"], entry["created_at"])
    return ok(entry, message="Journal entry created")

@router.put('/{entry_id}', summary="Edit an entry")
async def update_entry(entry_id: str, body: JournalUpdate, user: dict = Depends(current_user)):
    conn = await get_conn()
    entry = require_owned(await journal_store.get_entry(conn, entry_id), user["id"], "Journal entry")
    fields = {}
    if body.title is not None:
        fields["title"] = require_text(body.title, "title")
    if body.content is not None:
        fields["content"] = require_text(body.content, "content")
    if body.date is not None:
        fields["date"] = _entry_date(body.date)
    updated = await journal_store.update_entry(conn, entry_id, fields)
    spawn_refresh(user["id"], entry["created_at"])
    return ok(updated, message="Journal entry updated")

@router.delete('/{entry_id}', summary="Delete an entry")
async def delete_entry(entry_id: str, user: dict = Depends(current_user)):
    conn = await get_conn()
    entry = require_owned(await journal_store.get_entry(conn, entry_id), user["id"], "Journal entry")
    await journal_store.delete_entry(conn, entry_id)
    spawn_refresh(user["id"], entry["created_at"])
    return ok(message="Journal entry deleted")
