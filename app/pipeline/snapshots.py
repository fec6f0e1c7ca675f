"""Daily snapshot engine.

A snapshot is the per-user, per-day rollup of the four source collections
(transactions, goals, workouts, journals). Snapshots are a disposable cache:
``compute_day_metrics`` is the single authoritative calculation, and
``compute_snapshot`` is that calculation followed by one atomic upsert keyed
on (user_id, date). Reads go through ``get_week``, which serves stored
snapshots and recomputes missing days live without persisting them.
"""
from __future__ import annotations

import asyncio
from datetime import date, timedelta

import aiosqlite
import structlog

from ..db import get_conn
from ..domain.workouts import day_progress
from ..stores import goals as goal_store
from ..stores import journal as journal_store
from ..stores import ledger
from ..stores import snapshots as snapshot_store
from ..stores import workouts as workout_store
from ..utils import (
    SHORT_DAY_NAMES,
    day_bounds,
    day_name,
    now_iso,
    parse_date,
    round_money,
    sunday_index,
    today_local,
    week_days,
    week_id,
    week_start,
)

log = structlog.get_logger()

# Strong refs to fire-and-forget refreshes so they are not collected mid-run.
_background: set[asyncio.Task] = set()


async def compute_day_metrics(conn: aiosqlite.Connection, user_id: str, day) -> dict:
    """Compute one day's metrics from the source stores without writing anything.

    Read failures propagate to the caller.
    """
    day = parse_date(day)
    start, end = day_bounds(day)

    workout_completed = False
    workout_name = ""
    exercises_completed = 0
    total_exercises = 0
    week = await workout_store.get_week(conn, user_id, week_id(day))
    if week:
        day_data = week["days"].get(day_name(day))
        total, done, is_complete = day_progress(day_data)
        if total:
            workout_name = day_data.get("name") or ""
            total_exercises = total
            exercises_completed = done
            workout_completed = is_complete

    goals_completed = await goal_store.count_completed_between(conn, user_id, start, end)
    total_goals = await goal_store.count_goals(conn, user_id)

    day_totals = await ledger.totals_by_type(conn, user_id, since=start, until=end)
    income = round_money(day_totals["income"])
    expenses = round_money(day_totals["expense"])

    # Running balance has no ledger entity of its own: scan full history up to the day's end.
    history = await ledger.totals_by_type(conn, user_id, until=end)
    total_balance = round_money(history["income"] - history["expense"])

    journals_written = await journal_store.count_created_between(conn, user_id, start, end)

    return {
        "date": day.isoformat(),
        "income": income,
        "expenses": expenses,
        "savings": round_money(income - expenses),
        "total_balance": total_balance,
        "goals_completed": goals_completed,
        "total_goals": total_goals,
        "workout_completed": workout_completed,
        "workout_name": workout_name,
        "exercises_completed": exercises_completed,
        "total_exercises": total_exercises,
        "journals_written": journals_written,
    }


async def compute_snapshot(conn: aiosqlite.Connection, user_id: str, day) -> dict:
    metrics = await compute_day_metrics(conn, user_id, day)
    snapshot = await snapshot_store.upsert_snapshot(conn, user_id, metrics["date"], metrics, now_iso())
    log.debug("snapshot_computed", user_id=user_id, date=metrics["date"])
    return snapshot


def day_metrics(record: dict) -> dict:
    """Chart-facing projection shared by stored snapshots and live computations."""
    d = parse_date(record["date"])
    return {
        "date": record["date"],
        "day": SHORT_DAY_NAMES[sunday_index(d)],
        "workouts": 1 if record["workout_completed"] else 0,
        "goals": int(record["goals_completed"]),
        "savings": float(record["savings"]),
        "total_balance": float(record["total_balance"]),
        "income": float(record["income"]),
        "expenses": float(record["expenses"]),
        "exercises_completed": int(record["exercises_completed"]),
        "total_exercises": int(record["total_exercises"]),
        "journals": int(record["journals_written"]),
    }


async def get_week(conn: aiosqlite.Connection, user_id: str, start) -> list[dict]:
    start = parse_date(start)
    days = week_days(start)
    stored = await snapshot_store.snapshots_between(conn, user_id, days[0].isoformat(), days[-1].isoformat())
    cached = {s["date"]: s for s in stored}
    out = []
    misses = 0
    for d in days:
        record = cached.get(d.isoformat())
        if record is None:
            misses += 1
            record = await compute_day_metrics(conn, user_id, d)
        out.append(day_metrics(record))
    log.debug("week_served", user_id=user_id, week_start=start.isoformat(), hits=7 - misses, misses=misses)
    return out


async def refresh_week(conn: aiosqlite.Connection, user_id: str, anchor=None) -> int:
    """Recompute all seven snapshots of the anchor's week. Logs failures, never raises."""
    try:
        anchor = parse_date(anchor) if anchor is not None else today_local()
        refreshed = 0
        for d in week_days(week_start(anchor)):
            await compute_snapshot(conn, user_id, d)
            refreshed += 1
        log.info("week_refreshed", user_id=user_id, week_id=week_id(anchor))
        return refreshed
    except Exception:
        log.error("week_refresh_failed", user_id=user_id, anchor=str(anchor), exc_info=True)
        return 0


async def _refresh_in_background(user_id: str, anchors: list[date]):
    try:
        conn = await get_conn()
    except Exception:
        log.error("week_refresh_failed", user_id=user_id, reason="db_unavailable", exc_info=True)
        return
    for anchor in anchors:
        await refresh_week(conn, user_id, anchor)


def spawn_refresh(user_id: str, *anchors) -> asyncio.Task:
    """Schedule week refreshes for the given dates (default: today) without awaiting them."""
    weeks = {}
    for anchor in anchors or (today_local(),):
        if anchor is None:
            continue
        d = parse_date(anchor)
        weeks.setdefault(week_id(d), d)
    task = asyncio.get_running_loop().create_task(_refresh_in_background(user_id, list(weeks.values())))
    _background.add(task)
    task.add_done_callback(_background.discard)
    return task


async def wait_for_background():
    """Let in-flight refreshes finish; used at shutdown and in tests."""
    while _background:
        await asyncio.gather(*list(_background), return_exceptions=True)


async def backfill(conn: aiosqlite.Connection, user_id: str, days: int, today: date | None = None) -> int:
    """Compute the `days` calendar days ending today, oldest first, one at a time."""
    if days < 1:
        raise ValueError("days must be >= 1")
    today = parse_date(today) if today is not None else today_local()
    count = 0
    for offset in range(days - 1, -1, -1):
        await compute_snapshot(conn, user_id, today - timedelta(days=offset))
        count += 1
    log.info("snapshots_backfilled", user_id=user_id, days=days, through=today.isoformat())
    return count
