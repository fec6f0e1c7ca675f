from __future__ import annotations

from datetime import date, timedelta

import aiosqlite

from ..domain.workouts import day_progress, week_completion
from ..stores import goals as goal_store
from ..stores import journal as journal_store
from ..stores import ledger
from ..stores import workouts as workout_store
from ..utils import day_bounds, day_name, round_money, today_local, week_id, week_start


def percent_change(current: float, previous: float) -> float:
    if previous != 0:
        return (current - previous) / abs(previous) * 100
    if current > 0:
        return 100.0
    if current < 0:
        return -100.0
    return 0.0


async def dashboard_stats(conn: aiosqlite.Connection, user_id: str, today: date | None = None) -> dict:
    """Current-week rollup: balance to date, change against last week, week completion counts."""
    today = today or today_local()
    start = week_start(today)
    week_first, _ = day_bounds(start)
    _, week_last = day_bounds(start + timedelta(days=6))

    current = await ledger.totals_by_type(conn, user_id, until=day_bounds(today)[1])
    balance = current["income"] - current["expense"]
    previous = await ledger.totals_by_type(conn, user_id, until=day_bounds(start - timedelta(days=1))[1])
    previous_balance = previous["income"] - previous["expense"]

    workouts_completed = planned_days = 0
    week = await workout_store.get_week(conn, user_id, start.isoformat())
    if week:
        workouts_completed, planned_days = week_completion(week["days"])

    goals_completed = await goal_store.count_completed_between(conn, user_id, week_first, week_last)
    total_goals = await goal_store.count_open_or_completed_since(conn, user_id, week_first)

    return {
        "week_id": start.isoformat(),
        "savings": round(balance),
        "balance": round_money(balance),
        "savings_change": round(percent_change(balance, previous_balance)),
        "workouts_completed": workouts_completed,
        "total_workout_days": planned_days,
        "goals_completed": goals_completed,
        "total_goals": total_goals,
    }


async def day_activities(conn: aiosqlite.Connection, user_id: str, day: date) -> dict:
    """Everything recorded for one calendar day across the four source stores."""
    start, end = day_bounds(day)
    goals = await goal_store.completed_between(conn, user_id, start, end)
    totals = await ledger.totals_by_type(conn, user_id, since=start, until=end)
    transactions = await ledger.list_transactions(conn, user_id, since=start, until=end)
    journals = await journal_store.created_between(conn, user_id, start, end)

    workouts = []
    week = await workout_store.get_week(conn, user_id, week_id(day))
    if week:
        day_data = week["days"].get(day_name(day)) or {}
        total, done, is_complete = day_progress(day_data)
        if total:
            workouts.append({
                "title": day_data.get("name") or "",
                "exercises": [ex["name"] for ex in day_data["exercises"]],
                "exercises_completed": done,
                "total_exercises": total,
                "completed": is_complete,
            })

    return {
        "date": day.isoformat(),
        "goals": [{"id": g["id"], "title": g["title"], "completed": g["completed"]} for g in goals],
        "workouts": workouts,
        "budget": {
            "income": round_money(totals["income"]),
            "expenses": round_money(totals["expense"]),
            "transactions": transactions,
        },
        "journals": [{"id": j["id"], "title": j["title"], "content": j["content"]} for j in journals],
    }
