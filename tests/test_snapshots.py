import asyncio
import unittest
from datetime import date, timedelta
from unittest import mock

from app.domain.goals import new_goal, toggle_task
from app.domain.workouts import DEFAULT_TEMPLATE_DAYS, clone_days, new_workout
from app.pipeline import snapshots as engine
from app.stores import goals as goal_store
from app.stores import journal as journal_store
from app.stores import ledger
from app.stores import snapshots as snapshot_store
from app.stores import workouts as workout_store
from app.utils import today_local

from .support import DbTestCase, at

SUNDAY = date(2026, 3, 1)


class ComputeSnapshotTests(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.user_id = await self.make_user()

    async def _tx(self, amount, type, when):
        await ledger.create_transaction(
            self.conn, self.user_id, item="x", amount=amount, category="General", date=when, type=type,
        )

    async def test_cumulative_balance_across_days(self):
        await self._tx(100, "income", at(2026, 3, 1))
        await self._tx(30, "expense", at(2026, 3, 3))
        await self._tx(50, "income", at(2026, 3, 5))
        balances = []
        for offset in range(5):
            snap = await engine.compute_snapshot(self.conn, self.user_id, SUNDAY + timedelta(days=offset))
            balances.append(snap["total_balance"])
        self.assertEqual(balances, [100.0, 100.0, 70.0, 70.0, 120.0])

    async def test_day_totals(self):
        await self._tx(1000, "income", at(2026, 3, 2, 8))
        await self._tx(250.5, "expense", at(2026, 3, 2, 20))
        await self._tx(999, "expense", at(2026, 3, 3))
        snap = await engine.compute_snapshot(self.conn, self.user_id, date(2026, 3, 2))
        self.assertEqual(snap["income"], 1000.0)
        self.assertEqual(snap["expenses"], 250.5)
        self.assertEqual(snap["savings"], 749.5)

    async def test_recompute_is_idempotent(self):
        await self._tx(42, "income", at(2026, 3, 2))
        first = await engine.compute_snapshot(self.conn, self.user_id, date(2026, 3, 2))
        second = await engine.compute_snapshot(self.conn, self.user_id, date(2026, 3, 2))
        for field in snapshot_store.METRIC_FIELDS:
            self.assertEqual(first[field], second[field])
        self.assertEqual(await snapshot_store.count_snapshots(self.conn, self.user_id), 1)

    async def test_workout_goal_and_journal_metrics(self):
        now = at(2026, 3, 2, 7)
        days = clone_days(DEFAULT_TEMPLATE_DAYS, now)
        for ex in days["Monday"]["exercises"]:
            ex["completed"] = True
        await workout_store.insert_workout(
            self.conn, new_workout(self.user_id, "2026-03-01", "2026-03-01", days, now),
        )
        goal = new_goal(self.user_id, "Finish book", [{"title": "last chapter"}], None, now)
        toggle_task(goal, goal["tasks"][0]["id"], at(2026, 3, 2, 21))
        await goal_store.insert_goal(self.conn, goal)
        await goal_store.insert_goal(self.conn, new_goal(self.user_id, "Other goal", [{"title": "a"}], None, now))
        await journal_store.insert_entry(self.conn, {
            "id": "j1", "user_id": self.user_id, "title": "t", "content": "c",
            "date": now, "created_at": now, "updated_at": now,
        })

        monday = await engine.compute_snapshot(self.conn, self.user_id, date(2026, 3, 2))
        self.assertTrue(monday["workout_completed"])
        self.assertEqual(monday["workout_name"], "Push Day")
        self.assertEqual((monday["exercises_completed"], monday["total_exercises"]), (2, 2))
        self.assertEqual(monday["goals_completed"], 1)
        self.assertEqual(monday["total_goals"], 2)
        self.assertEqual(monday["journals_written"], 1)

        wednesday = await engine.compute_snapshot(self.conn, self.user_id, date(2026, 3, 4))
        self.assertFalse(wednesday["workout_completed"])
        self.assertEqual(wednesday["total_exercises"], 0)
        self.assertEqual(wednesday["goals_completed"], 0)

    async def test_read_failure_propagates_and_writes_nothing(self):
        with mock.patch.object(ledger, "totals_by_type", side_effect=RuntimeError("db down")):
            with self.assertRaises(RuntimeError):
                await engine.compute_snapshot(self.conn, self.user_id, date(2026, 3, 2))
        self.assertEqual(await snapshot_store.count_snapshots(self.conn, self.user_id), 0)


class WeekQueryTests(DbTestCase):
    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.user_id = await self.make_user()
        await ledger.create_transaction(
            self.conn, self.user_id, item="pay", amount=500, category="Work", date=at(2026, 3, 2), type="income",
        )
        await ledger.create_transaction(
            self.conn, self.user_id, item="food", amount=20, category="Food", date=at(2026, 3, 4), type="expense",
        )

    async def test_cached_and_live_days_agree(self):
        live = [
            engine.day_metrics(await engine.compute_day_metrics(self.conn, self.user_id, SUNDAY + timedelta(days=i)))
            for i in range(7)
        ]
        for i in (1, 2, 3):
            await engine.compute_snapshot(self.conn, self.user_id, SUNDAY + timedelta(days=i))
        week = await engine.get_week(self.conn, self.user_id, SUNDAY)
        self.assertEqual(week, live)
        self.assertEqual([d["day"] for d in week], ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"])
        # live misses are not persisted
        self.assertEqual(await snapshot_store.count_snapshots(self.conn, self.user_id), 3)

    async def test_refresh_week_writes_all_seven_days(self):
        refreshed = await engine.refresh_week(self.conn, self.user_id, date(2026, 3, 4))
        self.assertEqual(refreshed, 7)
        rows = await snapshot_store.snapshots_between(self.conn, self.user_id, "2026-03-01", "2026-03-07")
        self.assertEqual([r["date"] for r in rows], [(SUNDAY + timedelta(days=i)).isoformat() for i in range(7)])

    async def test_refresh_week_logs_and_swallows_failures(self):
        with mock.patch.object(engine, "compute_snapshot", side_effect=RuntimeError("boom")):
            refreshed = await engine.refresh_week(self.conn, self.user_id, date(2026, 3, 4))
        self.assertEqual(refreshed, 0)

    async def test_spawn_refresh_runs_in_background(self):
        task = engine.spawn_refresh(self.user_id, date(2026, 3, 4), "2026-03-05", None)
        self.assertIsInstance(task, asyncio.Task)
        await engine.wait_for_background()
        self.assertEqual(await snapshot_store.count_snapshots(self.conn, self.user_id), 7)


class BackfillTests(DbTestCase):
    async def test_backfill_writes_one_row_per_day(self):
        user_id = await self.make_user()
        count = await engine.backfill(self.conn, user_id, 7)
        self.assertEqual(count, 7)
        today = today_local()
        rows = await snapshot_store.snapshots_between(
            self.conn, user_id, (today - timedelta(days=6)).isoformat(), today.isoformat(),
        )
        self.assertEqual(len(rows), 7)

    async def test_backfill_rejects_non_positive_days(self):
        user_id = await self.make_user()
        with self.assertRaises(ValueError):
            await engine.backfill(self.conn, user_id, 0)


if __name__ == "__main__":
    unittest.main()
