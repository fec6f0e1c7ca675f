import unittest
from datetime import date

from app.domain.workouts import DEFAULT_TEMPLATE_DAYS, clone_days, new_workout
from app.pipeline.archival import archive_all_users, archive_week, previous_week_id
from app.stores import workouts as workout_store

from .support import DbTestCase, at


class ArchivalTests(DbTestCase):
    async def _week(self, user_id, week_id="2026-03-01"):
        now = at(2026, 3, 1, 8)
        await workout_store.insert_workout(
            self.conn, new_workout(user_id, week_id, week_id, clone_days(DEFAULT_TEMPLATE_DAYS, now), now),
        )

    def test_previous_week_is_the_one_that_just_ended(self):
        self.assertEqual(previous_week_id(date(2026, 3, 8)), "2026-03-01")
        self.assertEqual(previous_week_id(date(2026, 3, 11)), "2026-03-01")

    async def test_archive_is_one_way_and_idempotent(self):
        user_id = await self.make_user()
        await self._week(user_id)
        workout, archived = await archive_week(self.conn, user_id, "2026-03-01")
        self.assertTrue(archived)
        self.assertEqual(workout["end_date"], "2026-03-07T23:59:59.999999")
        stamped = workout["archived_at"]

        again, archived = await archive_week(self.conn, user_id, "2026-03-01")
        self.assertFalse(archived)
        self.assertEqual(again["archived_at"], stamped)

        history = await workout_store.list_archived(self.conn, user_id)
        self.assertEqual([w["week_id"] for w in history], ["2026-03-01"])

    async def test_missing_week_is_a_noop(self):
        user_id = await self.make_user()
        workout, archived = await archive_week(self.conn, user_id, "2026-03-01")
        self.assertIsNone(workout)
        self.assertFalse(archived)

    async def test_archive_all_users(self):
        first = await self.make_user("a@example.com")
        second = await self.make_user("b@example.com")
        await self.make_user("c@example.com")
        await self._week(first)
        await self._week(second)

        summary = await archive_all_users(self.conn, today=date(2026, 3, 8))
        self.assertEqual(summary, {"week_id": "2026-03-01", "users": 3, "archived": 2, "failed": 0})

        rerun = await archive_all_users(self.conn, week_id="2026-03-01")
        self.assertEqual(rerun["archived"], 0)


if __name__ == "__main__":
    unittest.main()
