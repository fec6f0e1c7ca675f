import unittest

from app.domain.workouts import (
    DEFAULT_TEMPLATE_DAYS,
    clone_days,
    day_progress,
    normalize_days,
    sync_with_template,
    toggle_exercise,
    week_completion,
)
from app.errors import NotFound, ValidationFailed

NOW = "2026-03-04T09:00:00.000000"


class DayProgressTests(unittest.TestCase):
    def test_rest_day_is_never_complete(self):
        self.assertEqual(day_progress({"name": "Rest Day", "exercises": []}), (0, 0, False))
        self.assertEqual(day_progress(None), (0, 0, False))

    def test_day_complete_only_when_all_exercises_done(self):
        day = {"exercises": [{"completed": True}, {"completed": False}]}
        self.assertEqual(day_progress(day), (2, 1, False))
        day["exercises"][1]["completed"] = True
        self.assertEqual(day_progress(day), (2, 2, True))

    def test_week_completion_counts_planned_days(self):
        days = clone_days(DEFAULT_TEMPLATE_DAYS, NOW)
        self.assertEqual(week_completion(days), (0, 5))
        for ex in days["Monday"]["exercises"]:
            ex["completed"] = True
        self.assertEqual(week_completion(days), (1, 5))


class WeekLifecycleTests(unittest.TestCase):
    def test_clone_resets_completion_and_ids(self):
        template = normalize_days(DEFAULT_TEMPLATE_DAYS, NOW, keep_completion=False)
        template["Monday"]["exercises"][0]["completed"] = True
        week = clone_days(template, NOW)
        self.assertEqual(set(week), set(DEFAULT_TEMPLATE_DAYS))
        first = week["Monday"]["exercises"][0]
        self.assertFalse(first["completed"])
        self.assertNotEqual(first["id"], template["Monday"]["exercises"][0]["id"])

    def test_toggle_sets_and_clears_timestamp(self):
        days = clone_days(DEFAULT_TEMPLATE_DAYS, NOW)
        ex_id = days["Friday"]["exercises"][0]["id"]
        toggle_exercise(days, "Friday", ex_id, NOW)
        self.assertTrue(days["Friday"]["exercises"][0]["completed"])
        self.assertEqual(days["Friday"]["exercises"][0]["completed_at"], NOW)
        toggle_exercise(days, "Friday", ex_id, NOW)
        self.assertIsNone(days["Friday"]["exercises"][0]["completed_at"])

    def test_toggle_unknown_targets(self):
        days = clone_days(DEFAULT_TEMPLATE_DAYS, NOW)
        with self.assertRaises(NotFound):
            toggle_exercise(days, "Funday", "x", NOW)
        with self.assertRaises(NotFound):
            toggle_exercise(days, "Monday", "x", NOW)

    def test_sync_keeps_completion_by_name(self):
        days = clone_days(DEFAULT_TEMPLATE_DAYS, NOW)
        days["Monday"]["exercises"][0]["completed"] = True
        days["Monday"]["exercises"][0]["completed_at"] = NOW
        template = normalize_days(DEFAULT_TEMPLATE_DAYS, NOW, keep_completion=False)
        template["Monday"]["exercises"][0]["name"] = "PUSH-UPS"
        template["Monday"]["exercises"].append({"name": "Dips", "sets": "3", "reps": "8", "reps_unit": "reps"})
        synced = sync_with_template(days, template, NOW)
        monday = synced["Monday"]["exercises"]
        self.assertEqual([ex["name"] for ex in monday], ["PUSH-UPS", "Bench Press", "Dips"])
        self.assertEqual([ex["completed"] for ex in monday], [True, False, False])

    def test_normalize_rejects_bad_input(self):
        with self.assertRaises(ValidationFailed):
            normalize_days({"Someday": {}}, NOW)
        with self.assertRaises(ValidationFailed):
            normalize_days({"Monday": {"exercises": [{"name": "Run", "reps_unit": "miles"}]}}, NOW)


if __name__ == "__main__":
    unittest.main()
