import unittest

from app.domain.goals import build_tasks, goal_stats, new_goal, toggle_task, update_goal
from app.errors import NotFound, ValidationFailed

NOW = "2026-03-04T09:00:00.000000"
LATER = "2026-03-04T18:00:00.000000"


class GoalCompletionTests(unittest.TestCase):
    def _goal(self):
        return new_goal("u1", "Read more", [{"title": "a"}, {"title": "b"}, {"title": "c"}], None, NOW)

    def test_goal_completes_only_when_every_task_is_done(self):
        goal = self._goal()
        ids = [t["id"] for t in goal["tasks"]]
        toggle_task(goal, ids[0], NOW)
        toggle_task(goal, ids[1], NOW)
        self.assertFalse(goal["completed"])
        self.assertIsNone(goal["completed_at"])

        toggle_task(goal, ids[2], LATER)
        self.assertTrue(goal["completed"])
        self.assertEqual(goal["completed_at"], LATER)

        toggle_task(goal, ids[2], LATER)
        self.assertFalse(goal["completed"])
        self.assertIsNone(goal["completed_at"])

    def test_completed_at_kept_while_goal_stays_complete(self):
        goal = new_goal("u1", "Ship it", [{"title": "only", "completed": True}], None, NOW)
        self.assertTrue(goal["completed"])
        self.assertEqual(goal["completed_at"], NOW)
        update_goal(goal, {"title": "Ship it now"}, LATER)
        self.assertEqual(goal["completed_at"], NOW)

    def test_replacing_tasks_rederives_completion(self):
        goal = new_goal("u1", "Ship it", [{"title": "only", "completed": True}], None, NOW)
        update_goal(goal, {"tasks": [{"title": "only", "completed": True}, {"title": "more"}]}, LATER)
        self.assertFalse(goal["completed"])
        self.assertIsNone(goal["completed_at"])

    def test_unknown_task_is_not_found(self):
        with self.assertRaises(NotFound):
            toggle_task(self._goal(), "missing", NOW)


class GoalValidationTests(unittest.TestCase):
    def test_blank_tasks_are_dropped(self):
        tasks = build_tasks([{"title": "  "}, {"title": "real"}], NOW)
        self.assertEqual([t["title"] for t in tasks], ["real"])

    def test_no_valid_tasks_rejected(self):
        with self.assertRaises(ValidationFailed):
            build_tasks([], NOW)
        with self.assertRaises(ValidationFailed):
            build_tasks([{"title": ""}], NOW)

    def test_short_title_rejected(self):
        with self.assertRaises(ValidationFailed):
            new_goal("u1", "ab", [{"title": "a"}], None, NOW)

    def test_bad_target_date_rejected(self):
        with self.assertRaises(ValidationFailed):
            new_goal("u1", "Valid title", [{"title": "a"}], "someday", NOW)


class GoalStatsTests(unittest.TestCase):
    def test_rates(self):
        done = new_goal("u1", "Done goal", [{"title": "a", "completed": True}], None, NOW)
        open_ = new_goal("u1", "Open goal", [{"title": "a"}, {"title": "b", "completed": True}], None, NOW)
        stats = goal_stats([done, open_])
        self.assertEqual(stats["total_goals"], 2)
        self.assertEqual(stats["completed_goals"], 1)
        self.assertEqual(stats["active_goals"], 1)
        self.assertEqual(stats["completion_rate"], 50.0)
        self.assertEqual(stats["task_completion_rate"], 66.7)
        self.assertEqual(goal_stats([])["completion_rate"], 0.0)


if __name__ == "__main__":
    unittest.main()
