import unittest
from datetime import date, datetime

from app.db import resolve_db_path
from app.utils import day_bounds, day_name, parse_date, parse_datetime, range_start, week_days, week_id, week_start


class WeekMathTests(unittest.TestCase):
    def test_weeks_start_on_sunday(self):
        # 2026-03-04 is a Wednesday
        self.assertEqual(week_start(date(2026, 3, 4)), date(2026, 3, 1))
        self.assertEqual(week_start(date(2026, 3, 1)), date(2026, 3, 1))
        self.assertEqual(week_start(date(2026, 3, 7)), date(2026, 3, 1))
        self.assertEqual(week_id(date(2026, 3, 8)), "2026-03-08")

    def test_week_days_and_names(self):
        days = week_days(date(2026, 3, 1))
        self.assertEqual(len(days), 7)
        self.assertEqual(day_name(days[0]), "Sunday")
        self.assertEqual(day_name(days[-1]), "Saturday")

    def test_day_bounds_cover_whole_day(self):
        start, end = day_bounds(date(2026, 3, 2))
        self.assertEqual(start, "2026-03-02T00:00:00.000000")
        self.assertEqual(end, "2026-03-02T23:59:59.999999")


class ParsingTests(unittest.TestCase):
    def test_parse_datetime_forms(self):
        self.assertEqual(parse_datetime("2026-03-02"), datetime(2026, 3, 2))
        self.assertEqual(parse_datetime("2026-03-02T10:30:00Z"), datetime(2026, 3, 2, 10, 30))
        self.assertIsNone(parse_datetime(""))
        with self.assertRaises(ValueError):
            parse_datetime("not-a-date")

    def test_parse_date(self):
        self.assertEqual(parse_date("2026-03-02T23:00:00"), date(2026, 3, 2))
        with self.assertRaises(ValueError):
            parse_date(None)

    def test_range_start(self):
        now = datetime(2026, 3, 4, 15, 0)
        self.assertIsNone(range_start("all", now))
        self.assertEqual(range_start("daily", now), datetime(2026, 3, 4))
        self.assertEqual(range_start("weekly", now), datetime(2026, 3, 1))
        self.assertEqual(range_start("monthly", now), datetime(2026, 3, 1))
        self.assertEqual(range_start("annually", now), datetime(2026, 1, 1))
        with self.assertRaises(ValueError):
            range_start("hourly", now)

    def test_resolve_db_path(self):
        self.assertEqual(resolve_db_path("sqlite:///data/app.db"), "data/app.db")
        self.assertEqual(resolve_db_path(":memory:"), ":memory:")


if __name__ == "__main__":
    unittest.main()
