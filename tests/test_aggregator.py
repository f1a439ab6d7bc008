#!/usr/bin/env python
# tests/test_aggregator.py

import os
import sys
import unittest
from datetime import datetime, timezone
from unittest.mock import patch
from zoneinfo import ZoneInfo

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from poultry_ops.core.analytics import Period, EventRecord, aggregate_events, clean_events, compute_windows
from poultry_ops.core.analytics.aggregator import resolve_now

# Sunday, 31 March 2024 15:30 UTC
NOW = datetime(2024, 3, 31, 15, 30, tzinfo=timezone.utc)

BERLIN = ZoneInfo("Europe/Berlin")


def ts(*args):
    return int(datetime(*args, tzinfo=timezone.utc).timestamp())


class TestCleanEvents(unittest.TestCase):
    """Cleaning of raw log records."""

    def setUp(self):
        self.raw = [
            {"id": "a", "timestamp": ts(2024, 3, 31, 1), "value": 10, "ageGroup": "chick"},
            {"id": "b", "timestamp": str(ts(2024, 3, 31, 2)), "value": "2.5"},
            {"id": "c", "timestamp": ts(2024, 3, 31, 3), "value": 0},
            {"id": "d", "timestamp": ts(2024, 3, 31, 3), "value": -4},
            {"id": "e", "timestamp": 0, "value": 5},
            {"id": "f", "timestamp": -10, "value": 5},
            {"id": "g", "value": 5},
            {"id": "h", "timestamp": ts(2024, 3, 31, 4)},
            {"id": "i", "timestamp": ts(2024, 3, 31, 4), "value": "abc"},
            {"id": "j", "timestamp": ts(2024, 3, 31, 4), "value": True},
            {"id": "k", "timestamp": "soon", "value": 5},
            "not a record",
        ]

    def test_keeps_only_valid_records(self):
        records = clean_events(self.raw)

        self.assertEqual([record.key for record in records], ["a", "b"])
        self.assertEqual(records[1].timestamp, ts(2024, 3, 31, 2))
        self.assertEqual(records[1].value, 2.5)
        self.assertEqual(records[0].metadata, {"ageGroup": "chick"})

    def test_idempotent(self):
        once = clean_events(self.raw)
        twice = clean_events(once)
        self.assertEqual(once, twice)

    def test_millisecond_timestamp_is_dropped(self):
        records = clean_events([
            {"id": "s", "timestamp": ts(2024, 3, 31, 1), "value": 10},
            {"id": "ms", "timestamp": 1711899000000, "value": 5},
        ])
        self.assertEqual([record.key for record in records], ["s"])

    def test_custom_value_field(self):
        records = clean_events([{"timestamp": ts(2024, 3, 31, 1), "gramsDispensed": 150}], value_field="gramsDispensed")
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].value, 150)


class TestComputeWindows(unittest.TestCase):

    def test_comparison_ends_one_second_before_current(self):
        for period in Period:
            current, comparison = compute_windows(period, NOW)
            self.assertEqual(comparison.end, current.start - 1, period)
            self.assertLessEqual(current.start, current.end)
            self.assertLessEqual(comparison.start, comparison.end)
            self.assertEqual(current.end, int(NOW.timestamp()))

    def test_day(self):
        current, comparison = compute_windows("day", NOW)
        self.assertEqual(current.start, ts(2024, 3, 31))
        self.assertEqual(comparison.start, ts(2024, 3, 30))

    def test_week_starts_on_sunday_by_default(self):
        current, comparison = compute_windows("week", NOW)
        self.assertEqual(current.start, ts(2024, 3, 31))
        self.assertEqual(comparison.start, ts(2024, 3, 24))

    def test_week_start_is_configurable(self):
        current, comparison = compute_windows("week", NOW, week_start=0)
        self.assertEqual(current.start, ts(2024, 3, 25))
        self.assertEqual(comparison.start, ts(2024, 3, 18))

    def test_month_compares_whole_previous_month(self):
        current, comparison = compute_windows("month", NOW)
        self.assertEqual(current.start, ts(2024, 3, 1))
        self.assertEqual(comparison.start, ts(2024, 2, 1))
        self.assertEqual(comparison.end, ts(2024, 3, 1) - 1)

    def test_january_compares_with_december(self):
        current, comparison = compute_windows("month", datetime(2024, 1, 15, 8, tzinfo=timezone.utc))
        self.assertEqual(current.start, ts(2024, 1, 1))
        self.assertEqual(comparison.start, ts(2023, 12, 1))


class TestDaylightSaving(unittest.TestCase):
    """Europe/Berlin switches from CET (+1) to CEST (+2) on 31 March 2024."""

    def test_month_windows_start_at_local_midnight(self):
        current, comparison = compute_windows("month", datetime(2024, 4, 15, 12, tzinfo=BERLIN))

        # 1 April 00:00 CEST and 1 March 00:00 CET
        self.assertEqual(current.start, ts(2024, 3, 31, 22))
        self.assertEqual(comparison.start, ts(2024, 2, 29, 23))
        self.assertEqual(comparison.end, current.start - 1)

    def test_day_window_after_the_switch(self):
        current, comparison = compute_windows("day", datetime(2024, 4, 1, 12, tzinfo=BERLIN))
        self.assertEqual(current.start, ts(2024, 3, 31, 22))
        # 31 March 00:00 was still CET
        self.assertEqual(comparison.start, ts(2024, 3, 30, 23))

    def test_events_land_in_their_local_day(self):
        events = [
            # 1 March 00:30 CET
            {"timestamp": ts(2024, 2, 29, 23, 30), "value": 4},
            # 29 February 23:30 CET, outside the compared month
            {"timestamp": ts(2024, 2, 29, 22, 30), "value": 50},
        ]
        result = aggregate_events(events, "month", compare=True, now=datetime(2024, 4, 15, 12, tzinfo=BERLIN))

        self.assertEqual(result.points[0].comparison, 4)
        self.assertEqual(sum(point.comparison or 0 for point in result.points), 4)

    def test_naive_now_uses_configured_zone(self):
        with patch.dict(os.environ, {"TIMEZONE": "Europe/Berlin"}):
            now = resolve_now(datetime(2024, 4, 15, 12))
            current, comparison = compute_windows("month", datetime(2024, 4, 15, 12))

        self.assertEqual(now.tzinfo, BERLIN)
        self.assertEqual(comparison.start, ts(2024, 2, 29, 23))
        self.assertEqual(current.start, ts(2024, 3, 31, 22))

    def test_unknown_zone_falls_back_to_utc(self):
        with patch.dict(os.environ, {"TIMEZONE": "Mars/Olympus"}):
            now = resolve_now(datetime(2024, 4, 15, 12))
        self.assertEqual(now.utcoffset().total_seconds(), 0)


class TestAggregateEvents(unittest.TestCase):

    def setUp(self):
        self.events = [
            {"timestamp": ts(2024, 3, 31, 1, 10), "value": 10},
            {"timestamp": ts(2024, 3, 31, 1, 50), "value": 5},
            {"timestamp": ts(2024, 3, 31, 14), "value": 7},
            # After now: outside the current window
            {"timestamp": ts(2024, 3, 31, 23), "value": 100},
            {"timestamp": ts(2024, 3, 30, 1), "value": 3},
        ]

    def test_day_buckets(self):
        result = aggregate_events(self.events, Period.DAY, compare=True, now=NOW)

        self.assertTrue(result.has_data)
        self.assertEqual(len(result.points), 24)
        self.assertEqual(result.points[1].label, "01:00")
        self.assertEqual(result.points[1].current, 15)
        self.assertEqual(result.points[14].current, 7)
        self.assertEqual(result.points[23].current, 0)
        self.assertEqual(result.points[1].comparison, 3)
        self.assertEqual(result.points[0].comparison, 0)

    def test_bucket_sums_match_window_total(self):
        result = aggregate_events(self.events, Period.DAY, now=NOW)
        self.assertEqual(sum(point.current for point in result.points), 22)

    def test_no_comparison_without_compare(self):
        result = aggregate_events(self.events, Period.DAY, now=NOW)
        self.assertIsNone(result.comparison_window)
        self.assertTrue(all(point.comparison is None for point in result.points))

    def test_week_buckets(self):
        events = [
            {"timestamp": ts(2024, 3, 31, 10), "value": 9},
            {"timestamp": ts(2024, 3, 25, 10), "value": 2},
        ]
        result = aggregate_events(events, "week", compare=True, now=NOW)

        self.assertEqual([point.label for point in result.points], ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"])
        self.assertEqual(result.points[0].current, 9)
        self.assertEqual(result.points[1].current, 0)
        self.assertEqual(result.points[1].comparison, 2)

    def test_month_days_missing_from_previous_month_have_no_comparison(self):
        events = [
            {"timestamp": ts(2024, 3, 31, 10), "value": 6},
            {"timestamp": ts(2024, 2, 29, 10), "value": 4},
        ]
        result = aggregate_events(events, "month", compare=True, now=NOW)

        self.assertEqual(len(result.points), 31)
        self.assertEqual(result.points[0].label, "1")
        self.assertEqual(result.points[28].comparison, 4)
        self.assertIsNone(result.points[29].comparison)
        self.assertIsNone(result.points[30].comparison)
        self.assertEqual(result.points[30].current, 6)
        self.assertEqual(result.points[0].comparison, 0)

    def test_month_after_a_28_day_february(self):
        now = datetime(2023, 3, 31, 12, tzinfo=timezone.utc)
        events = [
            {"timestamp": ts(2023, 3, 29, 10), "value": 3},
            {"timestamp": ts(2023, 2, 28, 10), "value": 8},
        ]
        result = aggregate_events(events, "month", compare=True, now=now)

        self.assertEqual(len(result.points), 31)
        self.assertEqual(result.points[27].comparison, 8)
        self.assertEqual(result.points[28].current, 3)
        for day in (29, 30, 31):
            self.assertIsNone(result.points[day - 1].comparison, day)

    def test_month_after_a_30_day_month(self):
        now = datetime(2024, 5, 31, 12, tzinfo=timezone.utc)
        events = [{"timestamp": ts(2024, 4, 30, 10), "value": 5}]
        result = aggregate_events(events, "month", compare=True, now=now)

        self.assertEqual(len(result.points), 31)
        self.assertEqual(result.points[29].comparison, 5)
        self.assertIsNone(result.points[30].comparison)

    def test_30_day_month_after_a_31_day_month(self):
        now = datetime(2024, 4, 30, 12, tzinfo=timezone.utc)
        result = aggregate_events([{"timestamp": ts(2024, 3, 31, 10), "value": 2}], "month", compare=True, now=now)

        self.assertEqual(len(result.points), 30)
        self.assertTrue(all(point.comparison is not None for point in result.points))

    def test_millisecond_timestamp_does_not_break_the_chart(self):
        events = [
            {"timestamp": int(NOW.timestamp()) - 60, "value": 10},
            {"timestamp": 1711899000000, "value": 5},
        ]
        result = aggregate_events(events, Period.DAY, now=NOW)

        self.assertTrue(result.has_data)
        self.assertEqual(result.summary.total, 10)
        self.assertEqual(result.points[15].current, 10)

    def test_summary(self):
        result = aggregate_events(self.events, Period.DAY, now=NOW)
        summary = result.summary

        self.assertEqual(summary.total, 125)
        self.assertEqual(summary.days_covered, 2)
        self.assertEqual(summary.average_per_day, 62.5)
        self.assertEqual(summary.peak_hour, "23:00 - 24:00")

    def test_peak_hour_tie_goes_to_earliest_hour(self):
        events = [
            {"timestamp": ts(2024, 3, 31, 5), "value": 4},
            {"timestamp": ts(2024, 3, 31, 3), "value": 4},
        ]
        result = aggregate_events(events, Period.DAY, now=NOW)
        self.assertEqual(result.summary.peak_hour, "03:00 - 04:00")
        self.assertEqual(result.summary.days_covered, 1)

    def test_empty_input_has_no_data(self):
        for events in ([], [{"timestamp": 0, "value": 0}, {"value": "x"}]):
            result = aggregate_events(events, Period.WEEK, compare=True, now=NOW)
            self.assertFalse(result.has_data)
            self.assertEqual(result.points, [])
            self.assertIsNone(result.summary)

    def test_accepts_cleaned_records(self):
        records = [EventRecord(timestamp=ts(2024, 3, 31, 2), value=8)]
        result = aggregate_events(records, Period.DAY, now=NOW)
        self.assertEqual(result.points[2].current, 8)


if __name__ == "__main__":
    unittest.main()
