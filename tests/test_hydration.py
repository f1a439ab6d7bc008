#!/usr/bin/env python
# tests/test_hydration.py

import os
import sys
import unittest
from datetime import datetime, timezone

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from poultry_ops.core.monitoring import HydrationMonitor, hydration_status
from poultry_ops.core.monitoring.hydration import total_water_since
from poultry_ops.infrastructure.config import ConfigLoader
from tests.mocks.store_mock import InMemoryStore

NOW = datetime(2024, 3, 31, 15, 30, tzinfo=timezone.utc)


def ts(*args):
    return int(datetime(*args, tzinfo=timezone.utc).timestamp())


class TestHydrationStatus(unittest.TestCase):

    def test_thresholds(self):
        self.assertEqual(hydration_status(0), "alert")
        self.assertEqual(hydration_status(119.9), "alert")
        self.assertEqual(hydration_status(120), "warning")
        self.assertEqual(hydration_status(179), "warning")
        self.assertEqual(hydration_status(180), "normal")


class TestHydrationMonitor(unittest.TestCase):

    def setUp(self):
        self.store = InMemoryStore({"waterLogs": {
            "a": {"timestamp": ts(2024, 3, 31, 8), "volumeDispensed": 1000},
            "b": {"timestamp": ts(2024, 3, 31, 12), "volumeDispensed": "800"},
            "c": {"timestamp": ts(2024, 3, 30, 23), "volumeDispensed": 5000},
            "d": {"timestamp": ts(2024, 3, 31, 9), "volumeDispensed": "lots"},
            "e": {"timestamp": ts(2024, 3, 31, 10), "volumeDispensed": 0},
            "f": {"timestamp": ts(2024, 3, 31, 11), "volumeDispensed": -600},
        }})
        self.monitor = HydrationMonitor(firebase_client=self.store, config=ConfigLoader(load_env=False))

    def test_counts_only_today(self):
        report = self.monitor.get_report(10, now=NOW)

        self.assertEqual(report["total_water_today"], 1800)
        self.assertEqual(report["water_per_bird"], 180)
        self.assertEqual(report["status"], "normal")

    def test_ignores_non_positive_volumes(self):
        logs = [
            {"timestamp": ts(2024, 3, 31, 8), "volumeDispensed": 300},
            {"timestamp": ts(2024, 3, 31, 9), "volumeDispensed": 0},
            {"timestamp": ts(2024, 3, 31, 10), "volumeDispensed": "-250"},
        ]
        self.assertEqual(total_water_since(logs, ts(2024, 3, 31)), 300)

    def test_low_hydration(self):
        self.assertEqual(self.monitor.get_report(12, now=NOW)["status"], "warning")
        self.assertEqual(self.monitor.get_report(20, now=NOW)["status"], "alert")

    def test_zero_birds(self):
        report = self.monitor.get_report(0, now=NOW)
        self.assertEqual(report["water_per_bird"], 0)
        self.assertEqual(report["status"], "alert")


if __name__ == "__main__":
    unittest.main()
