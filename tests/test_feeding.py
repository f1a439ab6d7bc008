#!/usr/bin/env python
# tests/test_feeding.py

import os
import sys
import unittest

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from poultry_ops.core.control import FeedingController
from poultry_ops.infrastructure.config import ConfigLoader
from poultry_ops.infrastructure.exceptions import ValidationError
from tests.mocks.store_mock import InMemoryStore, ManualTimers

NOW = 1711900000


def make_controller(data=None):
    store = InMemoryStore(data)
    timers = ManualTimers()
    controller = FeedingController(
        firebase_client=store,
        config=ConfigLoader(load_env=False),
        timers=timers,
        clock=lambda: NOW
    )
    controller.settle_delay = 0
    return controller, store, timers


class TestFeedCalculations(unittest.TestCase):

    def setUp(self):
        self.controller, _, _ = make_controller()

    def test_servo_open_time(self):
        for grams, seconds in ((0, 0.0), (1, 0.02), (50, 1.0), (1000, 20.0)):
            self.assertAlmostEqual(self.controller.calculate_servo_open_time(grams), seconds)

    def test_negative_grams_rejected(self):
        with self.assertRaises(ValidationError):
            self.controller.calculate_servo_open_time(-1)

    def test_recommended_grams(self):
        self.assertEqual(self.controller.calculate_recommended_grams("chick", 10), 500)
        self.assertEqual(self.controller.calculate_recommended_grams("grower", 3), 300)
        self.assertEqual(self.controller.calculate_recommended_grams("adult", 0), 0)

    def test_invalid_age_group(self):
        with self.assertRaises(ValidationError):
            self.controller.calculate_recommended_grams("duck", 10)


class TestFeedDispense(unittest.TestCase):
    """Feed sequence against the in-memory store."""

    def setUp(self):
        self.controller, self.store, self.timers = make_controller()

    def test_custom_amount(self):
        result = self.controller.dispense("adult", 5, grams=150)

        self.assertTrue(result["success"])
        self.assertAlmostEqual(result["servo_open_time"], 3.0)
        self.assertEqual(result["feed_type"], "custom")
        self.assertAlmostEqual(result["reset_in"], 8.0)

        events = self.store.writes_to("events")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0][2]["type"], "feeding")
        self.assertIn("150g", events[0][2]["description"])
        self.assertEqual(events[0][2]["timestamp"], NOW)

        logs = self.store.writes_to("feedingLogs")
        self.assertEqual(len(logs), 1)
        self.assertEqual(logs[0][2]["gramsDispensed"], 150)
        self.assertEqual(logs[0][2]["feedType"], "custom")
        self.assertEqual(logs[0][2]["timestamp"], NOW)

        self.assertAlmostEqual(self.store.get("controls/feedDuration"), 3.0)
        self.assertEqual(self.store.get("feedingSettings"), {
            "ageGroup": "adult",
            "chickenCount": 5,
            "lastFeedTime": NOW
        })

    def test_write_order(self):
        self.controller.dispense("chick", 2, grams=20)

        paths = [write[1] for write in self.store.writes]
        self.assertEqual(paths, [
            "controls/feed",
            "feedingSettings",
            "controls/feedDuration",
            "events",
            "feedingLogs",
            "controls/feed",
        ])
        self.assertFalse(self.store.writes[0][2])
        self.assertTrue(self.store.writes[-1][2])

    def test_recommended_amount(self):
        result = self.controller.dispense("grower", 2)

        self.assertTrue(result["success"])
        self.assertEqual(result["grams_dispensed"], 200)
        self.assertEqual(result["feed_type"], "recommended")
        self.assertIn("recommended amount", self.store.writes_to("events")[0][2]["description"])

    def test_trigger_reset_after_servo_time(self):
        self.controller.dispense("adult", 5, grams=150)

        self.assertTrue(self.controller.in_progress)
        self.assertEqual(self.timers.pending, 1)
        self.assertAlmostEqual(list(self.timers.delays.values())[0], 8.0)
        self.assertTrue(self.store.get("controls/feed"))

        self.timers.run_all()

        self.assertFalse(self.store.get("controls/feed"))
        self.assertFalse(self.controller.in_progress)

    def test_rejected_while_in_progress(self):
        self.controller.dispense("adult", 5, grams=150)
        writes_before = len(self.store.writes)

        result = self.controller.dispense("adult", 5, grams=150)

        self.assertFalse(result["success"])
        self.assertEqual(result["error_code"], "guard_violation")
        self.assertEqual(len(self.store.writes), writes_before)
        self.assertEqual(self.timers.pending, 1)

    def test_rejected_while_device_active(self):
        for flag in (True, "true", 1):
            controller, store, timers = make_controller({"controls": {"feed": flag}})

            result = controller.dispense("adult", 5, grams=150)

            self.assertEqual(result["error_code"], "guard_violation")
            self.assertIn("currently active", result["message"])
            self.assertEqual(store.writes, [])
            self.assertFalse(controller.in_progress)

    def test_invalid_amount(self):
        for grams in (0, -5):
            with self.assertRaises(ValidationError):
                self.controller.dispense("adult", 5, grams=grams)
        self.assertEqual(self.store.writes, [])
        self.assertFalse(self.controller.in_progress)

    def test_write_failure(self):
        self.store.fail_paths.add("feedingLogs")

        result = self.controller.dispense("adult", 5, grams=150)

        self.assertFalse(result["success"])
        self.assertEqual(result["error_code"], "write_failed")
        self.assertFalse(self.controller.in_progress)
        self.assertEqual(self.timers.pending, 0)
        self.assertEqual(self.store.writes[-1], ("set", "controls/feed", False))

    def test_reset_runs_now_when_timers_are_shut_down(self):
        self.timers.shutdown()

        result = self.controller.dispense("adult", 5, grams=150)

        self.assertTrue(result["success"])
        self.assertFalse(self.controller.in_progress)
        self.assertFalse(self.store.get("controls/feed"))


if __name__ == "__main__":
    unittest.main()
