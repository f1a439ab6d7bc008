#!/usr/bin/env python
# tests/test_event_log.py

import os
import sys
import unittest
from datetime import datetime, timedelta, timezone

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from poultry_ops.core.monitoring import EventLogView, filter_events
from poultry_ops.core.monitoring.event_log import normalize_event, event_severity
from poultry_ops.infrastructure.config import ConfigLoader
from poultry_ops.infrastructure.exceptions import ResourceNotFoundError, ValidationError
from tests.mocks.store_mock import InMemoryStore

NOW = datetime(2024, 3, 31, 15, 30, tzinfo=timezone.utc)


def ago(**kwargs):
    return int((NOW - timedelta(**kwargs)).timestamp())


class TestFilterEvents(unittest.TestCase):

    def setUp(self):
        self.events = [normalize_event(record) for record in [
            {"id": "today", "timestamp": ago(hours=2), "type": "feeding"},
            {"id": "yesterday", "timestamp": ago(hours=20), "type": "lowFood"},
            {"id": "lastweek", "timestamp": ago(days=6), "type": "watering"},
            {"id": "lastmonth", "timestamp": ago(days=20), "type": "highTemperature"},
            {"id": "old", "timestamp": ago(days=45), "type": "reboot"},
        ]]

    def ids(self, events):
        return [event["id"] for event in events]

    def test_windows(self):
        self.assertEqual(self.ids(filter_events(self.events, "day", NOW)), ["today"])
        self.assertEqual(self.ids(filter_events(self.events, "week", NOW)), ["today", "yesterday", "lastweek"])
        self.assertEqual(
            self.ids(filter_events(self.events, "month", NOW)),
            ["today", "yesterday", "lastweek", "lastmonth"]
        )
        self.assertEqual(len(filter_events(self.events, "all", NOW)), 5)

    def test_newest_first(self):
        shuffled = list(reversed(self.events))
        self.assertEqual(self.ids(filter_events(shuffled, "all", NOW))[0], "today")

    def test_invalid_window(self):
        with self.assertRaises(ValidationError):
            filter_events(self.events, "year", NOW)

    def test_descriptions_and_severity(self):
        event = normalize_event({"id": "x", "timestamp": "12", "type": "lowFood"})
        self.assertEqual(event["description"], "Food level is low")
        self.assertEqual(event["severity"], "alert")
        self.assertEqual(event["timestamp"], 12)

        self.assertEqual(event_severity("feeding"), "info")
        self.assertEqual(event_severity("watering"), "info")
        self.assertEqual(event_severity(None), "system")
        self.assertEqual(normalize_event({"id": "y", "timestamp": "bad"})["timestamp"], 0)


class TestEventLogView(unittest.TestCase):

    def setUp(self):
        events = {
            f"e{i}": {"timestamp": ago(minutes=i), "type": "feeding", "description": f"event {i}"}
            for i in range(1, 21)
        }
        self.store = InMemoryStore({"events": events})
        self.view = EventLogView(firebase_client=self.store, config=ConfigLoader(load_env=False))
        self.view.load()

    def test_first_fifteen_visible(self):
        page = self.view.view("day", now=NOW)

        self.assertEqual(page["total"], 20)
        self.assertTrue(page["has_more"])
        self.assertEqual(len(page["events"]), 15)
        self.assertEqual(page["events"][0]["id"], "e1")

    def test_show_all(self):
        page = self.view.view("day", show_all=True, now=NOW)
        self.assertEqual(len(page["events"]), 20)

    def test_load_is_capped(self):
        view = EventLogView(firebase_client=self.store, config=ConfigLoader(load_env=False), limit=5)
        events = view.load()
        self.assertEqual([event["id"] for event in events], ["e1", "e2", "e3", "e4", "e5"])

    def test_delete(self):
        result = self.view.delete("e3")

        self.assertTrue(result["success"])
        self.assertNotIn("e3", [event["id"] for event in self.view.events])
        self.assertIsNone(self.store.get("events/e3"))
        self.assertEqual(self.view.view("all", now=NOW)["total"], 19)

    def test_delete_unknown_key(self):
        with self.assertRaises(ResourceNotFoundError):
            self.view.delete("missing")
        self.assertEqual(self.store.writes, [])

    def test_delete_failure_keeps_local_removal(self):
        self.store.fail_paths.add("events/e4")

        result = self.view.delete("e4")

        self.assertFalse(result["success"])
        self.assertEqual(result["error_code"], "write_failed")
        self.assertNotIn("e4", [event["id"] for event in self.view.events])


if __name__ == "__main__":
    unittest.main()
