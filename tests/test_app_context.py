#!/usr/bin/env python
# tests/test_app_context.py

import os
import sys
import unittest
from datetime import datetime
from unittest.mock import patch

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from poultry_ops.infrastructure.app_context import AppContext, theme_for_hour
from poultry_ops.infrastructure.config import ConfigLoader
from poultry_ops.infrastructure.exceptions import AuthenticationError, ValidationError
from tests.mocks.store_mock import MemoryRedis


class TestTheme(unittest.TestCase):

    def test_auto_theme_hours(self):
        self.assertEqual(theme_for_hour(5), "dark")
        self.assertEqual(theme_for_hour(6), "light")
        self.assertEqual(theme_for_hour(17), "light")
        self.assertEqual(theme_for_hour(18), "dark")

    def test_manual_theme(self):
        context = AppContext(ConfigLoader(load_env=False))
        context.start()

        self.assertEqual(context.theme(datetime(2024, 3, 31, 12))["theme"], "light")

        result = context.set_theme("dark")
        self.assertEqual(result, {"theme": "dark", "mode": "manual"})
        self.assertEqual(context.current_theme(datetime(2024, 3, 31, 12)), "dark")

        context.set_theme_mode("auto")
        self.assertEqual(context.current_theme(datetime(2024, 3, 31, 22)), "dark")

    def test_toggle(self):
        context = AppContext(ConfigLoader(load_env=False))
        result = context.toggle_theme(datetime(2024, 3, 31, 12))
        self.assertEqual(result["theme"], "dark")
        self.assertEqual(result["mode"], "manual")

    def test_invalid_values(self):
        context = AppContext(ConfigLoader(load_env=False))
        with self.assertRaises(ValidationError):
            context.set_theme("blue")
        with self.assertRaises(ValidationError):
            context.set_theme_mode("sometimes")


class TestSession(unittest.TestCase):

    def setUp(self):
        self.redis = MemoryRedis()
        self.context = AppContext(ConfigLoader(load_env=False), redis_client=self.redis)
        self.context.start()

    def test_login_logout(self):
        with patch.dict(os.environ, {"DASHBOARD_USERNAME": "admin", "DASHBOARD_PASSWORD": "admin123"}):
            session = self.context.login("admin", "admin123")

        self.assertEqual(session, {"authenticated": True, "username": "admin"})
        self.context.require_auth()

        self.context.logout()
        with self.assertRaises(AuthenticationError):
            self.context.require_auth()

    def test_wrong_password(self):
        with patch.dict(os.environ, {"DASHBOARD_USERNAME": "admin", "DASHBOARD_PASSWORD": "admin123"}):
            with self.assertRaises(AuthenticationError):
                self.context.login("admin", "nope")
        self.assertFalse(self.context.session()["authenticated"])

    def test_preferences_survive_restart(self):
        with patch.dict(os.environ, {"DASHBOARD_USERNAME": "admin", "DASHBOARD_PASSWORD": "admin123"}):
            self.context.login("admin", "admin123")
        self.context.set_theme("dark")
        self.context.close()

        restarted = AppContext(ConfigLoader(load_env=False), redis_client=self.redis)
        restarted.start()

        self.assertEqual(restarted.session(), {"authenticated": True, "username": "admin"})
        self.assertEqual(restarted.theme(), {"theme": "dark", "mode": "manual"})


if __name__ == "__main__":
    unittest.main()
