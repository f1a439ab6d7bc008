#!/usr/bin/env python
# tests/run_tests.py

import os
import sys
import unittest

# Add project root to Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

if __name__ == "__main__":
    # Pure logic first, then components on the in-memory store, then HTTP routes
    test_modules = [
        'test_parsing',
        'test_aggregator',
        'test_history',
        'test_hydration',
        'test_event_log',
        'test_timers',
        'test_app_context',
        'test_feeding',
        'test_watering',
        'test_actuators',
        'test_live_state',
        'test_analytics_service',
        'test_camera',
        'test_routes'
    ]

    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    for test_module in test_modules:
        try:
            module = __import__(f"tests.{test_module}", fromlist=[test_module])
            suite.addTests(loader.loadTestsFromModule(module))
            print(f"Loaded test module: {test_module}")
        except (ImportError, AttributeError) as e:
            print(f"Could not load {test_module}: {e}")

    print("\n==== Running Tests ====\n")
    result = unittest.TextTestRunner(verbosity=2).run(suite)

    print("\n==== Test Summary ====")
    print(f"Ran {result.testsRun} tests")
    print(f"Failures: {len(result.failures)}, Errors: {len(result.errors)}")

    sys.exit(0 if result.wasSuccessful() else 1)
