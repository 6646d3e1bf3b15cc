#!/usr/bin/env python3
"""
Test runner for the parking facility tests.

Usage:
    python tests/run_tests.py                       # everything
    python tests/run_tests.py unit                  # one suite
    python tests/run_tests.py unit.test_billing     # one module
    python tests/run_tests.py unit.test_billing.TestPay
"""

import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent

# Make the 'tests' package importable when run as a script
sys.path.insert(0, str(PROJECT_ROOT))


def run_all_tests(start: str = ""):
    """Discover and run test_*.py under tests/ (or one of its suites)"""
    start_dir = Path(__file__).parent / start
    test_suite = unittest.TestLoader().discover(
        str(start_dir),
        pattern='test_*.py',
        top_level_dir=str(PROJECT_ROOT)
    )

    test_runner = unittest.TextTestRunner(verbosity=2)
    return test_runner.run(test_suite)


def run_specific_test(test_name: str):
    """Run a test module or a test case given as a dotted name below tests/"""
    test_suite = unittest.TestLoader().loadTestsFromName(f'tests.{test_name}')
    test_runner = unittest.TextTestRunner(verbosity=2)
    return test_runner.run(test_suite)


if __name__ == "__main__":
    if len(sys.argv) > 1:
        name = sys.argv[1]
        if (Path(__file__).parent / name).is_dir():
            result = run_all_tests(name)
        else:
            result = run_specific_test(name)
    else:
        result = run_all_tests()

    sys.exit(0 if result.wasSuccessful() else 1)
