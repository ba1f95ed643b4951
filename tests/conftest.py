# tests/conftest.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
import os
# Import pytest early to ensure it's in sys.modules when config.py is imported
import pytest  # noqa: F401


def pytest_configure(config):
    """
    Pytest hook that runs before test collection.

    Tests use CAPTURE_REVIEW_MYSQL_TEST_* environment variables; refuse to run
    against a database whose name does not mark it as a test database.
    """
    mysql_test_db = os.environ.get("CAPTURE_REVIEW_MYSQL_TEST_DATABASE")

    if mysql_test_db and "test" not in mysql_test_db.lower():
        raise RuntimeError(
            f"SAFETY CHECK FAILED: MySQL test database name '{mysql_test_db}' does not contain 'test'. "
            "Set CAPTURE_REVIEW_MYSQL_TEST_DATABASE to a database name containing 'test' "
            "(e.g., 'test_capture_review')."
        )


# Register fixtures from test_utils without an "unused import".
pytest_plugins = ["test_utils"]
