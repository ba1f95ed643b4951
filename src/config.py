# config.py

# Copyright (c) 2025 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.

import os
import sys

# Configuration constants loaded from environment variables

# Historical ceiling on how many bucket siblings are pulled into one review
DEFAULT_DISCOVERY_LIMIT = 42


def _get_optional_str(env_name: str) -> str | None:
    """Return stripped environment variable value or None if unset/empty."""
    value = os.environ.get(env_name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _parse_discovery_limit() -> int:
    """Parse CAPTURE_REVIEW_DISCOVERY_LIMIT with error handling.

    Values below 1 would make sibling discovery useless, so they fall back
    to the default as well.
    """
    try:
        value = int(os.environ.get("CAPTURE_REVIEW_DISCOVERY_LIMIT", str(DEFAULT_DISCOVERY_LIMIT)))
        if value < 1:
            return DEFAULT_DISCOVERY_LIMIT
        return value
    except ValueError:
        return DEFAULT_DISCOVERY_LIMIT


DISCOVERY_LIMIT: int = _parse_discovery_limit()


def _parse_poll_interval() -> float:
    """Parse CAPTURE_REVIEW_POLL_INTERVAL with error handling."""
    try:
        value = float(os.environ.get("CAPTURE_REVIEW_POLL_INTERVAL", "1"))
        if value <= 0:
            return 1.0
        return value
    except ValueError:
        return 1.0


# How often the MySQL store checks subscribed rows for changes (seconds)
POLL_INTERVAL: float = _parse_poll_interval()


LOG_LEVEL: str = (_get_optional_str("CAPTURE_REVIEW_LOG_LEVEL") or "INFO").upper()


# MySQL configuration
# When running under pytest or in CI, use test database variables (CAPTURE_REVIEW_MYSQL_TEST_*)
# Otherwise, use production database variables (CAPTURE_REVIEW_MYSQL_*)
def _get_mysql_config():
    """Get MySQL configuration, using test variables when running under pytest or in CI."""
    use_test_config = (
        "pytest" in sys.modules
        or os.environ.get("CI") == "true"
        or os.environ.get("GITHUB_ACTIONS") == "true"
    )

    if use_test_config:
        return {
            "host": os.environ.get("CAPTURE_REVIEW_MYSQL_TEST_HOST", os.environ.get("CAPTURE_REVIEW_MYSQL_HOST", "localhost")),
            "port": int(os.environ.get("CAPTURE_REVIEW_MYSQL_TEST_PORT", os.environ.get("CAPTURE_REVIEW_MYSQL_PORT", "3306"))),
            "database": os.environ.get("CAPTURE_REVIEW_MYSQL_TEST_DATABASE"),
            "user": os.environ.get("CAPTURE_REVIEW_MYSQL_TEST_USER"),
            "password": os.environ.get("CAPTURE_REVIEW_MYSQL_TEST_PASSWORD"),
            "pool_size": int(os.environ.get("CAPTURE_REVIEW_MYSQL_TEST_POOL_SIZE", os.environ.get("CAPTURE_REVIEW_MYSQL_POOL_SIZE", "3"))),
        }
    return {
        "host": os.environ.get("CAPTURE_REVIEW_MYSQL_HOST", "localhost"),
        "port": int(os.environ.get("CAPTURE_REVIEW_MYSQL_PORT", "3306")),
        "database": os.environ.get("CAPTURE_REVIEW_MYSQL_DATABASE"),
        "user": os.environ.get("CAPTURE_REVIEW_MYSQL_USER"),
        "password": os.environ.get("CAPTURE_REVIEW_MYSQL_PASSWORD"),
        "pool_size": int(os.environ.get("CAPTURE_REVIEW_MYSQL_POOL_SIZE", "3")),
    }


_mysql_config = _get_mysql_config()
MYSQL_HOST: str = _mysql_config["host"]
MYSQL_PORT: int = _mysql_config["port"]
MYSQL_DATABASE: str | None = _mysql_config["database"]
MYSQL_USER: str | None = _mysql_config["user"]
MYSQL_PASSWORD: str | None = _mysql_config["password"]
MYSQL_POOL_SIZE: int = _mysql_config["pool_size"]
