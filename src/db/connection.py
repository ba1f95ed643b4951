# db/connection.py

# Copyright (c) 2025 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.

"""
Pooled pymysql connections for the media store.
"""

import logging
import sys
import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

from config import (
    MYSQL_DATABASE,
    MYSQL_HOST,
    MYSQL_PASSWORD,
    MYSQL_POOL_SIZE,
    MYSQL_PORT,
    MYSQL_USER,
)

if TYPE_CHECKING:
    from pymysql.connections import Connection

logger = logging.getLogger(__name__)

_connection_pool: list["Connection"] = []
_pool_lock = threading.Lock()
_pool_initialized = False


def _check_configuration() -> None:
    missing = [
        name
        for name, value in (
            ("DATABASE", MYSQL_DATABASE),
            ("USER", MYSQL_USER),
            ("PASSWORD", MYSQL_PASSWORD),
        )
        if not value
    ]
    if missing:
        raise RuntimeError(
            f"MySQL configuration incomplete. Missing: {', '.join(missing)}. "
            "Set CAPTURE_REVIEW_MYSQL_DATABASE, CAPTURE_REVIEW_MYSQL_USER and "
            "CAPTURE_REVIEW_MYSQL_PASSWORD."
        )

    # Tests must never touch a database whose name does not say "test"
    if "pytest" in sys.modules and "test" not in MYSQL_DATABASE.lower():
        raise RuntimeError(
            f"SAFETY CHECK FAILED: Attempted to connect to database '{MYSQL_DATABASE}' "
            "during tests, but database name does not contain 'test'. "
            "Set CAPTURE_REVIEW_MYSQL_TEST_DATABASE to a database name containing 'test'."
        )


def _connect() -> "Connection":
    import pymysql

    return pymysql.connect(
        host=MYSQL_HOST,
        port=MYSQL_PORT,
        user=MYSQL_USER,
        password=MYSQL_PASSWORD,
        database=MYSQL_DATABASE,
        charset="utf8mb4",
        cursorclass=pymysql.cursors.DictCursor,
        autocommit=True,
    )


def _init_connection_pool() -> None:
    """Fill the pool once (thread-safe)."""
    global _pool_initialized

    if _pool_initialized:
        return

    with _pool_lock:
        if _pool_initialized:
            return
        _check_configuration()
        try:
            for _ in range(MYSQL_POOL_SIZE):
                _connection_pool.append(_connect())
        except Exception as e:
            logger.error(f"Failed to initialize MySQL connection pool: {e}")
            raise
        _pool_initialized = True
        logger.info(f"MySQL connection pool initialized with {MYSQL_POOL_SIZE} connections")


@contextmanager
def get_db_connection():
    """
    Borrow a connection from the pool.

    The connection goes back to the pool when the block exits, unless it no
    longer answers a ping. An empty pool opens a fresh connection.

    Usage:
        with get_db_connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT id FROM media_files WHERE id = %s", (media_id,))
                row = cursor.fetchone()
    """
    _init_connection_pool()

    conn = None
    try:
        with _pool_lock:
            conn = _connection_pool.pop() if _connection_pool else None
        if conn is None:
            conn = _connect()
            logger.debug("Created new MySQL connection (pool exhausted)")
        yield conn
    except Exception as e:
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn is not None:
            _return_connection(conn)


def _return_connection(conn: "Connection") -> None:
    try:
        conn.ping(reconnect=False)
    except Exception:
        try:
            conn.close()
        except Exception:
            pass
        logger.debug("Discarded dead MySQL connection")
        return

    with _pool_lock:
        if len(_connection_pool) < MYSQL_POOL_SIZE:
            _connection_pool.append(conn)
            return
    conn.close()


def close_db_connection_pool() -> None:
    """Close all connections in the pool."""
    global _pool_initialized

    with _pool_lock:
        for conn in _connection_pool:
            try:
                conn.close()
            except Exception:
                pass
        _connection_pool.clear()
        _pool_initialized = False
    logger.info("MySQL connection pool closed")
