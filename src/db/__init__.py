# src/db/__init__.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
MySQL access for the media_files table.
"""

from db.connection import close_db_connection_pool, get_db_connection

__all__ = [
    "close_db_connection_pool",
    "get_db_connection",
]
