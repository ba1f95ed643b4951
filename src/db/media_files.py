# db/media_files.py

# Copyright (c) 2025 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.

"""
Database operations for the media_files table.
"""

import logging
from typing import Any

from db.connection import get_db_connection

logger = logging.getLogger(__name__)


def load_pending_flag(media_id: int) -> bool | None:
    """
    Load the is_pending flag of one media file.

    Returns:
        The flag, or None if there is no row for media_id
    """
    with get_db_connection() as conn:
        with conn.cursor() as cursor:
            cursor.execute(
                "SELECT is_pending FROM media_files WHERE id = %s",
                (media_id,),
            )
            row = cursor.fetchone()
    if not row:
        return None
    return bool(row["is_pending"])


def load_media_file(media_id: int) -> dict[str, Any] | None:
    """Load id, mime_type and is_pending for one media file, pending or not."""
    with get_db_connection() as conn:
        with conn.cursor() as cursor:
            cursor.execute(
                "SELECT id, mime_type, is_pending FROM media_files WHERE id = %s",
                (media_id,),
            )
            return cursor.fetchone()


def load_bucket_id(media_id: int) -> int | None:
    with get_db_connection() as conn:
        with conn.cursor() as cursor:
            cursor.execute(
                "SELECT bucket_id FROM media_files WHERE id = %s",
                (media_id,),
            )
            row = cursor.fetchone()
    if not row or row["bucket_id"] is None:
        return None
    logger.debug(f"bucket_id of {media_id}: {row['bucket_id']}")
    return int(row["bucket_id"])


def load_bucket_members(bucket_id: int, limit: int) -> list[dict[str, Any]]:
    """
    Load up to ``limit`` media files of a bucket, newest id first.

    Pending files are included.
    """
    with get_db_connection() as conn:
        with conn.cursor() as cursor:
            cursor.execute(
                """
                SELECT id, mime_type, is_pending
                FROM media_files
                WHERE bucket_id = %s
                ORDER BY id DESC
                LIMIT %s
                """,
                (bucket_id, limit),
            )
            return list(cursor.fetchall())


def load_change_markers(media_ids: list[int]) -> dict[int, tuple]:
    """
    Load a change marker per media file so pollers can tell when a row moved.

    Ids without a row are absent from the result.
    """
    if not media_ids:
        return {}
    placeholders = ", ".join(["%s"] * len(media_ids))
    with get_db_connection() as conn:
        with conn.cursor() as cursor:
            cursor.execute(
                f"SELECT id, is_pending, date_modified FROM media_files WHERE id IN ({placeholders})",
                tuple(media_ids),
            )
            rows = cursor.fetchall()
    return {
        int(row["id"]): (bool(row["is_pending"]), row["date_modified"])
        for row in rows
    }
