# db/schema.py

# Copyright (c) 2025 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.

"""
Schema for the media_files table the MySQL media store reads.
"""

import logging

from db.connection import get_db_connection

logger = logging.getLogger(__name__)


def create_schema() -> None:
    """Create the media_files table if it doesn't exist."""
    with get_db_connection() as conn:
        with conn.cursor() as cursor:
            # date_modified changes on every write so pollers can spot updates
            # that leave is_pending untouched
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS media_files (
                    id BIGINT NOT NULL,
                    bucket_id BIGINT NULL,
                    mime_type VARCHAR(255) NULL,
                    is_pending TINYINT(1) NOT NULL DEFAULT 0,
                    date_modified DATETIME(6) NOT NULL
                        DEFAULT CURRENT_TIMESTAMP(6) ON UPDATE CURRENT_TIMESTAMP(6),
                    PRIMARY KEY (id),
                    INDEX idx_bucket (bucket_id, id)
                ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
            """)
    logger.info("media_files schema ensured")
