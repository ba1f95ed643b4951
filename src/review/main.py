# review/main.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""Command-line entry point: review one capture against the MySQL store."""
import argparse
import asyncio
import logging

from config import DISCOVERY_LIMIT, LOG_LEVEL, POLL_INTERVAL
from db.connection import close_db_connection_pool
from db.schema import create_schema
from media.exceptions import MalformedReferenceError
from media.media_types import CaptureAction, Snapshot
from store.mysql_store import MysqlMediaStore

from .pipeline import AggregationPipeline
from .readiness import ReadinessProbe
from .requests import (
    EXTRA_DATA,
    EXTRA_MIME_TYPE,
    EXTRA_SECURE_IDS,
    EXTRA_SECURE_MODE,
    parse_review_request,
)
from .siblings import SiblingResolver
from .watcher import ReadinessWatcher

logger = logging.getLogger(__name__)


def configure_logging(level_name: str = LOG_LEVEL) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level)


def format_snapshot(snapshot: Snapshot) -> str:
    parts = []
    for item in snapshot:
        if isinstance(item, CaptureAction):
            parts.append("capture")
        else:
            parts.append(f"{item.id}({'ready' if item.ready else 'pending'})")
    return "[" + ", ".join(parts) + "]"


def build_request(args: argparse.Namespace) -> dict:
    request = {EXTRA_DATA: args.anchor}
    if args.mime_type:
        request[EXTRA_MIME_TYPE] = args.mime_type
    if args.secure_ids is not None:
        request[EXTRA_SECURE_MODE] = True
        # Malformed ids are skipped with a warning by parse_review_request
        request[EXTRA_SECURE_IDS] = [
            raw_id.strip() for raw_id in args.secure_ids.split(",") if raw_id.strip()
        ]
    return request


async def async_main(args: argparse.Namespace) -> int:
    if args.create_schema:
        create_schema()

    try:
        trigger = parse_review_request(build_request(args))
    except MalformedReferenceError as e:
        logger.error(f"Cannot display: {e}")
        return 2

    async with MysqlMediaStore(poll_interval=args.poll_interval) as store:
        probe = ReadinessProbe(store)
        pipeline = AggregationPipeline(
            store,
            resolver=SiblingResolver(store, probe, discovery_limit=args.limit),
            watcher=ReadinessWatcher(store, probe),
        )
        try:
            async for snapshot in pipeline.handle(trigger):
                logger.info(f"snapshot: {format_snapshot(snapshot)}")
        except MalformedReferenceError as e:
            logger.error(f"Cannot display: {e}")
            return 2
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Show how a fresh capture and its siblings converge to ready."
    )
    parser.add_argument("--anchor", required=True, help="Locator of the captured item.")
    parser.add_argument("--mime-type", help="Content type of the captured item, if known.")
    parser.add_argument(
        "--secure-ids",
        help="Comma-separated ids for a locked-screen review (disables bucket discovery).",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=DISCOVERY_LIMIT,
        help=f"Maximum number of bucket siblings (default: {DISCOVERY_LIMIT}).",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=POLL_INTERVAL,
        help=f"Seconds between change polls (default: {POLL_INTERVAL}).",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create the media_files table before reviewing.",
    )
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging()
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    finally:
        close_db_connection_pool()
