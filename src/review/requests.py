# src/review/requests.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
Turn an incoming review request into a pipeline trigger.

A request is the mapping of extras a capture tool sends along with the
freshly captured item. The extra names are the ones capture tools already
send, so they are kept verbatim.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from media.exceptions import MalformedReferenceError

from .pipeline import Trigger

logger = logging.getLogger(__name__)

EXTRA_DATA = "data"
EXTRA_MIME_TYPE = "mime_type"
EXTRA_SECURE_MODE = "com.google.android.apps.photos.api.secure_mode"
EXTRA_SECURE_IDS = "com.google.android.apps.photos.api.secure_mode_ids"
EXTRA_PROCESSING = "processing_uri_intent_extra"
EXTRA_CAPTURE_TOKEN = "CAMERA_RELAUNCH_INTENT_EXTRA"
EXTRA_CAPTURE_TOKEN_SECURE = "CAMERA_RELAUNCH_SECURE_INTENT_EXTRA"

DEFAULT_CAPTURE_PACKAGE = "com.google.android.GoogleCamera"
ACTION_STILL_IMAGE_CAMERA = "android.media.action.STILL_IMAGE_CAMERA"
ACTION_STILL_IMAGE_CAMERA_SECURE = "android.media.action.STILL_IMAGE_CAMERA_SECURE"


@dataclass(frozen=True)
class CaptureLaunch:
    """Fallback capture token used when the request does not carry one."""

    action: str
    package: str = DEFAULT_CAPTURE_PACKAGE


def is_secure(request: Mapping[str, Any]) -> bool:
    return bool(request.get(EXTRA_SECURE_MODE, False))


def default_capture_token(secure: bool) -> CaptureLaunch:
    return CaptureLaunch(ACTION_STILL_IMAGE_CAMERA_SECURE if secure else ACTION_STILL_IMAGE_CAMERA)


def capture_token_for(request: Mapping[str, Any], secure: bool) -> Any:
    key = EXTRA_CAPTURE_TOKEN_SECURE if secure else EXTRA_CAPTURE_TOKEN
    token = request.get(key)
    if token is None:
        return default_capture_token(secure)
    return token


def _secure_ids(request: Mapping[str, Any]) -> tuple[int, ...]:
    raw_ids = request.get(EXTRA_SECURE_IDS)
    if raw_ids is None:
        # Locked screen without a list: show nothing beyond the anchor
        logger.warning("Secure request without secure ids, showing the anchor only")
        return ()
    if not isinstance(raw_ids, (list, tuple)):
        logger.warning(f"Ignoring malformed secure ids {raw_ids!r}, showing the anchor only")
        return ()
    ids = []
    for raw_id in raw_ids:
        try:
            ids.append(int(raw_id))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed secure id {raw_id!r}")
    return tuple(ids)


def log_request(request: Mapping[str, Any]) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(f"review request with {len(request)} extras")
    for key, value in request.items():
        logger.debug(f"  {key}: {value!r}")


def parse_review_request(request: Mapping[str, Any]) -> Trigger:
    """
    Build a trigger from request extras.

    Raises:
        MalformedReferenceError: if the request carries no anchor reference
    """
    log_request(request)

    anchor_reference = request.get(EXTRA_DATA)
    if not anchor_reference:
        raise MalformedReferenceError(anchor_reference)

    secure = is_secure(request)
    return Trigger(
        anchor_reference=anchor_reference,
        explicit_ids=_secure_ids(request) if secure else None,
        mime_type_hint=request.get(EXTRA_MIME_TYPE),
        capture_token=capture_token_for(request, secure),
        processing_reference=request.get(EXTRA_PROCESSING),
    )
