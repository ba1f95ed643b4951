# src/media/locators.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
Media locators: the opaque handles the UI uses to open an item.

A locator is ``<collection>/<id>``. The collection depends on the item's
content type, and a locator built against the wrong collection cannot be
opened, so every locator built from a bare id goes through
``locator_for_id``.
"""

from urllib.parse import urlsplit

from .exceptions import MalformedReferenceError

IMAGES_COLLECTION = "content://media/external/images/media"
VIDEO_COLLECTION = "content://media/external/video/media"
FILES_COLLECTION = "content://media/external/file"


def collection_for_mime_type(mime_type: str | None) -> str:
    """
    Pick the collection an item of ``mime_type`` lives in.

    Only the "image" and "video" prefixes get their own collection. Anything
    else, including an unknown type, resolves against the generic files
    collection.
    """
    if mime_type and mime_type.startswith("image"):
        return IMAGES_COLLECTION
    if mime_type and mime_type.startswith("video"):
        return VIDEO_COLLECTION
    return FILES_COLLECTION


def locator_for_id(media_id: int, mime_type: str | None) -> str:
    return f"{collection_for_mime_type(mime_type)}/{media_id}"


def id_from_locator(reference: str) -> int:
    """
    Extract the media id embedded as the last path segment of ``reference``.

    Raises:
        MalformedReferenceError: if the reference has no numeric last segment
    """
    if not isinstance(reference, str) or not reference:
        raise MalformedReferenceError(reference)
    path = urlsplit(reference).path
    last_segment = path.rstrip("/").rsplit("/", 1)[-1]
    try:
        return int(last_segment)
    except ValueError:
        raise MalformedReferenceError(reference) from None
