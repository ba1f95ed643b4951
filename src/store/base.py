# src/store/base.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
Base classes for media stores.

A media store holds id-addressed records with a pending flag, a bucket
(group key) and a content type. It answers point and bucket queries and can
notify subscribers when a single record changes. It cannot tell anyone when
an arbitrary set of items becomes ready; that is built on top of it.
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

ChangeCallback = Callable[[], None]


@dataclass(frozen=True)
class StoreRecord:
    id: int
    mime_type: str | None
    is_pending: bool


class Subscription:
    """
    Handle for one change-notification registration.

    ``unsubscribe`` is idempotent and can be called from any thread. The
    handle is also a context manager so the registration is released on every
    exit path.
    """

    def __init__(self, reference: str, release: Callable[["Subscription"], None]):
        self.reference = reference
        self._release = release
        self._lock = threading.Lock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._release(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


class MediaStore(ABC):
    """
    Query and notification contract every store backend implements.

    Query methods raise ``StoreQueryFailure`` when the backend cannot answer.
    """

    @abstractmethod
    def query_pending(self, reference: str) -> bool | None:
        """
        Return the pending flag of the record behind ``reference``.

        Returns:
            True while the record is still being written, False once complete,
            None when there is no such record.
        """
        ...

    @abstractmethod
    def query_record(self, media_id: int) -> StoreRecord | None:
        """Point lookup by id, including records that are still pending."""
        ...

    @abstractmethod
    def query_group_key(self, reference: str) -> int | None:
        """Return the bucket id of the record behind ``reference``, if any."""
        ...

    @abstractmethod
    def query_group(self, group_key: int, limit: int) -> list[StoreRecord]:
        """
        Return up to ``limit`` records sharing ``group_key``, newest (highest
        id) first, including records that are still pending.
        """
        ...

    @abstractmethod
    def subscribe(self, reference: str, callback: ChangeCallback) -> Subscription:
        """
        Register ``callback`` to be called whenever the record behind
        ``reference`` changes.

        A notification means "something changed", not "it is ready": callers
        must re-query. Callbacks may fire several times and may keep firing
        briefly after ``unsubscribe`` for deliveries already in flight.
        """
        ...
