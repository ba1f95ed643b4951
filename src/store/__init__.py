# src/store/__init__.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
Media store backends.
"""

from .base import ChangeCallback, MediaStore, StoreRecord, Subscription

__all__ = [
    "ChangeCallback",
    "MediaStore",
    "StoreRecord",
    "Subscription",
]
