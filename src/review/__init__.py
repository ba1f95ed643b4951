# src/review/__init__.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""
Capture review: aggregate a fresh capture and its siblings into a
progressively refined, ordered list of items to show.
"""

from .deletion import DeletionTracker, deletion_tracker
from .pipeline import AggregationPipeline, Trigger
from .readiness import ReadinessProbe
from .session import ReviewSession
from .siblings import SiblingResolver, merge_anchor
from .watcher import ReadinessWatcher

__all__ = [
    "AggregationPipeline",
    "DeletionTracker",
    "ReadinessProbe",
    "ReadinessWatcher",
    "ReviewSession",
    "SiblingResolver",
    "Trigger",
    "deletion_tracker",
    "merge_anchor",
]
