# clock.py

# Copyright (c) 2025 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.

import asyncio
import time
from typing import Optional


class Clock:
    """
    Singleton class that provides the time functions used by polling loops.

    Tests replace the singleton's methods with a fake clock so that poll
    intervals elapse instantly.
    """

    _instance: Optional["Clock"] = None

    def __new__(cls) -> "Clock":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def monotonic(self) -> float:
        """Seconds from an arbitrary, non-decreasing origin."""
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        """Sleep for the specified number of seconds."""
        await asyncio.sleep(seconds)


# Global singleton instance
clock = Clock()
