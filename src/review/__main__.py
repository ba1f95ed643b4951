# review/__main__.py
#
# Copyright (c) 2025-2026 Cindy's World LLC and contributors
# Licensed under the MIT License. See LICENSE.md for details.
#
"""Allow running a capture review as python -m review."""
import sys

from .main import run

if __name__ == "__main__":
    sys.exit(run())
