"""Shared type aliases for stresstester."""

from __future__ import annotations

# HTTP headers dictionary.
Headers = dict[str, str]

# Count of outcomes per status code (0 means failed / timed out).
StatusCounts = dict[int, int]
