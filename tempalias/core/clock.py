"""
Clock helpers.

Timestamps are stored as naive UTC, which is what SQLite's
CURRENT_TIMESTAMP and datetime('now') produce.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
