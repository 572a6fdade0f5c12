"""Wall clock helpers. Stored timestamps are integer milliseconds since the epoch."""

import time
from datetime import datetime
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Return the current time in epoch milliseconds."""
    return int(time.time() * 1000)


def format_timestamp_ms(value: int | None, default: str = "Unknown") -> str:
    """Render an epoch-millisecond timestamp as local ``YYYY-MM-DD HH:MM:SS``."""
    if not value:
        return default
    return datetime.fromtimestamp(value / 1000).strftime("%Y-%m-%d %H:%M:%S")
