from __future__ import annotations

import time
from datetime import datetime


def now_ms() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def format_timestamp(timestamp_ms: int) -> str:
    """Local wall-clock time with millisecond precision."""
    moment = datetime.fromtimestamp(timestamp_ms / 1000)
    return moment.strftime("%Y-%m-%d %H:%M:%S.") + f"{timestamp_ms % 1000:03d}"
