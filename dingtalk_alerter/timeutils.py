"""Date and duration formatting used in alert bodies."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

DATE_TIME_ZONE_PATTERN = "%Y/%m/%d %H:%M:%S %Z"


def format_date_time_zone(timestamp_ms: int, tz: str = "UTC") -> str:
    if timestamp_ms == -1:
        return "-"
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.astimezone(ZoneInfo(tz)).strftime(DATE_TIME_ZONE_PATTERN)


def format_duration(start_ms: int, end_ms: int, now_ms: Optional[int] = None) -> str:
    """Human readable elapsed time; an end of ``-1`` measures up to now."""
    if start_ms == -1:
        return "-"
    if end_ms == -1:
        end_ms = now_ms if now_ms is not None else int(time.time() * 1000)

    seconds = (end_ms - start_ms) // 1000
    if seconds < 60:
        return f"{seconds} sec"

    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"

    hours, minutes = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {minutes}m {seconds}s"

    days, hours = divmod(hours, 24)
    return f"{days}d {hours}h {minutes}m"
