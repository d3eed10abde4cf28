"""
Time helpers for the Rugby Scoring application.

The match clock and the player-tracking timestamps use two distinct formats:
``M:SS`` for whole match seconds and ``M:SS.ss`` for video-captured tracking
times with centisecond precision.
"""
import re
import time
from datetime import datetime, timezone

TRACKING_TIME_PATTERN = re.compile(r"^\d{1,2}:\d{2}(\.\d{2})?$")


def fmt_match_clock(seconds: int) -> str:
    """
    Format elapsed match seconds as an M:SS string.

    Args:
        seconds: Number of elapsed seconds

    Returns:
        Formatted clock string with zero-padded seconds

    Example:
        >>> fmt_match_clock(75)
        '1:15'
        >>> fmt_match_clock(2405)
        '40:05'
    """
    seconds = max(0, int(seconds))
    m = seconds // 60
    s = seconds % 60
    return f"{m}:{s:02d}"


def fmt_tracking_time(seconds: float) -> str:
    """
    Format a tracking timestamp as M:SS.ss.

    Example:
        >>> fmt_tracking_time(75.5)
        '1:15.50'
        >>> fmt_tracking_time(5.25)
        '0:05.25'
    """
    # Centiseconds are rounded before minutes are split off
    centis = int(round(max(0.0, float(seconds)) * 100))
    m, rest = divmod(centis, 6000)
    return f"{m}:{rest // 100:02d}.{rest % 100:02d}"


def parse_tracking_time(value: str) -> float:
    """
    Parse an M:SS or M:SS.ss string into seconds.

    Raises:
        ValueError: If the string does not match the tracking time format
    """
    value = (value or "").strip()
    if not TRACKING_TIME_PATTERN.match(value):
        raise ValueError("Time format should be MM:SS.ss")
    minutes, secs = value.split(":")
    if float(secs) >= 60:
        raise ValueError("Seconds must be less than 60")
    return int(minutes) * 60 + float(secs)


def now_ts() -> float:
    """
    Get current timestamp in epoch seconds.

    Returns:
        Current time as floating point epoch seconds
    """
    return time.time()


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()
