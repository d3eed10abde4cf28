"""
Utilities package for the Rugby Scoring application.

This package contains utility functions used throughout the application.
"""
from .time_utils import (
    fmt_match_clock, fmt_tracking_time, parse_tracking_time, now_ts, utc_now_iso
)
from .constants import (
    APP_TITLE, POINTS_BY_SCORE_TYPE, COUNTER_BY_SCORE_TYPE, SCORE_TYPE_LABELS,
    CLOCK_TICK_SECONDS, MAX_HALVES, MIN_JERSEY_NUMBER, MAX_JERSEY_NUMBER,
    MIN_PLAYER_AGE, MAX_PLAYER_AGE, DEFAULT_TEAM_LOGO,
    COACH_INACTIVITY_TIMEOUT_SECONDS, ACCESS_DENIED_MESSAGE,
    TRACKING_CSV_COLUMNS, TOURNAMENT_STATUSES
)
from .logging_utils import configure_logging

__all__ = [
    "fmt_match_clock", "fmt_tracking_time", "parse_tracking_time", "now_ts",
    "utc_now_iso", "APP_TITLE", "POINTS_BY_SCORE_TYPE", "COUNTER_BY_SCORE_TYPE",
    "SCORE_TYPE_LABELS", "CLOCK_TICK_SECONDS", "MAX_HALVES", "MIN_JERSEY_NUMBER",
    "MAX_JERSEY_NUMBER", "MIN_PLAYER_AGE", "MAX_PLAYER_AGE", "DEFAULT_TEAM_LOGO",
    "COACH_INACTIVITY_TIMEOUT_SECONDS", "ACCESS_DENIED_MESSAGE",
    "TRACKING_CSV_COLUMNS", "TOURNAMENT_STATUSES", "configure_logging",
]
