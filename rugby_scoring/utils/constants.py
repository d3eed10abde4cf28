"""
Constants for the Rugby Scoring application.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "Rugby Scoring System"

# Points awarded per scoring action, keyed by event type
POINTS_BY_SCORE_TYPE = {
    "try": 5,
    "conversion": 2,
    "penalty": 3,
    "drop-goal": 3,
}

# Player counter incremented by each scoring action
COUNTER_BY_SCORE_TYPE = {
    "try": "tries",
    "conversion": "conversions",
    "penalty": "penalties",
    "drop-goal": "drop_goals",
}

SCORE_TYPE_LABELS = {
    "try": "Try",
    "conversion": "Conversion",
    "penalty": "Penalty",
    "drop-goal": "Drop Goal",
}

# Match timing
CLOCK_TICK_SECONDS = 1.0
MAX_HALVES = 2

# Roster validation
MIN_JERSEY_NUMBER = 1
MAX_JERSEY_NUMBER = 99
MIN_PLAYER_AGE = 16
MAX_PLAYER_AGE = 50
DEFAULT_TEAM_LOGO = "\U0001F3C9"  # rugby ball

# Coach sessions end after two hours without mouse or key activity
COACH_INACTIVITY_TIMEOUT_SECONDS = 2 * 60 * 60

ACCESS_DENIED_MESSAGE = "Please contact admin to get permission for this page."

# Column order of the player tracking CSV export
TRACKING_CSV_COLUMNS = [
    "Time",
    "Player",
    "Jersey Number",
    "Action",
    "Description",
    "Field Position",
    "Points H",
    "Points V",
    "Created At",
]

TOURNAMENT_STATUSES = ["upcoming", "ongoing", "completed"]
