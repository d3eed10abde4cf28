"""
Rugby Scoring System

Tournament management for rugby: teams, players and fixtures, live match
scoring with a match clock, player tracking, and role-based access for
administrators and coaches.

This package provides a Flask web interface over its services.
"""
from .models import Match, MatchStatus, Player, ScoreType, ScoringEvent, Team, User
from .services import LiveMatch, MatchService, ScoringService, TimerService
from .ui import create_app, run_web_app
from .utils import fmt_match_clock, fmt_tracking_time, now_ts, APP_TITLE

__version__ = "1.0.0"

__all__ = [
    "Match", "MatchStatus", "Player", "ScoreType", "ScoringEvent", "Team", "User",
    "LiveMatch", "MatchService", "ScoringService", "TimerService",
    "create_app", "run_web_app", "fmt_match_clock", "fmt_tracking_time", "now_ts",
    "APP_TITLE"
]
