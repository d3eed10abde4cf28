"""
Models package for the Rugby Scoring application.

This package contains the core data models used throughout the application.
"""
from .scoring import ScoreType, ScoringEvent
from .player import Player
from .team import Team, Tournament
from .match import Match, MatchStatus
from .user import Role, GatedPage, PermissionSet, User
from .tracking import TrackingRecord
from .report import TeamStatistics, MatchReport

__all__ = [
    "ScoreType", "ScoringEvent", "Player", "Team", "Tournament",
    "Match", "MatchStatus", "Role", "GatedPage", "PermissionSet", "User",
    "TrackingRecord", "TeamStatistics", "MatchReport"
]
