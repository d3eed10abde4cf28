"""
Services package for the Rugby Scoring application.

This package contains service classes that handle business logic.
Includes a factory wiring them over a shared data store.
"""
from .errors import (
    AuthenticationError, MatchStateError, NotFoundError, PersistenceError,
    ScoringError, ValidationError
)
from .persistence_service import DataStore, InMemoryStore, JsonFileStore
from .timer_service import ManualTicker, ThreadTicker, Ticker, TimerService
from .match_state import MatchStateMachine
from .live_match import LiveMatch, ScoreAggregates
from .scoring_service import ScoringService
from .auth_service import AuthService, Session, hash_password
from .player_service import PlayerService, PlayerValidator
from .team_service import TeamService, TournamentService
from .match_service import MatchService
from .tracking_service import TrackingService
from .admin_service import AdminService
from .analytics_service import AnalyticsService, MatchReportExporter
from .service_factory import ServiceFactory
from . import authorization

__all__ = [
    "AuthenticationError", "MatchStateError", "NotFoundError", "PersistenceError",
    "ScoringError", "ValidationError", "DataStore", "InMemoryStore", "JsonFileStore",
    "ManualTicker", "ThreadTicker", "Ticker", "TimerService", "MatchStateMachine",
    "LiveMatch", "ScoreAggregates", "ScoringService", "AuthService", "Session",
    "hash_password", "PlayerService", "PlayerValidator", "TeamService",
    "TournamentService", "MatchService", "TrackingService", "AdminService",
    "AnalyticsService", "MatchReportExporter", "ServiceFactory", "authorization"
]
