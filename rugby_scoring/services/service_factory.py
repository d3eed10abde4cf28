"""
Service Factory for dependency injection.

Builds every service over one shared DataStore so that the web layer and
scripts get consistently wired instances.
"""
from typing import Any, MutableMapping, Optional

from .admin_service import AdminService
from .analytics_service import AnalyticsService, MatchReportExporter
from .auth_service import AuthService, Session
from .match_service import MatchService, TickerFactory
from .persistence_service import DataStore, InMemoryStore, JsonFileStore
from .player_service import PlayerService, PlayerValidator
from .scoring_service import ScoringService
from .team_service import TeamService, TournamentService
from .tracking_service import TrackingService
from ..config import AppConfig


class ServiceFactory:
    """
    Factory for creating service instances with their dependencies injected.

    The store and the match service (which owns the loaded matches and their
    clocks) are created once per factory. Sessions are per client.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        store: Optional[DataStore] = None,
        ticker_factory: Optional[TickerFactory] = None,
    ):
        self.config = config or AppConfig()
        self._store = store
        self._ticker_factory = ticker_factory
        self._match_service: Optional[MatchService] = None
        self._export_service: Optional[MatchReportExporter] = None

    @property
    def store(self) -> DataStore:
        """Get singleton data store: a JSON file when configured, else in memory."""
        if self._store is None:
            if self.config.data_file:
                self._store = JsonFileStore(self.config.data_file)
            else:
                self._store = InMemoryStore()
        return self._store

    def create_auth_service(self) -> AuthService:
        return AuthService(self.store)

    def create_session(self, storage: MutableMapping[str, Any]) -> Session:
        """Session over one client's storage, with its user restored."""
        session = Session(storage, self.create_auth_service())
        session.init()
        return session

    def create_player_service(self, custom_validator: Optional[PlayerValidator] = None) -> PlayerService:
        return PlayerService(self.store, validator=custom_validator)

    def create_team_service(self) -> TeamService:
        return TeamService(self.store)

    def create_tournament_service(self) -> TournamentService:
        return TournamentService(self.store)

    def get_match_service(self) -> MatchService:
        """Get singleton match service; it keeps one clock per loaded match."""
        if self._match_service is None:
            self._match_service = MatchService(self.store, ticker_factory=self._ticker_factory)
        return self._match_service

    def create_scoring_service(self) -> ScoringService:
        return ScoringService(self.store)

    def create_tracking_service(self) -> TrackingService:
        return TrackingService(self.store)

    def create_admin_service(self) -> AdminService:
        return AdminService(self.store)

    def create_analytics_service(self) -> AnalyticsService:
        if self._export_service is None:
            self._export_service = MatchReportExporter()
        return AnalyticsService(export_service=self._export_service)

    def create_complete_service_suite(self) -> dict:
        """
        Create a complete suite of services sharing one store.

        Returns:
            Dictionary containing all configured services
        """
        return {
            "auth": self.create_auth_service(),
            "players": self.create_player_service(),
            "teams": self.create_team_service(),
            "tournaments": self.create_tournament_service(),
            "matches": self.get_match_service(),
            "scoring": self.create_scoring_service(),
            "tracking": self.create_tracking_service(),
            "admin": self.create_admin_service(),
            "analytics": self.create_analytics_service(),
        }
