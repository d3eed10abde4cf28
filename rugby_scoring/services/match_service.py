"""
Match service for the Rugby Scoring application.

Schedules matches and keeps one ``LiveMatch`` per match in memory while it is
being operated, so that a single clock ticker drives each match.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from .errors import PersistenceError, ValidationError
from .live_match import LiveMatch
from .persistence_service import DataStore
from .scoped_service import CoachScopedService
from .timer_service import ThreadTicker, Ticker
from ..models import Match, MatchStatus, Player, ScoringEvent, Team, User

logger = logging.getLogger(__name__)

TickerFactory = Callable[[str], Ticker]


def _thread_ticker(match_id: str) -> Ticker:
    return ThreadTicker(name=f"match-clock-{match_id}")


class MatchService(CoachScopedService):
    """Match scheduling plus status and clock control of loaded matches."""

    table = "matches"

    def __init__(self, store: DataStore, ticker_factory: Optional[TickerFactory] = None):
        super().__init__(store)
        self.ticker_factory = ticker_factory or _thread_ticker
        self._live: Dict[str, LiveMatch] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def list_matches(self, user: Optional[User], tournament_id: Optional[str] = None) -> List[Match]:
        filters = {"tournament_id": tournament_id} if tournament_id else {}
        matches = [Match.from_row(r) for r in self.list_rows(user, **filters)]
        return sorted(matches, key=lambda m: m.scheduled_date or "")

    def get_match(self, match_id: str) -> Match:
        return Match.from_row(self.get_row(match_id))

    def owner_ids(self, row: Dict[str, Any]) -> List[Optional[str]]:
        return [row.get("coach_id"), row.get("team1_id"), row.get("team2_id")]

    def validate(self, data: Dict[str, Any]) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        team1_id, team2_id = data.get("team1_id"), data.get("team2_id")
        if not team1_id:
            errors["team1_id"] = "Home team is required"
        elif self.store.get("teams", team1_id) is None:
            errors["team1_id"] = "Team does not exist"
        if not team2_id:
            errors["team2_id"] = "Away team is required"
        elif self.store.get("teams", team2_id) is None:
            errors["team2_id"] = "Team does not exist"
        if team1_id and team1_id == team2_id:
            errors["team2_id"] = "A team cannot play against itself"

        tournament_id = data.get("tournament_id")
        if not tournament_id:
            errors["tournament_id"] = "Tournament is required"
        elif self.store.get("tournaments", tournament_id) is None:
            errors["tournament_id"] = "Tournament does not exist"

        if not data.get("scheduled_date"):
            errors["scheduled_date"] = "Scheduled date is required"
        return errors

    def create_match(self, user: User, data: Dict[str, Any]) -> Match:
        """
        Schedule a new match. New matches are upcoming, first half, clock at
        zero and scores at zero whatever the submitted data says.

        Raises:
            ValidationError: If the form data is invalid
        """
        errors = self.validate(data)
        if errors:
            raise ValidationError(errors)
        row = self.store.insert(self.table, {
            "tournament_id": data["tournament_id"],
            "team1_id": data["team1_id"],
            "team2_id": data["team2_id"],
            "scheduled_date": data["scheduled_date"],
            "venue": str(data.get("venue") or "").strip() or None,
            "status": MatchStatus.UPCOMING.value,
            "half": 1,
            "match_time": 0,
            "timer_running": False,
            "team1_score": 0,
            "team2_score": 0,
            "coach_id": user.id if user.is_coach else data.get("coach_id"),
        })
        logger.info("Scheduled match %s: %s vs %s", row["id"], row["team1_id"], row["team2_id"])
        return Match.from_row(row)

    def delete(self, row_id: str) -> None:
        """Only matches that never went live can be deleted."""
        match = self.get_match(row_id)
        if match.status is not MatchStatus.UPCOMING:
            raise ValidationError({"status": "Only upcoming matches can be deleted"})
        with self._lock:
            self._live.pop(row_id, None)
        super().delete(row_id)

    # ------------------------------------------------------------------
    # Live operation
    # ------------------------------------------------------------------
    def load_live_match(self, match_id: str) -> LiveMatch:
        """
        Return the in-memory match, loading it from the store on first use.

        Team scores and player counters are rebuilt from the stored scoring
        events, never taken from the cached scores on the match row.

        Raises:
            NotFoundError: If the match does not exist
        """
        with self._lock:
            live = self._live.get(match_id)
            if live is not None:
                return live
            match = self.get_match(match_id)
            teams = tuple(self._load_team(team_id) for team_id in match.team_ids())
            events = [ScoringEvent.from_row(r) for r in self.store.select("scoring_events", match_id=match_id)]
            live = LiveMatch(match, teams, events, ticker=self.ticker_factory(match_id))
            self._live[match_id] = live
            logger.info("Loaded match %s with %d scoring events", match_id, len(events))
            return live

    def _load_team(self, team_id: str) -> Team:
        row = self.store.get("teams", team_id)
        if row is None:
            raise ValidationError({"team_id": f"Team {team_id} no longer exists"})
        players = [Player.from_row(p) for p in self.store.select("players", team_id=team_id)]
        return Team.from_row(row, players)

    def refresh_roster(self, team_id: str) -> None:
        """Reload a team's players into every loaded match it plays in."""
        with self._lock:
            loaded = [live for live in self._live.values() if team_id in live.match.team_ids()]
        for live in loaded:
            live.team(team_id).players = [
                Player.from_row(p) for p in self.store.select("players", team_id=team_id)
            ]
            live.rebuild_aggregates()

    def change_status(self, match_id: str, target) -> LiveMatch:
        """
        Apply a status transition and persist the match row.

        Raises:
            MatchStateError: If the transition is not allowed
            PersistenceError: If the row could not be saved; the transition is
                              undone
        """
        live = self.load_live_match(match_id)
        before = self._clock_state(live.match)
        live.state.transition_to(target)
        self._save_or_revert(live, before)
        return live

    def toggle_timer(self, match_id: str) -> LiveMatch:
        """
        Start or pause the clock of a live match and persist the match row.

        Raises:
            MatchStateError: If the match is not live
            PersistenceError: If the row could not be saved; the toggle is
                              undone
        """
        live = self.load_live_match(match_id)
        before = self._clock_state(live.match)
        live.timer.toggle()
        self._save_or_revert(live, before)
        return live

    def shutdown(self) -> None:
        """Stop every ticker and save the clocks of loaded matches."""
        with self._lock:
            loaded = list(self._live.values())
            self._live.clear()
        for live in loaded:
            live.timer.ticker.stop()
            try:
                self.store.update(self.table, live.match.id, {"match_time": live.match.elapsed_seconds})
            except PersistenceError:
                logger.exception("Failed to save clock for match %s", live.match.id)

    @staticmethod
    def _clock_state(match: Match) -> Dict[str, Any]:
        return {"status": match.status, "half": match.half, "timer_running": match.timer_running}

    def _save_or_revert(self, live: LiveMatch, before: Dict[str, Any]) -> None:
        match = live.match
        try:
            self.store.update(self.table, match.id, {
                "status": match.status.value,
                "half": match.half,
                "match_time": match.elapsed_seconds,
                "timer_running": match.timer_running,
            })
        except PersistenceError:
            logger.exception("Failed to save match %s; reverting to %s", match.id, before["status"].value)
            match.status = before["status"]
            match.half = before["half"]
            if before["timer_running"]:
                live.timer.start()
            else:
                live.timer.stop()
            raise
