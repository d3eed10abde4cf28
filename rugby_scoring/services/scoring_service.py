"""
Scoring service for the Rugby Scoring application.

Recording a score is write-then-reflect: the event is persisted first and the
local log and totals only change once the write succeeded.
"""
import logging
from typing import Optional

from .errors import PersistenceError, ScoringError
from .live_match import LiveMatch
from .persistence_service import DataStore
from ..models import ScoreType, ScoringEvent

logger = logging.getLogger(__name__)


class ScoringService:
    """Appends scoring events to a live match."""

    def __init__(self, store: DataStore):
        self.store = store

    def add_score(
        self,
        live: LiveMatch,
        team_id: str,
        player_id: str,
        score_type,
        comment: Optional[str] = None,
    ) -> ScoringEvent:
        """
        Record a scoring action.

        Args:
            live: Match being scored
            team_id: Team credited with the points
            player_id: Scoring player, who must belong to ``team_id``
            score_type: ScoreType or its string value
            comment: Optional free-text note

        Returns:
            The persisted event

        Raises:
            ScoringError: If the match is not live or the team/player/type is
                          invalid; nothing is recorded
            PersistenceError: If the event could not be stored; local totals
                              are left untouched
        """
        if not live.state.can_enter_scores():
            raise ScoringError("Score input is only available during live matches")

        team = live.team(team_id)
        if team is None:
            raise ScoringError("Team is not playing in this match")
        player = team.find_player(player_id)
        if player is None:
            raise ScoringError("Player is not on the selected team")
        try:
            score_type = ScoreType.parse(score_type)
        except ValueError as e:
            raise ScoringError(str(e)) from e

        event = ScoringEvent.create(
            match_id=live.match.id,
            team_id=team.id,
            player_id=player.id,
            score_type=score_type,
            match_time=live.timer.formatted(),
            comment=comment,
        )

        try:
            self.store.insert("scoring_events", event.to_row())
        except PersistenceError:
            logger.exception("Failed to save %s for match %s", score_type.value, live.match.id)
            raise

        live.apply_event(event)
        logger.info(
            "Match %s %s: %s by #%d %s for %s (%d-%d)",
            live.match.id, event.match_time, score_type.label, player.jersey_number,
            player.name, team.name, live.match.team1_score, live.match.team2_score,
        )
        self._save_score_cache(live)
        return event

    def _save_score_cache(self, live: LiveMatch) -> None:
        # Scores on the match row are a cache of the event log, rebuilt on load
        try:
            self.store.update("matches", live.match.id, {
                "team1_score": live.match.team1_score,
                "team2_score": live.match.team2_score,
                "match_time": live.match.elapsed_seconds,
            })
        except PersistenceError:
            logger.warning("Score cache for match %s not saved; it is rebuilt from events on load",
                           live.match.id)
