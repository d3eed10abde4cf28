"""
In-memory state of a match being scored.

The scoring event log is the source of truth. Team scores and player counters
are maintained incrementally for responsiveness and can always be rebuilt as a
pure fold over the log.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .match_state import MatchStateMachine
from .timer_service import Ticker, TimerService
from ..models import Match, Player, ScoringEvent, ScoreType, Team


@dataclass
class ScoreAggregates:
    """Team scores and player counters derived from scoring events."""
    team_scores: Dict[str, int] = field(default_factory=dict)
    player_counters: Dict[str, Dict[str, int]] = field(default_factory=dict)

    @staticmethod
    def _empty_counters() -> Dict[str, int]:
        return {score_type.counter: 0 for score_type in ScoreType}

    @classmethod
    def fold(cls, events: Iterable[ScoringEvent], teams: Iterable[Team] = ()) -> "ScoreAggregates":
        """
        Rebuild aggregates from scratch.

        Teams passed in are seeded with zero totals so that a team or player
        without events still appears in the result.
        """
        aggregates = cls()
        for team in teams:
            aggregates.team_scores[team.id] = 0
            for player in team.players:
                aggregates.player_counters[player.id] = cls._empty_counters()

        for event in events:
            aggregates.team_scores[event.team_id] = (
                aggregates.team_scores.get(event.team_id, 0) + event.points
            )
            counters = aggregates.player_counters.setdefault(event.player_id, cls._empty_counters())
            counters[event.type.counter] += 1
        return aggregates

    @classmethod
    def from_teams(cls, teams: Iterable[Team]) -> "ScoreAggregates":
        """Capture the incrementally maintained totals held on the models."""
        aggregates = cls()
        for team in teams:
            aggregates.team_scores[team.id] = team.score
            for player in team.players:
                aggregates.player_counters[player.id] = player.counters()
        return aggregates


class LiveMatch:
    """
    A match with its two teams, event log, clock and state machine.

    Attributes:
        match: The match record
        teams: Exactly two distinct teams, in team1/team2 order
        events: Scoring events in insertion order
        timer: Match clock
        state: Status state machine
    """

    def __init__(
        self,
        match: Match,
        teams: Tuple[Team, Team],
        events: Optional[List[ScoringEvent]] = None,
        ticker: Optional[Ticker] = None,
    ):
        if len(teams) != 2 or teams[0].id == teams[1].id:
            raise ValueError("A match needs exactly two distinct teams")
        if (teams[0].id, teams[1].id) != match.team_ids():
            raise ValueError("Teams do not belong to this match")
        self.match = match
        self.teams = tuple(teams)
        self.events: List[ScoringEvent] = list(events or [])
        self.timer = TimerService(match, ticker)
        self.state = MatchStateMachine(match, self.timer)
        self.rebuild_aggregates()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def team(self, team_id: str) -> Optional[Team]:
        return next((t for t in self.teams if t.id == team_id), None)

    def player(self, player_id: str) -> Optional[Player]:
        for team in self.teams:
            found = team.find_player(player_id)
            if found is not None:
                return found
        return None

    def timeline(self) -> List[ScoringEvent]:
        """Events most recent first."""
        return list(reversed(self.events))

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------
    def apply_event(self, event: ScoringEvent) -> None:
        """Append a persisted event and update the incremental totals."""
        team = self.team(event.team_id)
        player = team.find_player(event.player_id) if team else None
        if team is None or player is None:
            raise ValueError(f"Event {event.id} does not reference this match's roster")
        self.events.append(event)
        team.score += event.points
        player.record(event.type)
        self._sync_match_scores()

    def rebuild_aggregates(self) -> ScoreAggregates:
        """Reset every total and recompute it from the event log."""
        aggregates = ScoreAggregates.fold(self.events, self.teams)
        for team in self.teams:
            team.score = aggregates.team_scores.get(team.id, 0)
            for player in team.players:
                counters = aggregates.player_counters[player.id]
                for name, value in counters.items():
                    setattr(player, name, value)
        self._sync_match_scores()
        return aggregates

    def verify_consistency(self) -> bool:
        """
        True when the incremental totals equal a rebuild from the log, and each
        team score equals the points of its players.
        """
        rebuilt = ScoreAggregates.fold(self.events, self.teams)
        current = ScoreAggregates.from_teams(self.teams)
        if rebuilt != current:
            return False
        return all(team.score == team.players_points() for team in self.teams)

    def _sync_match_scores(self) -> None:
        self.match.team1_score = self.teams[0].score
        self.match.team2_score = self.teams[1].score

    def to_dict(self) -> Dict[str, object]:
        return {
            "match": {
                **self.match.to_row(),
                "clock": self.timer.formatted(),
                "controls": {
                    "can_start": self.state.can_start(),
                    "can_half_time": self.state.can_call_half_time(),
                    "can_end": self.state.can_end(),
                    "can_toggle_timer": self.state.can_toggle_timer(),
                    "can_enter_scores": self.state.can_enter_scores(),
                },
            },
            "teams": [team.to_dict() for team in self.teams],
            "timeline": [event.to_dict() for event in self.timeline()],
        }
