"""
Match model for the Rugby Scoring application.

This module contains the Match dataclass which represents one fixture between
two teams, its lifecycle status and its clock state.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class MatchStatus(Enum):
    """Lifecycle states of a match."""
    UPCOMING = "upcoming"
    LIVE = "live"
    HALF_TIME = "half-time"
    ENDED = "ended"

    @classmethod
    def parse(cls, value: Any) -> "MatchStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown match status: {value!r}") from None


@dataclass
class Match:
    """
    Represents a single match between two distinct teams.

    Attributes:
        id: Unique identifier
        tournament_id: Tournament the match belongs to
        team1_id: Home team
        team2_id: Away team
        status: Lifecycle status
        half: Current half (1 or 2)
        elapsed_seconds: Match clock in whole seconds (stored as ``match_time``)
        timer_running: Whether the operator has the clock running
        team1_score: Cached score of team 1
        team2_score: Cached score of team 2
        scheduled_date: ISO date/time of kick-off
        venue: Ground name
        coach_id: Coach who scheduled the match, if any
    """
    id: str
    team1_id: str
    team2_id: str
    tournament_id: Optional[str] = None
    status: MatchStatus = MatchStatus.UPCOMING
    half: int = 1
    elapsed_seconds: int = 0
    timer_running: bool = False
    team1_score: int = 0
    team2_score: int = 0
    scheduled_date: Optional[str] = None
    venue: Optional[str] = None
    coach_id: Optional[str] = None

    def is_live(self) -> bool:
        return self.status is MatchStatus.LIVE

    def team_ids(self) -> Tuple[str, str]:
        return (self.team1_id, self.team2_id)

    def to_row(self) -> Dict[str, Any]:
        """Convert to a ``matches`` table row."""
        return {
            "id": self.id,
            "tournament_id": self.tournament_id,
            "team1_id": self.team1_id,
            "team2_id": self.team2_id,
            "status": self.status.value,
            "half": self.half,
            "match_time": self.elapsed_seconds,
            "timer_running": self.timer_running,
            "team1_score": self.team1_score,
            "team2_score": self.team2_score,
            "scheduled_date": self.scheduled_date,
            "venue": self.venue,
            "coach_id": self.coach_id,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Match":
        """Create from a ``matches`` table row."""
        return cls(
            id=row["id"],
            tournament_id=row.get("tournament_id"),
            team1_id=row["team1_id"],
            team2_id=row["team2_id"],
            status=MatchStatus.parse(row.get("status") or MatchStatus.UPCOMING.value),
            half=int(row.get("half") or 1),
            elapsed_seconds=max(0, int(row.get("match_time") or 0)),
            timer_running=bool(row.get("timer_running", False)),
            team1_score=int(row.get("team1_score") or 0),
            team2_score=int(row.get("team2_score") or 0),
            scheduled_date=row.get("scheduled_date"),
            venue=row.get("venue"),
            coach_id=row.get("coach_id"),
        )
