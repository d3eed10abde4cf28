"""Team and tournament models."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .player import Player
from ..utils import DEFAULT_TEAM_LOGO


@dataclass
class Team:
    """
    A rugby team and its roster.

    ``score`` is match-local: the sum of the points of every scoring event
    credited to the team in the match currently loaded.
    """
    id: str
    name: str
    logo: str = DEFAULT_TEAM_LOGO
    coach_email: Optional[str] = None
    coach_id: Optional[str] = None
    tournament_id: Optional[str] = None
    score: int = 0
    players: List[Player] = field(default_factory=list)

    def find_player(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.players if p.id == player_id), None)

    def players_points(self) -> int:
        """Sum of player points; equals ``score`` while aggregates are in sync."""
        return sum(p.points() for p in self.players)

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "logo": self.logo,
            "coach_email": self.coach_email,
            "coach_id": self.coach_id,
            "tournament_id": self.tournament_id,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any], players: Optional[List[Player]] = None) -> "Team":
        return cls(
            id=row["id"],
            name=row["name"],
            logo=row.get("logo") or DEFAULT_TEAM_LOGO,
            coach_email=row.get("coach_email"),
            coach_id=row.get("coach_id"),
            tournament_id=row.get("tournament_id"),
            players=list(players or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_row()
        data["score"] = self.score
        data["players"] = [p.to_dict() for p in sorted(self.players, key=lambda p: p.jersey_number)]
        return data


@dataclass
class Tournament:
    """A tournament grouping teams and matches."""
    id: str
    name: str
    start_date: str
    end_date: str
    description: Optional[str] = None
    status: str = "upcoming"
    coach_id: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "status": self.status,
            "coach_id": self.coach_id,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Tournament":
        return cls(
            id=row["id"],
            name=row["name"],
            start_date=row.get("start_date") or "",
            end_date=row.get("end_date") or "",
            description=row.get("description"),
            status=row.get("status") or "upcoming",
            coach_id=row.get("coach_id"),
        )
