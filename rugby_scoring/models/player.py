"""
Player model for the Rugby Scoring application.

This module contains the Player dataclass which represents a rostered player,
their profile fields and the per-match scoring counters.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .scoring import ScoreType


@dataclass
class Player:
    """
    Represents a rugby player and their scoring in the current match.

    Attributes:
        id: Unique identifier
        team_id: Owning team
        jersey_number: Jersey number (1-99, unique within the team)
        name: Player's full name
        position: Playing position (optional)
        age: Age in years (optional)
        height: Height in centimetres (optional)
        weight: Weight in kilograms (optional)
        email: Contact email (optional)
        phone: Contact phone (optional)
        tries: Tries scored in the current match
        conversions: Conversions kicked in the current match
        penalties: Penalty goals kicked in the current match
        drop_goals: Drop goals kicked in the current match
    """
    id: str
    team_id: str
    jersey_number: int
    name: str
    position: Optional[str] = None
    age: Optional[int] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    # Per-match counters
    tries: int = 0
    conversions: int = 0
    penalties: int = 0
    drop_goals: int = 0

    def points(self) -> int:
        """
        Points scored by this player in the current match.

        Returns:
            tries*5 + conversions*2 + penalties*3 + drop_goals*3
        """
        return sum(
            getattr(self, score_type.counter) * score_type.points
            for score_type in ScoreType
        )

    def record(self, score_type: ScoreType) -> None:
        """Increment the counter matching a scoring action."""
        counter = score_type.counter
        setattr(self, counter, getattr(self, counter) + 1)

    def counters(self) -> Dict[str, int]:
        return {
            "tries": self.tries,
            "conversions": self.conversions,
            "penalties": self.penalties,
            "drop_goals": self.drop_goals,
        }

    def to_row(self) -> Dict[str, Any]:
        """Convert to a ``players`` table row (counters are match-local)."""
        return {
            "id": self.id,
            "team_id": self.team_id,
            "jersey_number": self.jersey_number,
            "name": self.name,
            "position": self.position,
            "age": self.age,
            "height": self.height,
            "weight": self.weight,
            "email": self.email,
            "phone": self.phone,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Player":
        """Create from a ``players`` table row."""
        return cls(
            id=row["id"],
            team_id=row["team_id"],
            jersey_number=int(row["jersey_number"]),
            name=row["name"],
            position=row.get("position"),
            age=row.get("age"),
            height=row.get("height"),
            weight=row.get("weight"),
            email=row.get("email"),
            phone=row.get("phone"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_row()
        data.update(self.counters())
        data["points"] = self.points()
        return data
