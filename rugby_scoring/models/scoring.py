"""
Scoring event model for the Rugby Scoring application.

A ScoringEvent is an immutable record of one scoring action in a match. The
points awarded are fixed by the event type and never supplied by callers.
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from ..utils import (
    POINTS_BY_SCORE_TYPE, COUNTER_BY_SCORE_TYPE, SCORE_TYPE_LABELS, utc_now_iso
)


class ScoreType(Enum):
    """Rugby scoring actions."""
    TRY = "try"
    CONVERSION = "conversion"
    PENALTY = "penalty"
    DROP_GOAL = "drop-goal"

    @property
    def points(self) -> int:
        """Points awarded for this action."""
        return POINTS_BY_SCORE_TYPE[self.value]

    @property
    def counter(self) -> str:
        """Name of the Player counter this action increments."""
        return COUNTER_BY_SCORE_TYPE[self.value]

    @property
    def label(self) -> str:
        return SCORE_TYPE_LABELS[self.value]

    @classmethod
    def parse(cls, value: Any) -> "ScoreType":
        """
        Resolve a ScoreType from an enum member or its string value.

        Raises:
            ValueError: If the value is not a known scoring action
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown score type: {value!r}") from None


@dataclass(frozen=True)
class ScoringEvent:
    """
    A single scoring action, captured at the moment it was entered.

    Attributes:
        id: Unique identifier
        match_id: Match the event belongs to
        team_id: Team credited with the points
        player_id: Player who scored
        type: Scoring action
        points: Points derived from ``type``
        match_time: Match clock snapshot formatted as M:SS
        comment: Optional free-text note
        created_at: ISO timestamp of creation
    """
    id: str
    match_id: str
    team_id: str
    player_id: str
    type: ScoreType
    points: int
    match_time: str
    comment: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def create(
        cls,
        match_id: str,
        team_id: str,
        player_id: str,
        score_type: ScoreType,
        match_time: str,
        comment: Optional[str] = None,
    ) -> "ScoringEvent":
        """Build a new event with a fresh id and points derived from the type."""
        comment = (comment or "").strip() or None
        return cls(
            id=str(uuid.uuid4()),
            match_id=match_id,
            team_id=team_id,
            player_id=player_id,
            type=score_type,
            points=score_type.points,
            match_time=match_time,
            comment=comment,
        )

    def to_row(self) -> Dict[str, Any]:
        """Convert to a ``scoring_events`` table row."""
        return {
            "id": self.id,
            "match_id": self.match_id,
            "team_id": self.team_id,
            "player_id": self.player_id,
            "event_type": self.type.value,
            "points": self.points,
            "match_time": self.match_time,
            "comment": self.comment,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ScoringEvent":
        """Create from a ``scoring_events`` table row.

        Points are recomputed from the event type so a stored row can never
        disagree with the fixed points mapping.
        """
        score_type = ScoreType.parse(row["event_type"])
        return cls(
            id=row["id"],
            match_id=row["match_id"],
            team_id=row["team_id"],
            player_id=row["player_id"],
            type=score_type,
            points=score_type.points,
            match_time=row.get("match_time") or "0:00",
            comment=row.get("comment"),
            created_at=row.get("created_at") or utc_now_iso(),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_row()
        data["type"] = data.pop("event_type")
        data["label"] = self.type.label
        return data
