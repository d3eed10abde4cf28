"""Player-tracking record captured against match video."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..utils import fmt_tracking_time, utc_now_iso


@dataclass
class TrackingRecord:
    """
    One tracked player action.

    ``tracking_time`` is the video position in seconds with centisecond
    precision, rendered as M:SS.ss.
    """
    id: str
    team_id: str
    player_id: str
    tracking_time: float
    action: str
    description: Optional[str] = None
    field_position: Optional[str] = None
    points_h: Optional[float] = None
    points_v: Optional[float] = None
    created_at: str = field(default_factory=utc_now_iso)

    @property
    def formatted_time(self) -> str:
        return fmt_tracking_time(self.tracking_time)

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "team_id": self.team_id,
            "player_id": self.player_id,
            "tracking_time": self.tracking_time,
            "action": self.action,
            "description": self.description,
            "field_position": self.field_position,
            "points_h": self.points_h,
            "points_v": self.points_v,
            "created_at": self.created_at,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "TrackingRecord":
        return cls(
            id=row["id"],
            team_id=row["team_id"],
            player_id=row["player_id"],
            tracking_time=float(row.get("tracking_time") or 0.0),
            action=row["action"],
            description=row.get("description"),
            field_position=row.get("field_position"),
            points_h=row.get("points_h"),
            points_v=row.get("points_v"),
            created_at=row.get("created_at") or utc_now_iso(),
        )
