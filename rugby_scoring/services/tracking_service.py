"""
Player-tracking service.

Tracking records are player actions captured against match video, with a
``M:SS.ss`` timestamp. Records can be exported to CSV with a fixed column
order.
"""
import csv
import io
import logging
from typing import Any, Dict, List, Optional

from .errors import NotFoundError, PersistenceError, ValidationError
from .persistence_service import DataStore
from ..models import TrackingRecord, User
from ..utils import TRACKING_CSV_COLUMNS, parse_tracking_time

logger = logging.getLogger(__name__)


class TrackingService:
    """Records and exports player-tracking data."""

    table = "player_tracking"

    def __init__(self, store: DataStore):
        self.store = store

    def validate(self, data: Dict[str, Any]) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        try:
            parse_tracking_time(str(data.get("time") or ""))
        except ValueError as e:
            errors["time"] = str(e)

        team_id, player_id = data.get("team_id"), data.get("player_id")
        if not team_id:
            errors["team_id"] = "Team is required"
        if not player_id:
            errors["player_id"] = "Player is required"
        elif team_id:
            player = self.store.get("players", player_id)
            if player is None or player["team_id"] != team_id:
                errors["player_id"] = "Player is not on the selected team"

        if not str(data.get("action") or "").strip():
            errors["action"] = "Action is required"

        for key in ("points_h", "points_v"):
            raw = data.get(key)
            if raw in (None, ""):
                continue
            try:
                if float(raw) < 0:
                    errors[key] = "Points must be a non-negative number"
            except (TypeError, ValueError):
                errors[key] = "Points must be a non-negative number"
        return errors

    def add_record(self, data: Dict[str, Any]) -> TrackingRecord:
        """
        Store a tracking record.

        Args:
            data: Form fields; ``time`` is the M:SS.ss video position

        Raises:
            ValidationError: If the form data is invalid
            PersistenceError: If the record could not be stored
        """
        errors = self.validate(data)
        if errors:
            raise ValidationError(errors)

        def _point(key: str) -> Optional[float]:
            raw = data.get(key)
            return None if raw in (None, "") else float(raw)

        row = self.store.insert(self.table, {
            "team_id": data["team_id"],
            "player_id": data["player_id"],
            "tracking_time": parse_tracking_time(str(data["time"])),
            "action": str(data["action"]).strip(),
            "description": str(data.get("description") or "").strip() or None,
            "field_position": str(data.get("field_position") or "").strip() or None,
            "points_h": _point("points_h"),
            "points_v": _point("points_v"),
        })
        record = TrackingRecord.from_row(row)
        logger.info("Tracked %s for player %s at %s", record.action, record.player_id, record.formatted_time)
        return record

    def list_records(self, user: Optional[User], team_id: Optional[str] = None) -> List[TrackingRecord]:
        """Records ordered by video time; coaches only see their own teams."""
        if user is None:
            return []
        try:
            filters = {"team_id": team_id} if team_id else {}
            rows = self.store.select(self.table, **filters)
            if user.is_coach:
                owned = {t["id"] for t in self.store.select("teams", coach_id=user.id)}
                rows = [r for r in rows if r["team_id"] in owned]
        except PersistenceError:
            logger.exception("Failed to fetch tracking records")
            return []
        return sorted((TrackingRecord.from_row(r) for r in rows), key=lambda r: r.tracking_time)

    def get_record(self, record_id: str) -> TrackingRecord:
        row = self.store.get(self.table, record_id)
        if row is None:
            raise NotFoundError(f"Tracking record {record_id} not found")
        return TrackingRecord.from_row(row)

    def delete_record(self, record_id: str) -> None:
        self.get_record(record_id)
        self.store.delete(self.table, record_id)

    def export_csv(self, records: List[TrackingRecord]) -> str:
        """
        Render tracking records as CSV.

        Columns are fixed: Time, Player, Jersey Number, Action, Description,
        Field Position, Points H, Points V, Created At. Empty values are
        written as empty cells.
        """
        players = {p["id"]: p for p in self.store.select("players")}

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(TRACKING_CSV_COLUMNS)
        for record in records:
            player = players.get(record.player_id, {})
            row = [
                record.formatted_time,
                player.get("name"),
                player.get("jersey_number"),
                record.action,
                record.description,
                record.field_position,
                record.points_h,
                record.points_v,
                record.created_at,
            ]
            writer.writerow(["" if value is None else value for value in row])

        csv_text = buffer.getvalue()
        buffer.close()
        return csv_text
