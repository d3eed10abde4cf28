"""
Player service for the Rugby Scoring application.

This module provides roster management: validation of player forms, jersey
uniqueness within a team and coach-scoped access through team ownership.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from .errors import NotFoundError, PersistenceError, ValidationError
from .persistence_service import DataStore
from ..models import Player, User
from ..utils import MIN_JERSEY_NUMBER, MAX_JERSEY_NUMBER, MIN_PLAYER_AGE, MAX_PLAYER_AGE

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class PlayerValidator:
    """Validates player form data against the team's current roster."""

    def validate(
        self,
        data: Dict[str, Any],
        roster: List[Dict[str, Any]],
        editing_id: Optional[str] = None,
    ) -> Dict[str, str]:
        """
        Validate player data and return validation errors by field.

        Args:
            data: Submitted form fields
            roster: Existing player rows of the target team
            editing_id: Id of the player being edited, exempt from the
                        duplicate-jersey check

        Returns:
            Message per invalid field (empty if valid)
        """
        errors: Dict[str, str] = {}

        if not str(data.get("name") or "").strip():
            errors["name"] = "Name is required"

        if not data.get("team_id"):
            errors["team_id"] = "Team is required"

        raw_jersey = data.get("jersey_number")
        if raw_jersey is None or raw_jersey == "":
            errors["jersey_number"] = "Jersey number is required"
        else:
            jersey = _to_int(raw_jersey)
            if jersey is None or not MIN_JERSEY_NUMBER <= jersey <= MAX_JERSEY_NUMBER:
                errors["jersey_number"] = (
                    f"Jersey number must be between {MIN_JERSEY_NUMBER} and {MAX_JERSEY_NUMBER}"
                )
            elif any(
                int(p["jersey_number"]) == jersey and p["id"] != editing_id
                for p in roster
            ):
                errors["jersey_number"] = "Jersey number already exists in this team"

        raw_age = data.get("age")
        if raw_age not in (None, ""):
            age = _to_int(raw_age)
            if age is None or not MIN_PLAYER_AGE <= age <= MAX_PLAYER_AGE:
                errors["age"] = f"Age must be between {MIN_PLAYER_AGE} and {MAX_PLAYER_AGE}"

        for measure in ("height", "weight"):
            raw = data.get(measure)
            if raw not in (None, "") and (_to_float(raw) is None or _to_float(raw) <= 0):
                errors[measure] = f"{measure.capitalize()} must be a positive number"

        email = str(data.get("email") or "").strip()
        if email and not is_valid_email(email):
            errors["email"] = "Invalid email format"

        return errors


class PlayerService:
    """
    Service class for managing player records.

    Coaches may only see and change players of teams they own.
    """

    def __init__(self, store: DataStore, validator: Optional[PlayerValidator] = None):
        self.store = store
        self.validator = validator or PlayerValidator()

    def list_players(self, user: Optional[User], team_id: Optional[str] = None) -> List[Player]:
        """Players visible to ``user``, ordered by team then jersey number."""
        if user is None:
            return []
        try:
            if team_id:
                rows = self.store.select("players", team_id=team_id)
            else:
                rows = self.store.select("players")
            if user.is_coach:
                owned = {t["id"] for t in self.store.select("teams", coach_id=user.id)}
                rows = [r for r in rows if r["team_id"] in owned]
        except PersistenceError:
            logger.exception("Failed to fetch players")
            return []
        players = [Player.from_row(r) for r in rows]
        players.sort(key=lambda p: (p.team_id, p.jersey_number))
        return players

    def get_player(self, player_id: str) -> Player:
        row = self.store.get("players", player_id)
        if row is None:
            raise NotFoundError(f"Player {player_id} not found")
        return Player.from_row(row)

    def owner_ids(self, team_id: str) -> List[Optional[str]]:
        """Owners of a player are its team and the team's coach."""
        team = self.store.get("teams", team_id)
        return [team_id, team.get("coach_id") if team else None]

    def create_player(self, data: Dict[str, Any]) -> Player:
        """
        Create a player after validation.

        Raises:
            ValidationError: If the form data is invalid
            PersistenceError: If the player could not be stored
        """
        self._check(data)
        row = self.store.insert("players", self._clean(data))
        logger.info("Added player #%s %s to team %s", row["jersey_number"], row["name"], row["team_id"])
        return Player.from_row(row)

    def update_player(self, player_id: str, data: Dict[str, Any]) -> Player:
        """
        Update a player after validation; the player keeps its own jersey.

        Raises:
            NotFoundError: If the player does not exist
            ValidationError: If the form data is invalid
        """
        current = self.get_player(player_id)
        merged = {**current.to_row(), **data}
        if merged.get("team_id") != current.team_id and self.has_scores(player_id):
            raise ValidationError({"team_id": "Player has recorded scores and cannot change team"})
        self._check(merged, editing_id=player_id)
        row = self.store.update("players", player_id, self._clean(merged))
        return Player.from_row(row)

    def has_scores(self, player_id: str) -> bool:
        return bool(self.store.select("scoring_events", player_id=player_id))

    def delete_player(self, player_id: str) -> None:
        """
        Raises:
            NotFoundError: If the player does not exist
            ValidationError: If the player has recorded scores
        """
        self.get_player(player_id)
        if self.has_scores(player_id):
            raise ValidationError({"player_id": "Player has recorded scores and cannot be deleted"})
        self.store.delete("players", player_id)
        logger.info("Deleted player %s", player_id)

    def _check(self, data: Dict[str, Any], editing_id: Optional[str] = None) -> None:
        roster: List[Dict[str, Any]] = []
        team_id = data.get("team_id")
        if team_id:
            if self.store.get("teams", team_id) is None:
                raise ValidationError({"team_id": "Team does not exist"})
            roster = self.store.select("players", team_id=team_id)
        errors = self.validator.validate(data, roster, editing_id=editing_id)
        if errors:
            raise ValidationError(errors)

    @staticmethod
    def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
        def _text(key: str) -> Optional[str]:
            return str(data.get(key) or "").strip() or None

        return {
            "name": str(data["name"]).strip(),
            "jersey_number": _to_int(data["jersey_number"]),
            "team_id": data["team_id"],
            "position": _text("position"),
            "age": _to_int(data.get("age")),
            "height": _to_float(data.get("height")),
            "weight": _to_float(data.get("weight")),
            "email": _text("email"),
            "phone": _text("phone"),
        }
