"""Team and tournament management services."""
import logging
from typing import Any, Dict, List, Optional

from .errors import ValidationError
from .player_service import is_valid_email
from .scoped_service import CoachScopedService
from ..models import Team, Tournament, User
from ..utils import DEFAULT_TEAM_LOGO, TOURNAMENT_STATUSES

logger = logging.getLogger(__name__)


def _name_taken(name: str, rows: List[Dict[str, Any]], editing_id: Optional[str]) -> bool:
    wanted = name.strip().lower()
    return any(str(r["name"]).strip().lower() == wanted and r["id"] != editing_id for r in rows)


class TeamService(CoachScopedService):
    """Create, edit and delete teams; coaches manage only their own."""

    table = "teams"

    def list_teams(self, user: Optional[User]) -> List[Team]:
        teams = [Team.from_row(r) for r in self.list_rows(user)]
        return sorted(teams, key=lambda t: t.name.lower())

    def get_team(self, team_id: str) -> Team:
        return Team.from_row(self.get_row(team_id))

    def owner_ids(self, row: Dict[str, Any]) -> List[Optional[str]]:
        return [row.get("coach_id"), row.get("id")]

    def validate(self, data: Dict[str, Any], editing_id: Optional[str] = None) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        name = str(data.get("name") or "").strip()
        if not name:
            errors["name"] = "Team name is required"
        elif _name_taken(name, self.store.select(self.table), editing_id):
            errors["name"] = "Team name already exists"

        if not str(data.get("logo") or "").strip():
            errors["logo"] = "Team logo is required"

        coach_email = str(data.get("coach_email") or "").strip()
        if coach_email and not is_valid_email(coach_email):
            errors["coach_email"] = "Invalid email format"
        return errors

    def create_team(self, user: User, data: Dict[str, Any]) -> Team:
        """
        Create a team owned by ``user``.

        Raises:
            ValidationError: If the form data is invalid
        """
        data = {"logo": DEFAULT_TEAM_LOGO, **data}
        errors = self.validate(data)
        if errors:
            raise ValidationError(errors)
        row = self.store.insert(self.table, {
            "name": str(data["name"]).strip(),
            "logo": str(data["logo"]).strip(),
            "coach_email": str(data.get("coach_email") or "").strip() or None,
            "coach_id": user.id if user.is_coach else data.get("coach_id"),
            "tournament_id": data.get("tournament_id"),
        })
        logger.info("Created team %s", row["name"])
        return Team.from_row(row)

    def update_team(self, team_id: str, data: Dict[str, Any]) -> Team:
        current = self.get_row(team_id)
        merged = {**current, **data}
        errors = self.validate(merged, editing_id=team_id)
        if errors:
            raise ValidationError(errors)
        row = self.store.update(self.table, team_id, {
            "name": str(merged["name"]).strip(),
            "logo": str(merged["logo"]).strip(),
            "coach_email": str(merged.get("coach_email") or "").strip() or None,
            "tournament_id": merged.get("tournament_id"),
        })
        return Team.from_row(row)

    def delete(self, row_id: str) -> None:
        """
        Delete a team together with its players.

        Raises:
            ValidationError: If scores were recorded for the team
        """
        self.get_row(row_id)
        if self.store.select("scoring_events", team_id=row_id):
            raise ValidationError({"team_id": "Team has recorded scores and cannot be deleted"})
        super().delete(row_id)
        for player in self.store.select("players", team_id=row_id):
            self.store.delete("players", player["id"])


class TournamentService(CoachScopedService):
    """Create, edit and delete tournaments; coaches manage only their own."""

    table = "tournaments"

    def list_tournaments(self, user: Optional[User]) -> List[Tournament]:
        rows = self.list_rows(user)
        return sorted((Tournament.from_row(r) for r in rows), key=lambda t: t.start_date)

    def get_tournament(self, tournament_id: str) -> Tournament:
        return Tournament.from_row(self.get_row(tournament_id))

    def validate(self, data: Dict[str, Any], editing_id: Optional[str] = None) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        name = str(data.get("name") or "").strip()
        if not name:
            errors["name"] = "Tournament name is required"
        elif _name_taken(name, self.store.select(self.table), editing_id):
            errors["name"] = "Tournament name already exists"

        start, end = data.get("start_date"), data.get("end_date")
        if not start:
            errors["start_date"] = "Start date is required"
        if not end:
            errors["end_date"] = "End date is required"
        # ISO dates compare correctly as strings
        if start and end and str(start) > str(end):
            errors["end_date"] = "End date must be after start date"

        if data.get("status") and data["status"] not in TOURNAMENT_STATUSES:
            errors["status"] = "Invalid tournament status"
        return errors

    def create_tournament(self, user: User, data: Dict[str, Any]) -> Tournament:
        errors = self.validate(data)
        if errors:
            raise ValidationError(errors)
        row = self.store.insert(self.table, {
            "name": str(data["name"]).strip(),
            "description": str(data.get("description") or "").strip() or None,
            "start_date": data["start_date"],
            "end_date": data["end_date"],
            "status": data.get("status") or "upcoming",
            "coach_id": user.id if user.is_coach else data.get("coach_id"),
        })
        logger.info("Created tournament %s", row["name"])
        return Tournament.from_row(row)

    def update_tournament(self, tournament_id: str, data: Dict[str, Any]) -> Tournament:
        current = self.get_row(tournament_id)
        merged = {**current, **data}
        errors = self.validate(merged, editing_id=tournament_id)
        if errors:
            raise ValidationError(errors)
        row = self.store.update(self.table, tournament_id, {
            "name": str(merged["name"]).strip(),
            "description": str(merged.get("description") or "").strip() or None,
            "start_date": merged["start_date"],
            "end_date": merged["end_date"],
            "status": merged.get("status") or "upcoming",
        })
        return Tournament.from_row(row)
