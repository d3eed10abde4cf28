"""
Administrator operations on coach accounts.

Callers are expected to have passed ``can_manage_coaches`` before reaching
this service.
"""
import logging
from typing import Any, Dict, List

from .auth_service import hash_password
from .errors import NotFoundError, PersistenceError, ValidationError
from .persistence_service import DataStore
from .player_service import is_valid_email
from ..models import PermissionSet

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class AdminService:
    """Creates coach and admin accounts and manages coach permissions."""

    def __init__(self, store: DataStore):
        self.store = store

    def _validate_account(self, data: Dict[str, Any]) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        username = str(data.get("username") or "").strip()
        if not username:
            errors["username"] = "Username is required"
        elif any(self.store.select(table, username=username) for table in ("coaches", "admins")):
            errors["username"] = "Username already exists"

        if len(str(data.get("password") or "")) < MIN_PASSWORD_LENGTH:
            errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"

        if not str(data.get("full_name") or "").strip():
            errors["full_name"] = "Full name is required"

        email = str(data.get("email") or "").strip()
        if email and not is_valid_email(email):
            errors["email"] = "Invalid email format"
        return errors

    def _account_row(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "username": str(data["username"]).strip(),
            "password_hash": hash_password(str(data["password"])),
            "full_name": str(data["full_name"]).strip(),
            "email": str(data.get("email") or "").strip() or None,
            "is_active": True,
        }

    def create_coach(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a coach account with every page permission switched off.

        Args:
            data: username, password, full_name, optional email and team_id

        Returns:
            The public coach record, including its permissions

        Raises:
            ValidationError: If the form data is invalid
            PersistenceError: If the account could not be stored
        """
        errors = self._validate_account(data)
        if errors:
            raise ValidationError(errors)

        row = self._account_row(data)
        row["team_id"] = data.get("team_id") or None
        coach = self.store.insert("coaches", row)
        try:
            self.store.insert("coach_permissions", PermissionSet.defaults().to_row(coach["id"]))
        except PersistenceError:
            logger.exception("Failed to create permissions for coach %s; removing account", coach["username"])
            self.store.delete("coaches", coach["id"])
            raise
        logger.info("Created coach account %s", coach["username"])
        return self._public(coach)

    def create_admin(self, data: Dict[str, Any]) -> Dict[str, Any]:
        errors = self._validate_account(data)
        if errors:
            raise ValidationError(errors)
        admin = self.store.insert("admins", self._account_row(data))
        logger.info("Created admin account %s", admin["username"])
        return self._public(admin, with_permissions=False)

    def list_coaches(self) -> List[Dict[str, Any]]:
        try:
            rows = self.store.select("coaches")
        except PersistenceError:
            logger.exception("Failed to fetch coaches")
            return []
        return sorted((self._public(r) for r in rows), key=lambda c: c["username"].lower())

    def set_coach_active(self, coach_id: str, active: bool) -> Dict[str, Any]:
        """Activate or deactivate a coach; deactivated coaches cannot log in."""
        self._get_coach(coach_id)
        row = self.store.update("coaches", coach_id, {"is_active": bool(active)})
        logger.info("Coach %s %s", row["username"], "activated" if active else "deactivated")
        return self._public(row)

    def get_permissions(self, coach_id: str) -> PermissionSet:
        rows = self.store.select("coach_permissions", coach_id=coach_id)
        return PermissionSet.from_row(rows[0] if rows else None)

    def update_permissions(self, coach_id: str, changes: Dict[str, Any]) -> PermissionSet:
        """
        Replace some of a coach's page flags. Unknown page keys are ignored.

        Raises:
            NotFoundError: If the coach does not exist
        """
        self._get_coach(coach_id)
        permissions = self.get_permissions(coach_id).updated(changes)
        self.store.upsert("coach_permissions", permissions.to_row(coach_id), key="coach_id")
        logger.info("Updated permissions of coach %s: %s", coach_id, permissions.to_dict())
        return permissions

    def _get_coach(self, coach_id: str) -> Dict[str, Any]:
        row = self.store.get("coaches", coach_id)
        if row is None:
            raise NotFoundError(f"Coach {coach_id} not found")
        return row

    def _public(self, row: Dict[str, Any], with_permissions: bool = True) -> Dict[str, Any]:
        data = {k: v for k, v in row.items() if k != "password_hash"}
        if with_permissions:
            data["permissions"] = self.get_permissions(row["id"]).to_dict()
        return data
