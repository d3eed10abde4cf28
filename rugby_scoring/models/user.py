"""
User, role and permission models for the Rugby Scoring application.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Role(Enum):
    """Account roles. Admins manage everything; coaches manage their own team."""
    ADMIN = "admin"
    COACH = "coach"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """
        Resolve a Role from a stored string.

        Raises:
            ValueError: For unknown roles, including the retired ``viewer`` role
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unsupported role: {value!r}") from None


class GatedPage(Enum):
    """Pages whose access is controlled by a coach permission flag."""
    TOURNAMENTS = "tournaments"
    TEAMS = "teams"
    PLAYERS = "players"
    MATCHES = "matches"
    STATISTICS = "statistics"
    PLAYER_TRACKING = "player_tracking"

    @classmethod
    def parse(cls, value: Any) -> Optional["GatedPage"]:
        """Return the matching page, or None for an unknown page key."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


@dataclass
class PermissionSet:
    """Per-page permission flags of a coach. Unset flags read as False."""
    flags: Dict[str, bool] = field(default_factory=dict)

    @classmethod
    def defaults(cls) -> "PermissionSet":
        return cls({page.value: False for page in GatedPage})

    def allows(self, page: GatedPage) -> bool:
        return bool(self.flags.get(page.value, False))

    def updated(self, changes: Dict[str, Any]) -> "PermissionSet":
        """Return a copy with known page flags replaced; unknown keys are ignored."""
        flags = dict(self.flags)
        for key, value in changes.items():
            page = GatedPage.parse(key)
            if page is not None:
                flags[page.value] = bool(value)
        return PermissionSet(flags)

    def to_row(self, coach_id: str) -> Dict[str, Any]:
        row: Dict[str, Any] = {"coach_id": coach_id}
        for page in GatedPage:
            row[page.value] = self.allows(page)
        return row

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]) -> "PermissionSet":
        if not row:
            return cls.defaults()
        return cls({page.value: bool(row.get(page.value, False)) for page in GatedPage})

    def to_dict(self) -> Dict[str, bool]:
        return {page.value: self.allows(page) for page in GatedPage}


@dataclass
class User:
    """
    An authenticated account.

    Attributes:
        id: Account identifier (coach or admin table id)
        username: Login name
        role: Admin or coach
        full_name: Display name
        email: Contact email (optional)
        team_id: The coach's own team (optional, coaches only)
        permissions: Stored permission flags (meaningful for coaches only)
    """
    id: str
    username: str
    role: Role
    full_name: str
    email: Optional[str] = None
    team_id: Optional[str] = None
    permissions: PermissionSet = field(default_factory=PermissionSet.defaults)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_coach(self) -> bool:
        return self.role is Role.COACH

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
            "full_name": self.full_name,
            "email": self.email,
            "team_id": self.team_id,
            "permissions": self.permissions.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=data["id"],
            username=data["username"],
            role=Role.parse(data["role"]),
            full_name=data.get("full_name") or data["username"],
            email=data.get("email"),
            team_id=data.get("team_id"),
            permissions=PermissionSet.from_row(data.get("permissions")),
        )
