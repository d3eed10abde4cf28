"""
Authentication and session handling.

Login checks the coach accounts first and then the admin accounts; the first
username match wins unless the caller names the role it signs in as. A
successful login is kept in an explicit ``Session`` over client-side storage.
"""
import logging
from typing import Any, MutableMapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthenticationError
from .persistence_service import DataStore
from ..models import PermissionSet, Role, User
from ..utils import COACH_INACTIVITY_TIMEOUT_SECONDS, now_ts

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"
ROLE_MISMATCH_MESSAGE = "Invalid username or role"
INACTIVE_ACCOUNT_MESSAGE = "Your account has been deactivated. Please contact an administrator."


def hash_password(password: str) -> str:
    return generate_password_hash(password)


class AuthService:
    """Validates credentials against the coach and admin account tables."""

    ACCOUNT_TABLES = (("coaches", Role.COACH), ("admins", Role.ADMIN))

    def __init__(self, store: DataStore):
        self.store = store

    def login(self, username: str, password: str, role: Optional[Role] = None) -> User:
        """
        Authenticate a user.

        Args:
            username: Login name
            password: Plain-text password
            role: Role the user signs in as; None searches coaches, then admins

        Returns:
            The resolved User, permissions loaded for coaches

        Raises:
            AuthenticationError: For unknown users, wrong passwords, a role
                                 the account does not have and deactivated
                                 accounts (each with a distinct reason)
        """
        username = (username or "").strip()
        if not username or not password:
            raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

        for table, table_role in self.ACCOUNT_TABLES:
            if role is not None and table_role is not role:
                continue
            rows = self.store.select(table, username=username)
            if not rows:
                continue
            account = rows[0]
            if not check_password_hash(account.get("password_hash") or "", password):
                logger.info("Rejected login for %s: bad password", username)
                raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)
            if not account.get("is_active", True):
                logger.info("Rejected login for %s: account inactive", username)
                raise AuthenticationError(INACTIVE_ACCOUNT_MESSAGE, AuthenticationError.INACTIVE_ACCOUNT)
            user = self._build_user(account, table_role)
            logger.info("User %s logged in as %s", username, table_role.value)
            return user

        if role is not None and any(
            self.store.select(table, username=username)
            for table, table_role in self.ACCOUNT_TABLES if table_role is not role
        ):
            logger.info("Rejected login for %s: not a %s account", username, role.value)
            raise AuthenticationError(ROLE_MISMATCH_MESSAGE, AuthenticationError.ROLE_MISMATCH)

        logger.info("Rejected login for unknown user %s", username)
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    def load(self, user_id: str, role: Role) -> Optional[User]:
        """
        Load an account and its permission flags from the store.

        Returns None when the account was removed or deactivated.

        Raises:
            PersistenceError: If the store cannot be read
        """
        table = "coaches" if role is Role.COACH else "admins"
        account = self.store.get(table, user_id)
        if account is None or not account.get("is_active", True):
            return None
        return self._build_user(account, role)

    def refresh(self, user: User) -> Optional[User]:
        """Reload ``user`` so permission changes take effect."""
        return self.load(user.id, user.role)

    def _build_user(self, account: dict, role: Role) -> User:
        user = User(
            id=account["id"],
            username=account["username"],
            role=role,
            full_name=account.get("full_name") or account["username"],
            email=account.get("email"),
        )
        if role is Role.COACH:
            perms = self.store.select("coach_permissions", coach_id=user.id)
            user.permissions = PermissionSet.from_row(perms[0] if perms else None)
            teams = self.store.select("teams", coach_id=user.id)
            user.team_id = account.get("team_id") or (teams[0]["id"] if teams else None)
        return user


class Session:
    """
    The signed-in user of one client.

    Only the account id, role and last activity time live in ``storage``, a
    client-side mapping. In the web app that mapping is Flask's signed session
    cookie, so every client carries its own session. ``init()`` reloads the
    user from the account tables on each request, so permission changes and
    deactivation apply immediately.

    Lifecycle: ``init()`` restores the user, ``start()`` stores a user after
    login, ``teardown()`` clears it on logout. Coach sessions end after a
    period without activity; ``touch()`` records activity. Admin sessions
    never expire.
    """

    KEYS = ("user_id", "role", "last_activity_ts")

    def __init__(
        self,
        storage: MutableMapping[str, Any],
        auth: AuthService,
        inactivity_timeout: int = COACH_INACTIVITY_TIMEOUT_SECONDS,
    ):
        self.storage = storage
        self.auth = auth
        self.inactivity_timeout = inactivity_timeout
        self.user: Optional[User] = None
        self.expired = False

    @property
    def authenticated(self) -> bool:
        return self.user is not None

    @property
    def last_activity_ts(self) -> Optional[float]:
        return self.storage.get("last_activity_ts")

    def init(self) -> Optional[User]:
        """
        Restore the signed-in user from storage.

        Expired sessions, unknown roles and removed or deactivated accounts
        are cleared and yield None.

        Raises:
            PersistenceError: If the account tables cannot be read
        """
        user_id = self.storage.get("user_id")
        if not user_id or self.check_expiry():
            return None
        try:
            role = Role.parse(self.storage.get("role"))
        except ValueError as e:
            logger.warning("Discarding session of %s: %s", user_id, e)
            self.teardown()
            return None
        self.user = self.auth.load(user_id, role)
        if self.user is None:
            logger.info("Session of %s ended: account removed or deactivated", user_id)
            self.teardown()
        return self.user

    def start(self, user: User) -> None:
        self.user = user
        self.expired = False
        self.storage["user_id"] = user.id
        self.storage["role"] = user.role.value
        self.storage["last_activity_ts"] = now_ts()

    def teardown(self) -> None:
        """Clear the session from memory and from the client storage."""
        if self.user is not None:
            logger.info("Session ended for %s", self.user.username)
        self.user = None
        for key in self.KEYS:
            self.storage.pop(key, None)

    def touch(self) -> None:
        """Record user activity, resetting the inactivity timer."""
        if self.storage.get("user_id"):
            self.storage["last_activity_ts"] = now_ts()

    def is_expired(self) -> bool:
        if self.storage.get("role") != Role.COACH.value or self.last_activity_ts is None:
            return False
        return now_ts() - float(self.last_activity_ts) >= self.inactivity_timeout

    def check_expiry(self) -> bool:
        """Log out an expired session. Returns True when it was ended."""
        if not self.is_expired():
            return False
        logger.info("Coach %s logged out after inactivity", self.storage.get("user_id"))
        self.teardown()
        self.expired = True
        return True
