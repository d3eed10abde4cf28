"""Exceptions raised by the service layer."""
from typing import Dict, Optional


class PersistenceError(Exception):
    """A read or write against the data store failed."""
    pass


class ValidationError(Exception):
    """
    Form data failed validation.

    Attributes:
        errors: Message per offending field, suitable for inline display
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class MatchStateError(ValueError):
    """A match operation is not allowed in the current match status."""
    pass


class ScoringError(ValueError):
    """A score could not be recorded; nothing was changed."""
    pass


class AuthenticationError(Exception):
    """Login was refused. ``reason`` distinguishes the user-facing message."""

    INVALID_CREDENTIALS = "invalid_credentials"
    INACTIVE_ACCOUNT = "inactive_account"
    ROLE_MISMATCH = "role_mismatch"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason or self.INVALID_CREDENTIALS


class NotFoundError(LookupError):
    """A referenced record does not exist."""
    pass
