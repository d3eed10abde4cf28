"""Shared base for coach-scoped record services."""
import logging
from typing import Any, Dict, List, Optional

from .errors import NotFoundError, PersistenceError
from .persistence_service import DataStore
from ..models import User

logger = logging.getLogger(__name__)


class CoachScopedService:
    """
    Base class for services over a table whose rows carry a ``coach_id``.

    Coaches see only rows they own; admins see all rows. Reads fail open to an
    empty list, writes propagate their errors.
    """

    table: str = ""

    def __init__(self, store: DataStore):
        self.store = store

    def list_rows(self, user: Optional[User], **filters: Any) -> List[Dict[str, Any]]:
        if user is None:
            return []
        if user.is_coach:
            filters["coach_id"] = user.id
        try:
            return self.store.select(self.table, **filters)
        except PersistenceError:
            logger.exception("Failed to fetch %s", self.table)
            return []

    def get_row(self, row_id: str) -> Dict[str, Any]:
        """
        Raises:
            NotFoundError: If no such row exists
        """
        row = self.store.get(self.table, row_id)
        if row is None:
            raise NotFoundError(f"No {self.table} record {row_id}")
        return row

    def owner_ids(self, row: Dict[str, Any]) -> List[Optional[str]]:
        """Identifiers that own ``row`` for mutation checks."""
        return [row.get("coach_id")]

    def delete(self, row_id: str) -> None:
        self.get_row(row_id)
        self.store.delete(self.table, row_id)
        logger.info("Deleted %s record %s", self.table, row_id)
