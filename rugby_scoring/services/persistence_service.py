"""
Persistence service for the Rugby Scoring application.

The application consumes its relational store through the small ``DataStore``
interface below: named tables of flat rows, filtered by equality. Two
implementations are provided: an in-memory store for tests and a JSON file
store that writes the whole database to disk after every mutation.
"""
import copy
import json
import logging
import os
import threading
import uuid
from typing import Any, Dict, List, Optional, Protocol

from .errors import PersistenceError
from ..utils import utc_now_iso

logger = logging.getLogger(__name__)

TABLES = (
    "tournaments",
    "teams",
    "players",
    "matches",
    "scoring_events",
    "coaches",
    "admins",
    "coach_permissions",
    "player_tracking",
)


class DataStore(Protocol):
    """Abstract row store - the only seam between services and the database."""

    def select(self, table: str, **filters: Any) -> List[Dict[str, Any]]:
        """Return copies of rows whose fields equal every filter value."""
        ...

    def get(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        """Return a copy of one row by id, or None."""
        ...

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row, assigning ``id`` and ``created_at`` when absent."""
        ...

    def update(self, table: str, row_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Apply changes to one row and return the stored result."""
        ...

    def upsert(self, table: str, row: Dict[str, Any], key: str = "id") -> Dict[str, Any]:
        """Insert the row, or update the existing row sharing ``row[key]``."""
        ...

    def delete(self, table: str, row_id: str) -> bool:
        """Delete one row by id. Returns False when nothing matched."""
        ...


class InMemoryStore:
    """
    Thread-safe in-memory DataStore.

    Rows are copied on the way in and out so callers never share mutable
    state with the store.
    """

    def __init__(self, data: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self._lock = threading.RLock()
        self._tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in TABLES}
        for name, rows in (data or {}).items():
            self._tables[name] = [dict(r) for r in rows]

    def _table(self, table: str) -> List[Dict[str, Any]]:
        if table not in self._tables:
            raise PersistenceError(f"Unknown table: {table}")
        return self._tables[table]

    def select(self, table: str, **filters: Any) -> List[Dict[str, Any]]:
        with self._lock:
            rows = self._table(table)
            return [
                copy.deepcopy(r) for r in rows
                if all(r.get(k) == v for k, v in filters.items())
            ]

    def get(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            for row in self._table(table):
                if row.get("id") == row_id:
                    return copy.deepcopy(row)
            return None

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            rows = self._table(table)
            stored = copy.deepcopy(row)
            stored.setdefault("id", None)
            if not stored["id"]:
                stored["id"] = str(uuid.uuid4())
            if any(r.get("id") == stored["id"] for r in rows):
                raise PersistenceError(f"Duplicate id in {table}: {stored['id']}")
            stored.setdefault("created_at", utc_now_iso())
            rows.append(stored)
            self._commit()
            return copy.deepcopy(stored)

    def update(self, table: str, row_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            for row in self._table(table):
                if row.get("id") == row_id:
                    row.update({k: copy.deepcopy(v) for k, v in changes.items() if k != "id"})
                    row["updated_at"] = utc_now_iso()
                    self._commit()
                    return copy.deepcopy(row)
            raise PersistenceError(f"No row {row_id} in {table}")

    def upsert(self, table: str, row: Dict[str, Any], key: str = "id") -> Dict[str, Any]:
        with self._lock:
            rows = self._table(table)
            existing = next((r for r in rows if key in row and r.get(key) == row[key]), None)
            if existing is None:
                return self.insert(table, row)
            existing.update(copy.deepcopy(row))
            existing["updated_at"] = utc_now_iso()
            self._commit()
            return copy.deepcopy(existing)

    def delete(self, table: str, row_id: str) -> bool:
        with self._lock:
            rows = self._table(table)
            remaining = [r for r in rows if r.get("id") != row_id]
            if len(remaining) == len(rows):
                return False
            self._tables[table] = remaining
            self._commit()
            return True

    def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        with self._lock:
            return copy.deepcopy(self._tables)

    def _commit(self) -> None:
        """Hook called after every mutation."""
        pass


class JsonFileStore(InMemoryStore):
    """
    DataStore persisted to a single JSON file.

    The file is rewritten after each mutation. A failed write is raised as
    PersistenceError after restoring the in-memory tables, so callers never
    observe a change that did not reach disk.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(self._load(file_path))

    @staticmethod
    def _load(file_path: str) -> Dict[str, List[Dict[str, Any]]]:
        """
        Load tables from disk.

        Raises:
            PersistenceError: If the file exists but is not a valid database
        """
        if not os.path.exists(file_path):
            return {}
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read data file {file_path}: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceError(f"Invalid data file structure: {file_path}")
        return {name: rows for name, rows in data.items() if name in TABLES}

    def insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        return self._guarded(lambda: InMemoryStore.insert(self, table, row))

    def update(self, table: str, row_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        return self._guarded(lambda: InMemoryStore.update(self, table, row_id, changes))

    def upsert(self, table: str, row: Dict[str, Any], key: str = "id") -> Dict[str, Any]:
        return self._guarded(lambda: InMemoryStore.upsert(self, table, row, key))

    def delete(self, table: str, row_id: str) -> bool:
        return self._guarded(lambda: InMemoryStore.delete(self, table, row_id))

    def _guarded(self, operation):
        with self._lock:
            before = copy.deepcopy(self._tables)
            try:
                return operation()
            except PersistenceError:
                self._tables = before
                raise

    def _commit(self) -> None:
        directory = os.path.dirname(self.file_path)
        tmp_path = f"{self.file_path}.tmp"
        try:
            if directory and not os.path.exists(directory):
                os.makedirs(directory)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._tables, f, indent=2)
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            logger.error("Failed to write data file %s: %s", self.file_path, e)
            raise PersistenceError(f"Cannot write data file {self.file_path}: {e}") from e
