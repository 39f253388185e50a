"""In-process tables with the same contract as the PostgREST tables.

Used for local runs without a Supabase project and throughout the tests. Rows
are deep-copied on the way in and out so callers never share state with the
store.
"""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from threading import RLock
from typing import Dict, Iterable, List, Optional

from ..config import LOCATION_REPORTS_TABLE, SHARED_PATHS_TABLE, USER_PATHS_TABLE
from ..errors import StorageError
from ..models import Identity, Row
from .tables import Filters, Table, TableProvider


def _matches(row: Row, filters: Optional[Filters]) -> bool:
    for column, value in (filters or {}).items():
        if row.get(column) != value:
            return False
    return True


class MemoryTable(Table):
    """Thread-safe list of rows with generated ``id`` / ``created_at`` columns."""

    def __init__(
        self,
        name: str,
        *,
        unique: Iterable[str] = ("id",),
        generated_timestamp: str | None = "created_at",
    ) -> None:
        self.name = name
        self._unique = tuple(unique)
        self._generated_timestamp = generated_timestamp
        self._lock = RLock()
        self._rows: List[Row] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def rows(self) -> List[Row]:
        with self._lock:
            return copy.deepcopy(self._rows)

    def insert(self, row: Row) -> Row:
        stored = copy.deepcopy(dict(row))
        stored.setdefault("id", str(uuid.uuid4()))
        if self._generated_timestamp:
            stored.setdefault(
                self._generated_timestamp, datetime.now(timezone.utc).isoformat()
            )
        with self._lock:
            for column in self._unique:
                value = stored.get(column)
                if value is None:
                    continue
                if any(existing.get(column) == value for existing in self._rows):
                    raise StorageError(
                        f"insert into {self.name} failed | duplicate {column}"
                    )
            self._rows.append(stored)
        return copy.deepcopy(stored)

    def select(
        self,
        filters: Optional[Filters] = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> List[Row]:
        with self._lock:
            matched = [
                (seq, row)
                for seq, row in enumerate(self._rows)
                if _matches(row, filters)
            ]
            if order_by:
                # Insertion order breaks ties so "newest first" stays stable.
                matched.sort(
                    key=lambda pair: (str(pair[1].get(order_by) or ""), pair[0]),
                    reverse=descending,
                )
            rows = [row for _, row in matched]
            if limit is not None:
                rows = rows[:limit]
            return copy.deepcopy(rows)

    def update(self, values: Row, filters: Filters) -> List[Row]:
        with self._lock:
            updated = []
            for row in self._rows:
                if _matches(row, filters):
                    row.update(copy.deepcopy(dict(values)))
                    updated.append(row)
            return copy.deepcopy(updated)

    def delete(self, filters: Filters) -> List[Row]:
        with self._lock:
            removed = [row for row in self._rows if _matches(row, filters)]
            self._rows = [row for row in self._rows if not _matches(row, filters)]
            return removed


class MemoryClient(TableProvider):
    """Table provider backed by :class:`MemoryTable` instances."""

    def __init__(self) -> None:
        self.tables: Dict[str, MemoryTable] = {
            SHARED_PATHS_TABLE: MemoryTable(
                SHARED_PATHS_TABLE, unique=("id", "path_id")
            ),
            USER_PATHS_TABLE: MemoryTable(USER_PATHS_TABLE),
            LOCATION_REPORTS_TABLE: MemoryTable(
                LOCATION_REPORTS_TABLE,
                unique=("id", "client_report_id"),
                generated_timestamp=None,
            ),
        }

    def table(self, name: str, identity: Identity | None = None) -> Table:
        try:
            return self.tables[name]
        except KeyError as exc:
            raise StorageError(f"unknown table {name}") from exc

