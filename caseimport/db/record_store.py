from __future__ import annotations

import threading
import uuid
from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Protocol, runtime_checkable

"""Record store interface.

The import services only ever talk to the hosted backend through this narrow
interface: select by equality filters, insert one record, update one record
by id. Every backend failure surfaces as RecordStoreError so callers can
isolate it per row.
"""

__all__ = [
    "RecordStore",
    "RecordStoreError",
    "InMemoryRecordStore",
    "CASES_TABLE",
    "CLIENTS_TABLE",
    "TEAM_MEMBERS_TABLE",
]

CASES_TABLE = "cases"
CLIENTS_TABLE = "clients"
TEAM_MEMBERS_TABLE = "team_members"


class RecordStoreError(Exception):
    pass


@runtime_checkable
class RecordStore(Protocol):
    def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        columns: str = "*",
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    def insert(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]: ...

    def update(self, table: str, record_id: Any, patch: Mapping[str, Any]) -> dict[str, Any]: ...


def _project(row: dict[str, Any], columns: str) -> dict[str, Any]:
    if columns.strip() == "*":
        return dict(row)
    wanted = [c.strip() for c in columns.split(",") if c.strip()]
    return {c: row.get(c) for c in wanted}


class InMemoryRecordStore:
    """Dict-backed store used for tests and ``backend: memory`` dry runs.

    unique_keys maps a table to column names that must be unique among rows
    where the column is not None, emulating server-side constraints.
    """

    def __init__(
        self,
        tables: Mapping[str, list[dict[str, Any]]] | None = None,
        unique_keys: Mapping[str, tuple[str, ...]] | None = None,
    ) -> None:
        self._tables: dict[str, list[dict[str, Any]]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self._unique_keys = dict(unique_keys or {})
        self._lock = threading.Lock()

    def rows(self, table: str) -> list[dict[str, Any]]:
        with self._lock:
            return deepcopy(self._tables.get(table, []))

    def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        columns: str = "*",
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        with self._lock:
            matched = [
                _project(r, columns)
                for r in self._tables.get(table, [])
                if all(r.get(k) == v for k, v in (filters or {}).items())
            ]
        return matched[:limit] if limit is not None else matched

    def insert(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        with self._lock:
            rows = self._tables.setdefault(table, [])
            for col in self._unique_keys.get(table, ()):
                value = record.get(col)
                if value is not None and any(r.get(col) == value for r in rows):
                    raise RecordStoreError(
                        f'duplicate key value violates unique constraint "{table}_{col}_key"'
                    )
            stored = dict(record)
            stored.setdefault("id", str(uuid.uuid4()))
            rows.append(stored)
            return dict(stored)

    def update(self, table: str, record_id: Any, patch: Mapping[str, Any]) -> dict[str, Any]:
        with self._lock:
            for row in self._tables.get(table, []):
                if row.get("id") == record_id:
                    row.update(patch)
                    return dict(row)
        raise RecordStoreError(f"{table} row not found: id={record_id}")
