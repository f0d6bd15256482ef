from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from supabase import Client, create_client

from .record_store import RecordStoreError

"""Supabase record store (hosted backend through its REST API).

Uses the service role key: it bypasses row level security, so this store is
for backend/CLI use only and scopes every query by firm_id itself.
"""

__all__ = [
    "SupabaseConfig",
    "SupabaseRecordStore",
]


@dataclass(frozen=True)
class SupabaseConfig:
    url: str
    key: str

    @classmethod
    def from_env(cls, url: str | None = None, key: str | None = None) -> SupabaseConfig:
        """Environment variables override the values from the config file."""
        resolved_url = os.getenv("SUPABASE_URL") or url
        resolved_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or key
        if not resolved_url:
            raise ValueError("SUPABASE_URL environment variable is required")
        if not resolved_key:
            raise ValueError("SUPABASE_SERVICE_ROLE_KEY environment variable is required")
        return cls(url=resolved_url, key=resolved_key)


class SupabaseRecordStore:
    def __init__(self, client: Client) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: SupabaseConfig) -> SupabaseRecordStore:
        return cls(create_client(config.url, config.key))

    def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        columns: str = "*",
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        query = self._client.table(table).select(columns)
        for col, value in (filters or {}).items():
            query = query.is_(col, "null") if value is None else query.eq(col, value)
        if limit is not None:
            query = query.limit(limit)
        try:
            response = query.execute()
        except Exception as e:
            raise RecordStoreError(str(e)) from e
        return list(response.data or [])

    def insert(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.table(table).insert(dict(record)).execute()
        except Exception as e:
            raise RecordStoreError(str(e)) from e
        return response.data[0] if response.data else dict(record)

    def update(self, table: str, record_id: Any, patch: Mapping[str, Any]) -> dict[str, Any]:
        try:
            response = self._client.table(table).update(dict(patch)).eq("id", record_id).execute()
        except Exception as e:
            raise RecordStoreError(str(e)) from e
        if not response.data:
            raise RecordStoreError(f"{table} row not found: id={record_id}")
        return response.data[0]
