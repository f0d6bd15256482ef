from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

import psycopg2
from psycopg2 import sql
from psycopg2.extras import RealDictCursor

from .record_store import RecordStoreError

"""PostgreSQL record store (direct connection to the backing database).

Each statement runs in autocommit mode so one rejected row never rolls back
rows that were already accepted.
"""

__all__ = [
    "PostgresRecordStore",
    "resolve_dsn",
]


def resolve_dsn(config_dsn: str | None = None) -> str:
    """Resolve connection parameters.

    Priority:
        1. DATABASE_URL / PGDSN environment variables
        2. dsn from config
        3. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or config_dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", "localhost")
    port = os.getenv("PGPORT", "5432")
    user = os.getenv("PGUSER", "postgres")
    password = os.getenv("PGPASSWORD", "")
    database = os.getenv("PGDATABASE", "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def _columns_sql(columns: str) -> sql.Composable:
    if columns.strip() == "*":
        return sql.SQL("*")
    names = [c.strip() for c in columns.split(",") if c.strip()]
    return sql.SQL(", ").join(sql.Identifier(n) for n in names)


def _error_message(e: psycopg2.Error) -> str:
    return (e.pgerror or str(e)).strip()


class PostgresRecordStore:
    def __init__(self, conn: Any) -> None:
        self._conn = conn
        self._conn.autocommit = True

    @classmethod
    def connect(cls, config_dsn: str | None = None) -> PostgresRecordStore:
        try:
            conn = psycopg2.connect(resolve_dsn(config_dsn))
        except psycopg2.Error as e:
            raise RecordStoreError(f"connection failed: {_error_message(e)}") from e
        return cls(conn)

    def close(self) -> None:
        if not self._conn.closed:
            self._conn.close()

    def _execute(self, query: sql.Composable, params: list[Any]) -> list[dict[str, Any]]:
        try:
            with self._conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(query, params)
                if cur.description is None:
                    return []
                return [dict(r) for r in cur.fetchall()]
        except psycopg2.Error as e:
            raise RecordStoreError(_error_message(e)) from e

    def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        columns: str = "*",
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        query = sql.SQL("SELECT {cols} FROM {table}").format(
            cols=_columns_sql(columns), table=sql.Identifier(table)
        )
        params: list[Any] = []
        if filters:
            conditions = []
            for col, value in filters.items():
                if value is None:
                    conditions.append(sql.SQL("{} IS NULL").format(sql.Identifier(col)))
                else:
                    conditions.append(sql.SQL("{} = %s").format(sql.Identifier(col)))
                    params.append(value)
            query = query + sql.SQL(" WHERE ") + sql.SQL(" AND ").join(conditions)
        if limit is not None:
            query = query + sql.SQL(" LIMIT %s")
            params.append(limit)
        return self._execute(query, params)

    def insert(self, table: str, record: Mapping[str, Any]) -> dict[str, Any]:
        cols = list(record.keys())
        query = sql.SQL("INSERT INTO {table} ({cols}) VALUES ({vals}) RETURNING *").format(
            table=sql.Identifier(table),
            cols=sql.SQL(", ").join(sql.Identifier(c) for c in cols),
            vals=sql.SQL(", ").join(sql.Placeholder() for _ in cols),
        )
        rows = self._execute(query, [record[c] for c in cols])
        return rows[0] if rows else dict(record)

    def update(self, table: str, record_id: Any, patch: Mapping[str, Any]) -> dict[str, Any]:
        cols = list(patch.keys())
        query = sql.SQL("UPDATE {table} SET {assignments} WHERE {id} = %s RETURNING *").format(
            table=sql.Identifier(table),
            assignments=sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(c)) for c in cols
            ),
            id=sql.Identifier("id"),
        )
        rows = self._execute(query, [patch[c] for c in cols] + [record_id])
        if not rows:
            raise RecordStoreError(f"{table} row not found: id={record_id}")
        return rows[0]
