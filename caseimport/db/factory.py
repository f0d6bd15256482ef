from __future__ import annotations

from ..config.loader import RecordStoreConfig
from .record_store import InMemoryRecordStore, RecordStore, RecordStoreError

"""Build the configured record store backend."""

__all__ = ["create_record_store"]


def create_record_store(cfg: RecordStoreConfig) -> RecordStore:
    """Instantiate the backend named in config.

    Raises:
        RecordStoreError: when credentials are missing or the connection fails.
    """
    if cfg.backend == "memory":
        return InMemoryRecordStore()

    if cfg.backend == "postgres":
        from .postgres_store import PostgresRecordStore

        return PostgresRecordStore.connect(cfg.dsn)

    if cfg.backend == "supabase":
        from .supabase_store import SupabaseConfig, SupabaseRecordStore

        try:
            supabase_cfg = SupabaseConfig.from_env(url=cfg.url, key=cfg.key)
        except ValueError as e:
            raise RecordStoreError(str(e)) from e
        try:
            return SupabaseRecordStore.from_config(supabase_cfg)
        except Exception as e:
            raise RecordStoreError(f"supabase client: {e}") from e

    raise RecordStoreError(f"unknown record store backend: {cfg.backend}")
