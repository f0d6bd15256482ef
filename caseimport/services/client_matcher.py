from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..db.record_store import CLIENTS_TABLE, RecordStore
from .identifiers import normalize_client_name

"""Client name matching.

The lookup is built once per run from the firm's full client list and then
only read. Matching is an exact dictionary hit on the normalized name; there
is no partial or similarity matching beyond normalize_client_name.
"""

__all__ = [
    "ClientRef",
    "ClientLookup",
    "ClientMatcher",
    "build_lookup",
    "resolve",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientRef:
    id: str
    full_name: str


ClientLookup = dict[str, ClientRef]


def build_lookup(clients: Iterable[Mapping[str, Any] | ClientRef]) -> ClientLookup:
    """Index clients by normalized full name.

    When two clients normalize to the same key the later one wins.
    """
    lookup: ClientLookup = {}
    for client in clients:
        if isinstance(client, ClientRef):
            ref = client
        else:
            ref = ClientRef(id=str(client["id"]), full_name=str(client.get("full_name") or ""))
        key = normalize_client_name(ref.full_name)
        if not key:
            continue
        previous = lookup.get(key)
        if previous is not None and previous.id != ref.id:
            logger.warning(
                "duplicate client key=%r: client %s shadows %s",
                key,
                ref.id,
                previous.id,
            )
        lookup[key] = ref
    return lookup


def resolve(lookup: Mapping[str, ClientRef], raw_name: str) -> ClientRef | None:
    key = normalize_client_name(raw_name)
    if not key:
        return None
    return lookup.get(key)


class ClientMatcher:
    """Read-only client lookup for one firm."""

    def __init__(self, lookup: ClientLookup) -> None:
        self._lookup = lookup

    @classmethod
    def from_clients(cls, clients: Iterable[Mapping[str, Any] | ClientRef]) -> ClientMatcher:
        return cls(build_lookup(clients))

    @classmethod
    def from_store(cls, store: RecordStore, firm_id: str) -> ClientMatcher:
        clients = store.select(CLIENTS_TABLE, {"firm_id": firm_id}, columns="id, full_name")
        logger.debug("loaded %d clients for firm=%s", len(clients), firm_id)
        return cls.from_clients(clients)

    def resolve(self, raw_name: str) -> ClientRef | None:
        return resolve(self._lookup, raw_name)

    def __len__(self) -> int:
        return len(self._lookup)
