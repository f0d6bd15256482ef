from __future__ import annotations

import logging
from dataclasses import dataclass

from ..db.record_store import TEAM_MEMBERS_TABLE, RecordStore, RecordStoreError

"""Run context: who is importing and for which firm."""

__all__ = [
    "ProcessingError",
    "ImportSetupError",
    "UserContext",
    "resolve_firm_id",
    "FIRM_NOT_FOUND",
]

logger = logging.getLogger(__name__)

FIRM_NOT_FOUND = "Could not find your firm association"


class ProcessingError(Exception):
    """Base exception for processing errors."""


class ImportSetupError(ProcessingError):
    """Fatal to a whole run: no rows are processed."""


@dataclass(frozen=True)
class UserContext:
    user_id: str
    firm_id: str | None = None


def resolve_firm_id(store: RecordStore, user: UserContext) -> str:
    """Return the user's firm id, looked up once per run.

    Raises:
        ImportSetupError: if the lookup fails or the user has no team
            membership with a firm.
    """
    if user.firm_id:
        return user.firm_id
    try:
        members = store.select(
            TEAM_MEMBERS_TABLE, {"user_id": user.user_id}, columns="firm_id", limit=1
        )
    except RecordStoreError as e:
        raise ImportSetupError(f"firm lookup failed: {e}") from e
    firm_id = members[0].get("firm_id") if members else None
    if not firm_id:
        raise ImportSetupError(FIRM_NOT_FOUND)
    logger.debug("resolved firm=%s for user=%s", firm_id, user.user_id)
    return str(firm_id)
