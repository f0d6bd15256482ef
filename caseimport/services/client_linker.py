from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ..config.loader import DEFAULT_BATCH_SIZE, ImportConfig
from ..db.record_store import CASES_TABLE, RecordStore, RecordStoreError
from ..excel.reader import SpreadsheetReadError, read_spreadsheet
from ..models.import_result import ImportPhase, ImportProgress, RowError
from ..models.import_row import ImportRow
from .client_matcher import ClientMatcher
from .context import ImportSetupError, UserContext, resolve_firm_id
from .fields import DEFAULT_ALIASES, FieldAliases, extract_field
from .identifiers import normalize_cnr
from .orchestrator import EMPTY_FILE, partition
from .progress import ProgressTracker
from .throttle import CancellationToken, FixedDelayThrottle, Throttle, throttle_from_config

"""Attach existing clients to already-imported cases.

Input sheet: one row per case with a CNR and a client name. Each row
resolves to exactly one outcome: linked, skipped (case already has a
client), case not found, client not found, or error.
"""

__all__ = [
    "ClientLinker",
    "LinkOutcome",
    "LinkResult",
    "MISSING_LINK_FIELDS",
    "DEFAULT_LINK_DELAY_SECONDS",
]

logger = logging.getLogger(__name__)

MISSING_LINK_FIELDS = "Missing CNR or client name"
DEFAULT_LINK_DELAY_SECONDS = 0.5


class LinkOutcome(Enum):
    LINKED = "linked"
    SKIPPED = "skipped"
    CASE_NOT_FOUND = "case_not_found"
    CLIENT_NOT_FOUND = "client_not_found"
    ERROR = "error"


@dataclass
class LinkResult:
    """Counts for one linking run.

    Every processed row lands in exactly one bucket, so
    linked + skipped + case_not_found + client_not_found + len(errors)
    equals the number of processed rows.
    """
    total: int = 0
    linked: int = 0
    skipped: int = 0
    case_not_found: int = 0
    client_not_found: int = 0
    errors: list[RowError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return (
            self.linked + self.skipped + self.case_not_found
            + self.client_not_found + len(self.errors)
        )

    def add(self, outcome: LinkOutcome, error: RowError | None = None) -> None:
        if outcome is LinkOutcome.LINKED:
            self.linked += 1
        elif outcome is LinkOutcome.SKIPPED:
            self.skipped += 1
        elif outcome is LinkOutcome.CASE_NOT_FOUND:
            self.case_not_found += 1
        elif outcome is LinkOutcome.CLIENT_NOT_FOUND:
            self.client_not_found += 1
        elif error is not None:
            self.errors.append(error)


class ClientLinker:
    def __init__(
        self,
        store: RecordStore,
        *,
        reader: Callable[[Path], list[ImportRow]] = read_spreadsheet,
        batch_size: int = DEFAULT_BATCH_SIZE,
        throttle: Throttle | None = None,
        concurrent: bool = True,
        aliases: FieldAliases = DEFAULT_ALIASES,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.store = store
        self.reader = reader
        self.batch_size = batch_size
        self.throttle = throttle if throttle is not None else FixedDelayThrottle(DEFAULT_LINK_DELAY_SECONDS)
        self.concurrent = concurrent
        self.aliases = aliases

    @classmethod
    def from_config(cls, store: RecordStore, cfg: ImportConfig, **kwargs) -> ClientLinker:
        return cls(
            store,
            batch_size=cfg.link_batch.size,
            throttle=throttle_from_config(cfg.link_batch),
            concurrent=cfg.link_batch.concurrent,
            aliases=DEFAULT_ALIASES.extended(cfg.field_aliases),
            **kwargs,
        )

    def _find_case(self, firm_id: str, raw_cnr: str) -> dict | None:
        """Exact lookup within the firm, first hit wins.

        Tries cnr_number == normalized value, then case_number == the sheet
        text as entered, then case_number == normalized value.
        """
        text = raw_cnr.strip()
        normalized = normalize_cnr(text)
        columns = "id, client_id, cnr_number, case_number"
        lookups = [("cnr_number", normalized), ("case_number", text)]
        if normalized != text:
            lookups.append(("case_number", normalized))
        for column, value in lookups:
            found = self.store.select(
                CASES_TABLE, {"firm_id": firm_id, column: value}, columns=columns, limit=1
            )
            if found:
                return found[0]
        return None

    def link_row(
        self, row: ImportRow, firm_id: str, matcher: ClientMatcher
    ) -> tuple[LinkOutcome, RowError | None]:
        """Resolve one sheet row to its outcome. Never raises."""
        try:
            raw_cnr = extract_field(row.raw_fields, self.aliases.link_cnr)
            client_name = extract_field(row.raw_fields, self.aliases.link_client_name)
            if not raw_cnr or not client_name:
                return LinkOutcome.ERROR, RowError(row.row_number, MISSING_LINK_FIELDS)

            case = self._find_case(firm_id, raw_cnr)
            if case is None:
                logger.debug("row=%d no case for cnr=%s", row.row_number, raw_cnr)
                return LinkOutcome.CASE_NOT_FOUND, None
            if case.get("client_id"):
                return LinkOutcome.SKIPPED, None

            client = matcher.resolve(client_name)
            if client is None:
                logger.debug("row=%d no client named %r", row.row_number, client_name)
                return LinkOutcome.CLIENT_NOT_FOUND, None

            self.store.update(CASES_TABLE, case["id"], {"client_id": client.id})
            return LinkOutcome.LINKED, None
        except RecordStoreError as e:
            return LinkOutcome.ERROR, RowError(row.row_number, f"Database error: {e}")
        except Exception as e:
            return LinkOutcome.ERROR, RowError(row.row_number, str(e) or type(e).__name__)

    def link_clients(
        self,
        path: Path,
        user: UserContext,
        cancel_token: CancellationToken | None = None,
    ) -> LinkResult:
        """Link clients to cases for every row of ``path``.

        Raises:
            ImportSetupError: firm missing, or the file is unreadable or empty.
        """
        firm_id = resolve_firm_id(self.store, user)
        try:
            rows = self.reader(path)
        except SpreadsheetReadError as e:
            raise ImportSetupError(str(e)) from e
        if not rows:
            raise ImportSetupError(EMPTY_FILE)
        try:
            matcher = ClientMatcher.from_store(self.store, firm_id)
        except RecordStoreError as e:
            raise ImportSetupError(f"client lookup failed: {e}") from e

        result = LinkResult(total=len(rows))
        batches = partition(rows, self.batch_size)
        logger.info("linking clients for %d rows in %d batches", len(rows), len(batches))

        with ProgressTracker(len(rows), description="Linking clients") as tracker:
            for batch_index, batch in enumerate(batches):
                if cancel_token is not None and cancel_token.cancelled:
                    logger.warning("client linking cancelled before batch %d", batch_index + 1)
                    result.cancelled = True
                    break
                for outcome, error in self._run_batch(batch, firm_id, matcher):
                    result.add(outcome, error)
                    if error is not None:
                        logger.warning("row=%d link failed: %s", error.row_number, error.error)
                tracker.update(
                    ImportProgress(result.processed, len(rows), ImportPhase.PROCESSING, batch_index + 1, len(batches))
                )
                if batch_index < len(batches) - 1:
                    self.throttle.wait()

        logger.info(
            "linked=%d skipped=%d case_not_found=%d client_not_found=%d errors=%d",
            result.linked,
            result.skipped,
            result.case_not_found,
            result.client_not_found,
            len(result.errors),
        )
        return result

    def _run_batch(self, batch: list[ImportRow], firm_id: str, matcher: ClientMatcher):
        if not self.concurrent or len(batch) == 1:
            for row in batch:
                yield self.link_row(row, firm_id, matcher)
            return
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = [executor.submit(self.link_row, row, firm_id, matcher) for row in batch]
            for future in as_completed(futures):
                yield future.result()
