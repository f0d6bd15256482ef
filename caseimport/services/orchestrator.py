from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import DEFAULT_BATCH_SIZE, ImportConfig
from ..db.record_store import CASES_TABLE, RecordStore, RecordStoreError
from ..excel.reader import SpreadsheetReadError, read_spreadsheet
from ..logging.error_log import ErrorLogBuffer
from ..models.case_record import ExtractedCaseRecord
from ..models.error_record import (
    DATABASE_INSERT_ERROR,
    SETUP_ERROR,
    UNEXPECTED_ERROR,
    VALIDATION_ERROR,
    ErrorRecord,
)
from ..models.import_result import (
    ClientNotFound,
    ImportPhase,
    ImportProgress,
    ImportResult,
    ImportState,
    RowError,
    SuccessfulImport,
)
from ..models.import_row import ImportRow
from .client_matcher import ClientMatcher
from .context import ImportSetupError, ProcessingError, UserContext, resolve_firm_id
from .dates import map_by_against, parse_date
from .fields import DEFAULT_ALIASES, FieldAliases, extract_field, extract_value
from .identifiers import normalize_cnr
from .preview import DEFAULT_PREVIEW_ROWS, Preview, generate_preview
from .progress import ProgressTracker
from .throttle import CancellationToken, FixedDelayThrottle, Throttle, throttle_from_config
from .validator import RowValidation, validate_row

"""Batch import orchestration for disposed-case spreadsheets.

Flow of one run:
1. resolve the user's firm (once)
2. read the spreadsheet
3. build the client lookup (once)
4. split rows into fixed-size batches
5. per row: validate -> extract -> persist; every row failure is recorded
   and the run moves on to the next row
6. throttle between batches, check for cancellation before each batch

Only setup errors (no firm, unreadable or empty file) abort a run.
"""

__all__ = [
    "CaseImporter",
    "ProcessingError",
    "ImportSetupError",
    "ReadRows",
    "partition",
    "build_case_record",
    "EMPTY_FILE",
    "DEFAULT_BATCH_DELAY_SECONDS",
]

logger = logging.getLogger(__name__)

ReadRows = Callable[[Path], list[ImportRow]]
ProgressCallback = Callable[[ImportProgress], None]

EMPTY_FILE = "The uploaded file contains no data"
DEFAULT_BATCH_DELAY_SECONDS = 0.8
NO_CLIENT = "No client"


def partition(rows: Sequence[ImportRow], size: int) -> list[list[ImportRow]]:
    if size < 1:
        raise ValueError("batch size must be >= 1")
    return [list(rows[i:i + size]) for i in range(0, len(rows), size)]


def build_case_record(
    row: ImportRow,
    validation: RowValidation,
    firm_id: str,
    user_id: str,
    aliases: FieldAliases = DEFAULT_ALIASES,
) -> ExtractedCaseRecord:
    """Assemble the persisted shape for a row that passed validation."""
    f = row.raw_fields
    matched = validation.matched_client
    return ExtractedCaseRecord(
        title=validation.title,
        created_by=user_id,
        firm_id=firm_id,
        reference_number=validation.reference_number or None,
        case_number=validation.case_number or None,
        cnr_number=normalize_cnr(validation.cnr) if validation.cnr else None,
        court_type=extract_field(f, aliases.court_type) or None,
        court_name=extract_field(f, aliases.court_name) or None,
        by_against=map_by_against(extract_field(f, aliases.by_against)),  # type: ignore[arg-type]
        client_id=matched.id if matched is not None else None,
        filing_date=parse_date(extract_value(f, aliases.filing_date)),
        disposal_date=parse_date(extract_value(f, aliases.disposal_date)),
        decision_date=parse_date(extract_value(f, aliases.last_order_date)),
        next_hearing_date=parse_date(extract_value(f, aliases.last_hearing_date)),
        nature_of_disposal=extract_field(f, aliases.nature_of_disposal) or None,
    )


@dataclass(frozen=True)
class _RowOutcome:
    row_number: int
    success: SuccessfulImport | None = None
    client_not_found: ClientNotFound | None = None
    error: RowError | None = None
    error_type: str | None = None


class CaseImporter:
    """Drive spreadsheet -> ``cases`` imports against a record store.

    Rows inside a batch run one after another, or concurrently on a thread
    pool no wider than the batch when ``concurrent`` is set. Results are
    always accumulated on the calling thread.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        reader: ReadRows = read_spreadsheet,
        batch_size: int = DEFAULT_BATCH_SIZE,
        throttle: Throttle | None = None,
        concurrent: bool = False,
        aliases: FieldAliases = DEFAULT_ALIASES,
        error_log: ErrorLogBuffer | None = None,
        progress_callback: ProgressCallback | None = None,
        show_progress: bool = True,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.store = store
        self.reader = reader
        self.batch_size = batch_size
        self.throttle = throttle if throttle is not None else FixedDelayThrottle(DEFAULT_BATCH_DELAY_SECONDS)
        self.concurrent = concurrent
        self.aliases = aliases
        self.error_log = error_log
        self.progress_callback = progress_callback
        self.show_progress = show_progress
        self.state = ImportState.IDLE

    @classmethod
    def from_config(cls, store: RecordStore, cfg: ImportConfig, **kwargs) -> CaseImporter:
        return cls(
            store,
            batch_size=cfg.batch.size,
            throttle=throttle_from_config(cfg.batch),
            concurrent=cfg.batch.concurrent,
            aliases=DEFAULT_ALIASES.extended(cfg.field_aliases),
            **kwargs,
        )

    # -- setup -------------------------------------------------------------

    def _read_rows(self, path: Path) -> list[ImportRow]:
        try:
            rows = self.reader(path)
        except SpreadsheetReadError as e:
            raise ImportSetupError(str(e)) from e
        if not rows:
            raise ImportSetupError(EMPTY_FILE)
        return rows

    def _load_matcher(self, firm_id: str) -> ClientMatcher:
        try:
            return ClientMatcher.from_store(self.store, firm_id)
        except RecordStoreError as e:
            raise ImportSetupError(f"client lookup failed: {e}") from e

    def _fail(self, result: ImportResult, source: str, error: ImportSetupError) -> None:
        self.state = ImportState.FAILED
        result.state = ImportState.FAILED
        result.finished_at = datetime.now(UTC)
        logger.error("import setup failed: %s", error)
        if self.error_log is not None:
            self.error_log.append(ErrorRecord.create(source, -1, SETUP_ERROR, str(error)))
            self._flush_error_log()

    def preview(
        self, path: Path, user: UserContext, limit: int = DEFAULT_PREVIEW_ROWS
    ) -> Preview:
        """Validate the first ``limit`` rows without writing anything."""
        firm_id = resolve_firm_id(self.store, user)
        rows = self._read_rows(path)
        matcher = self._load_matcher(firm_id)
        return generate_preview(rows, matcher, limit=limit, aliases=self.aliases)

    # -- run ---------------------------------------------------------------

    def run_import(
        self,
        path: Path,
        user: UserContext,
        cancel_token: CancellationToken | None = None,
    ) -> ImportResult:
        """Import every row of ``path`` for ``user``'s firm.

        Raises:
            ImportSetupError: the run could not start; no row was processed.
        """
        result = ImportResult(started_at=datetime.now(UTC))
        self.state = ImportState.VALIDATING
        result.state = ImportState.VALIDATING
        self._emit(ImportProgress(0, 0, ImportPhase.VALIDATING, 0, 0))

        try:
            firm_id = resolve_firm_id(self.store, user)
            rows = self._read_rows(path)
            matcher = self._load_matcher(firm_id)
        except ImportSetupError as e:
            self._fail(result, path.name, e)
            raise

        return self.process_rows(
            rows,
            firm_id=firm_id,
            user_id=user.user_id,
            matcher=matcher,
            source=path.name,
            result=result,
            cancel_token=cancel_token,
        )

    def process_rows(
        self,
        rows: Sequence[ImportRow],
        *,
        firm_id: str,
        user_id: str,
        matcher: ClientMatcher,
        source: str = "<rows>",
        result: ImportResult | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ImportResult:
        """Run the batch loop over already-read rows."""
        if result is None:
            result = ImportResult(started_at=datetime.now(UTC))
        batches = partition(rows, self.batch_size)
        result.total_rows = len(rows)
        result.total_batches = len(batches)
        self.state = ImportState.PROCESSING
        result.state = ImportState.PROCESSING
        logger.info(
            "importing %d rows from %s in %d batches (batch_size=%d, clients=%d)",
            len(rows),
            source,
            len(batches),
            self.batch_size,
            len(matcher),
        )

        settled = 0
        with ProgressTracker(
            len(rows), description="Importing cases", disable=not self.show_progress
        ) as tracker:
            for batch_index, batch in enumerate(batches):
                if cancel_token is not None and cancel_token.cancelled:
                    logger.warning(
                        "import cancelled before batch %d/%d; %d rows not processed",
                        batch_index + 1,
                        len(batches),
                        len(rows) - settled,
                    )
                    result.cancelled = True
                    break

                self._emit(
                    ImportProgress(settled, len(rows), ImportPhase.PROCESSING, batch_index + 1, len(batches)),
                    tracker,
                )
                batch_start = time.perf_counter()
                for outcome in self._run_batch(batch, matcher, firm_id, user_id):
                    self._accumulate(result, outcome, source)
                    settled += 1
                    self._emit(
                        ImportProgress(settled, len(rows), ImportPhase.PROCESSING, batch_index + 1, len(batches)),
                        tracker,
                    )
                result.batch_stats.add_batch_time(time.perf_counter() - batch_start)
                tracker.set_postfix(
                    success=result.success_count,
                    failed=result.failure_count,
                    no_client=result.client_not_found_count,
                )
                logger.debug(
                    "batch %d/%d settled success=%d failed=%d",
                    batch_index + 1,
                    len(batches),
                    result.success_count,
                    result.failure_count,
                )

                if batch_index < len(batches) - 1:
                    self.throttle.wait()

        final_state = ImportState.CANCELLED if result.cancelled else ImportState.DONE
        self.state = final_state
        result.state = final_state
        result.finished_at = datetime.now(UTC)
        self._flush_error_log()
        logger.info(
            "import %s: %d of %d rows imported, %d failed, %d without client match",
            final_state.value,
            result.success_count,
            len(rows),
            result.failure_count,
            result.client_not_found_count,
        )
        return result

    def _run_batch(
        self,
        batch: list[ImportRow],
        matcher: ClientMatcher,
        firm_id: str,
        user_id: str,
    ):
        if not self.concurrent or len(batch) == 1:
            for row in batch:
                yield self._process_row(row, matcher, firm_id, user_id)
            return
        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            futures = [
                executor.submit(self._process_row, row, matcher, firm_id, user_id)
                for row in batch
            ]
            for future in as_completed(futures):
                yield future.result()

    def _process_row(
        self,
        row: ImportRow,
        matcher: ClientMatcher,
        firm_id: str,
        user_id: str,
    ) -> _RowOutcome:
        """Validate, build and insert one row. Never raises."""
        try:
            validation = validate_row(row, matcher, self.aliases)
            blocking = validation.blocking_errors
            if blocking:
                return _RowOutcome(
                    row.row_number,
                    error=RowError(row.row_number, "; ".join(blocking)),
                    error_type=VALIDATION_ERROR,
                )

            record = build_case_record(row, validation, firm_id, user_id, self.aliases)
            try:
                self.store.insert(CASES_TABLE, record.to_record())
            except RecordStoreError as e:
                return _RowOutcome(
                    row.row_number,
                    error=RowError(row.row_number, f"Database error: {e}"),
                    error_type=DATABASE_INSERT_ERROR,
                )

            matched = validation.matched_client
            return _RowOutcome(
                row.row_number,
                success=SuccessfulImport(
                    row_number=row.row_number,
                    title=validation.title,
                    identifier=validation.identifier,
                    client_name=matched.full_name if matched is not None else NO_CLIENT,
                ),
                client_not_found=(
                    ClientNotFound(row.row_number, validation.client_name)
                    if validation.client_unresolved
                    else None
                ),
            )
        except Exception as e:
            logger.debug("unexpected error on row=%d", row.row_number, exc_info=True)
            return _RowOutcome(
                row.row_number,
                error=RowError(row.row_number, str(e) or type(e).__name__),
                error_type=UNEXPECTED_ERROR,
            )

    def _accumulate(self, result: ImportResult, outcome: _RowOutcome, source: str) -> None:
        if outcome.error is not None:
            result.record_error(outcome.error)
            logger.warning("row=%d failed: %s", outcome.row_number, outcome.error.error)
            if self.error_log is not None:
                self.error_log.append(
                    ErrorRecord.create(
                        source,
                        outcome.row_number,
                        outcome.error_type or UNEXPECTED_ERROR,
                        outcome.error.error,
                    )
                )
            return
        if outcome.success is not None:
            result.record_success(outcome.success)
        if outcome.client_not_found is not None:
            result.record_client_not_found(outcome.client_not_found)

    def _emit(self, progress: ImportProgress, tracker: ProgressTracker | None = None) -> None:
        if tracker is not None:
            tracker.update(progress)
        if self.progress_callback is not None:
            self.progress_callback(progress)

    def _flush_error_log(self) -> None:
        if self.error_log is None:
            return
        try:
            path = self.error_log.flush()
        except OSError as e:
            logger.warning("could not write error log: %s", e)
            return
        if path is not None:
            logger.info("error log written to %s", path)
