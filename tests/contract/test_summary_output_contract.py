from __future__ import annotations

import re
from datetime import UTC, datetime

from caseimport.models.import_result import ImportResult, ImportState
from caseimport.services.summary import render_summary_line

"""SUMMARY line format contract.

Downstream scripts grep this line; field order and names are fixed.
"""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+rows=([0-9]+)\s+success=([0-9]+)\s+failed=([0-9]+)\s+"
    r"client_not_found=([0-9]+)\s+batches=([0-9]+)\s+"
    r"state=(done|cancelled|failed|processing|validating|idle)\s+"
    r"elapsed_sec=([0-9]+\.?[0-9]*)$"
)


def test_summary_pattern_example_line():
    line = "SUMMARY rows=25 success=24 failed=1 client_not_found=3 batches=3 state=done elapsed_sec=2.41"
    assert SUMMARY_PATTERN.match(line)


def test_rendered_line_matches_contract():
    result = ImportResult(
        total_rows=25,
        total_batches=3,
        success_count=10,
        failure_count=0,
        state=ImportState.CANCELLED,
        cancelled=True,
        started_at=datetime(2024, 1, 1, 10, 0, 0, tzinfo=UTC),
        finished_at=datetime(2024, 1, 1, 10, 0, 0, 4000, tzinfo=UTC),
    )
    line = render_summary_line(result)
    m = SUMMARY_PATTERN.match(line)
    assert m, line
    assert m.group(6) == "cancelled"
    assert m.group(7) == "0.004"


def test_success_plus_failed_equals_processed_rows():
    line = "SUMMARY rows=3 success=1 failed=2 client_not_found=0 batches=1 state=done elapsed_sec=0"
    m = SUMMARY_PATTERN.match(line)
    assert int(m.group(2)) + int(m.group(3)) == int(m.group(1))
