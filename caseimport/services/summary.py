from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering for import runs.

Format:
SUMMARY rows=N success=S failed=F client_not_found=C batches=B state=X elapsed_sec=E
"""

__all__ = [
    "render_summary_line",
    "format_seconds",
]


def format_seconds(seconds: float) -> str:
    """Render seconds without trailing zeros or scientific notation.

    >>> format_seconds(2.0)
    '2'
    >>> format_seconds(0.0004)
    '0.0004'
    """
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return str(round(seconds, 3))


def render_summary_line(result: ImportResult) -> str:
    return (
        f"SUMMARY rows={result.total_rows} "
        f"success={result.success_count} "
        f"failed={result.failure_count} "
        f"client_not_found={result.client_not_found_count} "
        f"batches={result.total_batches} "
        f"state={result.state.value} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )
