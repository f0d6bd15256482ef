from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.import_result import ImportProgress

"""Progress display with tqdm (TTY only).

- one tqdm bar per run, counting rows
- batch position and running counts shown as postfix
- disabled when stdout is not a TTY so CI logs stay free of control codes
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Row progress bar for an import or link run.

    ``update`` accepts the same ImportProgress tuples that are pushed to the
    caller's progress callback, so the bar and the callback never disagree.
    """

    def __init__(
        self, total_rows: int, *, description: str = "Importing rows", disable: bool = False
    ) -> None:
        self.total_rows = total_rows
        self.description = description
        self.current_row = 0

        self.enabled = not disable and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def update(self, progress: ImportProgress) -> None:
        advance = progress.current - self.current_row
        self.current_row = progress.current
        if self.enabled and self.pbar is not None:
            if advance > 0:
                self.pbar.update(advance)
            self.pbar.set_description(
                f"{self.description} (batch {progress.current_batch}/{progress.total_batches})"
            )

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
