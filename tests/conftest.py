# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from caseimport.db.record_store import InMemoryRecordStore
from caseimport.logging.init import reset_logging

USER_ID = "user-1"
FIRM_ID = "firm-1"


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """record_store:
  backend: memory
batch:
  size: 10
  delay_ms: 0
  throttle: none
link_batch:
  size: 10
  delay_ms: 0
  throttle: none
  concurrent: true
preview_rows: 5
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def store() -> InMemoryRecordStore:
    """Store with one firm membership and two clients."""
    return InMemoryRecordStore(
        tables={
            "team_members": [{"id": "tm-1", "user_id": USER_ID, "firm_id": FIRM_ID}],
            "clients": [
                {"id": "c-1", "full_name": "John Doe", "firm_id": FIRM_ID},
                {"id": "c-2", "full_name": "ABC Traders Pvt. Ltd.", "firm_id": FIRM_ID},
                {"id": "c-9", "full_name": "Other Firm Client", "firm_id": "firm-2"},
            ],
        }
    )


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


def make_excel(path: Path, rows: list[dict[str, Any]], columns: list[str] | None = None) -> Path:
    """Write rows as the first sheet of a real .xlsx file (header on row 1)."""
    df = pd.DataFrame(rows, columns=columns)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Sheet1", index=False)
    return path


@pytest.fixture()
def excel_factory(temp_workdir: Path):
    def _make(name: str, rows: list[dict[str, Any]], columns: list[str] | None = None) -> Path:
        return make_excel(temp_workdir / "data" / name, rows, columns)
    return _make
