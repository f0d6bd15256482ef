from __future__ import annotations

import json
import re

from caseimport.models.error_record import (
    DATABASE_INSERT_ERROR,
    SETUP_ERROR,
    UNEXPECTED_ERROR,
    VALIDATION_ERROR,
    ErrorRecord,
)

"""Error log JSON Lines contract: five keys, fixed names and types."""

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$")


def test_record_shape():
    line = ErrorRecord.create("cases.xlsx", 7, DATABASE_INSERT_ERROR, "Database error: dup").to_json_line()
    data = json.loads(line)
    assert list(data) == ["timestamp", "file", "row", "error_type", "message"]
    assert TIMESTAMP.match(data["timestamp"])
    assert isinstance(data["row"], int)
    assert "\n" not in line


def test_error_types_are_upper_snake_case():
    for t in (VALIDATION_ERROR, DATABASE_INSERT_ERROR, UNEXPECTED_ERROR, SETUP_ERROR):
        assert re.fullmatch(r"[A-Z]+(_[A-Z]+)*", t)


def test_run_level_sentinel_row():
    assert json.loads(ErrorRecord.create("x.xlsx", -1, SETUP_ERROR, "no firm").to_json_line())["row"] == -1
