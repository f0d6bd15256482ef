from __future__ import annotations

from pathlib import Path

import pytest

from caseimport.db.record_store import InMemoryRecordStore
from caseimport.models.import_row import ImportRow
from caseimport.services.client_linker import MISSING_LINK_FIELDS, ClientLinker
from caseimport.services.context import ImportSetupError, UserContext
from caseimport.services.throttle import NoThrottle

USER = UserContext("user-1")


@pytest.fixture()
def linked_store(store) -> InMemoryRecordStore:
    cases = [
        {"id": "k-1", "firm_id": "firm-1", "cnr_number": "GJHC240536442017", "case_number": None, "client_id": None},
        {"id": "k-2", "firm_id": "firm-1", "cnr_number": None, "case_number": "WP 12/2023", "client_id": None},
        {"id": "k-3", "firm_id": "firm-1", "cnr_number": "MHBM010001232020", "case_number": None, "client_id": "c-2"},
        {"id": "k-4", "firm_id": "firm-2", "cnr_number": "DLHC010000012021", "case_number": None, "client_id": None},
    ]
    return InMemoryRecordStore(
        tables={
            "team_members": store.rows("team_members"),
            "clients": store.rows("clients"),
            "cases": cases,
        }
    )


def _reader(rows: list[dict]):
    parsed = [ImportRow.from_index(i, r) for i, r in enumerate(rows)]
    return lambda path: parsed


@pytest.mark.parametrize("concurrent", [False, True])
def test_link_outcomes(linked_store, concurrent):
    reader = _reader(
        [
            {"cnr_number": "GJ/HC/24/053644/2017", "client_name": "Mr. John Doe"},
            {"cnr_number": "WP 12/2023", "client_name": "abc traders"},
            {"cnr_number": "MHBM010001232020", "client_name": "John Doe"},
            {"cnr_number": "DLHC010000012021", "client_name": "John Doe"},
            {"cnr_number": "GJHC240536442017", "client_name": ""},
        ]
    )
    linker = ClientLinker(linked_store, reader=reader, throttle=NoThrottle(), concurrent=concurrent)
    result = linker.link_clients(Path("links.xlsx"), USER)

    assert result.total == 5
    assert result.linked == 2
    assert result.skipped == 1
    assert result.case_not_found == 1
    assert result.client_not_found == 0
    assert [(e.row_number, e.error) for e in result.errors] == [(6, MISSING_LINK_FIELDS)]
    assert result.processed == 5

    by_id = {c["id"]: c for c in linked_store.rows("cases")}
    assert by_id["k-1"]["client_id"] == "c-1"
    assert by_id["k-2"]["client_id"] == "c-2"
    assert by_id["k-3"]["client_id"] == "c-2"
    assert by_id["k-4"]["client_id"] is None


def test_unknown_client(linked_store):
    reader = _reader([{"CNR Number": "GJHC240536442017", "Client Name": "Nobody"}])
    result = ClientLinker(linked_store, reader=reader, throttle=NoThrottle()).link_clients(Path("x.csv"), USER)
    assert result.client_not_found == 1
    assert result.linked == 0


def test_case_number_matches_normalized_text(linked_store):
    linked_store.insert(
        "cases",
        {"id": "k-5", "firm_id": "firm-1", "cnr_number": None, "case_number": "SCA12342019", "client_id": None},
    )
    reader = _reader([{"cnr_number": "SCA 1234/2019", "client_name": "John Doe"}])
    result = ClientLinker(linked_store, reader=reader, throttle=NoThrottle()).link_clients(Path("x.csv"), USER)
    assert result.linked == 1
    by_id = {c["id"]: c for c in linked_store.rows("cases")}
    assert by_id["k-5"]["client_id"] == "c-1"


def test_batches_are_throttled(linked_store):
    class Counter:
        waits = 0

        def wait(self) -> None:
            Counter.waits += 1

    reader = _reader([{"cnr_number": f"NONE{i}", "client_name": "x"} for i in range(21)])
    result = ClientLinker(linked_store, reader=reader, batch_size=10, throttle=Counter()).link_clients(
        Path("x.csv"), USER
    )
    assert Counter.waits == 2
    assert result.case_not_found == 21


def test_empty_file_is_setup_error(linked_store):
    with pytest.raises(ImportSetupError):
        ClientLinker(linked_store, reader=lambda p: []).link_clients(Path("x.csv"), USER)
