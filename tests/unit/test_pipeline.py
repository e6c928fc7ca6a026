from __future__ import annotations

import asyncio

import pytest

from roster_import.db.memory_store import InMemoryRosterStore
from roster_import.db.store import StoreError
from roster_import.excel.reader import EmptySheetError, UploadRejectedError
from roster_import.models.candidate import Layout
from roster_import.models.config_models import ImportSettings, UploadLimits
from roster_import.models.outcome import OutcomeKind
from roster_import.services.pipeline import (
    build_report,
    commit_import,
    detect_and_parse,
    load_reference_tables,
    precheck,
)
from tests.workbooks import GENERIC_HEADER, build_csv, build_workbook, generic_rows, specialized_rows


def test_detect_and_parse_generic(generic_workbook: bytes):
    result = detect_and_parse(generic_workbook, "roster.xlsx")
    assert result.layout is Layout.GENERIC
    assert result.header_row_index == 2
    assert [c.row_number for c in result.candidates] == [4, 5, 6, 7, 9]
    assert [c.row_number for c in result.invalid] == [6, 7]
    assert result.mapping is not None and result.mapping.column_for("email") == 7
    orlov = result.candidates[-1]
    assert orlov.experience_days == 45
    assert orlov.identifier_code is None


def test_detect_and_parse_specialized(specialized_workbook: bytes):
    result = detect_and_parse(specialized_workbook, "personnel.xlsx")
    assert result.layout is Layout.SPECIALIZED
    assert result.mapping is None
    # separator row 15 and the too-short name on row 16 are dropped
    assert [c.row_number for c in result.candidates] == [14, 17, 18]
    first, missing_code, last = result.candidates
    assert first.email == "20001@sns.ru"
    assert first.approval_status == "согласовано"
    assert missing_code.validation_error == "Missing identifier code"
    assert last.email == "smirnov@corp.ru"


def test_detect_and_parse_csv():
    data = build_csv(generic_rows(), width=len(GENERIC_HEADER))
    result = detect_and_parse(data, "roster.csv")
    assert result.layout is Layout.GENERIC
    assert [c.full_name for c in result.candidates if c.is_committable] == [
        "Иванов Иван Иванович",
        "Петров Пётр",
        "Орлов Максим",
    ]


def test_detect_and_parse_csv_with_title_lines():
    result = detect_and_parse(build_csv(generic_rows()), "roster.csv")
    assert result.layout is Layout.GENERIC
    assert result.header_row_index == 2
    assert [c.row_number for c in result.candidates] == [4, 5, 6, 7, 9]
    assert result.candidates[0].identifier_code == "10001"


def test_detect_and_parse_specialized_csv():
    result = detect_and_parse(build_csv(specialized_rows()), "personnel.csv")
    assert result.layout is Layout.SPECIALIZED
    assert [c.row_number for c in result.candidates] == [14, 17, 18]
    first = result.candidates[0]
    assert first.email == "20001@sns.ru"
    assert first.approval_status == "согласовано"


def test_detect_and_parse_rejects_before_reading():
    settings = ImportSettings(upload=UploadLimits(max_bytes=10))
    with pytest.raises(UploadRejectedError):
        detect_and_parse(b"x" * 11, "roster.xlsx", settings)


def test_detect_and_parse_header_only_sheet():
    data = build_workbook([["Список участников"], GENERIC_HEADER])
    with pytest.raises(EmptySheetError):
        detect_and_parse(data, "roster.xlsx")


def test_precheck_counts(generic_workbook: bytes, existing_entry):
    result = detect_and_parse(generic_workbook, "roster.xlsx")
    store = InMemoryRosterStore(entries=[existing_entry])
    summary = asyncio.run(precheck(result.candidates, store))
    assert (summary.existing, summary.new, summary.invalid) == (1, 2, 2)


def test_commit_import_loads_reference_tables_once(store, generic_workbook: bytes):
    result = detect_and_parse(generic_workbook, "roster.xlsx")
    outcomes = asyncio.run(commit_import("e1", result.candidates, store))
    assert store.calls.count("list_reference_table") == 2
    assert len(outcomes) == len(result.candidates)
    report = build_report(outcomes, elapsed_seconds=0.5)
    assert (report.created, report.validation_errors, report.failed) == (3, 2, 0)
    assert report.elapsed_seconds == 0.5


def test_commit_import_uses_configured_aliases(store, generic_workbook: bytes):
    result = detect_and_parse(generic_workbook, "roster.xlsx")
    settings = ImportSettings(attribute_aliases={"position": (), "territory": ()})
    outcomes = asyncio.run(commit_import("e1", result.candidates, store, settings))
    orlov = next(o for o in outcomes if o.row_number == 9)
    # "Старший торговый представитель" still matches through the contains rule
    assert store.entries[orlov.person_id].position_id == "pos-1"
    assert store.entries[orlov.person_id].territory_id == "ter-2"


def test_unavailable_reference_table_is_empty(caplog):
    class NoTablesStore(InMemoryRosterStore):
        async def list_reference_table(self, kind):
            raise StoreError("relation \"territories\" does not exist")

    positions, territories = asyncio.run(load_reference_tables(NoTablesStore()))
    assert len(positions) == 0 and len(territories) == 0
    assert "reference table 'territory' unavailable" in caplog.text


def test_every_candidate_gets_one_outcome(store, generic_workbook: bytes):
    result = detect_and_parse(generic_workbook, "roster.xlsx")
    outcomes = asyncio.run(commit_import("e1", result.candidates, store))
    assert [o.row_number for o in outcomes] == [c.row_number for c in result.candidates]
    assert {o.kind for o in outcomes} == {OutcomeKind.CREATED, OutcomeKind.VALIDATION_ERROR}
