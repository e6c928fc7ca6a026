# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from roster_import.db.memory_store import InMemoryRosterStore
from roster_import.logging.init import reset_logging
from roster_import.models.directory import DirectoryEntry, ReferenceTable
from tests.workbooks import build_workbook, generic_rows, specialized_rows


@pytest.fixture(autouse=True)
def _reset_logger():
    reset_logging()
    yield
    reset_logging()


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
    return """email_domain: sns.ru
upload:
  max_bytes: 1048576
  extensions: [.xlsx, .csv]
layout:
  scan_rows: 15
  legacy_header_row: 12
  specialized_header_row: 12
attribute_aliases:
  position: [представитель, супервайзер]
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def workbook_builder() -> Callable[[Sequence[Sequence[Any]]], bytes]:
    return build_workbook


@pytest.fixture()
def generic_workbook() -> bytes:
    return build_workbook(generic_rows())


@pytest.fixture()
def specialized_workbook() -> bytes:
    return build_workbook(specialized_rows())


@pytest.fixture()
def positions() -> ReferenceTable:
    return ReferenceTable.from_rows(
        "position",
        [
            {"id": "pos-1", "name": "Торговый представитель"},
            {"id": "pos-2", "name": "Супервайзер"},
            {"id": "pos-3", "name": "Медицинский представитель"},
            {"id": "pos-4", "name": "Менеджер"},
        ],
    )


@pytest.fixture()
def territories() -> ReferenceTable:
    return ReferenceTable.from_rows(
        "territory",
        [
            {"id": "ter-1", "name": "Москва", "region": "Центральный"},
            {"id": "ter-2", "name": "Казань", "region": "Поволжье"},
        ],
    )


@pytest.fixture()
def existing_entry() -> DirectoryEntry:
    return DirectoryEntry(
        id="person-1",
        full_name="Петров Пётр",
        email="petrov@example.com",
        identifier_code="10002",
        position_id=None,
        territory_id="ter-1",
        phone="+7 900 111-11-11",
        experience_days=0,
    )


@pytest.fixture()
def store(positions: ReferenceTable, territories: ReferenceTable) -> InMemoryRosterStore:
    return InMemoryRosterStore(positions=positions, territories=territories)
