from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path

from roster_import.cli.__main__ import main as cli_main
from roster_import.db.memory_store import InMemoryRosterStore
from roster_import.db.store import StoreError
from roster_import.models.directory import DirectoryEntry


def _write_roster(temp_workdir: Path, data: bytes, name: str = "roster.xlsx") -> Path:
    path = temp_workdir / "data" / name
    path.write_bytes(data)
    return path


def test_cli_preview_prints_candidates(temp_workdir: Path, generic_workbook: bytes, capsys):
    path = _write_roster(temp_workdir, generic_workbook)
    code = cli_main(["preview", str(path)])
    out = capsys.readouterr().out
    assert code == 0
    assert "layout=generic header_row=3 candidates=5 invalid=2" in out
    assert "!! Missing full name" in out
    assert "!! Invalid email address: not-an-email" in out


def test_cli_preview_with_precheck(temp_workdir: Path, generic_workbook: bytes, capsys, monkeypatch):
    store = InMemoryRosterStore(
        entries=[DirectoryEntry(id="p-1", full_name="Петров Пётр", identifier_code="10002")]
    )

    @contextmanager
    def fake_open_store(cfg, dry_run):
        yield store

    monkeypatch.setattr("roster_import.cli.__main__._open_store", fake_open_store)
    path = _write_roster(temp_workdir, generic_workbook)
    code = cli_main(["preview", str(path), "--precheck"])
    out = capsys.readouterr().out
    assert code == 0
    assert "[existing] Петров Пётр" in out
    assert "precheck existing=1 new=2 invalid=2" in out


def test_cli_preview_precheck_database_unreachable(temp_workdir, generic_workbook, capsys, monkeypatch):
    @contextmanager
    def unreachable(db_cfg):
        raise StoreError("cannot connect to database: refused")
        yield  # pragma: no cover

    monkeypatch.setattr("roster_import.cli.__main__.db_connection", unreachable)
    path = _write_roster(temp_workdir, generic_workbook)
    code = cli_main(["preview", str(path), "--precheck"])
    assert code == 1
    assert "ERROR database: cannot connect to database" in capsys.readouterr().out


def test_cli_commit_dry_run(temp_workdir: Path, generic_workbook: bytes, capsys):
    path = _write_roster(temp_workdir, generic_workbook)
    code = cli_main(["commit", str(path), "--event-id", "e1", "--dry-run"])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO mode=dry-run event=e1 candidates=5" in out
    assert "SUMMARY rows=5 created=3 matched=0 skipped=0 invalid=2 failed=0 elapsed_sec=" in out

    [log_file] = (temp_workdir / "logs").glob("errors-*.log")
    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert [(r["row"], r["error_type"]) for r in records] == [
        (6, "ROW_VALIDATION_ERROR"),
        (7, "ROW_VALIDATION_ERROR"),
    ]
    assert all(r["file"] == "roster.xlsx" for r in records)


def test_cli_debug_mode(temp_workdir: Path, generic_workbook: bytes, capsys):
    path = _write_roster(temp_workdir, generic_workbook)
    cli_main(["--debug", "commit", str(path), "--event-id", "e1", "--dry-run"])
    out = capsys.readouterr().out
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG row 4: pending -> resolving" in out


def test_cli_uses_config_file(temp_workdir: Path, capsys, workbook_builder):
    (temp_workdir / "config" / "import.yml").write_text("email_domain: corp.example\n", encoding="utf-8")
    from tests.workbooks import specialized_rows

    path = _write_roster(temp_workdir, workbook_builder(specialized_rows()))
    code = cli_main(["preview", str(path)])
    out = capsys.readouterr().out
    assert code == 0
    assert "email=20001@corp.example" in out


def test_cli_explicit_config_missing(temp_workdir: Path, generic_workbook: bytes, capsys):
    path = _write_roster(temp_workdir, generic_workbook)
    code = cli_main(["--config", "nope.yml", "preview", str(path)])
    assert code == 1
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_cli_file_missing(temp_workdir: Path, capsys):
    code = cli_main(["preview", "data/missing.xlsx"])
    assert code == 1
    assert "ERROR file not found:" in capsys.readouterr().out


def test_cli_rejected_upload(temp_workdir: Path, capsys):
    path = _write_roster(temp_workdir, b"legacy", name="roster.xls")
    code = cli_main(["preview", str(path)])
    assert code == 1
    assert "ERROR upload: unsupported file type" in capsys.readouterr().out
