from __future__ import annotations
import json
import re
from pathlib import Path
from roster_import.logging.error_log import ErrorLogBuffer, ErrorRecord

KEYS = {"timestamp", "file", "row", "error_type", "message"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        file="roster.xlsx",
        row=10,
        error_type="STORE_ERROR",
        message="дубликат ключа",
    )
    line = rec.to_json_line()
    data = json.loads(line)
    assert data["file"] == "roster.xlsx"
    assert data["row"] == 10
    assert data["error_type"] == "STORE_ERROR"
    assert "timestamp" in data and data["timestamp"].endswith("Z")
    assert set(data.keys()) == KEYS
    # non-ASCII kept readable
    assert "дубликат" in line


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.record("r.xlsx", 4, "ROW_VALIDATION_ERROR", "Missing full name")
    buf.append(ErrorRecord.create("r.xlsx", 5, "STORE_ERROR", "timeout"))
    path = buf.flush()
    assert path.exists()
    assert path.parent == Path("logs")
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw).keys()) == KEYS
    # buffer cleared after flush
    assert len(buf) == 0


def test_error_log_buffer_multiple_flushes(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "nested")
    buf.record("r.xlsx", 1, "STORE_ERROR", "dup")
    path = buf.flush()
    size1 = path.stat().st_size
    buf.record("r.xlsx", 2, "STORE_ERROR", "dup2")
    path2 = buf.flush()
    assert path == path2
    assert path2.stat().st_size > size1


def test_empty_buffer_writes_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_records_returns_a_copy(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.record("r.xlsx", -1, "UPLOAD_REJECTED", "too large")
    buf.records.clear()
    assert len(buf.records) == 1
