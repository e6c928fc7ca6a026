from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from roster_import.models.error_record import ErrorRecord

"""Per-import error log.

The merge engine records invalid rows, failed commits, cancelled rows and
identity conflicts resolved as updates. The CLI flushes the buffer once at
the end of a commit; a commit without problems writes no file.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords for one import and appends them as JSON Lines.

    Records go to ``<logs_dir>/errors-YYYYMMDD-HHMMSS.log`` (UTC); the name is
    fixed on first access so repeated flushes append to the same file.
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def record(self, file: str, row: int, error_type: str, message: str) -> None:
        self.append(ErrorRecord.create(file=file, row=row, error_type=error_type, message=message))

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None if nothing was written."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
