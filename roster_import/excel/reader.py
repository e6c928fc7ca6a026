from __future__ import annotations

import csv
import io
import zipfile
from pathlib import PurePath
from typing import Any

import pandas as pd

from roster_import.models.config_models import UploadLimits

"""Upload boundary checks and raw cell extraction.

The first sheet of the workbook is read without a header (header=None) so that
schema detection can look at the raw rows; every cell comes back as a Python
value with empty cells as None.
"""


class SchemaError(Exception):
    """No usable layout/header found. Fatal for the whole import."""


class EmptySheetError(SchemaError):
    """Sheet has no data rows after the detected header offset."""


class UploadRejectedError(SchemaError):
    """File rejected at the boundary (size / extension / unreadable)."""


def validate_upload(filename: str, size: int, limits: UploadLimits) -> None:
    """Reject uploads that violate size or extension limits before parsing."""
    suffix = PurePath(filename).suffix.lower()
    if suffix not in limits.extensions:
        allowed = ", ".join(limits.extensions)
        raise UploadRejectedError(
            f"unsupported file type '{suffix or filename}': expected one of {allowed}"
        )
    if size <= 0:
        raise UploadRejectedError(f"file '{filename}' is empty")
    if size > limits.max_bytes:
        max_mb = limits.max_bytes / (1024 * 1024)
        raise UploadRejectedError(
            f"file '{filename}' is {size / (1024 * 1024):.1f} MB, limit is {max_mb:.0f} MB"
        )


def read_sheet_rows(file_bytes: bytes, filename: str) -> list[list[Any]]:
    """Read the first sheet of an upload as a list of raw rows.

    CSV files are read as text so identifier codes keep leading zeros. Lines
    may have different field counts (a title line above the header), so the
    frame width is taken from the widest line.
    Pandas' default NA strings are not converted (a territory named "NA"
    stays a string).
    """
    try:
        if PurePath(filename).suffix.lower() == ".csv":
            text = file_bytes.decode("utf-8-sig")
            width = max((len(fields) for fields in csv.reader(io.StringIO(text))), default=0)
            if width == 0:
                return []
            df = pd.read_csv(
                io.StringIO(text),
                header=None,
                names=list(range(width)),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
            )
        else:
            df = pd.read_excel(
                io.BytesIO(file_bytes), sheet_name=0, header=None, dtype=object, keep_default_na=False
            )
    except (ValueError, OSError, KeyError, csv.Error, zipfile.BadZipFile) as e:
        raise UploadRejectedError(f"cannot read '{filename}' as a spreadsheet: {e}") from e

    rows: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        rows.append([_clean_cell(v) for v in raw])
    return rows


def _clean_cell(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def is_blank_row(row: list[Any]) -> bool:
    return all(cell is None for cell in row)
