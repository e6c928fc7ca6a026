from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from roster_import.models.candidate import Layout
from roster_import.models.config_models import ImportSettings

from .reader import EmptySheetError, SchemaError, is_blank_row

"""Layout detection for uploaded roster sheets.

Two layouts are known:
- specialized: personnel-list export, recognised by marker phrases anywhere in
  the first rows; the header sits at a fixed offset
- generic: roster template; the header row is the first row holding a
  full-name header cell, or the legacy offset when none is found
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayoutDetection:
    layout: Layout
    header_row_index: int      # 0-based index into the raw rows
    header_found: bool = True  # False when the legacy offset was used


def cell_text(value: Any) -> str:
    """Text form of a cell: integral floats lose their '.0', None becomes ''."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _row_text(row: Sequence[Any]) -> str:
    return " ".join(cell_text(c) for c in row if c is not None).lower()


def has_marker(row: Sequence[Any], markers: Sequence[str]) -> bool:
    text = _row_text(row)
    return any(marker in text for marker in markers)


def is_header_row(row: Sequence[Any], name_keywords: Sequence[str]) -> bool:
    for cell in row:
        text = cell_text(cell).lower()
        if text and any(keyword in text for keyword in name_keywords):
            return True
    return False


def detect_layout(rows: Sequence[Sequence[Any]], settings: ImportSettings) -> LayoutDetection:
    """Decide the layout and header row of a sheet.

    Raises:
        EmptySheetError: no non-empty rows after the chosen header row
        SchemaError: the sheet has no rows at all
    """
    if not rows:
        raise EmptySheetError("sheet contains no rows")

    layout_cfg = settings.layout
    scan = rows[: layout_cfg.scan_rows]

    detection: LayoutDetection | None = None
    for idx, row in enumerate(scan):
        if has_marker(row, layout_cfg.specialized_markers):
            logger.debug(f"specialized marker found on row {idx + 1}")
            detection = LayoutDetection(Layout.SPECIALIZED, layout_cfg.specialized_header_row)
            break

    if detection is None:
        name_keywords = settings.header_keywords.get("full_name", ())
        for idx, row in enumerate(scan):
            if is_header_row(row, name_keywords):
                detection = LayoutDetection(Layout.GENERIC, idx)
                break

    if detection is None:
        logger.debug(
            f"no header within first {layout_cfg.scan_rows} rows; "
            f"using legacy offset {layout_cfg.legacy_header_row}"
        )
        detection = LayoutDetection(Layout.GENERIC, layout_cfg.legacy_header_row, header_found=False)

    data_rows = rows[detection.header_row_index + 1:]
    if not any(not is_blank_row(list(r)) for r in data_rows):
        raise EmptySheetError(
            f"no data rows after header row {detection.header_row_index + 1} "
            f"({detection.layout.value} layout)"
        )
    return detection


__all__ = [
    "LayoutDetection",
    "SchemaError",
    "EmptySheetError",
    "cell_text",
    "detect_layout",
    "has_marker",
    "is_header_row",
]
