from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from roster_import.models.column_mapping import CANONICAL_FIELDS, ColumnMapping

from .schema_detector import cell_text

"""Header text -> canonical field mapping for the generic layout.

Pure function of its inputs: no config is read here, keywords and fallback
columns are passed in.
"""


def match_header(header: str, keywords: Mapping[str, Sequence[str]]) -> str | None:
    """Return the first canonical field whose keywords occur in ``header``."""
    text = header.strip().lower()
    if not text:
        return None
    for field_name in CANONICAL_FIELDS:
        if any(keyword in text for keyword in keywords.get(field_name, ())):
            return field_name
    return None


def map_columns(
    header_row: Sequence[Any],
    keywords: Mapping[str, Sequence[str]],
    fallback_columns: Mapping[str, int],
) -> ColumnMapping:
    """Build a ColumnMapping from a header row.

    - a header maps to at most one field (first match in CANONICAL_FIELDS order)
    - the first header matching a field wins; later ones do not overwrite it
    - unmapped fields get their fallback column unless that column is already
      assigned to another field, in which case they stay unmapped (None)
    """
    columns: dict[str, int | None] = {name: None for name in CANONICAL_FIELDS}
    from_header: set[str] = set()

    for idx, cell in enumerate(header_row):
        field_name = match_header(cell_text(cell), keywords)
        if field_name is None or field_name in from_header:
            continue
        columns[field_name] = idx
        from_header.add(field_name)

    taken = {col for col in columns.values() if col is not None}
    for field_name in CANONICAL_FIELDS:
        if columns[field_name] is not None:
            continue
        fallback = fallback_columns.get(field_name)
        if fallback is None or fallback in taken:
            continue
        columns[field_name] = fallback
        taken.add(fallback)

    return ColumnMapping(columns=columns, from_header=frozenset(from_header))
