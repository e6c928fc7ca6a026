from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import replace
from typing import Any

from roster_import.models.candidate import CandidateStatus, ImportCandidate
from roster_import.models.column_mapping import ColumnMapping
from roster_import.models.config_models import SPECIALIZED_COLUMNS, ImportSettings

from .reader import is_blank_row
from .schema_detector import cell_text

"""Row normalization and validation.

Converts raw rows into ImportCandidate records. Invalid rows are kept (with
validation_error set and status=error) so the operator sees them in the
preview; they are never committed.
"""

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
LEADING_INDEX_PATTERN = re.compile(r"^\d+\.?$")

MISSING_NAME = "Missing full name"
MISSING_CONTACT = "Either email or identifier code is required"
MISSING_IDENTIFIER = "Missing identifier code"


class RowValidationError(Exception):
    """A single row violates the required-field rules. Non-fatal."""


def _cell(row: Sequence[Any], column: int | None) -> Any:
    if column is None or column < 0 or column >= len(row):
        return None
    return row[column]


def _text(value: Any) -> str:
    return " ".join(cell_text(value).split())


def _optional(value: Any) -> str | None:
    text = _text(value)
    return text or None


def to_int(value: Any, default: int = 0) -> int:
    """Lenient integer coercion; never raises."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return default
    text = str(value).strip().replace(" ", "").replace(",", ".")
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return default


def normalize_identifier(value: Any) -> str | None:
    """Identifier codes come as numbers or text; store as digits-only text."""
    text = cell_text(value).replace(" ", "")
    return text or None


def normalize_email(value: Any) -> str | None:
    text = cell_text(value).replace(" ", "")
    return text or None


def _check_generic(candidate: ImportCandidate) -> None:
    if not candidate.full_name:
        raise RowValidationError(MISSING_NAME)
    if not candidate.email and not candidate.identifier_code:
        raise RowValidationError(MISSING_CONTACT)
    if candidate.email and not EMAIL_PATTERN.match(candidate.email):
        raise RowValidationError(f"Invalid email address: {candidate.email}")


def _check_specialized(candidate: ImportCandidate) -> None:
    if not candidate.full_name:
        raise RowValidationError(MISSING_NAME)
    if not candidate.identifier_code:
        raise RowValidationError(MISSING_IDENTIFIER)
    if candidate.email and not EMAIL_PATTERN.match(candidate.email):
        raise RowValidationError(f"Invalid email address: {candidate.email}")


def revalidate(candidate: ImportCandidate) -> ImportCandidate:
    """Re-run validation on a (possibly edited) candidate.

    Clears a previous error when the row is now valid; an existing status
    other than error is preserved.
    """
    check = _check_specialized if candidate.is_specialized_layout else _check_generic
    try:
        check(candidate)
    except RowValidationError as e:
        return replace(candidate, validation_error=str(e), status=CandidateStatus.ERROR)
    status = CandidateStatus.NEW if candidate.status is CandidateStatus.ERROR else candidate.status
    return replace(candidate, validation_error=None, status=status)


def normalize_generic_row(
    row: Sequence[Any], mapping: ColumnMapping, row_number: int
) -> ImportCandidate | None:
    """Generic layout row -> candidate. Fully blank rows return None."""
    if is_blank_row(list(row)):
        return None
    candidate = ImportCandidate(
        row_number=row_number,
        full_name=_text(_cell(row, mapping.column_for("full_name"))),
        identifier_code=normalize_identifier(_cell(row, mapping.column_for("identifier_code"))),
        email=normalize_email(_cell(row, mapping.column_for("email"))),
        position_label=_optional(_cell(row, mapping.column_for("position"))),
        territory_label=_optional(_cell(row, mapping.column_for("territory"))),
        experience_days=to_int(_cell(row, mapping.column_for("experience_days"))),
        phone=_optional(_cell(row, mapping.column_for("phone"))),
        is_specialized_layout=False,
    )
    return revalidate(candidate)


def has_leading_index(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return value.is_integer()
    return bool(LEADING_INDEX_PATTERN.match(str(value).strip()))


def normalize_specialized_row(
    row: Sequence[Any], row_number: int, settings: ImportSettings
) -> ImportCandidate | None:
    """Personnel-list row -> candidate.

    Rows without a numeric leading index or with a too-short name are
    section separators / footers and return None.
    """
    cols = SPECIALIZED_COLUMNS
    if not has_leading_index(_cell(row, cols["index"])):
        return None
    full_name = _text(_cell(row, cols["full_name"]))
    if len(full_name) < settings.layout.min_name_length:
        return None

    candidate = ImportCandidate(
        row_number=row_number,
        full_name=full_name,
        identifier_code=normalize_identifier(_cell(row, cols["identifier_code"])),
        email=normalize_email(_cell(row, cols["email"])),
        position_label=_optional(_cell(row, cols["position"])),
        territory_label=_optional(_cell(row, cols["territory"])),
        experience_days=to_int(_cell(row, cols["experience_days"])),
        phone=_optional(_cell(row, cols["phone"])),
        is_specialized_layout=True,
        approval_status=_optional(_cell(row, cols["approval_status"])),
    )
    candidate = revalidate(candidate)
    if candidate.validation_error is None and not candidate.email:
        candidate = replace(
            candidate, email=f"{candidate.identifier_code}@{settings.email_domain}"
        )
    return candidate
