from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

"""ImportCandidate domain model and its status/layout enums.

A candidate is one parsed, not yet committed participant row. Candidates are
immutable: resolution steps produce new instances via ``dataclasses.replace``.
"""

__all__ = [
    "CandidateStatus",
    "ImportCandidate",
    "Layout",
]


class Layout(Enum):
    """Spreadsheet layout detected for an upload.

    - GENERIC: roster template, header row located by keyword search
    - SPECIALIZED: personnel-list export with fixed column positions
    """
    GENERIC = "generic"
    SPECIALIZED = "specialized"


class CandidateStatus(Enum):
    """Resolution status of a candidate.

    State transitions: new -> existing (after identity lookup) ; error is terminal
    """
    NEW = "new"
    EXISTING = "existing"
    ERROR = "error"


@dataclass(frozen=True)
class ImportCandidate:
    """Normalized import unit produced from one spreadsheet row."""
    row_number: int                        # 1-based sheet row number
    full_name: str
    identifier_code: str | None = None     # numeric personnel code
    email: str | None = None
    position_label: str | None = None      # free text, resolved later
    territory_label: str | None = None     # free text, resolved later
    experience_days: int = 0
    phone: str | None = None
    is_specialized_layout: bool = False
    approval_status: str | None = None     # specialized layout only, metadata
    validation_error: str | None = None
    status: CandidateStatus = CandidateStatus.NEW
    person_id: str | None = None           # set once resolved to a directory entry

    @property
    def is_committable(self) -> bool:
        return self.validation_error is None and self.status is not CandidateStatus.ERROR

    def with_status(self, status: CandidateStatus, person_id: str | None = None) -> ImportCandidate:
        return replace(self, status=status, person_id=person_id)
