from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Outcome models for a roster commit.

Every candidate handed to a commit ends in exactly one ImportOutcome; the
outcomes are aggregated into an ImportReport for the operator and the SUMMARY
line. PrecheckSummary is the advisory count shown before committing.
"""

__all__ = [
    "ImportOutcome",
    "ImportReport",
    "OutcomeKind",
    "PrecheckSummary",
]


class OutcomeKind(Enum):
    """Terminal classification of one candidate."""
    CREATED = "created"
    MATCHED_EXISTING = "matched_existing"
    SKIPPED_DUPLICATE_ASSOCIATION = "skipped_duplicate_association"
    VALIDATION_ERROR = "validation_error"
    FAILED = "failed"


@dataclass(frozen=True)
class ImportOutcome:
    """Per-candidate result of a commit."""
    row_number: int
    full_name: str
    kind: OutcomeKind
    person_id: str | None = None
    reason: str | None = None            # failure / validation reason
    approval_status: str | None = None   # passthrough metadata (specialized layout)

    @property
    def succeeded(self) -> bool:
        return self.kind in (OutcomeKind.CREATED, OutcomeKind.MATCHED_EXISTING)


@dataclass(frozen=True)
class ImportReport:
    """Session-level aggregation of outcomes."""
    outcomes: tuple[ImportOutcome, ...]
    created: int
    matched_existing: int
    skipped_duplicates: int
    validation_errors: int
    failed: int
    elapsed_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def failures(self) -> list[ImportOutcome]:
        return [o for o in self.outcomes if o.kind is OutcomeKind.FAILED]

    @staticmethod
    def from_outcomes(outcomes: list[ImportOutcome], elapsed_seconds: float = 0.0) -> ImportReport:
        counts = {kind: 0 for kind in OutcomeKind}
        for outcome in outcomes:
            counts[outcome.kind] += 1
        return ImportReport(
            outcomes=tuple(outcomes),
            created=counts[OutcomeKind.CREATED],
            matched_existing=counts[OutcomeKind.MATCHED_EXISTING],
            skipped_duplicates=counts[OutcomeKind.SKIPPED_DUPLICATE_ASSOCIATION],
            validation_errors=counts[OutcomeKind.VALIDATION_ERROR],
            failed=counts[OutcomeKind.FAILED],
            elapsed_seconds=elapsed_seconds,
        )


@dataclass(frozen=True)
class PrecheckSummary:
    """Advisory pre-commit counts: existing vs will-be-created."""
    existing: int
    new: int
    invalid: int

    @property
    def total(self) -> int:
        return self.existing + self.new + self.invalid
