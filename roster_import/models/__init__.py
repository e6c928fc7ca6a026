"""Domain models for the roster import & reconciliation engine.

This package contains the domain classes shared by the parsing, resolution
and merge stages.
"""

from .candidate import CandidateStatus, ImportCandidate, Layout
from .column_mapping import CANONICAL_FIELDS, ColumnMapping
from .config_models import DatabaseConfig, ImportConfig, ImportSettings, LayoutSettings, UploadLimits
from .directory import DirectoryEntry, ReferenceEntry, ReferenceTable, RosterAssociation
from .error_record import ErrorRecord
from .outcome import ImportOutcome, ImportReport, OutcomeKind, PrecheckSummary

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    "ImportSettings",
    "LayoutSettings",
    "UploadLimits",
    # Parsing models
    "CANONICAL_FIELDS",
    "CandidateStatus",
    "ColumnMapping",
    "ImportCandidate",
    "Layout",
    # Directory models
    "DirectoryEntry",
    "ReferenceEntry",
    "ReferenceTable",
    "RosterAssociation",
    # Results
    "ErrorRecord",
    "ImportOutcome",
    "ImportReport",
    "OutcomeKind",
    "PrecheckSummary",
]
