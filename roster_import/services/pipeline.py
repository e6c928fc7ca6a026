from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from roster_import.db.store import RosterStore, StoreError
from roster_import.excel.column_mapper import map_columns
from roster_import.excel.normalizer import normalize_generic_row, normalize_specialized_row
from roster_import.excel.reader import read_sheet_rows, validate_upload
from roster_import.excel.schema_detector import detect_layout
from roster_import.logging.error_log import ErrorLogBuffer
from roster_import.models.candidate import ImportCandidate, Layout
from roster_import.models.column_mapping import ColumnMapping
from roster_import.models.config_models import ImportSettings
from roster_import.models.directory import ReferenceTable
from roster_import.models.outcome import ImportOutcome, ImportReport, PrecheckSummary

from .identity import precheck_candidates
from .merge import RosterMergeEngine

"""Import pipeline: the operations exposed to callers (CLI, web handlers).

Flow:
  detect_and_parse  upload checks -> raw rows -> layout -> candidates
  precheck          advisory existing/new counts (optional)
  commit_import     reference tables once -> merge engine -> outcomes
  build_report      outcomes -> ImportReport
"""

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseResult:
    candidates: list[ImportCandidate]
    layout: Layout
    header_row_index: int
    mapping: ColumnMapping | None = None  # generic layout only

    @property
    def invalid(self) -> list[ImportCandidate]:
        return [c for c in self.candidates if c.validation_error is not None]


def detect_and_parse(
    file_bytes: bytes, filename: str, settings: ImportSettings | None = None
) -> ParseResult:
    """Parse an uploaded roster into candidates.

    Invalid rows are returned with ``validation_error`` set; rows that are
    not data (blank, section separators) are dropped. ``row_number`` is the
    1-based sheet row.

    Raises:
        UploadRejectedError: size / extension / unreadable file
        EmptySheetError: nothing below the detected header
    """
    settings = settings or ImportSettings()
    validate_upload(filename, len(file_bytes), settings.upload)
    rows = read_sheet_rows(file_bytes, filename)
    detection = detect_layout(rows, settings)
    header_idx = detection.header_row_index
    logger.info(
        f"{filename}: {detection.layout.value} layout, header row {header_idx + 1}"
        + ("" if detection.header_found else " (legacy offset)")
    )

    candidates: list[ImportCandidate] = []
    mapping: ColumnMapping | None = None
    if detection.layout is Layout.SPECIALIZED:
        for idx in range(header_idx + 1, len(rows)):
            candidate = normalize_specialized_row(rows[idx], idx + 1, settings)
            if candidate is not None:
                candidates.append(candidate)
    else:
        header_row = rows[header_idx] if header_idx < len(rows) else []
        mapping = map_columns(header_row, settings.header_keywords, settings.fallback_columns)
        if mapping.fallback_fields:
            logger.debug(f"fallback columns used for: {', '.join(sorted(mapping.fallback_fields))}")
        for idx in range(header_idx + 1, len(rows)):
            candidate = normalize_generic_row(rows[idx], mapping, idx + 1)
            if candidate is not None:
                candidates.append(candidate)

    result = ParseResult(
        candidates=candidates,
        layout=detection.layout,
        header_row_index=header_idx,
        mapping=mapping,
    )
    if result.invalid:
        logger.warning(f"{filename}: {len(result.invalid)} of {len(candidates)} rows failed validation")
    return result


async def precheck(candidates: Sequence[ImportCandidate], store: RosterStore) -> PrecheckSummary:
    """Advisory count of candidates that already exist vs would be created."""
    _, summary = await precheck_candidates(candidates, store)
    return summary


async def load_reference_tables(store: RosterStore) -> tuple[ReferenceTable, ReferenceTable]:
    """Load position and territory tables once for a session.

    A table that cannot be loaded is replaced by an empty one: attributes
    are optional enrichments and their absence must not block the import.
    """
    tables: list[ReferenceTable] = []
    for kind in ("position", "territory"):
        try:
            tables.append(await store.list_reference_table(kind))
        except StoreError as e:
            logger.warning(f"reference table '{kind}' unavailable, attributes left unset: {e}")
            tables.append(ReferenceTable(kind=kind))
    return tables[0], tables[1]


async def commit_import(
    event_id: str,
    candidates: Sequence[ImportCandidate],
    store: RosterStore,
    settings: ImportSettings | None = None,
    *,
    error_log: ErrorLogBuffer | None = None,
    source_name: str = "<upload>",
    cancel: asyncio.Event | None = None,
) -> list[ImportOutcome]:
    """Commit candidates to the roster of ``event_id``.

    Returns exactly one outcome per input candidate, in input order.
    """
    positions, territories = await load_reference_tables(store)
    logger.debug(f"reference tables: positions={len(positions)} territories={len(territories)}")
    engine = RosterMergeEngine(
        store,
        positions,
        territories,
        settings,
        error_log=error_log,
        source_name=source_name,
    )
    return await engine.commit(event_id, candidates, cancel=cancel)


def build_report(outcomes: Sequence[ImportOutcome], elapsed_seconds: float = 0.0) -> ImportReport:
    return ImportReport.from_outcomes(list(outcomes), elapsed_seconds=elapsed_seconds)
