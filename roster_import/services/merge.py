from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from roster_import.db.store import IdentityConflict, RosterStore, StoreError
from roster_import.logging.error_log import ErrorLogBuffer
from roster_import.models.candidate import ImportCandidate
from roster_import.models.config_models import ImportSettings
from roster_import.models.directory import DirectoryEntry, ReferenceTable
from roster_import.models.outcome import ImportOutcome, OutcomeKind

from .attribute_matcher import build_rules, match_attribute
from .identity import resolve_identity
from .progress import ProgressTracker

"""Roster merge engine.

Commits a list of candidates to one event roster. Each candidate walks the
state machine

    PENDING -> RESOLVING -> (CREATING | UPDATING) -> ASSOCIATING -> DONE
                         \\-> FAILED (from any step)

Identities are committed one candidate at a time with per-candidate error
capture: the store has no multi-row transaction, so a failure on one row must
not undo or stop the others. Roster associations are inserted afterwards in
one batch, after a single existence check over every resolved person, so two
rows resolving to the same identity produce one association.
"""

logger = logging.getLogger(__name__)

CANCELLED_REASON = "import cancelled before this row was committed"


class MergeState(Enum):
    PENDING = "pending"
    RESOLVING = "resolving"
    CREATING = "creating"
    UPDATING = "updating"
    ASSOCIATING = "associating"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolvedAttributes:
    position_id: str | None = None
    territory_id: str | None = None


@dataclass
class _CandidateRun:
    """Mutable per-candidate bookkeeping for one commit."""
    candidate: ImportCandidate
    state: MergeState = MergeState.PENDING
    person_id: str | None = None
    created: bool = False
    kind: OutcomeKind | None = None
    reason: str | None = None

    def transition(self, state: MergeState) -> None:
        logger.debug(f"row {self.candidate.row_number}: {self.state.value} -> {state.value}")
        self.state = state

    def fail(self, reason: str) -> None:
        self.transition(MergeState.FAILED)
        self.kind = OutcomeKind.FAILED
        self.reason = reason

    def finish(self, kind: OutcomeKind) -> None:
        self.transition(MergeState.DONE)
        self.kind = kind

    def to_outcome(self) -> ImportOutcome:
        if self.kind is None:
            raise RuntimeError(f"row {self.candidate.row_number} has no terminal outcome")
        return ImportOutcome(
            row_number=self.candidate.row_number,
            full_name=self.candidate.full_name,
            kind=self.kind,
            person_id=self.person_id,
            reason=self.reason,
            approval_status=self.candidate.approval_status,
        )


class RosterMergeEngine:
    """Merges candidates into an event roster through a RosterStore.

    Reference tables are passed in once and shared read-only by every
    candidate of the session.
    """

    def __init__(
        self,
        store: RosterStore,
        positions: ReferenceTable,
        territories: ReferenceTable,
        settings: ImportSettings | None = None,
        *,
        error_log: ErrorLogBuffer | None = None,
        source_name: str = "<upload>",
    ) -> None:
        settings = settings or ImportSettings()
        self._store = store
        self._positions = positions
        self._territories = territories
        self._position_rules = build_rules(settings.attribute_aliases.get("position", ()))
        self._territory_rules = build_rules(settings.attribute_aliases.get("territory", ()))
        self._error_log = error_log
        self._source_name = source_name

    def resolve_attributes(self, candidate: ImportCandidate) -> ResolvedAttributes:
        return ResolvedAttributes(
            position_id=match_attribute(candidate.position_label, self._positions, self._position_rules),
            territory_id=match_attribute(
                candidate.territory_label, self._territories, self._territory_rules
            ),
        )

    async def commit(
        self,
        event_id: str,
        candidates: Sequence[ImportCandidate],
        cancel: asyncio.Event | None = None,
    ) -> list[ImportOutcome]:
        """Commit candidates to ``event_id``; returns one outcome per candidate, in order."""
        runs = [_CandidateRun(c) for c in candidates]
        counts = {"created": 0, "matched": 0, "failed": 0}

        with ProgressTracker(len(runs), description=f"Roster {event_id}") as progress:
            for run in runs:
                candidate = run.candidate
                if not candidate.is_committable:
                    run.finish(OutcomeKind.VALIDATION_ERROR)
                    run.reason = candidate.validation_error or "row failed validation"
                    self._record(candidate, "ROW_VALIDATION_ERROR", run.reason)
                elif cancel is not None and cancel.is_set():
                    run.fail(CANCELLED_REASON)
                    self._record(candidate, "IMPORT_CANCELLED", CANCELLED_REASON)
                else:
                    await self._commit_identity(run)

                if run.state is MergeState.ASSOCIATING:
                    counts["created" if run.created else "matched"] += 1
                elif run.state is MergeState.FAILED:
                    counts["failed"] += 1
                progress.advance(**counts)

        await self._associate(event_id, runs)
        return [run.to_outcome() for run in runs]

    async def _commit_identity(self, run: _CandidateRun) -> None:
        candidate = run.candidate
        run.transition(MergeState.RESOLVING)
        try:
            attrs = self.resolve_attributes(candidate)
            entry = await resolve_identity(candidate, self._store)
            if entry is not None:
                run.transition(MergeState.UPDATING)
                await self._update(entry, candidate, attrs)
                run.person_id = entry.id
            else:
                run.transition(MergeState.CREATING)
                run.person_id, run.created = await self._create(candidate, attrs)
            run.transition(MergeState.ASSOCIATING)
        except StoreError as e:
            reason = f"{type(e).__name__}: {e}"
            logger.error(f"row {candidate.row_number} ({candidate.full_name}) failed: {reason}")
            run.fail(reason)
            error_type = "IDENTITY_CONFLICT" if isinstance(e, IdentityConflict) else "STORE_ERROR"
            self._record(candidate, error_type, reason)

    async def _create(self, candidate: ImportCandidate, attrs: ResolvedAttributes) -> tuple[str, bool]:
        """Create the identity; on a creation race fall back to updating the winner.

        Returns (person_id, created).
        """
        fields = {
            "full_name": candidate.full_name,
            "email": candidate.email,
            "identifier_code": candidate.identifier_code,
            "position_id": attrs.position_id,
            "territory_id": attrs.territory_id,
            "phone": candidate.phone,
            "experience_days": candidate.experience_days,
        }
        try:
            entry = await self._store.create_directory_entry(fields)
            logger.info(f"row {candidate.row_number}: created identity {entry.id} ({candidate.full_name})")
            return entry.id, True
        except IdentityConflict as conflict:
            logger.warning(
                f"row {candidate.row_number}: identity created concurrently ({conflict}); re-resolving"
            )
            existing = await resolve_identity(candidate, self._store)
            if existing is None:
                raise IdentityConflict(f"conflict could not be resolved: {conflict}") from conflict
            self._record(candidate, "IDENTITY_CONFLICT", f"resolved as update of {existing.id}: {conflict}")
            await self._update(existing, candidate, attrs)
            return existing.id, False

    async def _update(
        self, entry: DirectoryEntry, candidate: ImportCandidate, attrs: ResolvedAttributes
    ) -> None:
        updates = update_fields(entry, candidate, attrs)
        if not updates:
            return
        logger.debug(f"row {candidate.row_number}: updating {entry.id} fields={sorted(updates)}")
        await self._store.update_directory_entry(entry.id, updates)

    async def _associate(self, event_id: str, runs: list[_CandidateRun]) -> None:
        pending = [r for r in runs if r.state is MergeState.ASSOCIATING]
        if not pending:
            return
        person_ids = list(dict.fromkeys(r.person_id for r in pending if r.person_id is not None))
        try:
            already = await self._store.list_existing_associations(event_id, person_ids)
            to_insert = [pid for pid in person_ids if pid not in already]
            if to_insert:
                await self._store.create_associations(event_id, to_insert)
        except StoreError as e:
            reason = f"roster association failed: {e}"
            logger.error(reason)
            for run in pending:
                run.fail(reason)
                self._record(run.candidate, "STORE_ERROR", reason)
            return

        logger.info(
            f"event {event_id}: {len(to_insert)} participant(s) added, "
            f"{len(pending) - len(to_insert)} already on roster or repeated"
        )
        seen: set[str] = set()
        for run in pending:
            if run.person_id in already or run.person_id in seen:
                run.finish(OutcomeKind.SKIPPED_DUPLICATE_ASSOCIATION)
                continue
            seen.add(run.person_id)
            run.finish(OutcomeKind.CREATED if run.created else OutcomeKind.MATCHED_EXISTING)

    def _record(self, candidate: ImportCandidate, error_type: str, message: str) -> None:
        if self._error_log is not None:
            self._error_log.record(self._source_name, candidate.row_number, error_type, message)


def update_fields(
    entry: DirectoryEntry, candidate: ImportCandidate, attrs: ResolvedAttributes
) -> dict[str, Any]:
    """Partial update for an existing identity.

    Only non-empty import values that differ from the directory are written;
    an absent source value never clears a stored one.
    """
    updates: dict[str, Any] = {}
    if attrs.position_id and attrs.position_id != entry.position_id:
        updates["position_id"] = attrs.position_id
    if attrs.territory_id and attrs.territory_id != entry.territory_id:
        updates["territory_id"] = attrs.territory_id
    if candidate.phone and candidate.phone != entry.phone:
        updates["phone"] = candidate.phone
    if candidate.experience_days > 0 and candidate.experience_days != entry.experience_days:
        updates["experience_days"] = candidate.experience_days
    return updates
