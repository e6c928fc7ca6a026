from __future__ import annotations

import logging
from collections.abc import Sequence

from roster_import.db.store import RosterStore
from roster_import.models.candidate import CandidateStatus, ImportCandidate
from roster_import.models.directory import DirectoryEntry
from roster_import.models.outcome import PrecheckSummary

"""Identity resolution: does a candidate already exist in the directory?

Lookup priority is identifier code first, then email. Identifier codes are
more authoritative because emails may be synthesized from them.
"""

logger = logging.getLogger(__name__)


async def resolve_identity(candidate: ImportCandidate, store: RosterStore) -> DirectoryEntry | None:
    """Authoritative per-row lookup used at commit time."""
    if candidate.identifier_code:
        entry = await store.lookup_directory_entry(identifier_code=candidate.identifier_code)
        if entry is not None:
            return entry
    if candidate.email:
        return await store.lookup_directory_entry(email=candidate.email)
    return None


async def precheck_candidates(
    candidates: Sequence[ImportCandidate], store: RosterStore
) -> tuple[list[ImportCandidate], PrecheckSummary]:
    """Batched advisory classification of candidates as existing vs new.

    One query for all identifier codes and one for the emails of candidates
    whose code is not in the directory. Error candidates are counted as
    invalid and returned unchanged. The result is advisory: commit resolves
    every row again.
    """
    valid = [c for c in candidates if c.is_committable]
    codes = {c.identifier_code for c in valid if c.identifier_code}
    known_codes = await store.existing_identifier_codes(sorted(codes)) if codes else set()

    emails = {
        c.email.lower() for c in valid
        if c.email and c.identifier_code not in known_codes
    }
    known_emails = await store.existing_emails(sorted(emails)) if emails else set()

    labelled: list[ImportCandidate] = []
    existing = new = invalid = 0
    for candidate in candidates:
        if not candidate.is_committable:
            invalid += 1
            labelled.append(candidate)
            continue
        found = candidate.identifier_code in known_codes or (
            candidate.email is not None and candidate.email.lower() in known_emails
        )
        if found:
            existing += 1
            labelled.append(candidate.with_status(CandidateStatus.EXISTING))
        else:
            new += 1
            labelled.append(candidate.with_status(CandidateStatus.NEW))

    summary = PrecheckSummary(existing=existing, new=new, invalid=invalid)
    logger.info(
        f"precheck: existing={summary.existing} new={summary.new} "
        f"invalid={summary.invalid} total={summary.total}"
    )
    return labelled, summary
