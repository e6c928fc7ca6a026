from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import replace
from typing import Any

from roster_import.models.directory import DirectoryEntry, ReferenceTable, RosterAssociation

from .store import IdentityConflict, StoreError

"""In-memory RosterStore.

Used by the CLI in dry-run (mock) mode and by the tests. Enforces the same
uniqueness rules as the database: identifier code and email (case-insensitive)
are unique across the directory, and (event_id, person_id) is unique across
roster associations.
"""

ENTRY_FIELDS = (
    "full_name",
    "email",
    "identifier_code",
    "position_id",
    "territory_id",
    "phone",
    "experience_days",
)


class InMemoryRosterStore:
    def __init__(
        self,
        entries: Iterable[DirectoryEntry] = (),
        positions: ReferenceTable | None = None,
        territories: ReferenceTable | None = None,
        associations: Iterable[RosterAssociation] = (),
    ) -> None:
        self.entries: dict[str, DirectoryEntry] = {e.id: e for e in entries}
        self.reference_tables: dict[str, ReferenceTable] = {
            "position": positions or ReferenceTable(kind="position"),
            "territory": territories or ReferenceTable(kind="territory"),
        }
        self.associations: dict[tuple[str, str], RosterAssociation] = {
            (a.event_id, a.person_id): a for a in associations
        }
        self.calls: list[str] = []  # method names, in call order

    def _find(self, identifier_code: str | None, email: str | None) -> DirectoryEntry | None:
        if identifier_code:
            for entry in self.entries.values():
                if entry.identifier_code == identifier_code:
                    return entry
            return None
        if email:
            wanted = email.lower()
            for entry in self.entries.values():
                if entry.email and entry.email.lower() == wanted:
                    return entry
        return None

    async def lookup_directory_entry(
        self, *, identifier_code: str | None = None, email: str | None = None
    ) -> DirectoryEntry | None:
        self.calls.append("lookup_directory_entry")
        return self._find(identifier_code, email)

    async def create_directory_entry(self, fields: Mapping[str, Any]) -> DirectoryEntry:
        self.calls.append("create_directory_entry")
        unknown = set(fields) - set(ENTRY_FIELDS)
        if unknown:
            raise StoreError(f"unknown directory fields: {sorted(unknown)}")
        code = fields.get("identifier_code")
        email = fields.get("email")
        if code and self._find(code, None) is not None:
            raise IdentityConflict(f"identifier code {code} already exists")
        if email and self._find(None, email) is not None:
            raise IdentityConflict(f"email {email} already exists")
        entry = DirectoryEntry(id=str(uuid.uuid4()), **{k: fields.get(k) for k in ENTRY_FIELDS})
        self.entries[entry.id] = entry
        return entry

    async def update_directory_entry(self, entry_id: str, fields: Mapping[str, Any]) -> None:
        self.calls.append("update_directory_entry")
        if entry_id not in self.entries:
            raise StoreError(f"directory entry {entry_id} not found")
        unknown = set(fields) - set(ENTRY_FIELDS)
        if unknown:
            raise StoreError(f"unknown directory fields: {sorted(unknown)}")
        self.entries[entry_id] = replace(self.entries[entry_id], **dict(fields))

    async def list_reference_table(self, kind: str) -> ReferenceTable:
        self.calls.append("list_reference_table")
        if kind not in self.reference_tables:
            raise StoreError(f"unknown reference table: {kind}")
        return self.reference_tables[kind]

    async def list_existing_associations(self, event_id: str, person_ids: Iterable[str]) -> set[str]:
        self.calls.append("list_existing_associations")
        return {pid for pid in person_ids if (event_id, pid) in self.associations}

    async def create_associations(self, event_id: str, person_ids: Iterable[str]) -> None:
        self.calls.append("create_associations")
        ids = list(person_ids)
        for pid in ids:
            if (event_id, pid) in self.associations:
                raise StoreError(f"duplicate roster association ({event_id}, {pid})")
        for pid in ids:
            self.associations[(event_id, pid)] = RosterAssociation(event_id=event_id, person_id=pid)

    async def existing_identifier_codes(self, codes: Iterable[str]) -> set[str]:
        self.calls.append("existing_identifier_codes")
        known = {e.identifier_code for e in self.entries.values() if e.identifier_code}
        return {c for c in codes if c in known}

    async def existing_emails(self, emails: Iterable[str]) -> set[str]:
        self.calls.append("existing_emails")
        known = {e.email.lower() for e in self.entries.values() if e.email}
        return {e.lower() for e in emails if e.lower() in known}

    def roster(self, event_id: str) -> set[str]:
        return {pid for (eid, pid) in self.associations if eid == event_id}
