from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from roster_import.models.directory import DirectoryEntry, ReferenceTable

"""Directory / roster store interface consumed by the import engine.

The surrounding application implements this protocol (PostgreSQL in
postgres_store.py, in-memory for dry runs and tests in memory_store.py).
All calls are coroutines; each await is a suspension point.

Field names used in ``fields`` payloads match DirectoryEntry attributes:
full_name, email, identifier_code, position_id, territory_id, phone,
experience_days.
"""

__all__ = [
    "IdentityConflict",
    "RosterStore",
    "StoreError",
]


class StoreError(Exception):
    """I/O or constraint failure reported by the store for a single call."""


class IdentityConflict(StoreError):
    """Creation rejected: identifier code or email already exists."""


class RosterStore(Protocol):
    async def lookup_directory_entry(
        self, *, identifier_code: str | None = None, email: str | None = None
    ) -> DirectoryEntry | None:
        """Exact identifier lookup if given, else case-insensitive email lookup."""
        ...

    async def create_directory_entry(self, fields: Mapping[str, Any]) -> DirectoryEntry:
        """Create an identity. Raises IdentityConflict on duplicate identifier/email."""
        ...

    async def update_directory_entry(self, entry_id: str, fields: Mapping[str, Any]) -> None:
        ...

    async def list_reference_table(self, kind: str) -> ReferenceTable:
        """kind is "position" or "territory"."""
        ...

    async def list_existing_associations(self, event_id: str, person_ids: Iterable[str]) -> set[str]:
        """Subset of person_ids already on the event roster."""
        ...

    async def create_associations(self, event_id: str, person_ids: Iterable[str]) -> None:
        ...

    async def existing_identifier_codes(self, codes: Iterable[str]) -> set[str]:
        """Subset of codes present in the directory (batched pre-check)."""
        ...

    async def existing_emails(self, emails: Iterable[str]) -> set[str]:
        """Subset of emails present in the directory, returned lowercased."""
        ...
