from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

"""Directory-side models: person identities, reference tables, roster links.

These are owned by the backing store. The import engine reads them and asks the
store for creations/updates; it never deletes.
"""

__all__ = [
    "DirectoryEntry",
    "ReferenceEntry",
    "ReferenceTable",
    "RosterAssociation",
]

REFERENCE_KINDS = ("position", "territory")


@dataclass(frozen=True)
class DirectoryEntry:
    """An existing identity in the person directory."""
    id: str
    full_name: str
    email: str | None = None
    identifier_code: str | None = None
    position_id: str | None = None
    territory_id: str | None = None
    phone: str | None = None
    experience_days: int | None = None

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> DirectoryEntry:
        return DirectoryEntry(
            id=str(record["id"]),
            full_name=record.get("full_name") or "",
            email=record.get("email"),
            identifier_code=record.get("identifier_code"),
            position_id=_opt_str(record.get("position_id")),
            territory_id=_opt_str(record.get("territory_id")),
            phone=record.get("phone"),
            experience_days=record.get("experience_days"),
        )


@dataclass(frozen=True)
class ReferenceEntry:
    """Canonical reference value (a position or a territory)."""
    id: str
    name: str
    aliases: tuple[str, ...] = ()  # alternative names, e.g. territory region


@dataclass(frozen=True)
class ReferenceTable:
    """Read-only reference table loaded once per import session."""
    kind: str
    entries: tuple[ReferenceEntry, ...] = ()

    @staticmethod
    def from_rows(kind: str, rows: Iterable[Mapping[str, Any]]) -> ReferenceTable:
        """Build a table from ``{id, name[, region]}`` records."""
        if kind not in REFERENCE_KINDS:
            raise ValueError(f"unknown reference table kind: {kind!r}")
        entries = []
        for row in rows:
            name = row.get("name")
            if not name:
                continue
            region = row.get("region")
            aliases = (str(region),) if region else ()
            entries.append(ReferenceEntry(id=str(row["id"]), name=str(name), aliases=aliases))
        return ReferenceTable(kind=kind, entries=tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class RosterAssociation:
    """Link between one event and one identity. Unique per (event_id, person_id)."""
    event_id: str
    person_id: str
    attended: bool = False


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)
