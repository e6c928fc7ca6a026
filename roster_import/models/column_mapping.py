from __future__ import annotations

from dataclasses import dataclass, field

"""ColumnMapping model: canonical field name -> source column index.

Built once per import from the header row and reused for every data row.
"""

__all__ = [
    "CANONICAL_FIELDS",
    "ColumnMapping",
]

# Order matters: a header is assigned to the first field whose keywords match.
CANONICAL_FIELDS: tuple[str, ...] = (
    "full_name",
    "identifier_code",
    "position",
    "territory",
    "experience_days",
    "phone",
    "email",
)


@dataclass(frozen=True)
class ColumnMapping:
    """Explicit mapping for all canonical fields.

    ``columns`` holds an entry for every canonical field; ``None`` means the
    field has no source column at all. ``from_header`` lists the fields whose
    column was found by header text; the rest came from positional fallback.
    """
    columns: dict[str, int | None]
    from_header: frozenset[str] = field(default_factory=frozenset)

    def column_for(self, field_name: str) -> int | None:
        return self.columns.get(field_name)

    @property
    def fallback_fields(self) -> frozenset[str]:
        return frozenset(
            name for name, col in self.columns.items()
            if col is not None and name not in self.from_header
        )

    @property
    def unmapped_fields(self) -> frozenset[str]:
        return frozenset(name for name, col in self.columns.items() if col is None)
