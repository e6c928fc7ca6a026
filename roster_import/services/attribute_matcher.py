from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from roster_import.models.directory import ReferenceEntry, ReferenceTable

"""Free-text attribute matching (job title, territory) against reference tables.

Matching is an ordered list of rules evaluated first-hit-wins:

    ExactRule        case-insensitive equality with the entry name or an alias
    DomainAliasRule  label and entry both contain the same occupational keyword
    ContainsRule     the entry name occurs inside the label

No hit -> None. Attributes are optional enrichments, so an unmatched label is
not an error. Everything here is a pure function of (label, table, rules):
tables are immutable and nothing is cached.
"""

__all__ = [
    "ContainsRule",
    "DomainAliasRule",
    "ExactRule",
    "MatchRule",
    "build_rules",
    "match_attribute",
    "normalize_label",
]


def normalize_label(text: str | None) -> str:
    """Casefold, fold 'ё' to 'е' and collapse whitespace."""
    if not text:
        return ""
    return " ".join(text.casefold().replace("ё", "е").split())


def _names(entry: ReferenceEntry) -> list[str]:
    return [normalize_label(entry.name), *(normalize_label(a) for a in entry.aliases)]


@dataclass(frozen=True)
class ExactRule:
    def apply(self, label: str, table: ReferenceTable) -> str | None:
        for entry in table.entries:
            if label in _names(entry):
                return entry.id
        return None


@dataclass(frozen=True)
class DomainAliasRule:
    """Any label containing ``keyword`` matches the first entry containing it."""
    keyword: str

    def apply(self, label: str, table: ReferenceTable) -> str | None:
        keyword = normalize_label(self.keyword)
        if not keyword or keyword not in label:
            return None
        for entry in table.entries:
            if any(keyword in name for name in _names(entry)):
                return entry.id
        return None


@dataclass(frozen=True)
class ContainsRule:
    """Entry name (at least ``min_length`` chars) found inside the label."""
    min_length: int = 3

    def apply(self, label: str, table: ReferenceTable) -> str | None:
        best: tuple[int, str] | None = None
        for entry in table.entries:
            for name in _names(entry):
                if len(name) < self.min_length or name not in label:
                    continue
                # longest contained name wins; ties keep table order
                if best is None or len(name) > best[0]:
                    best = (len(name), entry.id)
        return best[1] if best else None


MatchRule = ExactRule | DomainAliasRule | ContainsRule


def build_rules(aliases: Sequence[str] = ()) -> tuple[MatchRule, ...]:
    """Default rule order: exact, then each alias keyword in order, then contains."""
    return (
        ExactRule(),
        *(DomainAliasRule(keyword) for keyword in aliases),
        ContainsRule(),
    )


def match_attribute(
    label: str | None, table: ReferenceTable, rules: Sequence[MatchRule] | None = None
) -> str | None:
    """Resolve a free-text label to a reference entry id, or None."""
    normalized = normalize_label(label)
    if not normalized or not table.entries:
        return None
    for rule in rules if rules is not None else build_rules():
        entry_id = rule.apply(normalized, table)
        if entry_id is not None:
            return entry_id
    return None
