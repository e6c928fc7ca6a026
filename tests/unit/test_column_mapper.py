from __future__ import annotations

from roster_import.excel.column_mapper import map_columns, match_header
from roster_import.models.config_models import DEFAULT_FALLBACK_COLUMNS, DEFAULT_HEADER_KEYWORDS
from tests.workbooks import GENERIC_HEADER


def _map(header):
    return map_columns(header, DEFAULT_HEADER_KEYWORDS, DEFAULT_FALLBACK_COLUMNS)


def test_match_header_case_insensitive_substring():
    assert match_header("  Ф.И.О. участника ", DEFAULT_HEADER_KEYWORDS) == "full_name"
    assert match_header("Табельный номер", DEFAULT_HEADER_KEYWORDS) == "identifier_code"
    assert match_header("E-MAIL", DEFAULT_HEADER_KEYWORDS) == "email"
    assert match_header("Примечание", DEFAULT_HEADER_KEYWORDS) is None
    assert match_header("", DEFAULT_HEADER_KEYWORDS) is None


def test_full_header_maps_every_field():
    mapping = _map(GENERIC_HEADER)
    assert mapping.columns == {
        "full_name": 1,
        "identifier_code": 2,
        "position": 3,
        "territory": 4,
        "experience_days": 5,
        "phone": 6,
        "email": 7,
    }
    assert mapping.fallback_fields == frozenset()
    assert mapping.unmapped_fields == frozenset()


def test_missing_headers_use_fallback_columns():
    mapping = _map(["№", "ФИО", "Код"])
    assert mapping.column_for("full_name") == 1
    # C (2) is not claimed by any header, so the identifier takes its fallback
    assert mapping.column_for("identifier_code") == 2
    assert mapping.column_for("email") == 8
    assert "email" in mapping.fallback_fields
    assert "full_name" in mapping.from_header


def test_fallback_column_already_taken_stays_unmapped():
    # email header sits in column C, which is the identifier fallback
    mapping = _map(["№", "ФИО", "Email"])
    assert mapping.column_for("email") == 2
    assert mapping.column_for("identifier_code") is None
    assert "identifier_code" in mapping.unmapped_fields


def test_first_matching_header_wins():
    mapping = _map(["ФИО", "Телефон рабочий", "Телефон мобильный"])
    assert mapping.column_for("phone") == 1


def test_no_column_is_assigned_twice():
    mapping = _map(["Телефон", "ФИО", "Должность", "Регион", "Стаж", "x", "y", "z", "w"])
    assigned = [c for c in mapping.columns.values() if c is not None]
    assert len(assigned) == len(set(assigned))


def test_custom_keywords_are_used():
    keywords = {**DEFAULT_HEADER_KEYWORDS, "full_name": ("participant",)}
    mapping = map_columns(["Participant", "Email"], keywords, {})
    assert mapping.column_for("full_name") == 0
    assert mapping.column_for("email") == 1
    assert mapping.column_for("phone") is None
