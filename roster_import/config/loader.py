from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from roster_import.models.config_models import (
    DEFAULT_ATTRIBUTE_ALIASES,
    DEFAULT_HEADER_KEYWORDS,
    DatabaseConfig,
    ImportConfig,
    ImportSettings,
    LayoutSettings,
    UploadLimits,
)

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml by default)
- Validate against the packaged JSON schema
- Overlay the values on the defaults from models.config_models
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: if the schema file is missing or unreadable, or the data
            violates it (unknown keys, wrong types, ...).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _keyword_overrides(
    raw: dict[str, list[str]] | None, defaults: dict[str, tuple[str, ...]]
) -> dict[str, tuple[str, ...]]:
    merged = dict(defaults)
    for name, words in (raw or {}).items():
        merged[name] = tuple(w.strip().lower() for w in words)
    return merged


def build_config(data: dict[str, Any]) -> ImportConfig:
    """Build an ImportConfig from already validated config data."""
    defaults = ImportSettings()

    upload_raw = data.get("upload", {})
    upload = UploadLimits(
        max_bytes=upload_raw.get("max_bytes", defaults.upload.max_bytes),
        extensions=tuple(e.lower() for e in upload_raw.get("extensions", defaults.upload.extensions)),
    )

    layout_raw = data.get("layout", {})
    layout = LayoutSettings(
        scan_rows=layout_raw.get("scan_rows", defaults.layout.scan_rows),
        legacy_header_row=layout_raw.get("legacy_header_row", defaults.layout.legacy_header_row),
        specialized_header_row=layout_raw.get(
            "specialized_header_row", defaults.layout.specialized_header_row
        ),
        specialized_markers=tuple(
            m.strip().lower()
            for m in layout_raw.get("specialized_markers", defaults.layout.specialized_markers)
        ),
        min_name_length=layout_raw.get("min_name_length", defaults.layout.min_name_length),
    )

    settings = ImportSettings(
        email_domain=data.get("email_domain", defaults.email_domain),
        upload=upload,
        layout=layout,
        header_keywords=_keyword_overrides(data.get("header_keywords"), DEFAULT_HEADER_KEYWORDS),
        attribute_aliases=_keyword_overrides(data.get("attribute_aliases"), DEFAULT_ATTRIBUTE_ALIASES),
    )

    db_raw = data.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(settings=settings, database=db)


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)
    return build_config(data)
