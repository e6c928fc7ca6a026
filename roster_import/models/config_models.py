from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the roster import tool.

Every setting has a default so the engine works without a config file; the
loader in roster_import/config/loader.py overrides the defaults from YAML.
"""

DEFAULT_EMAIL_DOMAIN = "sns.ru"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
DEFAULT_EXTENSIONS = (".xlsx", ".xlsm", ".csv")

DEFAULT_SPECIALIZED_MARKERS = (
    "список персонала",
    "список сотрудников",
    "штатное расписание",
    "personnel list",
    "staff list",
)

DEFAULT_HEADER_KEYWORDS: dict[str, tuple[str, ...]] = {
    "full_name": ("фио", "ф.и.о", "full name", "full_name", "fullname", "фамилия", "surname"),
    "identifier_code": (
        "sap", "табельный", "таб. номер", "таб.номер", "personnel number", "employee id", "identifier",
    ),
    "position": ("должность", "position", "job title"),
    "territory": ("территор", "филиал", "регион", "territory", "branch", "region"),
    "experience_days": ("стаж", "опыт", "experience"),
    "phone": ("телефон", "тел.", "phone", "mobile"),
    "email": ("email", "e-mail", "почта", "mail"),
}

# Legacy roster template: B name, C code, D position, E territory, F experience, H phone, I email
DEFAULT_FALLBACK_COLUMNS: dict[str, int] = {
    "full_name": 1,
    "identifier_code": 2,
    "position": 3,
    "territory": 4,
    "experience_days": 5,
    "phone": 7,
    "email": 8,
}

# Personnel-list export: fixed positions
SPECIALIZED_COLUMNS: dict[str, int] = {
    "index": 0,
    "full_name": 1,
    "identifier_code": 2,
    "position": 3,
    "territory": 4,
    "experience_days": 5,
    "email": 6,
    "phone": 7,
    "approval_status": 8,
}

DEFAULT_ATTRIBUTE_ALIASES: dict[str, tuple[str, ...]] = {
    "position": (
        "торговый представитель",
        "медицинский представитель",
        "представитель",
        "супервайзер",
        "менеджер",
        "sales rep",
        "supervisor",
        "manager",
    ),
    "territory": (),
}


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback used when environment variables are not set."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class UploadLimits:
    """Boundary checks applied to an upload before parsing."""
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS


@dataclass(frozen=True)
class LayoutSettings:
    """Schema detection parameters."""
    scan_rows: int = 15                    # rows inspected for markers / header
    legacy_header_row: int = 12            # 0-based; template data starts on row 14
    specialized_header_row: int = 12       # 0-based; fixed for personnel-list exports
    specialized_markers: tuple[str, ...] = DEFAULT_SPECIALIZED_MARKERS
    min_name_length: int = 3               # shorter names are separator rows


@dataclass(frozen=True)
class ImportSettings:
    """Parsing and matching settings threaded through the pipeline."""
    email_domain: str = DEFAULT_EMAIL_DOMAIN
    upload: UploadLimits = field(default_factory=UploadLimits)
    layout: LayoutSettings = field(default_factory=LayoutSettings)
    header_keywords: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_HEADER_KEYWORDS)
    )
    fallback_columns: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_FALLBACK_COLUMNS))
    attribute_aliases: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_ATTRIBUTE_ALIASES)
    )


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object: import settings plus DB fallback."""
    settings: ImportSettings = field(default_factory=ImportSettings)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
