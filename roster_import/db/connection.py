from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from roster_import.models.config_models import DatabaseConfig

from .store import StoreError

"""PostgreSQL connection helpers.

Resolution order for connection parameters:
    1. `.env` (loaded with override=True, so it wins over the process env)
    2. DATABASE_URL / PGDSN as a complete DSN
    3. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    4. the `database` section of config/import.yml for anything still missing
"""


def load_env_file(path: Path, override: bool = True) -> bool:
    """Load .env using python-dotenv. Returns True when the file was loaded."""
    if not path.exists():
        return False
    return bool(load_dotenv(dotenv_path=path, override=override))


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_connection(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a psycopg2 connection in autocommit mode.

    Each store call is its own statement; there is no multi-row transaction.

    Raises:
        StoreError: the server could not be reached
    """
    try:
        conn = psycopg2.connect(resolve_dsn(db_cfg))
    except psycopg2.Error as e:
        raise StoreError(f"cannot connect to database: {str(e).strip()}") from e
    try:
        conn.autocommit = True
        yield conn
    finally:
        conn.close()
