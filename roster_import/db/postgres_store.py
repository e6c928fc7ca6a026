from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

import psycopg2
import psycopg2.errors
from psycopg2.extras import RealDictCursor, execute_values

from roster_import.models.directory import DirectoryEntry, ReferenceTable

from .store import IdentityConflict, StoreError

"""PostgreSQL implementation of RosterStore (psycopg2).

Tables used:
- users (id, full_name, email, sap_number, position_id, territory_id, phone,
  work_experience_days, role)
- positions (id, name), territories (id, name, region)
- event_participants (event_id, user_id, attended)

psycopg2 is blocking, so every call runs in a worker thread via
asyncio.to_thread. Calls are issued one at a time by the engine; the
connection is never used concurrently.
"""

T = TypeVar("T")

# DirectoryEntry field -> users column
USER_COLUMNS: dict[str, str] = {
    "full_name": "full_name",
    "email": "email",
    "identifier_code": "sap_number",
    "position_id": "position_id",
    "territory_id": "territory_id",
    "phone": "phone",
    "experience_days": "work_experience_days",
}

DEFAULT_ROLE = "employee"

_SELECT_USER = (
    "SELECT id, full_name, email, sap_number AS identifier_code, position_id, territory_id, "
    "phone, work_experience_days AS experience_days FROM users"
)
_RETURNING_USER = (
    "RETURNING id, full_name, email, sap_number AS identifier_code, position_id, territory_id, "
    "phone, work_experience_days AS experience_days"
)

_REFERENCE_QUERIES = {
    "position": "SELECT id, name FROM positions ORDER BY name",
    "territory": "SELECT id, name, region FROM territories ORDER BY name",
}


def _columns_for(fields: Mapping[str, Any]) -> tuple[list[str], list[Any]]:
    unknown = set(fields) - set(USER_COLUMNS)
    if unknown:
        raise StoreError(f"unknown directory fields: {sorted(unknown)}")
    names = [USER_COLUMNS[k] for k in fields]
    return names, list(fields.values())


class PostgresRosterStore:
    def __init__(self, connection: Any, page_size: int = 1000) -> None:
        self._conn = connection
        self._page_size = page_size

    def _execute(self, fn: Callable[[Any], T]) -> T:
        try:
            with self._conn.cursor(cursor_factory=RealDictCursor) as cur:
                return fn(cur)
        except psycopg2.errors.UniqueViolation as e:
            raise IdentityConflict(str(e).strip()) from e
        except psycopg2.Error as e:
            raise StoreError(str(e).strip()) from e

    async def _run(self, fn: Callable[[Any], T]) -> T:
        return await asyncio.to_thread(self._execute, fn)

    async def lookup_directory_entry(
        self, *, identifier_code: str | None = None, email: str | None = None
    ) -> DirectoryEntry | None:
        if identifier_code:
            sql, params = f"{_SELECT_USER} WHERE sap_number = %s LIMIT 1", (identifier_code,)
        elif email:
            sql, params = f"{_SELECT_USER} WHERE lower(email) = lower(%s) LIMIT 1", (email,)
        else:
            return None

        def query(cur: Any) -> DirectoryEntry | None:
            cur.execute(sql, params)
            row = cur.fetchone()
            return DirectoryEntry.from_record(row) if row else None

        return await self._run(query)

    async def create_directory_entry(self, fields: Mapping[str, Any]) -> DirectoryEntry:
        payload = dict(fields)
        # empty identifier codes must be NULL, not '' (unique constraint)
        if not payload.get("identifier_code"):
            payload["identifier_code"] = None
        names, values = _columns_for(payload)
        names.append("role")
        values.append(DEFAULT_ROLE)
        cols_sql = ",".join(f'"{c}"' for c in names)
        placeholders = ",".join(["%s"] * len(names))
        sql = f"INSERT INTO users ({cols_sql}) VALUES ({placeholders}) {_RETURNING_USER}"

        def insert(cur: Any) -> DirectoryEntry:
            cur.execute(sql, values)
            return DirectoryEntry.from_record(cur.fetchone())

        return await self._run(insert)

    async def update_directory_entry(self, entry_id: str, fields: Mapping[str, Any]) -> None:
        if not fields:
            return
        names, values = _columns_for(fields)
        assignments = ", ".join(f'"{c}" = %s' for c in names)
        sql = f"UPDATE users SET {assignments} WHERE id = %s"

        def update(cur: Any) -> None:
            cur.execute(sql, [*values, entry_id])
            if cur.rowcount == 0:
                raise StoreError(f"directory entry {entry_id} not found")

        await self._run(update)

    async def list_reference_table(self, kind: str) -> ReferenceTable:
        if kind not in _REFERENCE_QUERIES:
            raise StoreError(f"unknown reference table: {kind}")
        sql = _REFERENCE_QUERIES[kind]

        def query(cur: Any) -> ReferenceTable:
            cur.execute(sql)
            return ReferenceTable.from_rows(kind, cur.fetchall())

        return await self._run(query)

    async def list_existing_associations(self, event_id: str, person_ids: Iterable[str]) -> set[str]:
        ids = [str(p) for p in person_ids]
        if not ids:
            return set()

        def query(cur: Any) -> set[str]:
            cur.execute(
                "SELECT user_id FROM event_participants WHERE event_id = %s AND user_id::text = ANY(%s)",
                (event_id, ids),
            )
            return {str(r["user_id"]) for r in cur.fetchall()}

        return await self._run(query)

    async def create_associations(self, event_id: str, person_ids: Iterable[str]) -> None:
        rows = [(event_id, pid, False) for pid in person_ids]
        if not rows:
            return

        def insert(cur: Any) -> None:
            execute_values(
                cur,
                "INSERT INTO event_participants (event_id, user_id, attended) VALUES %s",
                rows,
                page_size=self._page_size,
            )

        await self._run(insert)

    async def existing_identifier_codes(self, codes: Iterable[str]) -> set[str]:
        wanted = [c for c in codes if c]
        if not wanted:
            return set()

        def query(cur: Any) -> set[str]:
            cur.execute("SELECT sap_number FROM users WHERE sap_number = ANY(%s)", (wanted,))
            return {r["sap_number"] for r in cur.fetchall()}

        return await self._run(query)

    async def existing_emails(self, emails: Iterable[str]) -> set[str]:
        wanted = [e.lower() for e in emails if e]
        if not wanted:
            return set()

        def query(cur: Any) -> set[str]:
            cur.execute(
                "SELECT lower(email) AS email FROM users WHERE lower(email) = ANY(%s)", (wanted,)
            )
            return {r["email"] for r in cur.fetchall()}

        return await self._run(query)
