"""SQLite-backed research cache with per-entry expiry.

Follows the store pattern used elsewhere in the service: one shared
``sqlite3.Connection``, parameterized queries only, commit after each write.
Calls are pushed onto a worker thread with ``asyncio.to_thread`` and
serialised with a lock because the connection is shared across threads.
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

from leadflow.domain.types import RecordSource
from leadflow.enrichment.models import EnrichmentRecord

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _format(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime(_TIMESTAMP_FORMAT)


def init_cache_db(db_path: Path | str) -> sqlite3.Connection:
    """Open the service database with WAL mode and create the research cache table.

    Args:
        db_path: Path to the SQLite database file, or ``":memory:"``.

    Returns:
        An open connection usable from worker threads.
    """
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS company_research_cache (
            domain TEXT PRIMARY KEY,
            research_json TEXT NOT NULL,
            source TEXT NOT NULL,
            expires_at TEXT NOT NULL,
            updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
        )
    """)
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_research_expires ON company_research_cache (expires_at)"
    )

    conn.commit()
    return conn


class ResearchCache:
    """Keyed store of enrichment records with explicit expiry.

    Args:
        conn: Connection whose database has the ``company_research_cache``
            table (see ``init_cache_db``).
        clock: Returns the current UTC time.
        lock: Lock serialising use of *conn*.  Pass the same lock to every
            store sharing the connection.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = _utcnow,
        lock: threading.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._clock = clock
        self._lock = lock or threading.Lock()

    async def get(self, key: str) -> EnrichmentRecord | None:
        """Return the unexpired record for *key*, tagged ``source="cache"``."""
        return await asyncio.to_thread(self._get, key, self._clock())

    async def put(self, key: str, record: EnrichmentRecord, ttl: timedelta) -> datetime:
        """Upsert *record* under *key*, expiring *ttl* from now.

        Returns:
            The expiry instant written to the store.
        """
        now = self._clock()
        expires_at = now + ttl
        await asyncio.to_thread(self._put, key, record, expires_at, now)
        return expires_at

    async def expires_at(self, key: str) -> datetime | None:
        """Expiry of the stored entry for *key*, expired or not."""
        return await asyncio.to_thread(self._expires_at, key)

    def _get(self, key: str, now: datetime) -> EnrichmentRecord | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT research_json FROM company_research_cache "
                "WHERE domain = ? AND expires_at > ?",
                (key, _format(now)),
            ).fetchone()
        if row is None:
            return None
        record = EnrichmentRecord.model_validate_json(row[0])
        return record.model_copy(update={"source": RecordSource.CACHE})

    def _put(self, key: str, record: EnrichmentRecord, expires_at: datetime, now: datetime) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO company_research_cache (
                    domain, research_json, source, expires_at, updated_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (key, record.model_dump_json(), record.source.value, _format(expires_at), _format(now)),
            )
            self._conn.commit()

    def _expires_at(self, key: str) -> datetime | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT expires_at FROM company_research_cache WHERE domain = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return datetime.strptime(row[0], _TIMESTAMP_FORMAT).replace(tzinfo=UTC)
