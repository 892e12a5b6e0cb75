"""SQLite-backed record of accepted leads.

Accepts a shared ``sqlite3.Connection``, uses parameterized queries
exclusively, and commits after each write.  Statements run on a worker
thread under the lock shared with the other stores on the connection.
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from datetime import UTC, datetime

from leadflow.enrichment.models import EnrichmentRecord
from leadflow.leads.models import LeadSubmission


def init_leads_table(conn: sqlite3.Connection) -> None:
    """Create the ``leads`` table and its index if they do not exist."""
    conn.execute("""
        CREATE TABLE IF NOT EXISTS leads (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            job_title TEXT NOT NULL DEFAULT '',
            session_type TEXT NOT NULL DEFAULT '',
            commitment_level TEXT,
            domain TEXT NOT NULL,
            company_research TEXT NOT NULL,
            confidence TEXT NOT NULL,
            session_data TEXT NOT NULL DEFAULT '{}',
            engagement_score INTEGER NOT NULL DEFAULT 0,
            email_sent INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        )
    """)
    conn.execute("CREATE INDEX IF NOT EXISTS idx_leads_email ON leads (email)")
    conn.commit()


class LeadStore:
    """Insert leads and track whether their notification went out.

    Args:
        conn: Connection whose database has the ``leads`` table.
        lock: Lock serialising use of *conn*; share it with the research cache.
    """

    def __init__(self, conn: sqlite3.Connection, *, lock: threading.Lock | None = None) -> None:
        self._conn = conn
        self._lock = lock or threading.Lock()

    async def record(self, lead: LeadSubmission, research: EnrichmentRecord) -> int:
        """Insert *lead* with its company research and engagement score.

        Returns:
            The new row's id.
        """
        return await asyncio.to_thread(self._record, lead, research)

    async def mark_email_sent(self, lead_id: int) -> None:
        await asyncio.to_thread(self._mark_email_sent, lead_id)

    async def get(self, lead_id: int) -> dict[str, object] | None:
        """Return the stored row for *lead_id* as a dict, or ``None``."""
        return await asyncio.to_thread(self._get, lead_id)

    def _record(self, lead: LeadSubmission, research: EnrichmentRecord) -> int:
        now = datetime.now(tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
        with self._lock:
            cursor = self._conn.execute(
                """
                INSERT INTO leads (
                    name, email, job_title, session_type, commitment_level, domain,
                    company_research, confidence, session_data, engagement_score,
                    email_sent, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
                """,
                (
                    lead.name,
                    lead.email,
                    lead.job_title,
                    lead.session_type,
                    lead.commitment_level,
                    lead.domain,
                    research.model_dump_json(),
                    research.confidence.value,
                    lead.session_data.model_dump_json(),
                    lead.engagement_score,
                    now,
                ),
            )
            self._conn.commit()
        return int(cursor.lastrowid)

    def _mark_email_sent(self, lead_id: int) -> None:
        with self._lock:
            self._conn.execute("UPDATE leads SET email_sent = 1 WHERE id = ?", (lead_id,))
            self._conn.commit()

    def _get(self, lead_id: int) -> dict[str, object] | None:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT id, name, email, domain, confidence, commitment_level, "
                "engagement_score, email_sent FROM leads WHERE id = ?",
                (lead_id,),
            )
            row = cursor.fetchone()
        if row is None:
            return None
        columns = [desc[0] for desc in cursor.description]
        return dict(zip(columns, row, strict=True))
