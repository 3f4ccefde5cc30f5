"""SQLite-backed processed-lead store that also keeps the created deal id."""

import sqlite3
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from lead_ingest.store.base import ProcessedLeadStore

_SCHEMA = """
CREATE TABLE IF NOT EXISTS processed_leads (
    lead_id TEXT PRIMARY KEY,
    platform TEXT,
    lead_type TEXT,
    deal_id INTEGER,
    processed_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_processed_leads_processed_at
    ON processed_leads (processed_at);
"""


@dataclass
class ProcessedLead:
    """Stored record of one processed lead."""

    lead_id: str
    platform: Optional[str]
    lead_type: Optional[str]
    deal_id: Optional[int]
    processed_at: datetime


class SqliteLeadStore(ProcessedLeadStore):
    """
    SQLite store keyed by lead_id. Inserts are idempotent (INSERT OR IGNORE),
    so re-recording a lead never overwrites the first deal id.
    """

    def __init__(self, db_path: str | Path = "lead_ingest.db"):
        super().__init__()
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connection()) as conn, conn:
            conn.executescript(_SCHEMA)

    def _read_all(self) -> set[str]:
        with closing(self._connection()) as conn, conn:
            rows = conn.execute("SELECT lead_id FROM processed_leads").fetchall()
        return {row["lead_id"] for row in rows}

    def _write(
        self,
        lead_id: str,
        platform: Optional[str],
        lead_type: Optional[str],
        deal_id: Optional[int],
    ) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with closing(self._connection()) as conn, conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO processed_leads (lead_id, platform, lead_type, deal_id, processed_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (lead_id, platform, lead_type, deal_id, now),
            )
            conn.commit()

    def count(self) -> int:
        """Number of persisted lead ids (reads the database)."""
        with closing(self._connection()) as conn, conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM processed_leads").fetchone()
        return int(row["n"])

    def get(self, lead_id: str) -> Optional[ProcessedLead]:
        with closing(self._connection()) as conn, conn:
            row = conn.execute(
                "SELECT * FROM processed_leads WHERE lead_id = ?", (str(lead_id),)
            ).fetchone()
        return self._to_record(row) if row else None

    def list_recent(self, limit: int = 50) -> list[ProcessedLead]:
        """Most recently processed leads first."""
        with closing(self._connection()) as conn, conn:
            rows = conn.execute(
                "SELECT * FROM processed_leads ORDER BY processed_at DESC, rowid DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [self._to_record(r) for r in rows]

    @staticmethod
    def _to_record(row: sqlite3.Row) -> ProcessedLead:
        return ProcessedLead(
            lead_id=row["lead_id"],
            platform=row["platform"],
            lead_type=row["lead_type"],
            deal_id=row["deal_id"],
            processed_at=datetime.fromisoformat(row["processed_at"]),
        )
