# core/services/activity_summary_service.py

from __future__ import annotations

from typing import List, Optional

from focuslens.core.database import Database
from focuslens.core.models.activity_summary import ActivitySummary


class ActivitySummaryService:
    """Append-only access to `activity_summaries`."""

    def __init__(self, db: Database):
        self.db = db

    def add(self, summary: str, timestamp: int) -> ActivitySummary:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(
                "INSERT INTO activity_summaries (summary, timestamp) VALUES (?, ?)",
                (summary, int(timestamp)),
            )
            conn.commit()
            return ActivitySummary(cur.lastrowid, summary, int(timestamp))

    def latest(self) -> Optional[ActivitySummary]:
        recent = self.recent(1)
        return recent[0] if recent else None

    def recent(self, limit: int = 10) -> List[ActivitySummary]:
        """Newest first."""
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute(
                "SELECT * FROM activity_summaries ORDER BY timestamp DESC, id DESC LIMIT ?",
                (int(limit),),
            )
            rows = cur.fetchall()
        return [ActivitySummary(r["id"], r["summary"], r["timestamp"]) for r in rows]

    def delete_before(self, cutoff: int) -> int:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(
                "DELETE FROM activity_summaries WHERE timestamp < ?", (cutoff,)
            )
            conn.commit()
            return cur.rowcount
