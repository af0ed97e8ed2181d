# core/services/visit_service.py

from __future__ import annotations

import json
from typing import List, Optional

from focuslens.core.database import Database
from focuslens.core.models.website_visit import WebsiteVisit


class VisitService:
    """Access to `website_visits`; the url is the natural key."""

    def __init__(self, db: Database):
        self.db = db

    # ---------------------------------------------------
    # Writes
    # ---------------------------------------------------
    def record_open(
        self,
        url: str,
        title: str,
        opened_at: int,
        metadata: Optional[dict] = None,
        referrer: Optional[str] = None,
    ) -> WebsiteVisit:
        """
        Upsert a visit when a page opens. Reopening a url replaces the row,
        so close time, active time and summary start over.
        """
        if referrer == url:
            referrer = None

        visit = WebsiteVisit(
            url=url,
            title=title,
            metadata=metadata or {},
            opened_at=opened_at,
            closed_at=None,
            active_time_ms=0,
            referrer=referrer,
        )

        with self.db.lock:
            conn = self.db.get_connection()
            conn.execute(
                """
                INSERT OR REPLACE INTO website_visits (
                    url, title, metadata, opened_at, closed_at,
                    active_time_ms, referrer, summary,
                    summary_generated_with_n_attentions
                )
                VALUES (?, ?, ?, ?, NULL, 0, ?, NULL, NULL)
                """,
                (url, title, json.dumps(visit.metadata), opened_at, referrer),
            )
            conn.commit()
        return visit

    def update_active_time(self, url: str, active_time_ms: int) -> bool:
        return self._modify(
            "UPDATE website_visits SET active_time_ms = ? WHERE url = ?",
            (int(active_time_ms), url),
        )

    def record_close(self, url: str, closed_at: int) -> bool:
        return self._modify(
            "UPDATE website_visits SET closed_at = ? WHERE url = ?",
            (int(closed_at), url),
        )

    def update_summary(self, url: str, summary: str, n_attentions: int) -> bool:
        return self._modify(
            """
            UPDATE website_visits
            SET summary = ?, summary_generated_with_n_attentions = ?
            WHERE url = ?
            """,
            (summary, int(n_attentions), url),
        )

    def delete_opened_before(self, cutoff: int) -> int:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(
                "DELETE FROM website_visits WHERE opened_at < ?", (cutoff,)
            )
            conn.commit()
            return cur.rowcount

    # ---------------------------------------------------
    # Reads
    # ---------------------------------------------------
    def get(self, url: str) -> Optional[WebsiteVisit]:
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute("SELECT * FROM website_visits WHERE url = ?", (url,))
            row = cur.fetchone()
        return None if row is None else self._from_row(row)

    def list_all(self) -> List[WebsiteVisit]:
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute("SELECT * FROM website_visits ORDER BY opened_at DESC")
            rows = cur.fetchall()
        return [self._from_row(r) for r in rows]

    def opened_after(self, cutoff: int) -> List[WebsiteVisit]:
        """Visits whose opened_at is strictly after `cutoff`."""
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute(
                "SELECT * FROM website_visits WHERE opened_at > ? ORDER BY opened_at",
                (cutoff,),
            )
            rows = cur.fetchall()
        return [self._from_row(r) for r in rows]

    # ---------------------------------------------------
    # Helpers
    # ---------------------------------------------------
    def _modify(self, sql: str, params: tuple) -> bool:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(sql, params)
            conn.commit()
            return cur.rowcount > 0

    @staticmethod
    def _from_row(row) -> WebsiteVisit:
        try:
            metadata = json.loads(row["metadata"] or "{}")
        except ValueError:
            metadata = {}
        return WebsiteVisit(
            url=row["url"],
            title=row["title"],
            metadata=metadata,
            opened_at=row["opened_at"],
            closed_at=row["closed_at"],
            active_time_ms=row["active_time_ms"],
            referrer=row["referrer"],
            summary=row["summary"],
            summary_generated_with_n_attentions=row["summary_generated_with_n_attentions"],
        )
