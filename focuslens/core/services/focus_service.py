# core/services/focus_service.py

from __future__ import annotations

import json
import logging
import sqlite3
from typing import List, Optional

from focuslens.core.database import Database
from focuslens.core.models.focus_session import FocusSession

logger = logging.getLogger(__name__)


class ActiveFocusExistsError(RuntimeError):
    """Raised when creating a session while another one is still open."""


class FocusService:
    """
    Access to `focus_sessions` and the `active_focus` slot.

    The slot table can hold a single row, so "at most one open session" is
    enforced by the schema: a session is open exactly when the slot
    references it. Only the focus engine creates sessions; only the engine
    (drift) and the inactivity closer close them.
    """

    def __init__(self, db: Database):
        self.db = db

    # ---------------------------------------------------
    # Reads
    # ---------------------------------------------------
    def get_active(self) -> Optional[FocusSession]:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.cursor()
            cur.execute(
                """
                SELECT s.*
                FROM active_focus a
                LEFT JOIN focus_sessions s ON s.id = a.session_id
                WHERE a.slot = 1
                """
            )
            row = cur.fetchone()
            if row is None:
                return None

            session = None if row["id"] is None else self._from_row(row)
            if session is None or not session.is_open:
                # slot outlived its session (deleted or closed elsewhere)
                logger.warning("Clearing stale active focus slot")
                conn.execute("DELETE FROM active_focus WHERE slot = 1")
                conn.commit()
                return None
            return session

    def get(self, session_id: int) -> Optional[FocusSession]:
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute("SELECT * FROM focus_sessions WHERE id = ?", (session_id,))
            row = cur.fetchone()
        return None if row is None else self._from_row(row)

    def history(self, limit: Optional[int] = None) -> List[FocusSession]:
        sql = "SELECT * FROM focus_sessions ORDER BY last_updated DESC, id DESC"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (int(limit),)
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute(sql, params)
            rows = cur.fetchall()
        return [self._from_row(r) for r in rows]

    def count_open(self) -> int:
        """Sessions whose last interval has no end (should be 0 or 1)."""
        return sum(1 for s in self.history() if s.is_open)

    # ---------------------------------------------------
    # Writes
    # ---------------------------------------------------
    def create(self, topic_label: str, keywords: List[str], now: int) -> FocusSession:
        time_spent = [{"start": now, "end": None}]
        with self.db.lock:
            conn = self.db.get_connection()
            try:
                cur = conn.execute(
                    """
                    INSERT INTO focus_sessions (topic_label, keywords, time_spent, last_updated)
                    VALUES (?, ?, ?, ?)
                    """,
                    (topic_label, json.dumps(list(keywords)), json.dumps(time_spent), now),
                )
                session_id = cur.lastrowid
                conn.execute(
                    "INSERT INTO active_focus (slot, session_id) VALUES (1, ?)",
                    (session_id,),
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise ActiveFocusExistsError(
                    "a focus session is already open"
                ) from e

        return FocusSession(session_id, topic_label, keywords, time_spent, now)

    def update_topic(self, session_id: int, topic_label: str, keywords: List[str], now: int) -> bool:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(
                """
                UPDATE focus_sessions
                SET topic_label = ?, keywords = ?, last_updated = ?
                WHERE id = ?
                """,
                (topic_label, json.dumps(list(keywords)), now, session_id),
            )
            conn.commit()
            return cur.rowcount > 0

    def close_active(self, now: int) -> Optional[FocusSession]:
        """
        End the open interval of the active session and free the slot.
        Returns the closed session, or None when nothing was open.
        """
        with self.db.lock:
            session = self.get_active()
            if session is None:
                return None

            session.time_spent[-1]["end"] = now
            session.last_updated = now

            conn = self.db.get_connection()
            conn.execute(
                "UPDATE focus_sessions SET time_spent = ?, last_updated = ? WHERE id = ?",
                (json.dumps(session.time_spent), now, session.id),
            )
            conn.execute("DELETE FROM active_focus WHERE slot = 1")
            conn.commit()
            return session

    def delete_updated_before(self, cutoff: int) -> int:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(
                "DELETE FROM focus_sessions WHERE last_updated < ?", (cutoff,)
            )
            deleted = cur.rowcount
            conn.execute(
                """
                DELETE FROM active_focus
                WHERE session_id NOT IN (SELECT id FROM focus_sessions)
                """
            )
            conn.commit()
            return deleted

    # ---------------------------------------------------
    # Helpers
    # ---------------------------------------------------
    @staticmethod
    def _from_row(row) -> FocusSession:
        return FocusSession(
            id=row["id"],
            topic_label=row["topic_label"],
            keywords=json.loads(row["keywords"]),
            time_spent=json.loads(row["time_spent"]),
            last_updated=row["last_updated"],
        )
