# core/services/state_service.py

from typing import Optional

from focuslens.core.database import Database


class StateService:
    """Key/value bookkeeping in `app_state` (last-run and cooldown stamps)."""

    def __init__(self, db: Database):
        self.db = db

    def get_int(self, key: str) -> Optional[int]:
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute("SELECT value FROM app_state WHERE key = ?", (key,))
            row = cur.fetchone()
        if row is None:
            return None
        try:
            return int(row["value"])
        except ValueError:
            return None

    def set_int(self, key: str, value: int) -> None:
        with self.db.lock:
            conn = self.db.get_connection()
            conn.execute(
                """
                INSERT INTO app_state (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, str(int(value))),
            )
            conn.commit()
