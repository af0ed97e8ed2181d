# core/services/settings_service.py

from __future__ import annotations

import json
import logging
from dataclasses import replace
from typing import Callable, List

from focuslens.core.database import Database
from focuslens.core.models.settings import Settings

logger = logging.getLogger(__name__)


class SettingsService:
    """
    Read/write access for the `settings` table.

    Listeners are called with the new Settings after every successful
    update, which is how the attention scorer picks up new thresholds
    without a restart.
    """

    def __init__(self, db: Database):
        self.db = db
        self._listeners: List[Callable[[Settings], None]] = []

    def load(self) -> Settings:
        """Defaults overlaid with whatever is stored."""
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute("SELECT key, value FROM settings")
            rows = cur.fetchall()

        overrides = {}
        for row in rows:
            key = row["key"]
            if key not in Settings.field_names():
                logger.warning("Ignoring unknown setting %s", key)
                continue
            try:
                overrides[key] = Settings.coerce(key, json.loads(row["value"]))
            except (ValueError, TypeError) as e:
                logger.warning("Ignoring bad stored value for %s: %s", key, e)

        return replace(Settings(), **overrides)

    def update(self, **changes) -> Settings:
        """
        Validate and persist `changes`, then notify listeners.
        Raises KeyError / ValueError before anything is written.
        """
        coerced = {key: Settings.coerce(key, value) for key, value in changes.items()}

        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.cursor()
            for key, value in coerced.items():
                cur.execute(
                    """
                    INSERT INTO settings (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value
                    """,
                    (key, json.dumps(value)),
                )
            conn.commit()

        settings = self.load()
        for listener in list(self._listeners):
            try:
                listener(settings)
            except Exception:
                logger.exception("Settings listener failed")
        return settings

    def reset(self) -> Settings:
        with self.db.lock:
            conn = self.db.get_connection()
            conn.execute("DELETE FROM settings")
            conn.commit()
        settings = Settings()
        for listener in list(self._listeners):
            try:
                listener(settings)
            except Exception:
                logger.exception("Settings listener failed")
        return settings

    def add_listener(self, listener: Callable[[Settings], None]) -> None:
        self._listeners.append(listener)
