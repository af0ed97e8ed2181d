# core/database.py

import os
import sqlite3
import threading


DEFAULT_DB_NAME = "focuslens.db"


class Database:
    def __init__(self, db_path: str | None = None):
        # --------------------------------------------------
        # One database for the whole project.
        # FOCUSLENS_DB_PATH wins, then the explicit path,
        # then <project root>/focuslens.db
        # --------------------------------------------------
        if db_path is None:
            db_path = os.environ.get("FOCUSLENS_DB_PATH")
        if db_path is None:
            base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
            db_path = os.path.join(os.path.dirname(base_dir), DEFAULT_DB_NAME)
        self.db_path = db_path

        # Scorer thread, background tasks and the HTTP bridge share this
        # connection; every service serialises through `lock`.
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.lock = threading.RLock()

        self._create_tables()

    def get_connection(self):
        return self.conn

    def close(self) -> None:
        with self.lock:
            self.conn.close()

    # --------------------------------------------------
    # Create tables if they don't exist
    # --------------------------------------------------
    def _create_tables(self):
        with self.lock:
            cur = self.conn.cursor()

            # WEBSITE VISITS (one row per url, upserted)
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS website_visits (
                    url TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    metadata TEXT NOT NULL DEFAULT '{}',
                    opened_at INTEGER NOT NULL,
                    closed_at INTEGER,
                    active_time_ms INTEGER NOT NULL DEFAULT 0,
                    referrer TEXT,
                    summary TEXT,
                    summary_generated_with_n_attentions INTEGER
                )
                """
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_visits_opened_at "
                "ON website_visits (opened_at)"
            )

            # TEXT ATTENTION
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS text_attention (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    url TEXT NOT NULL,
                    text TEXT NOT NULL,
                    timestamp INTEGER NOT NULL
                )
                """
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_text_attention_timestamp "
                "ON text_attention (timestamp)"
            )

            # IMAGE ATTENTION
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS image_attention (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    url TEXT NOT NULL,
                    src TEXT NOT NULL,
                    caption TEXT NOT NULL DEFAULT '',
                    timestamp INTEGER NOT NULL
                )
                """
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_image_attention_timestamp "
                "ON image_attention (timestamp)"
            )

            # VIDEO ATTENTION (captions appended, watch time updated in place)
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS video_attention (
                    video_id TEXT PRIMARY KEY,
                    title TEXT NOT NULL DEFAULT '',
                    channel_name TEXT NOT NULL DEFAULT '',
                    caption TEXT NOT NULL DEFAULT '',
                    active_watch_time_ms INTEGER NOT NULL DEFAULT 0,
                    timestamp INTEGER NOT NULL
                )
                """
            )

            # FOCUS SESSIONS
            # keywords / time_spent are JSON arrays
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS focus_sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    topic_label TEXT NOT NULL,
                    keywords TEXT NOT NULL,
                    time_spent TEXT NOT NULL,
                    last_updated INTEGER NOT NULL
                )
                """
            )

            # ACTIVE FOCUS: the single slot pointing at the open session
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS active_focus (
                    slot INTEGER PRIMARY KEY CHECK (slot = 1),
                    session_id INTEGER NOT NULL,
                    FOREIGN KEY (session_id) REFERENCES focus_sessions(id)
                )
                """
            )

            # ACTIVITY SUMMARIES (one short sentence per inference cycle)
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS activity_summaries (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    summary TEXT NOT NULL,
                    timestamp INTEGER NOT NULL
                )
                """
            )
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_activity_summaries_timestamp "
                "ON activity_summaries (timestamp)"
            )

            # SETTINGS (user knobs) and APP STATE (bookkeeping timestamps)
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS app_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

            self.conn.commit()
