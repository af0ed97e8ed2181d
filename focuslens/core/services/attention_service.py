# core/services/attention_service.py

from __future__ import annotations

from typing import List, Optional

from focuslens.core.database import Database
from focuslens.core.models.attention import ImageAttention, TextAttention, VideoAttention


class AttentionService:
    """
    Append-only access to the three attention tables.

    Video rows are the exception: captions are concatenated and the watch
    time is updated in place, keyed by video id.
    """

    def __init__(self, db: Database):
        self.db = db

    # ---------------------------------------------------
    # Text / image
    # ---------------------------------------------------
    def add_text(self, url: str, text: str, timestamp: int) -> TextAttention:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(
                "INSERT INTO text_attention (url, text, timestamp) VALUES (?, ?, ?)",
                (url, text, int(timestamp)),
            )
            conn.commit()
            return TextAttention(cur.lastrowid, url, text, int(timestamp))

    def add_image(self, url: str, src: str, caption: str, timestamp: int) -> ImageAttention:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(
                """
                INSERT INTO image_attention (url, src, caption, timestamp)
                VALUES (?, ?, ?, ?)
                """,
                (url, src, caption or "", int(timestamp)),
            )
            conn.commit()
            return ImageAttention(cur.lastrowid, url, src, caption or "", int(timestamp))

    # ---------------------------------------------------
    # Video
    # ---------------------------------------------------
    def open_video(self, video_id: str, title: str, channel_name: str, timestamp: int) -> VideoAttention:
        with self.db.lock:
            conn = self.db.get_connection()
            conn.execute(
                """
                INSERT OR REPLACE INTO video_attention (
                    video_id, title, channel_name, caption,
                    active_watch_time_ms, timestamp
                )
                VALUES (?, ?, ?, '', 0, ?)
                """,
                (video_id, title or "", channel_name or "", int(timestamp)),
            )
            conn.commit()
        return VideoAttention(video_id, title or "", channel_name or "", "", 0, int(timestamp))

    def append_video_caption(self, video_id: str, caption: str, timestamp: int) -> bool:
        """
        Concatenate a caption chunk onto an opened video. A chunk that the
        stored caption already ends with is ignored. Returns False when the
        video was never opened or nothing changed.
        """
        caption = (caption or "").strip()
        if not caption:
            return False

        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.cursor()
            cur.execute("SELECT caption FROM video_attention WHERE video_id = ?", (video_id,))
            row = cur.fetchone()
            if row is None:
                return False

            existing = row["caption"] or ""
            if existing.endswith(caption):
                return False

            combined = f"{existing} {caption}".strip()
            cur.execute(
                "UPDATE video_attention SET caption = ?, timestamp = ? WHERE video_id = ?",
                (combined, int(timestamp), video_id),
            )
            conn.commit()
            return True

    def update_video_watch_time(self, video_id: str, active_watch_time_ms: int, timestamp: int) -> bool:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(
                """
                UPDATE video_attention
                SET active_watch_time_ms = ?, timestamp = ?
                WHERE video_id = ?
                """,
                (int(active_watch_time_ms), int(timestamp), video_id),
            )
            conn.commit()
            return cur.rowcount > 0

    def get_video(self, video_id: str) -> Optional[VideoAttention]:
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute("SELECT * FROM video_attention WHERE video_id = ?", (video_id,))
            row = cur.fetchone()
        return None if row is None else self._video_from_row(row)

    # ---------------------------------------------------
    # Windowed reads (strictly after `cutoff`)
    # ---------------------------------------------------
    def text_after(self, cutoff: int) -> List[TextAttention]:
        rows = self._select(
            "SELECT * FROM text_attention WHERE timestamp > ? ORDER BY timestamp, id",
            (cutoff,),
        )
        return [TextAttention(r["id"], r["url"], r["text"], r["timestamp"]) for r in rows]

    def images_after(self, cutoff: int) -> List[ImageAttention]:
        rows = self._select(
            "SELECT * FROM image_attention WHERE timestamp > ? ORDER BY timestamp, id",
            (cutoff,),
        )
        return [
            ImageAttention(r["id"], r["url"], r["src"], r["caption"], r["timestamp"])
            for r in rows
        ]

    def videos_after(self, cutoff: int) -> List[VideoAttention]:
        rows = self._select(
            "SELECT * FROM video_attention WHERE timestamp > ? ORDER BY timestamp",
            (cutoff,),
        )
        return [self._video_from_row(r) for r in rows]

    def count_after(self, cutoff: int) -> int:
        """Number of attention items of any kind newer than `cutoff`."""
        total = 0
        for table in ("text_attention", "image_attention", "video_attention"):
            rows = self._select(
                f"SELECT COUNT(*) AS n FROM {table} WHERE timestamp > ?", (cutoff,)
            )
            total += rows[0]["n"]
        return total

    # ---------------------------------------------------
    # Per-url reads (website summaries)
    # ---------------------------------------------------
    def text_for_url(self, url: str) -> List[TextAttention]:
        rows = self._select(
            "SELECT * FROM text_attention WHERE url = ? ORDER BY timestamp, id", (url,)
        )
        return [TextAttention(r["id"], r["url"], r["text"], r["timestamp"]) for r in rows]

    def images_for_url(self, url: str) -> List[ImageAttention]:
        rows = self._select(
            "SELECT * FROM image_attention WHERE url = ? ORDER BY timestamp, id", (url,)
        )
        return [
            ImageAttention(r["id"], r["url"], r["src"], r["caption"], r["timestamp"])
            for r in rows
        ]

    def videos_for_url(self, url: str) -> List[VideoAttention]:
        rows = self._select(
            "SELECT * FROM video_attention WHERE instr(?, video_id) > 0 ORDER BY timestamp",
            (url,),
        )
        return [self._video_from_row(r) for r in rows]

    # ---------------------------------------------------
    # Retention
    # ---------------------------------------------------
    def delete_text_before(self, cutoff: int) -> int:
        return self._delete("text_attention", cutoff)

    def delete_images_before(self, cutoff: int) -> int:
        return self._delete("image_attention", cutoff)

    def delete_videos_before(self, cutoff: int) -> int:
        return self._delete("video_attention", cutoff)

    # ---------------------------------------------------
    # Helpers
    # ---------------------------------------------------
    def _select(self, sql: str, params: tuple):
        with self.db.lock:
            cur = self.db.get_connection().cursor()
            cur.execute(sql, params)
            return cur.fetchall()

    def _delete(self, table: str, cutoff: int) -> int:
        with self.db.lock:
            conn = self.db.get_connection()
            cur = conn.execute(f"DELETE FROM {table} WHERE timestamp < ?", (cutoff,))
            conn.commit()
            return cur.rowcount

    @staticmethod
    def _video_from_row(row) -> VideoAttention:
        return VideoAttention(
            video_id=row["video_id"],
            title=row["title"],
            channel_name=row["channel_name"],
            caption=row["caption"],
            active_watch_time_ms=row["active_watch_time_ms"],
            timestamp=row["timestamp"],
        )
