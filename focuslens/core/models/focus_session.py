# core/models/focus_session.py

from __future__ import annotations

from typing import Optional


class FocusSession:
    def __init__(self, id, topic_label, keywords, time_spent, last_updated):
        self.id = id
        self.topic_label = topic_label
        self.keywords = list(keywords)       # most-recent-first, no duplicates
        self.time_spent = list(time_spent)   # [{"start": ms, "end": ms | None}, ...]
        self.last_updated = last_updated

    @property
    def open_interval(self) -> Optional[dict]:
        if not self.time_spent:
            return None
        last = self.time_spent[-1]
        return last if last.get("end") is None else None

    @property
    def is_open(self) -> bool:
        return self.open_interval is not None

    def total_time_ms(self, now: int) -> int:
        """Summed interval lengths; an open interval counts up to `now`."""
        total = 0
        for interval in self.time_spent:
            end = interval.get("end")
            total += max(0, (end if end is not None else now) - interval["start"])
        return total

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "topicLabel": self.topic_label,
            "keywords": list(self.keywords),
            "timeSpent": [dict(i) for i in self.time_spent],
            "lastUpdated": self.last_updated,
        }

    def __repr__(self):
        return (
            f"<FocusSession id={self.id} label={self.topic_label!r} "
            f"open={self.is_open} last_updated={self.last_updated}>"
        )
