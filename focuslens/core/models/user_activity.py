# core/models/user_activity.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from focuslens.core.models.attention import ImageAttention, TextAttention, VideoAttention
from focuslens.core.models.website_visit import WebsiteVisit


@dataclass
class UserActivity:
    """
    One visit from the aggregation window together with the attention
    records that fell inside the same window.
    """
    visit: WebsiteVisit
    text_attentions: List[TextAttention] = field(default_factory=list)
    image_attentions: List[ImageAttention] = field(default_factory=list)
    video_attentions: List[VideoAttention] = field(default_factory=list)
    latest_activity: int = 0

    @property
    def attention_count(self) -> int:
        return (
            len(self.text_attentions)
            + len(self.image_attentions)
            + len(self.video_attentions)
        )

    def to_dict(self) -> dict:
        data = self.visit.to_dict()
        data["textAttentions"] = [a.to_dict() for a in self.text_attentions]
        data["imageAttentions"] = [a.to_dict() for a in self.image_attentions]
        data["videoAttentions"] = [a.to_dict() for a in self.video_attentions]
        data["latestActivity"] = self.latest_activity
        return data
