# core/services/activity_service.py

from __future__ import annotations

from typing import Callable, List

from focuslens.core.clock import now_ms
from focuslens.core.models.user_activity import UserActivity
from focuslens.core.services.attention_service import AttentionService
from focuslens.core.services.visit_service import VisitService


class ActivityService:
    """
    The aggregation window: every read path used for inference goes
    through `all_activity_for_last_ms`.

    The join is a pure read. It issues only SELECTs, so repeated calls over
    an unchanged store return the same result, and a housekeeping sweep
    running in between can only make later results smaller.
    """

    def __init__(
        self,
        visits: VisitService,
        attentions: AttentionService,
        clock: Callable[[], int] = now_ms,
    ):
        self.visits = visits
        self.attentions = attentions
        self.clock = clock

    def all_activity_for_last_ms(self, ms: int) -> List[UserActivity]:
        """
        Visits opened inside the trailing window, each with the attention
        records (also inside the window) that belong to its url, newest
        activity first.
        """
        cutoff = self.clock() - int(ms)

        visits = self.visits.opened_after(cutoff)
        texts = self.attentions.text_after(cutoff)
        images = self.attentions.images_after(cutoff)
        videos = self.attentions.videos_after(cutoff)

        activities = []
        for visit in visits:
            activity = UserActivity(
                visit=visit,
                text_attentions=[t for t in texts if t.url == visit.url],
                image_attentions=[i for i in images if i.url == visit.url],
                video_attentions=[v for v in videos if v.video_id and v.video_id in visit.url],
            )
            activity.latest_activity = self.latest_activity(activity)
            activities.append(activity)

        # stable sort: ties keep opened_at order
        activities.sort(key=lambda a: a.latest_activity, reverse=True)
        return activities

    @staticmethod
    def latest_activity(activity: UserActivity) -> int:
        """
        Max of the close time (open time while still open), the end of the
        active time measured from the open time, and every attention stamp.
        """
        visit = activity.visit
        stamps = [
            visit.closed_at if visit.closed_at is not None else visit.opened_at,
            visit.opened_at + (visit.active_time_ms or 0),
        ]
        stamps.extend(a.timestamp for a in activity.text_attentions)
        stamps.extend(a.timestamp for a in activity.image_attentions)
        stamps.extend(a.timestamp for a in activity.video_attentions)
        return max(stamps)


def attention_content(activities: List[UserActivity]) -> str:
    """Render activities as numbered blocks for classifier prompts."""
    blocks = []
    for index, activity in enumerate(activities, start=1):
        lines = [
            f"Title {index}: {activity.visit.title}",
            f"URL {index}: {activity.visit.url}",
            f"Content {index} user is paying attention to in this page:",
            " ".join(a.text for a in activity.text_attentions),
        ]
        if activity.image_attentions:
            lines.append(f"Image Descriptions {index} user is paying attention to in this page:")
            lines.append(" ".join(a.caption for a in activity.image_attentions))
        if activity.video_attentions:
            lines.append(f"Videos {index} user is watching on this page:")
            for video in activity.video_attentions:
                lines.append(f"{video.title} ({video.channel_name}): {video.caption}".strip())
        blocks.append("\n".join(lines))
    return "\n\n---\n\n".join(blocks)
