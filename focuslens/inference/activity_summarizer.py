# inference/activity_summarizer.py

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from focuslens.core.clock import now_ms
from focuslens.core.models.user_activity import UserActivity
from focuslens.core.services.activity_service import ActivityService
from focuslens.core.services.activity_summary_service import ActivitySummaryService
from focuslens.inference.classifier import TextClassifier
from focuslens.inference.parsing import extract_json
from focuslens.inference.prompts import activity_summary_prompt

logger = logging.getLogger(__name__)

ONE_MINUTE_MS = 60 * 1000
MAX_SUMMARY_WORDS = 6
FALLBACK_TITLE_WORDS = 4

_QUOTES = "\"'`"


def clean_summary(text: Optional[str]) -> Optional[str]:
    """
    Reads `{"summary": ...}` when the model answered with JSON, plain text
    otherwise. Quotes are stripped and anything past six words is cut.
    """
    if not text:
        return None

    data = extract_json(text)
    if isinstance(data, dict) and isinstance(data.get("summary"), str):
        text = data["summary"]
    elif data is not None:
        return None

    line = text.strip().splitlines()[0] if text.strip() else ""
    line = line.strip().strip(_QUOTES).strip()
    words = line.split()
    if not words:
        return None
    return " ".join(words[:MAX_SUMMARY_WORDS])


def fallback_summary(activities: List[UserActivity]) -> str:
    title = activities[0].visit.title or activities[0].visit.url
    return "You are browsing " + " ".join(title.split()[:FALLBACK_TITLE_WORDS])


class ActivitySummarizer:
    """
    Once per inference cycle, condenses the last minute of activity into a
    short "You are ..." sentence and appends it to `activity_summaries`.

    A classifier failure or an unusable reply falls back to the title of
    the most recent visit. No activity in the window means no row.
    """

    def __init__(
        self,
        summaries: ActivitySummaryService,
        activity: ActivityService,
        classifier: TextClassifier,
        *,
        window_ms: int = ONE_MINUTE_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self.summaries = summaries
        self.activity = activity
        self.classifier = classifier
        self.window_ms = window_ms
        self.clock = clock

    def run(self) -> Optional[str]:
        recent = self.activity.all_activity_for_last_ms(self.window_ms)
        if not recent:
            return None

        summary = None
        try:
            summary = clean_summary(self.classifier.classify(activity_summary_prompt(recent)))
        except Exception as e:
            logger.error("Activity summary failed: %s", e)

        if summary is None:
            summary = fallback_summary(recent)

        self.summaries.add(summary, self.clock())
        logger.debug("Activity summary: %s", summary)
        return summary
