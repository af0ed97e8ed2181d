# inference/focus_engine.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from focuslens.core.clock import now_ms
from focuslens.core.models.focus_session import FocusSession
from focuslens.core.models.user_activity import UserActivity
from focuslens.core.services.activity_service import ActivityService
from focuslens.core.services.focus_service import ActiveFocusExistsError, FocusService
from focuslens.core.services.notification_service import NotificationKind, NotificationService
from focuslens.inference.classifier import TextClassifier
from focuslens.inference.parsing import parse_label, parse_yes_no
from focuslens.inference.prompts import (
    focus_area_prompt,
    focus_drift_prompt,
    summarize_focus_prompt,
)

logger = logging.getLogger(__name__)

RECENT_WINDOW_MS = 10 * 60 * 1000


class FocusOutcome(str, Enum):
    NO_ACTIVITY = "NO_ACTIVITY"
    NO_TOPIC = "NO_TOPIC"
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DRIFTED = "DRIFTED"


@dataclass
class FocusCycleResult:
    outcome: FocusOutcome
    session: Optional[FocusSession] = None


def merge_keywords(new_term: str, previous: List[str]) -> List[str]:
    """New term first, then the old ones; duplicates (case-insensitive) dropped."""
    merged: List[str] = []
    seen = set()
    for term in [new_term, *previous]:
        folded = term.casefold()
        if folded in seen:
            continue
        seen.add(folded)
        merged.append(term)
    return merged


class FocusEngine:
    """
    Maintains the single current focus session.

    States are "no active session" and "active session". One cycle:

    - no recent activity            -> nothing happens
    - active session, drift = yes   -> close its interval, notify; the new
                                       topic is picked up next cycle
    - otherwise, topic found        -> create a session, or merge the topic
                                       into the keywords and relabel
    - otherwise                     -> nothing happens

    Every classifier problem counts as "no signal": no drift, no topic,
    or keep the previous label.
    """

    def __init__(
        self,
        focus: FocusService,
        activity: ActivityService,
        classifier: TextClassifier,
        notifications: Optional[NotificationService] = None,
        *,
        window_ms: int = RECENT_WINDOW_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self.focus = focus
        self.activity = activity
        self.classifier = classifier
        self.notifications = notifications
        self.window_ms = window_ms
        self.clock = clock

    # ------------------------------------------------------------------ #
    # One cycle
    # ------------------------------------------------------------------ #

    def run(self) -> FocusCycleResult:
        recent = self.activity.all_activity_for_last_ms(self.window_ms)
        if not recent:
            return FocusCycleResult(FocusOutcome.NO_ACTIVITY)

        previous = self.focus.get_active()

        if previous is not None and self.detect_drift(previous, recent):
            return self._close_on_drift(previous)

        topic = self.detect_topic(recent)
        if topic is None:
            return FocusCycleResult(FocusOutcome.NO_TOPIC, previous)

        if previous is None:
            return self._create(topic)
        return self._refresh(previous, topic)

    def _close_on_drift(self, previous: FocusSession) -> FocusCycleResult:
        now = self.clock()
        closed = self.focus.close_active(now)
        logger.info("Focus drifted away from %r", previous.topic_label)

        if self.notifications is not None:
            self.notifications.notify(NotificationKind.FOCUS_DRIFT_DETECTED, now)
        return FocusCycleResult(FocusOutcome.DRIFTED, closed or previous)

    def _create(self, topic: str) -> FocusCycleResult:
        keywords = [topic]
        label = self.summarize(keywords, fallback=topic)
        try:
            session = self.focus.create(label, keywords, self.clock())
        except ActiveFocusExistsError:
            # another writer got there first; leave its session alone
            logger.warning("Focus session already open, skipping create for %r", topic)
            return FocusCycleResult(FocusOutcome.NO_TOPIC, self.focus.get_active())

        logger.info("New focus session %r", label)
        return FocusCycleResult(FocusOutcome.CREATED, session)

    def _refresh(self, previous: FocusSession, topic: str) -> FocusCycleResult:
        keywords = merge_keywords(topic, previous.keywords)
        label = self.summarize(keywords, fallback=previous.topic_label)

        now = self.clock()
        if not self.focus.update_topic(previous.id, label, keywords, now):
            # deleted under us (housekeeping); next cycle starts fresh
            logger.warning("Focus session %s vanished during update", previous.id)
            return FocusCycleResult(FocusOutcome.NO_TOPIC)

        previous.topic_label = label
        previous.keywords = keywords
        previous.last_updated = now
        return FocusCycleResult(FocusOutcome.UPDATED, previous)

    # ------------------------------------------------------------------ #
    # Classifier calls
    # ------------------------------------------------------------------ #

    def detect_drift(self, previous: FocusSession, recent: List[UserActivity]) -> bool:
        try:
            answer = self.classifier.classify(focus_drift_prompt(previous, recent))
        except Exception as e:
            logger.error("Drift detection failed: %s", e)
            return False

        drifted = parse_yes_no(answer)
        if drifted is None:
            logger.warning("Unreadable drift answer %r, assuming still focused", answer)
            return False
        return drifted

    def detect_topic(self, recent: List[UserActivity]) -> Optional[str]:
        try:
            answer = self.classifier.classify(focus_area_prompt(recent))
        except Exception as e:
            logger.error("Topic detection failed: %s", e)
            return None
        return parse_label(answer)

    def summarize(self, keywords: List[str], fallback: str) -> str:
        if len(keywords) == 1:
            return keywords[0]

        try:
            answer = self.classifier.classify(summarize_focus_prompt(keywords))
        except Exception as e:
            logger.error("Focus summarization failed: %s", e)
            return fallback

        return parse_label(answer) or fallback
