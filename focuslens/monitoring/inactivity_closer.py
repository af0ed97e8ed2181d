# monitoring/inactivity_closer.py

from __future__ import annotations

import logging
from typing import Callable, Optional

from focuslens.core.clock import now_ms
from focuslens.core.models.focus_session import FocusSession
from focuslens.core.services.activity_service import ActivityService
from focuslens.core.services.focus_service import FocusService
from focuslens.core.services.notification_service import NotificationKind, NotificationService

logger = logging.getLogger(__name__)


class InactivityCloser:
    """
    Closes the open focus session after a stretch of silence.

    Pure timeout, no classifier: if the aggregation window over
    `threshold_ms` is empty and a session is open, its interval ends now.
    """

    def __init__(
        self,
        focus: FocusService,
        activity: ActivityService,
        notifications: Optional[NotificationService] = None,
        *,
        threshold_ms: Callable[[], int] | int = 5 * 60 * 1000,
        clock: Callable[[], int] = now_ms,
    ):
        self.focus = focus
        self.activity = activity
        self.notifications = notifications
        self._threshold_ms = threshold_ms
        self.clock = clock

    @property
    def threshold_ms(self) -> int:
        value = self._threshold_ms() if callable(self._threshold_ms) else self._threshold_ms
        return int(value)

    def run(self) -> Optional[FocusSession]:
        """Returns the session it closed, if any."""
        if self.focus.get_active() is None:
            return None

        if self.activity.all_activity_for_last_ms(self.threshold_ms):
            return None

        now = self.clock()
        closed = self.focus.close_active(now)
        if closed is None:
            return None

        logger.info(
            "Closed focus %r after %d ms without activity",
            closed.topic_label,
            self.threshold_ms,
        )
        if self.notifications is not None:
            self.notifications.notify(NotificationKind.FOCUS_INACTIVITY_DETECTED, now)
        return closed
