# monitoring/doomscroll.py

from __future__ import annotations

import logging
from typing import Callable, Optional

from focuslens.core.clock import now_ms
from focuslens.core.models.settings import Settings
from focuslens.core.services.attention_service import AttentionService
from focuslens.core.services.notification_service import NotificationKind, NotificationService

logger = logging.getLogger(__name__)


class DoomscrollDetector:
    """
    Rate alert: counts attention items in a short trailing window and
    fires a (cooldown-limited) notification.

    By default it fires when the count reaches the threshold, i.e. when
    content is being consumed too fast. `doomscroll_legacy_inverted`
    restores the older rule that fired while the count was *below* the
    threshold; which one is right is still an open product question.
    """

    def __init__(
        self,
        attentions: AttentionService,
        notifications: NotificationService,
        settings: Callable[[], Settings],
        clock: Callable[[], int] = now_ms,
    ):
        self.attentions = attentions
        self.notifications = notifications
        self.settings = settings
        self.clock = clock

    def is_doomscrolling(self, count: int, settings: Settings) -> bool:
        threshold = settings.doomscroll_items_threshold
        if settings.doomscroll_legacy_inverted:
            return count < threshold
        return count >= threshold

    def run(self) -> Optional[int]:
        """Returns the item count when the alert condition held, else None."""
        settings = self.settings()
        now = self.clock()
        count = self.attentions.count_after(now - settings.doomscroll_window_ms)

        logger.debug(
            "Doomscroll check: %d items in %d ms (threshold %d)",
            count,
            settings.doomscroll_window_ms,
            settings.doomscroll_items_threshold,
        )

        if not self.is_doomscrolling(count, settings):
            return None

        self.notifications.notify(NotificationKind.DOOMSCROLLING_DETECTED, now)
        return count
