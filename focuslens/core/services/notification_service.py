# core/services/notification_service.py

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum

from focuslens.core.services.state_service import StateService

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    FOCUS_DRIFT_DETECTED = "FOCUS_DRIFT_DETECTED"
    FOCUS_INACTIVITY_DETECTED = "FOCUS_INACTIVITY_DETECTED"
    DOOMSCROLLING_DETECTED = "DOOMSCROLLING_DETECTED"


MESSAGES = {
    NotificationKind.FOCUS_DRIFT_DETECTED: (
        "Focus changed",
        "Looks like you moved on to a new topic.",
    ),
    NotificationKind.FOCUS_INACTIVITY_DETECTED: (
        "Focus session ended",
        "No reading activity for a while, so the current focus was closed.",
    ),
    NotificationKind.DOOMSCROLLING_DETECTED: (
        "Doomscrolling?",
        "You have been skimming through a lot of content very quickly.",
    ),
}


class INotifier(ABC):
    """Delivery backend for notifications (desktop popup, log, UI bridge...)."""

    @abstractmethod
    def deliver(self, kind: NotificationKind, title: str, message: str) -> None:
        raise NotImplementedError


class LogNotifier(INotifier):
    def deliver(self, kind: NotificationKind, title: str, message: str) -> None:
        logger.info("[%s] %s: %s", kind.value, title, message)


class DesktopNotifier(INotifier):
    """System notification through plyer."""

    def __init__(self, app_name: str = "FocusLens", timeout: int = 5):
        self.app_name = app_name
        self.timeout = timeout

    def deliver(self, kind: NotificationKind, title: str, message: str) -> None:
        from plyer import notification

        notification.notify(
            title=title,
            message=message,
            app_name=self.app_name,
            timeout=self.timeout,
        )


class NotificationService:
    """
    Fire-and-forget `notify(kind, timestamp)`.

    Each kind has its own cooldown stamp in `app_state`; calls inside the
    cooldown are dropped. Delivery problems are logged, never raised.
    """

    KEY_PREFIX = "last-notification:"

    def __init__(self, state: StateService, notifier: INotifier | None = None, cooldown_ms: int = 60000):
        self.state = state
        self.notifier = notifier or LogNotifier()
        self.cooldown_ms = cooldown_ms

    def notify(self, kind: NotificationKind, timestamp: int) -> bool:
        """Returns True when the notification was actually delivered."""
        key = self.KEY_PREFIX + kind.value
        try:
            last = self.state.get_int(key)
            if last is not None and timestamp - last < self.cooldown_ms:
                logger.debug("Notification %s suppressed by cooldown", kind.value)
                return False

            self.state.set_int(key, timestamp)
            title, message = MESSAGES[kind]
            self.notifier.deliver(kind, title, message)
            return True
        except Exception as e:
            logger.error("Error sending notification %s: %s", kind.value, e)
            return False
