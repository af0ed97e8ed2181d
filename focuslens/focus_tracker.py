# focus_tracker.py

from __future__ import annotations

import logging
from typing import Callable, Optional

from focuslens.core.clock import now_ms
from focuslens.core.database import Database
from focuslens.core.models.settings import Settings
from focuslens.core.services.activity_service import ActivityService
from focuslens.core.services.activity_summary_service import ActivitySummaryService
from focuslens.core.services.attention_service import AttentionService
from focuslens.core.services.focus_service import FocusService
from focuslens.core.services.notification_service import (
    INotifier,
    LogNotifier,
    NotificationService,
)
from focuslens.core.services.settings_service import SettingsService
from focuslens.core.services.state_service import StateService
from focuslens.core.services.visit_service import VisitService
from focuslens.inference.activity_summarizer import ActivitySummarizer
from focuslens.inference.classifier import OpenAICompatibleClassifier, TextClassifier
from focuslens.inference.focus_engine import FocusEngine
from focuslens.inference.scheduler import InferenceScheduler
from focuslens.inference.website_summarizer import WebsiteSummarizer
from focuslens.monitoring.attention_scorer import AttentionScorer, AttentionTick, ScorerConfig
from focuslens.monitoring.doomscroll import DoomscrollDetector
from focuslens.monitoring.housekeeping import Housekeeping
from focuslens.monitoring.inactivity_closer import InactivityCloser
from focuslens.monitoring.periodic_task import PeriodicTask

logger = logging.getLogger(__name__)


class FocusTracker:
    """
    Wires the store, the attention scorer and the background tasks together.

    - start():
        * starts the attention scorer sampling loop
        * starts the inference scheduler (summaries, focus engine, doomscroll)
        * starts the inactivity closer and housekeeping loops
    - stop() / shutdown(): stops every loop.

    All components talk only through the store; the scorer writes
    attention records, the background tasks read them back through the
    aggregation window.
    """

    def __init__(
        self,
        db: Database,
        *,
        classifier: Optional[TextClassifier] = None,
        notifier: Optional[INotifier] = None,
        clock: Callable[[], int] = now_ms,
        on_tick: Optional[Callable[[AttentionTick], None]] = None,
    ):
        self.db = db
        self.clock = clock

        # ---- services (one per table) ----
        self.settings_service = SettingsService(db)
        self.state = StateService(db)
        self.visits = VisitService(db)
        self.attentions = AttentionService(db)
        self.focus = FocusService(db)
        self.summaries = ActivitySummaryService(db)
        self.activity = ActivityService(self.visits, self.attentions, clock=clock)

        self.settings: Settings = self.settings_service.load()
        self.notifications = NotificationService(
            self.state,
            notifier or LogNotifier(),
            cooldown_ms=self.settings.notification_cooldown_ms,
        )
        self.classifier = classifier or OpenAICompatibleClassifier()

        # ---- attention scorer ----
        self.scorer = AttentionScorer(
            ScorerConfig.from_settings(self.settings),
            on_attention=self._on_sustained_attention,
            on_tick=on_tick,
            clock=clock,
        )

        # ---- background work ----
        self.focus_engine = FocusEngine(
            self.focus,
            self.activity,
            self.classifier,
            self.notifications,
            clock=clock,
        )
        self.summarizer = WebsiteSummarizer(self.visits, self.attentions, self.classifier)
        self.activity_summarizer = ActivitySummarizer(
            self.summaries,
            self.activity,
            self.classifier,
            clock=clock,
        )
        self.doomscroll = DoomscrollDetector(
            self.attentions,
            self.notifications,
            settings=lambda: self.settings,
            clock=clock,
        )
        self.inactivity_closer = InactivityCloser(
            self.focus,
            self.activity,
            self.notifications,
            threshold_ms=lambda: self.settings.focus_inactivity_threshold_ms,
            clock=clock,
        )
        self.housekeeping = Housekeeping(
            self.state,
            self.visits,
            self.attentions,
            self.focus,
            self.summaries,
            interval_ms=lambda: self.settings.retention_interval_ms,
            clock=clock,
        )

        self.scheduler = InferenceScheduler(interval_s=lambda: self.settings.inference_interval_s)
        self.scheduler.register("website-summarization", self.summarizer.run)
        self.scheduler.register("activity-summary", self.activity_summarizer.run)
        self.scheduler.register("focus-detection", self.focus_engine.run)
        self.scheduler.register("doomscroll-detection", self.doomscroll.run)

        self._inactivity_task = PeriodicTask(
            "focus-inactivity",
            self.inactivity_closer.run,
            lambda: self.settings.inactivity_check_interval_s,
        )
        self._housekeeping_task = PeriodicTask(
            "housekeeping",
            self.housekeeping.run,
            lambda: self.settings.housekeeping_check_interval_s,
        )

        self.settings_service.add_listener(self._on_settings_changed)
        self._running = False

    # ------------------------------------------------------------------ #
    # PUBLIC API
    # ------------------------------------------------------------------ #

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self.scorer.start()
        self.scheduler.start()
        self._inactivity_task.start()
        self._housekeeping_task.start()
        logger.info("Focus tracker started (db=%s)", self.db.db_path)

    def stop(self) -> None:
        for component in (
            self.scorer,
            self.scheduler,
            self._inactivity_task,
            self._housekeeping_task,
        ):
            try:
                component.stop()
            except Exception:
                logger.exception("Failed to stop %s", type(component).__name__)
        self._running = False

    def shutdown(self) -> None:
        """Stop every loop and close the database."""
        self.stop()
        try:
            self.db.close()
        except Exception as e:
            logger.error("Closing database failed: %s", e)

    def update_settings(self, **changes) -> Settings:
        return self.settings_service.update(**changes)

    # ------------------------------------------------------------------ #
    # CALLBACKS
    # ------------------------------------------------------------------ #

    def _on_sustained_attention(self, url: str, text: str, timestamp: int) -> None:
        self.attentions.add_text(url, text, timestamp)

    def _on_settings_changed(self, settings: Settings) -> None:
        self.settings = settings
        self.notifications.cooldown_ms = settings.notification_cooldown_ms
        self.scorer.apply_settings(settings)
