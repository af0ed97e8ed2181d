# monitoring/housekeeping.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from focuslens.core.clock import now_ms
from focuslens.core.services.activity_summary_service import ActivitySummaryService
from focuslens.core.services.attention_service import AttentionService
from focuslens.core.services.focus_service import FocusService
from focuslens.core.services.state_service import StateService
from focuslens.core.services.visit_service import VisitService

logger = logging.getLogger(__name__)

LAST_RUN_KEY = "housekeeping-last-run"


@dataclass
class SweepReport:
    ran: bool
    cutoff: Optional[int] = None
    deleted: Dict[str, int] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)


class Housekeeping:
    """
    Keeps the store bounded.

    Runs at most once per retention interval (gated by the persisted
    last-run stamp) and deletes, category by category, every record older
    than `now - interval`. One failing category does not stop the others.
    Website summaries live on the visit rows and go with them.
    """

    def __init__(
        self,
        state: StateService,
        visits: VisitService,
        attentions: AttentionService,
        focus: FocusService,
        summaries: ActivitySummaryService,
        *,
        interval_ms: Callable[[], int] | int,
        clock: Callable[[], int] = now_ms,
    ):
        self.state = state
        self.visits = visits
        self.attentions = attentions
        self.focus = focus
        self.summaries = summaries
        self._interval_ms = interval_ms
        self.clock = clock

    @property
    def interval_ms(self) -> int:
        value = self._interval_ms() if callable(self._interval_ms) else self._interval_ms
        return int(value)

    def _categories(self) -> List[Tuple[str, Callable[[int], int]]]:
        return [
            ("website_visits", self.visits.delete_opened_before),
            ("text_attention", self.attentions.delete_text_before),
            ("image_attention", self.attentions.delete_images_before),
            ("video_attention", self.attentions.delete_videos_before),
            ("focus_sessions", self.focus.delete_updated_before),
            ("activity_summaries", self.summaries.delete_before),
        ]

    def run(self, force: bool = False) -> SweepReport:
        now = self.clock()
        interval = self.interval_ms

        last_run = self.state.get_int(LAST_RUN_KEY)
        if not force and last_run is not None and now - last_run < interval:
            return SweepReport(ran=False)

        cutoff = now - interval
        report = SweepReport(ran=True, cutoff=cutoff)

        for name, delete in self._categories():
            try:
                report.deleted[name] = delete(cutoff)
            except Exception as e:
                logger.error("Housekeeping failed for %s: %s", name, e)
                report.failed.append(name)

        self.state.set_int(LAST_RUN_KEY, now)
        logger.info("Housekeeping removed %s (cutoff %d)", report.deleted, cutoff)
        return report
