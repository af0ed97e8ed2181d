# monitoring/attention_scorer.py

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional

from focuslens.core.clock import now_ms
from focuslens.core.models.settings import Settings
from focuslens.monitoring.i_monitor import IMonitor
from focuslens.monitoring.page_snapshot import ContentNode, PageSnapshot, Rect

logger = logging.getLogger(__name__)


MIN_TEXT_LENGTH = 20
TOP_N = 3
SCROLL_SETTLE_MS = 150          # scroll considered finished after this silence
SKIM_VELOCITY_PX_S = 800.0      # faster than this is skimming, not reading

IGNORED_TAGS = {
    "nav", "header", "footer", "aside", "button", "input", "select",
    "textarea", "script", "style", "noscript", "template",
}
IGNORED_TOKENS = {
    "nav", "menu", "header", "footer", "sidebar", "advertisement",
    "banner", "cookie", "popup", "modal",
}
MAIN_CONTAINERS = {"article", "main"}


@dataclass
class ScorerConfig:
    sustained_threshold_ms: int = 3000
    idle_threshold_ms: int = 30000
    words_per_minute: int = 150
    debug_mode: bool = False
    show_overlay: bool = False
    tick_interval_ms: int = 300
    debounce_ms: int = 150
    skim_velocity_px_s: float = SKIM_VELOCITY_PX_S

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "ScorerConfig":
        config = cls(
            sustained_threshold_ms=settings.sustained_threshold_ms,
            idle_threshold_ms=settings.idle_threshold_ms,
            words_per_minute=settings.words_per_minute,
            debug_mode=settings.debug_mode,
            show_overlay=settings.show_overlay,
        )
        return replace(config, **overrides)


@dataclass
class AttentionCandidate:
    index: int                      # position in this tick's snapshot
    key: str                        # identity that survives across ticks
    text: str
    score: int
    reasons: List[str]
    bounds: Rect
    cognitively_attended: bool = False
    sustained_duration: int = 0


@dataclass
class SustainedAttentionState:
    candidate_key: str
    text: str
    total_words: int
    started_at: int
    accumulated_dwell_ms: int = 0
    words_read: float = 0.0
    reading_progress_pct: float = 0.0
    confidence_pct: float = 0.0
    attended: bool = False


@dataclass
class AttentionTick:
    """Per-tick diagnostics for debug overlays and logs."""
    timestamp: int
    message: str
    top_candidates: List[AttentionCandidate] = field(default_factory=list)
    sustained: Optional[SustainedAttentionState] = None
    scroll_velocity: float = 0.0
    is_page_active: bool = False
    candidate_count: int = 0


def count_words(text: str) -> int:
    return len(text.split())


class AttentionScorer(IMonitor):
    """
    Decides, tick by tick, which visible element the user is reading and
    whether that reading has lasted long enough to count.

    The page side pushes the latest PageSnapshot with `submit_snapshot` and
    reports scroll / resize / mutation / input bursts with the `notify_*`
    methods; bursts are debounced into an early tick, otherwise ticks come
    at a fixed cadence. `tick()` is the pure, testable core.

    When attention on one candidate crosses the sustained threshold, one
    text attention record is handed to `on_attention(url, text, timestamp)`.
    """

    def __init__(
        self,
        config: Optional[ScorerConfig] = None,
        *,
        on_attention: Optional[Callable[[str, str, int], object]] = None,
        on_tick: Optional[Callable[[AttentionTick], None]] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.config = config or ScorerConfig()
        self.on_attention = on_attention
        self.on_tick = on_tick
        self.clock = clock

        self._lock = threading.RLock()
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._wakeup = threading.Event()

        self._reset_tracking_state()

    def _reset_tracking_state(self) -> None:
        now = self.clock()
        self._snapshot: Optional[PageSnapshot] = None
        self._last_input_at = now
        self._last_signal_at = now
        self._scroll_y: Optional[float] = None
        self._snapshot_scroll_y: Optional[float] = None
        self._last_scroll_at: Optional[int] = None
        self._last_tick_at: Optional[int] = None
        self._last_emitted_key: Optional[str] = None

        self.scroll_velocity = 0.0
        self.is_scrolling = False
        self.is_page_active = False
        self.sustained: Optional[SustainedAttentionState] = None
        self.top_candidates: List[AttentionCandidate] = []

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    def update_config(self, **changes) -> None:
        """
        Swap thresholds in place. Tracking restarts so dwell measured under
        the old threshold is not credited under the new one.
        """
        with self._lock:
            self.config = replace(self.config, **changes)
            self.sustained = None
            self._last_emitted_key = None
        logger.info("Attention scorer reconfigured: %s", self.config)

    def apply_settings(self, settings: Settings) -> None:
        self.update_config(
            sustained_threshold_ms=settings.sustained_threshold_ms,
            idle_threshold_ms=settings.idle_threshold_ms,
            words_per_minute=settings.words_per_minute,
            debug_mode=settings.debug_mode,
            show_overlay=settings.show_overlay,
        )

    # ------------------------------------------------------------------ #
    # Signals from the page
    # ------------------------------------------------------------------ #

    def submit_snapshot(self, snapshot: PageSnapshot) -> None:
        with self._lock:
            previous = self._snapshot
            self._snapshot = snapshot
            if previous is not None and previous.url != snapshot.url:
                # navigation: nothing carries over to the new page
                self.sustained = None
                self._last_emitted_key = None
                self._scroll_y = None
                self._snapshot_scroll_y = None

    def notify_scroll(self, scroll_y: float, timestamp: Optional[int] = None) -> None:
        now = self.clock() if timestamp is None else timestamp
        with self._lock:
            self._observe_scroll(scroll_y, now)
        self._signal(now)

    def notify_resize(self, timestamp: Optional[int] = None) -> None:
        self._signal(self.clock() if timestamp is None else timestamp)

    def notify_mutation(self, timestamp: Optional[int] = None) -> None:
        self._signal(self.clock() if timestamp is None else timestamp)

    def notify_input(self, timestamp: Optional[int] = None) -> None:
        now = self.clock() if timestamp is None else timestamp
        with self._lock:
            self._last_input_at = now
        self._signal(now)

    def _signal(self, now: int) -> None:
        self._last_signal_at = now
        self._wakeup.set()

    def _observe_scroll(self, scroll_y: float, now: int) -> None:
        reference = self._last_scroll_at if self._last_scroll_at is not None else self._last_tick_at
        if self._scroll_y is not None and reference is not None:
            elapsed = max(1, now - reference)
            self.scroll_velocity = abs(scroll_y - self._scroll_y) / elapsed * 1000.0
        self._scroll_y = scroll_y
        self._last_scroll_at = now
        self.is_scrolling = True
        self._last_input_at = now

    # ------------------------------------------------------------------ #
    # IMonitor interface
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._loop, name="attention-scorer", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._running = False
        self._wakeup.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=1.0)
        self._thread = None

    def _loop(self) -> None:
        while self._running:
            triggered = self._wakeup.wait(self.config.tick_interval_ms / 1000.0)
            if not self._running:
                break

            if triggered:
                self._wakeup.clear()
                self._wait_for_quiet()

            try:
                self.tick()
            except Exception:
                logger.exception("Attention tick failed")

    def _wait_for_quiet(self) -> None:
        """Trailing-edge debounce, capped at one tick interval."""
        waited = 0
        while self._running and waited < self.config.tick_interval_ms:
            quiet_for = self.clock() - self._last_signal_at
            remaining = self.config.debounce_ms - quiet_for
            if remaining <= 0:
                return
            step = min(remaining, self.config.tick_interval_ms - waited)
            time.sleep(step / 1000.0)
            waited += step

    # ------------------------------------------------------------------ #
    # Core logic (pure per tick, easy to unit-test)
    # ------------------------------------------------------------------ #

    def tick(self, now: Optional[int] = None) -> AttentionTick:
        now = self.clock() if now is None else now
        with self._lock:
            diagnostics = self._tick_locked(now)
            self._last_tick_at = now

        if self.on_tick is not None:
            try:
                self.on_tick(diagnostics)
            except Exception:
                logger.exception("on_tick callback failed")
        return diagnostics

    def _tick_locked(self, now: int) -> AttentionTick:
        snapshot = self._snapshot
        if snapshot is None:
            self._clear()
            return AttentionTick(timestamp=now, message="Waiting for page content")

        # a snapshot only reports scrolling that no signal has reported yet
        if self._snapshot_scroll_y is None:
            if self._scroll_y is None:
                self._scroll_y = snapshot.scroll_y
        elif (
            snapshot.scroll_y != self._snapshot_scroll_y
            and snapshot.scroll_y != self._scroll_y
        ):
            self._observe_scroll(snapshot.scroll_y, now)
        self._snapshot_scroll_y = snapshot.scroll_y

        if self._last_scroll_at is None or now - self._last_scroll_at > SCROLL_SETTLE_MS:
            self.is_scrolling = False
            self.scroll_velocity = 0.0

        idle = now - self._last_input_at > self.config.idle_threshold_ms
        self.is_page_active = snapshot.is_visible and snapshot.has_focus and not idle

        if not self.is_page_active:
            self._clear()
            return self._diagnostics(now, "User is idle" if idle else "Page is not active", 0)

        candidates = self.score_candidates(snapshot)
        self.top_candidates = candidates[:TOP_N]

        if not candidates:
            # nothing readable on screen is a normal outcome
            self._clear()
            return self._diagnostics(now, "No readable content in view", 0)

        top = candidates[0]
        interval = 0 if self._last_tick_at is None else max(0, now - self._last_tick_at)
        state = self.sustained

        if (
            state is not None
            and state.candidate_key == top.key
            and self.scroll_velocity < self.config.skim_velocity_px_s
        ):
            state.accumulated_dwell_ms += interval
        else:
            state = self._bind(top, now)

        self._update_reading_estimate(state)
        top.sustained_duration = state.accumulated_dwell_ms

        if state.accumulated_dwell_ms >= self.config.sustained_threshold_ms:
            top.cognitively_attended = True
            if not state.attended:
                state.attended = True
                self._last_emitted_key = state.candidate_key
                self._emit(snapshot.url, top.text, now)

        return self._diagnostics(now, "Tracking active", len(candidates))

    def _bind(self, candidate: AttentionCandidate, now: int) -> SustainedAttentionState:
        if candidate.key != self._last_emitted_key:
            # a different element took over; it may qualify on its own
            self._last_emitted_key = None

        self.sustained = SustainedAttentionState(
            candidate_key=candidate.key,
            text=candidate.text,
            total_words=count_words(candidate.text),
            started_at=now,
            attended=candidate.key == self._last_emitted_key,
        )
        return self.sustained

    def _clear(self) -> None:
        self.sustained = None
        self.top_candidates = []

    def _update_reading_estimate(self, state: SustainedAttentionState) -> None:
        dwell = state.accumulated_dwell_ms
        words = dwell * self.config.words_per_minute / 60000.0
        state.words_read = min(float(state.total_words), words)
        state.reading_progress_pct = (
            100.0 * state.words_read / state.total_words if state.total_words else 0.0
        )
        threshold = max(1, self.config.sustained_threshold_ms)
        state.confidence_pct = min(100.0, 100.0 * dwell / threshold)

    def _emit(self, url: str, text: str, now: int) -> None:
        logger.debug("Sustained attention on %s: %.60s", url, text)
        if self.on_attention is None:
            return
        try:
            self.on_attention(url, text, now)
        except Exception as e:
            # one lost sample is fine, a dead sampling loop is not
            logger.error("Dropping attention record for %s: %s", url, e)

    def _diagnostics(self, now: int, message: str, count: int) -> AttentionTick:
        return AttentionTick(
            timestamp=now,
            message=message,
            top_candidates=list(self.top_candidates),
            sustained=replace(self.sustained) if self.sustained else None,
            scroll_velocity=self.scroll_velocity,
            is_page_active=self.is_page_active,
            candidate_count=count,
        )

    # ------------------------------------------------------------------ #
    # Scoring
    # ------------------------------------------------------------------ #

    def score_candidates(self, snapshot: PageSnapshot) -> List[AttentionCandidate]:
        """Score every qualifying node in view, best first."""
        viewport = snapshot.viewport
        candidates = []

        for index, node in enumerate(snapshot.nodes):
            if not self._is_candidate(node):
                continue
            if node.rect.intersection_area(viewport) <= 0:
                continue

            score, reasons = self._score_node(node, snapshot)
            candidates.append(
                AttentionCandidate(
                    index=index,
                    key=node.identity,
                    text=node.text.strip(),
                    score=max(0, score),
                    reasons=reasons,
                    bounds=node.rect,
                )
            )

        # ties resolve to document order
        candidates.sort(key=lambda c: (-c.score, c.index))
        return candidates

    @staticmethod
    def _is_candidate(node: ContentNode) -> bool:
        if len(node.text.strip()) < MIN_TEXT_LENGTH:
            return False
        if node.tag.lower() in IGNORED_TAGS:
            return False
        if any(tag in IGNORED_TAGS for tag in node.ancestors):
            return False
        if any(token in IGNORED_TOKENS for token in node.class_tokens):
            return False
        return True

    def _score_node(self, node: ContentNode, snapshot: PageSnapshot):
        viewport = snapshot.viewport
        rect = node.rect
        score = 0
        reasons: List[str] = []

        def add(points: int, reason: str) -> None:
            nonlocal score
            score += points
            reasons.append(f"{reason}({points})")

        add(20, "in-viewport")

        # 1. How much of the element is actually on screen (0-20)
        if rect.area > 0:
            fraction = rect.intersection_area(viewport) / rect.area
            visible_points = int(math.floor(20 * min(1.0, fraction)))
            if visible_points:
                add(visible_points, "visible-area")

        # 2. Closeness to the vertical centre, only when not scrolling (0-25)
        if not self.is_scrolling and snapshot.viewport_height > 0:
            half = snapshot.viewport_height / 2.0
            distance = abs(rect.center[1] - half) / half
            if distance < 1.0:
                center_points = int(math.floor(25 * (1.0 - distance)))
                if center_points:
                    add(center_points, "center-focus")

        # 3. Enough text to be worth reading (0-15, saturates at 60 words)
        words = count_words(node.text)
        length_points = int(math.floor(15 * min(1.0, words / 60.0)))
        if length_points:
            add(length_points, "text-length")

        # 4. Semantic containers
        if self._is_main_content(node):
            add(10, "main-content")
        tag = node.tag.lower()
        if tag == "p":
            add(5, "paragraph")
        elif tag in ("h1", "h2", "h3"):
            add(5, "heading")
        if node.font_weight >= 600:
            add(3, "bold")

        # 5. Pointer (0-15)
        if snapshot.pointer is not None:
            x, y = snapshot.pointer
            if rect.contains(x, y):
                add(15, "mouse-over-text")
            else:
                cx, cy = rect.center
                distance = math.hypot(x - cx, y - cy)
                if distance < 200:
                    proximity = int(math.floor(10 * (1 - distance / 200.0)))
                    if proximity:
                        add(proximity, "proximity")

        # 6. Scroll behaviour
        if self.is_scrolling:
            if self.scroll_velocity > self.config.skim_velocity_px_s:
                add(-15, "fast-scroll")
            else:
                add(10, "slow-scroll")
        else:
            add(10, "no-scroll")

        return score, reasons

    @staticmethod
    def _is_main_content(node: ContentNode) -> bool:
        if node.tag.lower() in MAIN_CONTAINERS:
            return True
        if any(tag in MAIN_CONTAINERS for tag in node.ancestors):
            return True
        return any(role in ("main", "article") for role in node.roles)
