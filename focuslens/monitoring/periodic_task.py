# monitoring/periodic_task.py

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Union

from focuslens.monitoring.i_monitor import IMonitor

logger = logging.getLogger(__name__)


class PeriodicTask(IMonitor):
    """
    Runs `target` every `interval_s` seconds on a daemon thread.

    `interval_s` may be a callable so a settings change takes effect on the
    next wait. An exception in `target` is logged and the loop keeps going.
    """

    def __init__(
        self,
        name: str,
        target: Callable[[], object],
        interval_s: Union[float, Callable[[], float]],
        *,
        run_immediately: bool = True,
    ) -> None:
        self.name = name
        self.target = target
        self._interval = interval_s
        self.run_immediately = run_immediately

        self._running = False
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval_s(self) -> float:
        value = self._interval() if callable(self._interval) else self._interval
        return max(0.01, float(value))

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------ #
    # IMonitor interface
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        if self._running:
            return

        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._running = False
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None

    # ------------------------------------------------------------------ #
    # Internal loop
    # ------------------------------------------------------------------ #

    def run_once(self) -> None:
        try:
            self.target()
        except Exception:
            # never let one bad cycle kill the thread
            logger.exception("Periodic task %s failed", self.name)

    def _loop(self) -> None:
        if self.run_immediately:
            self.run_once()

        while self._running:
            if self._stop_event.wait(self.interval_s):
                break
            self.run_once()
