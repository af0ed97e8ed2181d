# inference/scheduler.py

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple, Union

from focuslens.monitoring.i_monitor import IMonitor

logger = logging.getLogger(__name__)


class InferenceScheduler(IMonitor):
    """
    Runs classifier-backed tasks one at a time on a single worker thread.

    A cycle queues every registered task (a task already waiting is not
    queued twice); once the queue drains the worker waits `interval_s`
    and queues the next cycle. A failing task is logged and skipped.
    """

    def __init__(self, interval_s: Union[float, Callable[[], float]] = 30.0):
        self._interval = interval_s
        self._tasks: List[Tuple[str, Callable[[], object]]] = []
        self._queue: Deque[Tuple[str, Callable[[], object]]] = deque()
        self._queue_lock = threading.Lock()

        self._running = False
        self._wakeup = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def interval_s(self) -> float:
        value = self._interval() if callable(self._interval) else self._interval
        return max(0.01, float(value))

    def register(self, name: str, task: Callable[[], object]) -> None:
        self._tasks.append((name, task))

    @property
    def pending(self) -> List[str]:
        with self._queue_lock:
            return [name for name, _ in self._queue]

    def schedule_cycle(self) -> None:
        with self._queue_lock:
            waiting = {name for name, _ in self._queue}
            for name, task in self._tasks:
                if name not in waiting:
                    self._queue.append((name, task))
        self._wakeup.set()

    def run_pending(self) -> int:
        """Drain the queue on the calling thread. Returns tasks executed."""
        executed = 0
        while True:
            with self._queue_lock:
                if not self._queue:
                    return executed
                name, task = self._queue.popleft()

            try:
                logger.debug("Processing task %s", name)
                task()
            except Exception:
                logger.exception("Task %s failed", name)
            executed += 1

    # ------------------------------------------------------------------ #
    # IMonitor
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(target=self._loop, name="inference-scheduler", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._running = False
        self._wakeup.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None

    def _loop(self) -> None:
        self.schedule_cycle()
        while self._running:
            self._wakeup.clear()
            self.run_pending()
            if not self._running:
                break
            # idle: wait for the next cycle (or an explicit schedule_cycle)
            if not self._wakeup.wait(self.interval_s):
                self.schedule_cycle()
