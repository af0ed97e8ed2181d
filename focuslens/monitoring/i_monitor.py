# monitoring/i_monitor.py

from abc import ABC, abstractmethod


class IMonitor(ABC):
    """
    Base interface for any background component in FocusLens.
    Examples:
      - AttentionScorer (sampling loop)
      - PeriodicTask (inactivity closer, housekeeping)
      - InferenceScheduler
    """

    @abstractmethod
    def start(self) -> None:
        """Start monitoring (spawn the loop thread)."""
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        """Stop monitoring and join the loop thread."""
        raise NotImplementedError
