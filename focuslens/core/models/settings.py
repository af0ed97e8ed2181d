# core/models/settings.py

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields


TWO_DAYS_MS = 2 * 24 * 60 * 60 * 1000


@dataclass
class Settings:
    """
    Named knobs with their documented defaults.
    Overrides are persisted one key per row in the `settings` table.
    """
    # attention scorer
    sustained_threshold_ms: int = 3000
    idle_threshold_ms: int = 30000
    words_per_minute: int = 150
    debug_mode: bool = False
    show_overlay: bool = False

    # focus sessions
    focus_inactivity_threshold_ms: int = 5 * 60 * 1000
    notification_cooldown_ms: int = 60000

    # housekeeping
    retention_interval_ms: int = TWO_DAYS_MS
    doomscroll_window_ms: int = 30000
    doomscroll_items_threshold: int = 20
    doomscroll_legacy_inverted: bool = False

    # scheduling (seconds)
    inference_interval_s: float = 30.0
    inactivity_check_interval_s: float = 60.0
    housekeeping_check_interval_s: float = 3600.0

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    @classmethod
    def coerce(cls, key: str, value):
        """
        Convert an incoming (possibly string) value to the declared type
        of `key`. Raises KeyError for unknown keys, ValueError for bad values.
        """
        types = {f.name: f.type for f in fields(cls)}
        if key not in types:
            raise KeyError(key)

        declared = types[key]
        if declared in ("bool", bool):
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in ("1", "true", "yes", "on"):
                return True
            if text in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"{key} expects a boolean, got {value!r}")

        if isinstance(value, bool):
            raise ValueError(f"{key} expects a number, got {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"{key} expects a number, got {value!r}") from e
        if not math.isfinite(number):
            raise ValueError(f"{key} must be a finite number")
        if declared in ("int", int):
            number = int(number)

        if number < 0:
            raise ValueError(f"{key} must not be negative")
        return number

    def to_dict(self) -> dict:
        return asdict(self)
