"""
Last-sent value tracking for strip observers.

Continuously varying quantities (gain, trim, meter, signal) are only sent
when they differ from what the surface was last told. The cache holds
those last-sent values; None means "nothing sent since the last reset" and
never equals a real value, so the first send after a reset always goes out.
"""

import threading
from enum import Enum
from typing import Optional


class ObserverState(str, Enum):
    """Binding state of a strip observer; exactly one holds at a time."""

    UNBOUND = "unbound"
    LINK_WAIT = "link_wait"
    BOUND = "bound"


class SnapshotCache:
    """
    Thread-safe last-sent values for one slot.

    Comparison is exact (no tolerance): a value is reported whenever it is
    not identical to the cached one.
    """

    FIELDS = ("gain", "trim", "meter", "signal")

    def __init__(self):
        self._values: dict[str, Optional[float]] = dict.fromkeys(self.FIELDS)
        self._lock = threading.Lock()

    def get(self, field: str) -> Optional[float]:
        with self._lock:
            return self._values[field]

    def update(self, field: str, value: float) -> bool:
        """
        Store value if it differs from the cached one.

        Args:
            field: One of FIELDS
            value: Candidate value

        Returns:
            True if the value changed (and should be sent)
        """
        with self._lock:
            if self._values[field] is not None and self._values[field] == value:
                return False
            self._values[field] = value
            return True

    def invalidate(self, *fields: str) -> None:
        """Forget the last-sent value of the given fields."""
        with self._lock:
            for field in fields:
                self._values[field] = None

    def reset(self) -> None:
        """Forget every last-sent value."""
        self.invalidate(*self.FIELDS)

    def is_reset(self) -> bool:
        with self._lock:
            return all(value is None for value in self._values.values())

    def snapshot(self) -> dict[str, Optional[float]]:
        with self._lock:
            return dict(self._values)

    # Convenience accessors

    @property
    def gain(self) -> Optional[float]:
        return self.get("gain")

    @property
    def trim(self) -> Optional[float]:
        return self.get("trim")

    @property
    def meter(self) -> Optional[float]:
        return self.get("meter")

    @property
    def signal(self) -> Optional[float]:
        return self.get("signal")
