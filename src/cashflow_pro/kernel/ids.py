"""
Time-derived identifiers

Categories, scenarios and projects are keyed by the millisecond they were
created at. The factory never hands out the same value twice, even when two
ids are requested within one millisecond or the clock is frozen in tests.
"""

import threading
from typing import Protocol

from cashflow_pro.kernel.time import TimeProvider, default_time_provider, epoch_millis


class IdFactory(Protocol):
    """Protocol for ID generation strategies"""

    def next_int(self) -> int:
        """Generate a new unique, increasing integer"""
        ...


class TimestampIdFactory:
    """
    Monotonic millisecond ids

    Returns max(now_ms, last + 1), so ids are sortable by creation time and
    strictly increasing for the life of the factory.
    """

    def __init__(self, time_provider: TimeProvider | None = None) -> None:
        self.time_provider = time_provider or default_time_provider
        self._last = 0
        self._lock = threading.Lock()

    def next_int(self) -> int:
        with self._lock:
            candidate = max(epoch_millis(self.time_provider.now()), self._last + 1)
            self._last = candidate
            return candidate


def prefixed_id(prefix: str, id_factory: IdFactory) -> str:
    """
    Build a string id such as "scenario_1736942400000"

    Args:
        prefix: Id namespace ("proj", "scenario")
        id_factory: Source of the numeric part
    """
    return f"{prefix}_{id_factory.next_int()}"


default_id_factory = TimestampIdFactory()
