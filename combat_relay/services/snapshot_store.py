"""In-memory holder of the current snapshot and its bounded history"""

import threading
from collections import deque
from itertools import islice

from combat_relay.core.config import DEFAULT_HISTORY_CAPACITY
from combat_relay.models import StatsSnapshot


class SnapshotStore:
    """Current snapshot plus a FIFO history ring.

    Invariants:
    - ``current()`` is always the last snapshot passed to ``replace()``,
      or a zero snapshot before the first one / after ``reset()``
    - history never holds more than ``capacity`` entries; the oldest is
      evicted first
    - replace-and-append happens under one lock, so readers never observe
      a new current without its history entry (or the reverse)
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_CAPACITY):
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._lock = threading.Lock()
        self._current = StatsSnapshot.zero()
        self._history: deque[StatsSnapshot] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def replace(self, snapshot: StatsSnapshot) -> None:
        with self._lock:
            self._current = snapshot
            self._history.append(snapshot)

    def current(self) -> StatsSnapshot:
        with self._lock:
            return self._current

    def history(self, limit: int | None = None) -> list[StatsSnapshot]:
        """Return the newest ``limit`` snapshots, oldest first."""
        with self._lock:
            if limit is None:
                return list(self._history)
            if limit <= 0:
                return []
            start = max(len(self._history) - limit, 0)
            return list(islice(self._history, start, None))

    def reset(self) -> StatsSnapshot:
        """Swap in a fresh zero snapshot and clear history. Returns the zero snapshot."""
        zero = StatsSnapshot.zero()
        with self._lock:
            self._current = zero
            self._history.clear()
        return zero

    def __len__(self) -> int:
        with self._lock:
            return len(self._history)
