"""
Bounded, time-ordered store of analyzed scam patterns.
"""

import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Callable, Deque, Iterable, List, Optional

from app.core.logging import get_logger
from app.core.models import ScamPattern
from app.core.utils import ensure_utc, utc_now

logger = get_logger(__name__)


class PatternStore:
    """
    Append-only FIFO of patterns with a hard capacity.

    Once full, every append evicts the oldest pattern. Writers are serialised
    by a lock; readers get a list snapshot that may miss an append still in
    flight.
    """

    def __init__(self, capacity: int = 1000, clock: Callable[[], datetime] = utc_now):
        if capacity < 1:
            raise ValueError(f"Store capacity must be positive, got {capacity}")

        self.capacity = capacity
        self.clock = clock
        self._patterns: Deque[ScamPattern] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, pattern: ScamPattern) -> Optional[ScamPattern]:
        """
        Add a pattern, evicting the oldest one when the store is full.

        Returns:
            Optional[ScamPattern]: The evicted pattern, if any
        """
        with self._lock:
            evicted = self._patterns[0] if len(self._patterns) == self.capacity else None
            self._patterns.append(pattern)

        if evicted is not None:
            logger.debug(
                "Evicted oldest pattern",
                extra={"pattern_id": evicted.id, "capacity": self.capacity}
            )
        return evicted

    def extend(self, patterns: Iterable[ScamPattern]) -> int:
        """Append patterns in order; returns how many were appended."""
        appended = 0
        for pattern in patterns:
            self.append(pattern)
            appended += 1
        return appended

    def all(self) -> List[ScamPattern]:
        """Snapshot of every stored pattern, oldest first."""
        with self._lock:
            return list(self._patterns)

    def by_category(self, category: str) -> List[ScamPattern]:
        """Snapshot of the patterns with the given category, oldest first."""
        return [pattern for pattern in self.all() if pattern.category == category]

    def recent(self, hours: float = 24) -> List[ScamPattern]:
        """Patterns created within the last ``hours`` hours."""
        cutoff = self.clock() - timedelta(hours=hours)
        return [pattern for pattern in self.all() if ensure_utc(pattern.created_at) > cutoff]

    def get(self, pattern_id: str) -> Optional[ScamPattern]:
        for pattern in self.all():
            if pattern.id == pattern_id:
                return pattern
        return None

    def __contains__(self, pattern_id: object) -> bool:
        return self.get(pattern_id) is not None

    def __len__(self) -> int:
        return len(self._patterns)
