"""
Daily aggregation of analyzed patterns.
"""

from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, List

from app.core.logging import get_logger
from app.core.models import TrendDay
from app.core.pattern_store import PatternStore
from app.core.utils import ensure_utc, utc_now

logger = get_logger(__name__)


class TrendAggregator:
    """Summarises the pattern store by UTC calendar day and category."""

    def __init__(self, store: PatternStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    def trends(self, window_days: int = 30) -> List[TrendDay]:
        """
        Count patterns per day over the last ``window_days`` days.

        Only days with at least one pattern are returned, oldest first.

        Raises:
            ValueError: If ``window_days`` is less than 1
        """
        if window_days < 1:
            raise ValueError(f"Trend window must be at least 1 day, got {window_days}")

        now = ensure_utc(self.clock())
        cutoff = now - timedelta(days=window_days)

        by_day: Dict = defaultdict(Counter)
        for pattern in self.store.all():
            created_at = ensure_utc(pattern.created_at)
            if cutoff <= created_at <= now:
                by_day[created_at.date()][pattern.category] += 1

        trend = [
            TrendDay(
                date=day,
                count=sum(categories.values()),
                counts_by_category=dict(categories),
            )
            for day, categories in sorted(by_day.items())
        ]

        logger.debug(
            "Computed mutation trends",
            extra={"window_days": window_days, "days_with_patterns": len(trend)}
        )
        return trend
