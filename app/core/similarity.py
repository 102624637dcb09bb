"""
Cosine-similarity search over the pattern store.
"""

from typing import List, Optional, Sequence

import numpy as np

from app.core.logging import get_logger
from app.core.models import ScamPattern, SimilarPattern
from app.core.pattern_store import PatternStore

logger = get_logger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero magnitude. Vectors of different
    length are compared over their common prefix.
    """
    first = np.asarray(a, dtype=float)
    second = np.asarray(b, dtype=float)
    size = min(first.size, second.size)
    first, second = first[:size], second[:size]

    magnitude = np.linalg.norm(first) * np.linalg.norm(second)
    if magnitude == 0 or not np.isfinite(magnitude):
        return 0.0

    return float(np.dot(first, second) / magnitude)


class SimilarityMatcher:
    """Linear-scan nearest neighbours of a pattern within its category."""

    def __init__(self, store: PatternStore, min_similarity: float = 0.7, max_results: int = 10):
        self.store = store
        self.min_similarity = min_similarity
        self.max_results = max_results

    def similar(
        self,
        pattern: ScamPattern,
        min_similarity: Optional[float] = None,
        max_results: Optional[int] = None,
    ) -> List[SimilarPattern]:
        """
        Find stored patterns of the same category similar to ``pattern``.

        The query pattern itself is never returned. Only scores strictly above
        ``min_similarity`` are kept; results are sorted by descending score and
        truncated to ``max_results``.
        """
        threshold = self.min_similarity if min_similarity is None else min_similarity
        limit = self.max_results if max_results is None else max_results

        matches = []
        for candidate in self.store.by_category(pattern.category):
            if candidate.id == pattern.id:
                continue
            score = cosine_similarity(pattern.features, candidate.features)
            if score > threshold:
                matches.append(SimilarPattern(pattern=candidate, score=score))

        # Stable sort keeps store order between equal scores
        matches.sort(key=lambda match: match.score, reverse=True)
        matches = matches[:limit]

        logger.debug(
            "Similarity scan finished",
            extra={
                "pattern_id": pattern.id,
                "category": pattern.category,
                "similar_count": len(matches),
            }
        )
        return matches
