"""
Mutation prediction from a pattern's nearest historical neighbours.

For every request the predictor:

1. finds similar patterns of the same category,
2. treats the similarity-ranked neighbours as a sequence and pairs each
   neighbour's features with the next neighbour's features,
3. fits a local regression on those pairs and runs it on the query features,
4. hands the predicted vector to the variant synthesizer.

Neighbour order is similarity rank, not capture time. Training pairs and
the time-to-mutation estimate both inherit that order.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from app.core.logging import get_logger
from app.core.models import MutationPrediction, RiskLevel, ScamPattern, SimilarPattern
from app.core.regression import LocalRegressor, MLPStrategy
from app.core.similarity import SimilarityMatcher
from app.core.utils import ensure_utc, round_half_up
from app.core.variant_synthesis import VariantSynthesizer

logger = get_logger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def build_training_pairs(patterns: Sequence[ScamPattern]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Pair each pattern's features with the following pattern's features.

    Returns:
        Tuple[np.ndarray, np.ndarray]: ``(inputs, targets)`` with
        ``len(patterns) - 1`` rows each
    """
    inputs = [pattern.features for pattern in patterns[:-1]]
    targets = [pattern.features for pattern in patterns[1:]]
    return np.asarray(inputs, dtype=float), np.asarray(targets, dtype=float)


def estimate_time_to_mutation(patterns: Sequence[ScamPattern], default_days: int = 7) -> int:
    """
    Mean gap in days between consecutive patterns, rounded to an integer.

    Gaps follow the given order and may be negative. Fewer than two patterns
    yield ``default_days``.
    """
    if len(patterns) < 2:
        return default_days

    gaps = [
        (ensure_utc(current.created_at) - ensure_utc(previous.created_at)).total_seconds() / SECONDS_PER_DAY
        for previous, current in zip(patterns, patterns[1:])
    ]
    return round_half_up(sum(gaps) / len(gaps))


class MutationPredictor:
    """Predicts likely mutations of a scam pattern."""

    def __init__(
        self,
        matcher: SimilarityMatcher,
        synthesizer: VariantSynthesizer,
        regressor: Optional[LocalRegressor] = None,
        min_similar_patterns: int = 3,
        confidence_cap: float = 0.95,
        confidence_scale: int = 10,
        default_time_to_mutation_days: int = 7,
    ):
        # One training pair needs two neighbours
        if min_similar_patterns < 2:
            raise ValueError(
                f"min_similar_patterns must be at least 2, got {min_similar_patterns}"
            )

        self.matcher = matcher
        self.synthesizer = synthesizer
        self.regressor = regressor or MLPStrategy()
        self.min_similar_patterns = min_similar_patterns
        self.confidence_cap = confidence_cap
        self.confidence_scale = confidence_scale
        self.default_time_to_mutation_days = default_time_to_mutation_days

    def predict(self, pattern: ScamPattern) -> MutationPrediction:
        """
        Predict how ``pattern`` is likely to mutate.

        With fewer than ``min_similar_patterns`` neighbours the result is a
        zero-confidence, low-risk prediction without variants.
        """
        similar = self.matcher.similar(pattern)

        if len(similar) < self.min_similar_patterns:
            logger.info(
                "Not enough similar patterns for a mutation prediction",
                extra={
                    "pattern_id": pattern.id,
                    "category": pattern.category,
                    "similar_count": len(similar),
                }
            )
            return MutationPrediction(
                source_pattern=pattern,
                predicted_variants=[],
                confidence=0.0,
                time_to_mutation_days=0,
                risk_level=RiskLevel.LOW,
                similar_count=len(similar),
            )

        neighbours = [match.pattern for match in similar]
        predicted_features = self.predict_next_features(pattern, neighbours)

        variants, risk_level = self.synthesizer.synthesize(pattern, predicted_features)
        pattern.risk_score = self.synthesizer.mean_urgency(variants)

        prediction = MutationPrediction(
            source_pattern=pattern,
            predicted_variants=variants,
            confidence=self.confidence_for(similar),
            time_to_mutation_days=estimate_time_to_mutation(
                neighbours, self.default_time_to_mutation_days
            ),
            risk_level=risk_level,
            similar_count=len(similar),
        )

        logger.info(
            "Mutation prediction completed",
            extra={
                "pattern_id": pattern.id,
                "category": pattern.category,
                "similar_count": len(similar),
                "confidence": prediction.confidence,
                "risk_level": risk_level.value,
                "time_to_mutation_days": prediction.time_to_mutation_days,
                "strategy": self.regressor.name,
            }
        )
        return prediction

    def predict_next_features(self, pattern: ScamPattern, neighbours: Sequence[ScamPattern]) -> List[float]:
        """Fit the local regression on ``neighbours`` and apply it to ``pattern``."""
        inputs, targets = build_training_pairs(neighbours)
        predicted = self.regressor.fit_predict(inputs, targets, np.asarray(pattern.features, dtype=float))
        return [float(value) for value in predicted]

    def confidence_for(self, similar: Sequence[SimilarPattern]) -> float:
        return min(self.confidence_cap, len(similar) / self.confidence_scale)
