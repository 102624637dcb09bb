"""
Temporal mutation engine.

Entry point tying the pipeline together:

    script -> validation -> classification -> feature extraction
           -> pattern store -> similarity search -> local regression
           -> variant synthesis

Trend aggregation reads the pattern store independently.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from app.core.classification import CategoryClassifier, KeywordCategoryClassifier
from app.core.feature_extraction import FeatureExtractor
from app.core.logging import get_logger
from app.core.metrics import MetricsCollector
from app.core.models import MutationPrediction, ScamPattern, SimilarPattern, TrendDay
from app.core.mutation_predictor import MutationPredictor
from app.core.pattern_store import PatternStore
from app.core.regression import build_regressor
from app.core.similarity import SimilarityMatcher
from app.core.trends import TrendAggregator
from app.core.utils import new_pattern_id, utc_now
from app.core.validation import validate_script
from app.core.variant_synthesis import VariantSynthesizer
from app.database.repository import PatternRepository
from config.settings import MutationSettings

logger = get_logger(__name__)


@dataclass
class AnalysisResult:
    """A freshly analyzed pattern and its mutation prediction."""
    pattern: ScamPattern
    prediction: MutationPrediction


class MutationEngine:
    """Analyzes scam scripts, predicts their mutations and reports trends."""

    def __init__(
        self,
        store: PatternStore,
        extractor: FeatureExtractor,
        predictor: MutationPredictor,
        classifier: Optional[CategoryClassifier] = None,
        trend_aggregator: Optional[TrendAggregator] = None,
        repository: Optional[PatternRepository] = None,
        id_factory: Callable[[], str] = new_pattern_id,
        clock: Callable[[], datetime] = utc_now,
        default_category: str = "Other",
        max_script_length: int = 5000,
    ):
        self.store = store
        self.extractor = extractor
        self.predictor = predictor
        self.classifier = classifier or KeywordCategoryClassifier()
        self.trend_aggregator = trend_aggregator or TrendAggregator(store, clock=clock)
        self.repository = repository
        self.id_factory = id_factory
        self.clock = clock
        self.default_category = default_category
        self.max_script_length = max_script_length

    @classmethod
    def from_settings(
        cls,
        config: MutationSettings,
        classifier: Optional[CategoryClassifier] = None,
        repository: Optional[PatternRepository] = None,
        store: Optional[PatternStore] = None,
        id_factory: Callable[[], str] = new_pattern_id,
        clock: Callable[[], datetime] = utc_now,
    ) -> "MutationEngine":
        """Build an engine with every component configured from ``config``."""
        store = store or PatternStore(capacity=config.store_capacity, clock=clock)
        extractor = FeatureExtractor(
            dimension=config.feature_dimension,
            filler_strategy=config.filler_strategy,
            filler_scale=config.filler_scale,
            random_seed=config.random_seed,
            clock=clock,
        )
        matcher = SimilarityMatcher(
            store,
            min_similarity=config.min_similarity,
            max_results=config.max_similar,
        )
        synthesizer = VariantSynthesizer(
            extractor=extractor,
            variant_count=config.variant_count,
            blend_start=config.blend_weight_start,
            blend_step=config.blend_weight_step,
            probability_start=config.mutation_probability_start,
            probability_step=config.mutation_probability_step,
            id_factory=id_factory,
        )
        regressor = build_regressor(
            strategy=config.regression_strategy,
            hidden_layers=config.hidden_layers,
            epochs=config.training_epochs,
            batch_size=config.training_batch_size,
            learning_rate=config.learning_rate,
            ridge_alpha=config.ridge_alpha,
            knn_neighbors=config.knn_neighbors,
            random_seed=config.random_seed,
        )
        predictor = MutationPredictor(
            matcher,
            synthesizer,
            regressor=regressor,
            min_similar_patterns=config.min_similar_patterns,
            confidence_cap=config.confidence_cap,
            confidence_scale=config.confidence_scale,
            default_time_to_mutation_days=config.default_time_to_mutation_days,
        )

        return cls(
            store=store,
            extractor=extractor,
            predictor=predictor,
            classifier=classifier,
            trend_aggregator=TrendAggregator(store, clock=clock),
            repository=repository,
            id_factory=id_factory,
            clock=clock,
            default_category=config.default_category,
            max_script_length=config.max_script_length,
        )

    def analyze(
        self,
        script: str,
        location: Optional[str] = None,
        target_profile: Optional[str] = None,
    ) -> ScamPattern:
        """
        Turn a raw script into a stored pattern.

        Raises:
            ScriptValidationError: If the script is not non-empty text
        """
        script = validate_script(script, max_length=self.max_script_length)

        pattern = ScamPattern(
            id=self.id_factory(),
            category=self.classify(script),
            script=script,
            features=tuple(self.extractor.extract(script)),
            created_at=self.clock(),
            location=location,
            target_profile=target_profile,
        )

        self.store.append(pattern)
        self._persist(pattern)
        MetricsCollector.record_pattern(pattern.category, len(self.store))

        logger.info(
            "Analyzed scam pattern",
            extra={
                "pattern_id": pattern.id,
                "category": pattern.category,
                "script_length": len(script),
            }
        )
        return pattern

    def classify(self, script: str) -> str:
        """Category for ``script``; classifier failures yield the default category."""
        provider = getattr(self.classifier, "provider", type(self.classifier).__name__)
        try:
            category = self.classifier.classify(script)
        except Exception as e:
            logger.warning(
                f"Category classification failed, using '{self.default_category}': {e}",
                extra={"provider": provider},
                exc_info=True
            )
            MetricsCollector.record_classifier_fallback(provider)
            return self.default_category

        if not category or not category.strip():
            MetricsCollector.record_classifier_fallback(provider)
            return self.default_category
        return category.strip()

    def predict_mutations(self, pattern: ScamPattern) -> MutationPrediction:
        """Predict how ``pattern`` is likely to mutate."""
        start_time = time.perf_counter()
        prediction = self.predictor.predict(pattern)

        MetricsCollector.record_prediction(
            risk_level=prediction.risk_level.value,
            cold_start=prediction.is_cold_start,
            strategy=self.predictor.regressor.name,
            duration=time.perf_counter() - start_time,
        )
        return prediction

    def analyze_and_predict(
        self,
        script: str,
        location: Optional[str] = None,
        target_profile: Optional[str] = None,
    ) -> AnalysisResult:
        pattern = self.analyze(script, location=location, target_profile=target_profile)
        return AnalysisResult(pattern=pattern, prediction=self.predict_mutations(pattern))

    def get_mutation_trends(self, window_days: int = 30) -> List[TrendDay]:
        return self.trend_aggregator.trends(window_days)

    def similar_patterns(self, pattern: ScamPattern) -> List[SimilarPattern]:
        return self.predictor.matcher.similar(pattern)

    def get_pattern(self, pattern_id: str) -> Optional[ScamPattern]:
        return self.store.get(pattern_id)

    def all_patterns(self) -> List[ScamPattern]:
        return self.store.all()

    def patterns_by_category(self, category: str) -> List[ScamPattern]:
        return self.store.by_category(category)

    def recent_patterns(self, hours: float = 24) -> List[ScamPattern]:
        return self.store.recent(hours)

    def warm_start(self, limit: Optional[int] = None) -> int:
        """
        Load persisted patterns into the store.

        Args:
            limit: Most recent patterns to load; defaults to the store capacity

        Returns:
            int: Number of patterns loaded
        """
        if self.repository is None:
            return 0

        patterns = self.repository.load_recent(limit=limit or self.store.capacity)

        # Rows written under another feature dimension cannot be compared
        usable = [pattern for pattern in patterns if len(pattern.features) == self.extractor.dimension]
        skipped = len(patterns) - len(usable)
        if skipped:
            logger.warning(
                "Skipped persisted patterns with a different feature dimension",
                extra={"skipped_patterns": skipped, "feature_dimension": self.extractor.dimension}
            )

        loaded = self.store.extend(usable)
        MetricsCollector.record_persistence("load", "success")
        logger.info("Warm-started pattern store", extra={"loaded_patterns": loaded})
        return loaded

    # Async equivalents run the CPU-bound work off the event loop.

    async def analyze_async(
        self,
        script: str,
        location: Optional[str] = None,
        target_profile: Optional[str] = None,
    ) -> ScamPattern:
        return await asyncio.to_thread(self.analyze, script, location, target_profile)

    async def predict_mutations_async(self, pattern: ScamPattern) -> MutationPrediction:
        return await asyncio.to_thread(self.predict_mutations, pattern)

    async def analyze_and_predict_async(
        self,
        script: str,
        location: Optional[str] = None,
        target_profile: Optional[str] = None,
    ) -> AnalysisResult:
        return await asyncio.to_thread(self.analyze_and_predict, script, location, target_profile)

    def _persist(self, pattern: ScamPattern) -> None:
        if self.repository is None:
            return

        try:
            self.repository.save(pattern)
            MetricsCollector.record_persistence("save", "success")
        except Exception as e:
            # The in-memory store already holds the pattern
            MetricsCollector.record_persistence("save", "error")
            logger.error(
                f"Failed to persist pattern: {e}",
                extra={"pattern_id": pattern.id},
                exc_info=True
            )
