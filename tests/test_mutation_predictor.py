"""
Tests for mutation prediction.
"""

import numpy as np
import pytest
from datetime import timedelta

from app.core.feature_extraction import FeatureExtractor
from app.core.models import RiskLevel
from app.core.mutation_predictor import (
    MutationPredictor,
    build_training_pairs,
    estimate_time_to_mutation,
)
from app.core.pattern_store import PatternStore
from app.core.regression import MLPStrategy, RidgeStrategy
from app.core.similarity import SimilarityMatcher
from app.core.variant_synthesis import VariantSynthesizer
from tests.conftest import FIXED_NOW, fixed_clock, make_pattern


def _neighbour_features(count, seed=11):
    rng = np.random.default_rng(seed)
    base = rng.uniform(0.2, 0.8, 50)
    return base, [np.clip(base + rng.normal(0.0, 0.01, 50), 0.0, 1.0) for _ in range(count)]


class TestMutationPredictor:
    """Prediction from similar historical patterns."""

    def setup_method(self):
        self.store = PatternStore(capacity=100, clock=fixed_clock)
        self.predictor = MutationPredictor(
            matcher=SimilarityMatcher(self.store),
            synthesizer=VariantSynthesizer(extractor=FeatureExtractor(clock=fixed_clock)),
            regressor=MLPStrategy(hidden_layers=(32, 16), random_seed=3),
        )

    def _populate(self, count, category="Bank Fraud"):
        base, neighbours = _neighbour_features(count)
        for index, features in enumerate(neighbours):
            self.store.append(make_pattern(
                f"n{index}",
                features,
                category=category,
                created_at=FIXED_NOW - timedelta(days=index),
            ))
        query = make_pattern(
            "query",
            base,
            category=category,
            script="Your bank account will be blocked urgently, police will arrest you",
        )
        self.store.append(query)
        return query

    def test_five_neighbours_give_three_variants(self):
        query = self._populate(5)

        prediction = self.predictor.predict(query)

        assert prediction.similar_count == 5
        assert prediction.confidence == pytest.approx(0.5)
        assert len(prediction.predicted_variants) == 3
        assert all(variant.script for variant in prediction.predicted_variants)
        assert all(
            0.0 <= variant.mutation_probability <= 1.0
            for variant in prediction.predicted_variants
        )
        assert not prediction.is_cold_start
        assert isinstance(prediction.risk_level, RiskLevel)

    def test_prediction_sets_source_risk_score(self):
        query = self._populate(4)

        prediction = self.predictor.predict(query)

        expected = self.predictor.synthesizer.mean_urgency(prediction.predicted_variants)
        assert query.risk_score == pytest.approx(expected)
        assert query.risk_score > 0

    def test_cold_start_below_three_neighbours(self):
        query = self._populate(2)

        prediction = self.predictor.predict(query)

        assert prediction.is_cold_start
        assert prediction.predicted_variants == []
        assert prediction.confidence == 0.0
        assert prediction.time_to_mutation_days == 0
        assert prediction.risk_level == RiskLevel.LOW
        assert prediction.similar_count == 2
        assert query.risk_score == 0.0

    def test_other_categories_do_not_count(self):
        base, neighbours = _neighbour_features(5)
        for index, features in enumerate(neighbours):
            self.store.append(make_pattern(f"job-{index}", features, category="Job Offer"))
        query = make_pattern("query", base, category="Bank Fraud")

        assert self.predictor.predict(query).is_cold_start

    def test_confidence_is_capped(self):
        self.store = PatternStore(capacity=100, clock=fixed_clock)
        predictor = MutationPredictor(
            matcher=SimilarityMatcher(self.store, max_results=20),
            synthesizer=VariantSynthesizer(),
            regressor=RidgeStrategy(),
        )
        base, neighbours = _neighbour_features(12)
        for index, features in enumerate(neighbours):
            self.store.append(make_pattern(f"n{index}", features))

        prediction = predictor.predict(make_pattern("query", base))

        assert prediction.similar_count == 12
        assert prediction.confidence == pytest.approx(0.95)

    def test_time_to_mutation_follows_neighbour_gaps(self):
        query = self._populate(4)
        self.predictor.regressor = RidgeStrategy()

        prediction = self.predictor.predict(query)

        neighbours = [match.pattern for match in self.predictor.matcher.similar(query)]
        assert prediction.time_to_mutation_days == estimate_time_to_mutation(neighbours)

    def test_min_similar_patterns_must_allow_training(self):
        with pytest.raises(ValueError):
            MutationPredictor(
                matcher=SimilarityMatcher(self.store),
                synthesizer=VariantSynthesizer(),
                min_similar_patterns=1,
            )


class TestPredictorHelpers:
    """Training pair construction and time estimates."""

    def test_training_pairs_shift_by_one(self):
        patterns = [make_pattern(f"p{index}", [float(index), 1.0]) for index in range(4)]

        inputs, targets = build_training_pairs(patterns)

        assert inputs.shape == (3, 2)
        assert targets.shape == (3, 2)
        assert inputs[:, 0].tolist() == [0.0, 1.0, 2.0]
        assert targets[:, 0].tolist() == [1.0, 2.0, 3.0]

    def test_time_to_mutation_mean_gap(self):
        patterns = [make_pattern(f"p{day}", [1.0], created_at=FIXED_NOW + timedelta(days=day)) for day in (0, 2, 4)]
        assert estimate_time_to_mutation(patterns) == 2

    def test_time_to_mutation_can_be_negative(self):
        patterns = [make_pattern(f"p{day}", [1.0], created_at=FIXED_NOW + timedelta(days=day)) for day in (4, 2, 0)]
        assert estimate_time_to_mutation(patterns) == -2

    def test_time_to_mutation_rounds_half_up(self):
        patterns = [
            make_pattern("a", [1.0], created_at=FIXED_NOW),
            make_pattern("b", [1.0], created_at=FIXED_NOW + timedelta(days=2, hours=12)),
        ]
        assert estimate_time_to_mutation(patterns) == 3

    def test_time_to_mutation_default(self):
        assert estimate_time_to_mutation([make_pattern("a", [1.0])]) == 7
        assert estimate_time_to_mutation([], default_days=5) == 5
