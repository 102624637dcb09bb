"""
Tests for the local regression strategies.
"""

import numpy as np
import pytest

from app.core.regression import (
    KNNStrategy,
    MLPStrategy,
    RidgeStrategy,
    build_regressor,
)


def _training_data(rows=4, dimension=50, seed=0):
    rng = np.random.default_rng(seed)
    inputs = rng.uniform(0.0, 1.0, (rows, dimension))
    targets = np.clip(inputs + rng.normal(0.0, 0.05, (rows, dimension)), 0.0, 1.0)
    query = rng.uniform(0.0, 1.0, dimension)
    return inputs, targets, query


class TestRegressionStrategies:
    """Each strategy yields one bounded value per feature."""

    def setup_method(self):
        self.inputs, self.targets, self.query = _training_data()

    @pytest.mark.parametrize("regressor", [
        MLPStrategy(hidden_layers=(16, 8), random_seed=1),
        RidgeStrategy(),
        KNNStrategy(),
    ])
    def test_prediction_shape_and_bounds(self, regressor):
        predicted = regressor.fit_predict(self.inputs, self.targets, self.query)

        assert predicted.shape == (50,)
        assert np.all(np.isfinite(predicted))
        assert np.all(predicted >= 0.0)
        assert np.all(predicted <= 1.0)

    def test_single_training_pair(self):
        predicted = MLPStrategy(hidden_layers=(8,), random_seed=1).fit_predict(
            self.inputs[:1], self.targets[:1], self.query
        )
        assert predicted.shape == (50,)

    def test_mlp_is_reproducible_with_seed(self):
        first = MLPStrategy(hidden_layers=(16,), random_seed=5).fit_predict(self.inputs, self.targets, self.query)
        second = MLPStrategy(hidden_layers=(16,), random_seed=5).fit_predict(self.inputs, self.targets, self.query)

        np.testing.assert_allclose(first, second)

    def test_knn_returns_exact_target_for_known_input(self):
        predicted = KNNStrategy(n_neighbors=2).fit_predict(self.inputs, self.targets, self.inputs[1])
        np.testing.assert_allclose(predicted, self.targets[1])

    def test_mismatched_lengths_rejected(self):
        with pytest.raises(ValueError):
            RidgeStrategy().fit_predict(self.inputs, self.targets[:2], self.query)

    def test_mismatched_query_rejected(self):
        with pytest.raises(ValueError):
            RidgeStrategy().fit_predict(self.inputs, self.targets, self.query[:10])


class TestBuildRegressor:
    """Strategy selection by name."""

    @pytest.mark.parametrize("name,expected", [
        ("mlp", MLPStrategy),
        ("ridge", RidgeStrategy),
        ("knn", KNNStrategy),
    ])
    def test_known_strategies(self, name, expected):
        regressor = build_regressor(name)
        assert isinstance(regressor, expected)
        assert regressor.name == name

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            build_regressor("transformer")
