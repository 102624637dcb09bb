"""
Local regression strategies used to predict the next feature vector.

Each strategy fits a fresh estimator on the handful of (features, next
features) pairs built from one query's neighbours and predicts the output
for the query vector. Nothing is retained between calls. Outputs are
bounded to [0, 1].
"""

import warnings
from typing import Optional, Protocol, Sequence, Tuple

import numpy as np
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import Ridge
from sklearn.neighbors import KNeighborsRegressor
from sklearn.neural_network import MLPRegressor

from app.core.logging import get_logger

logger = get_logger(__name__)

# Keeps logit() finite for targets at or beyond the [0, 1] bounds
_LOGIT_EPSILON = 1e-3


class LocalRegressor(Protocol):
    """Fits on (inputs, targets) and predicts the target for ``query``."""

    name: str

    def fit_predict(self, inputs: np.ndarray, targets: np.ndarray, query: np.ndarray) -> np.ndarray:
        ...


def _logit(values: np.ndarray) -> np.ndarray:
    clipped = np.clip(values, _LOGIT_EPSILON, 1 - _LOGIT_EPSILON)
    return np.log(clipped / (1 - clipped))


def _sigmoid(values: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-np.clip(values, -500, 500)))


def _check_shapes(inputs: np.ndarray, targets: np.ndarray, query: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    inputs = np.atleast_2d(np.asarray(inputs, dtype=float))
    targets = np.atleast_2d(np.asarray(targets, dtype=float))
    query = np.asarray(query, dtype=float).reshape(1, -1)

    if inputs.shape[0] != targets.shape[0]:
        raise ValueError(
            f"Inputs and targets differ in length: {inputs.shape[0]} != {targets.shape[0]}"
        )
    if inputs.shape[0] == 0:
        raise ValueError("At least one training pair is required")
    if query.shape[1] != inputs.shape[1]:
        raise ValueError(
            f"Query has {query.shape[1]} features, training inputs have {inputs.shape[1]}"
        )
    return inputs, targets, query


class MLPStrategy:
    """
    Small feed-forward network trained for a fixed number of passes.

    The network regresses logit-transformed targets and its output goes
    through the logistic function, so predictions saturate inside (0, 1).
    """

    name = "mlp"

    def __init__(
        self,
        hidden_layers: Sequence[int] = (128, 64, 32),
        epochs: int = 10,
        batch_size: int = 2,
        learning_rate: float = 0.001,
        random_seed: Optional[int] = None,
    ):
        self.hidden_layers = tuple(hidden_layers)
        self.epochs = epochs
        self.batch_size = batch_size
        self.learning_rate = learning_rate
        self.random_seed = random_seed

    def fit_predict(self, inputs: np.ndarray, targets: np.ndarray, query: np.ndarray) -> np.ndarray:
        inputs, targets, query = _check_shapes(inputs, targets, query)

        model = MLPRegressor(
            hidden_layer_sizes=self.hidden_layers,
            activation='relu',
            solver='adam',
            learning_rate_init=self.learning_rate,
            batch_size=min(self.batch_size, inputs.shape[0]),
            max_iter=self.epochs,
            shuffle=True,
            random_state=self.random_seed,
        )

        # A fixed pass budget never converges on purpose
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=ConvergenceWarning)
            model.fit(inputs, _logit(targets))

        raw = np.asarray(model.predict(query)).reshape(-1)
        return _sigmoid(raw)


class RidgeStrategy:
    """Closed-form ridge least squares; cheapest and fully interpretable."""

    name = "ridge"

    def __init__(self, alpha: float = 1.0):
        self.alpha = alpha

    def fit_predict(self, inputs: np.ndarray, targets: np.ndarray, query: np.ndarray) -> np.ndarray:
        inputs, targets, query = _check_shapes(inputs, targets, query)

        model = Ridge(alpha=self.alpha)
        model.fit(inputs, targets)
        return np.clip(np.asarray(model.predict(query)).reshape(-1), 0.0, 1.0)


class KNNStrategy:
    """Distance-weighted average of the targets of the closest inputs."""

    name = "knn"

    def __init__(self, n_neighbors: int = 3):
        self.n_neighbors = n_neighbors

    def fit_predict(self, inputs: np.ndarray, targets: np.ndarray, query: np.ndarray) -> np.ndarray:
        inputs, targets, query = _check_shapes(inputs, targets, query)

        model = KNeighborsRegressor(
            n_neighbors=max(1, min(self.n_neighbors, inputs.shape[0])),
            weights='distance',
        )
        model.fit(inputs, targets)
        return np.clip(np.asarray(model.predict(query)).reshape(-1), 0.0, 1.0)


def build_regressor(
    strategy: str = "mlp",
    hidden_layers: Sequence[int] = (128, 64, 32),
    epochs: int = 10,
    batch_size: int = 2,
    learning_rate: float = 0.001,
    ridge_alpha: float = 1.0,
    knn_neighbors: int = 3,
    random_seed: Optional[int] = None,
) -> LocalRegressor:
    """Create the configured local regression strategy."""
    if strategy == "mlp":
        return MLPStrategy(
            hidden_layers=hidden_layers,
            epochs=epochs,
            batch_size=batch_size,
            learning_rate=learning_rate,
            random_seed=random_seed,
        )
    if strategy == "ridge":
        return RidgeStrategy(alpha=ridge_alpha)
    if strategy == "knn":
        return KNNStrategy(n_neighbors=knn_neighbors)

    raise ValueError(f"Unknown regression strategy: {strategy}")
