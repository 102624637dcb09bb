"""
Prometheus metrics configuration and collection.
"""

from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Response

# Define application metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['endpoint']
)

PATTERNS_ANALYZED = Counter(
    'scam_patterns_analyzed_total',
    'Total scam scripts turned into patterns',
    ['category']
)

PATTERN_STORE_SIZE = Gauge(
    'scam_pattern_store_size',
    'Number of patterns currently held in the pattern store'
)

MUTATION_PREDICTIONS = Counter(
    'mutation_predictions_total',
    'Total mutation predictions',
    ['risk_level', 'cold_start']
)

MUTATION_PREDICTION_DURATION = Histogram(
    'mutation_prediction_duration_seconds',
    'Time spent fitting and running one mutation prediction',
    ['strategy']
)

CLASSIFIER_FALLBACKS = Counter(
    'category_classifier_fallbacks_total',
    'Classifier failures replaced by the default category',
    ['provider']
)

PERSISTENCE_OPERATIONS = Counter(
    'pattern_persistence_operations_total',
    'Pattern repository operations',
    ['operation', 'status']
)


def get_metrics_response() -> Response:
    """Generate Prometheus metrics response."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


class MetricsCollector:
    """Helper class for collecting engine metrics."""

    @staticmethod
    def record_pattern(category: str, store_size: int):
        PATTERNS_ANALYZED.labels(category=category).inc()
        PATTERN_STORE_SIZE.set(store_size)

    @staticmethod
    def record_prediction(risk_level: str, cold_start: bool, strategy: str, duration: float):
        """Record a finished prediction; cold starts skip the duration histogram."""
        MUTATION_PREDICTIONS.labels(
            risk_level=risk_level,
            cold_start="true" if cold_start else "false"
        ).inc()
        if not cold_start:
            MUTATION_PREDICTION_DURATION.labels(strategy=strategy).observe(duration)

    @staticmethod
    def record_classifier_fallback(provider: str):
        CLASSIFIER_FALLBACKS.labels(provider=provider).inc()

    @staticmethod
    def record_persistence(operation: str, status: str):
        PERSISTENCE_OPERATIONS.labels(operation=operation, status=status).inc()
