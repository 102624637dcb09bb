"""
Domain records shared by the mutation engine components.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple


class RiskLevel(Enum):
    """Risk classification of a predicted mutation."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ScamPattern:
    """
    One observed scam script with its extracted feature vector.

    Everything except ``risk_score`` is fixed once the pattern is created;
    ``risk_score`` is written only by the mutation prediction that consumes
    the pattern.
    """
    id: str
    category: str
    script: str
    features: Tuple[float, ...]
    created_at: datetime
    location: Optional[str] = None
    target_profile: Optional[str] = None
    risk_score: float = 0.0


@dataclass
class MutationVariant:
    """A synthesized candidate for the next version of a scam script."""
    id: str
    category: str
    script: str
    features: Tuple[float, ...]
    mutation_probability: float
    created_at: datetime
    rule: str
    location: Optional[str] = None
    target_profile: Optional[str] = None


@dataclass
class SimilarPattern:
    """A stored pattern together with its similarity to a query pattern."""
    pattern: ScamPattern
    score: float


@dataclass
class MutationPrediction:
    """Result of one mutation prediction request."""
    source_pattern: ScamPattern
    predicted_variants: List[MutationVariant] = field(default_factory=list)
    confidence: float = 0.0
    time_to_mutation_days: int = 0
    risk_level: RiskLevel = RiskLevel.LOW
    similar_count: int = 0

    @property
    def is_cold_start(self) -> bool:
        return not self.predicted_variants


@dataclass
class TrendDay:
    """Pattern counts for one UTC calendar day."""
    date: date
    count: int
    counts_by_category: Dict[str, int] = field(default_factory=dict)
