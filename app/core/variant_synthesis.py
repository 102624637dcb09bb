"""
Rule-guided synthesis of candidate scam-script mutations.
"""

import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from app.core.feature_extraction import FeatureExtractor
from app.core.logging import get_logger
from app.core.models import MutationVariant, RiskLevel, ScamPattern
from app.core.utils import new_pattern_id

logger = get_logger(__name__)


@dataclass(frozen=True)
class MutationRule:
    """A single text rewrite applied to a scam script."""
    name: str
    pattern: str
    replacement: str

    def apply(self, script: str) -> str:
        return re.sub(self.pattern, self.replacement, script, flags=re.IGNORECASE)


DEFAULT_RULES = (
    MutationRule(
        name="authority_swap",
        pattern=r'police|officer|constable',
        replacement='customs officer',
    ),
    MutationRule(
        name="threat_softening",
        pattern=r'arrest|detain',
        replacement='account suspension',
    ),
    MutationRule(
        name="deadline_framing",
        pattern=r'immediately|urgent',
        replacement='within 24 hours',
    ),
)


def blend_features(source: Sequence[float], predicted: Sequence[float], weight: float) -> Tuple[float, ...]:
    """
    Linear blend ``source * (1 - weight) + predicted * weight``.

    Missing predicted values count as 0 so the result keeps the source length.
    """
    return tuple(
        float(value) * (1 - weight) + (float(predicted[index]) if index < len(predicted) else 0.0) * weight
        for index, value in enumerate(source)
    )


def risk_level_for(mean_urgency: float) -> RiskLevel:
    if mean_urgency > 0.7:
        return RiskLevel.CRITICAL
    if mean_urgency > 0.5:
        return RiskLevel.HIGH
    if mean_urgency > 0.3:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class VariantSynthesizer:
    """
    Turns a predicted feature vector into concrete candidate scripts.

    Variant ``i`` applies rule ``i % len(rules)``, blends the source features
    towards the prediction with weight ``blend_start + i * blend_step`` and is
    assigned probability ``probability_start - i * probability_step``: the
    further a variant drifts, the less likely it is modelled to be.
    """

    def __init__(
        self,
        extractor: Optional[FeatureExtractor] = None,
        rules: Sequence[MutationRule] = DEFAULT_RULES,
        variant_count: int = 3,
        blend_start: float = 0.3,
        blend_step: float = 0.2,
        probability_start: float = 0.8,
        probability_step: float = 0.1,
        id_factory: Callable[[], str] = new_pattern_id,
    ):
        if not rules:
            raise ValueError("At least one mutation rule is required")
        if probability_step <= 0:
            raise ValueError("Mutation probability must strictly decrease across variants")
        if round(probability_start - (variant_count - 1) * probability_step, 6) <= 0:
            raise ValueError(
                f"{variant_count} variants starting at {probability_start} with step "
                f"{probability_step} would yield a non-positive mutation probability"
            )

        self.extractor = extractor or FeatureExtractor()
        self.rules = tuple(rules)
        self.variant_count = variant_count
        self.blend_start = blend_start
        self.blend_step = blend_step
        self.probability_start = probability_start
        self.probability_step = probability_step
        self.id_factory = id_factory

    def synthesize(
        self,
        source: ScamPattern,
        predicted_features: Sequence[float],
    ) -> Tuple[List[MutationVariant], RiskLevel]:
        """
        Produce the candidate variants for ``source`` and their risk level.

        Returns:
            Tuple[List[MutationVariant], RiskLevel]: Variants in rule order and
            the risk level derived from their mean urgency score
        """
        variants = []
        for index in range(self.variant_count):
            rule = self.rules[index % len(self.rules)]
            weight = self.blend_start + index * self.blend_step

            variants.append(MutationVariant(
                id=self.id_factory(),
                category=source.category,
                script=rule.apply(source.script),
                features=blend_features(source.features, predicted_features, weight),
                mutation_probability=round(self.probability_start - index * self.probability_step, 6),
                created_at=source.created_at + timedelta(days=index + 1),
                rule=rule.name,
                location=source.location,
                target_profile=source.target_profile,
            ))

        risk_level = risk_level_for(self.mean_urgency(variants))

        logger.debug(
            "Synthesized mutation variants",
            extra={
                "pattern_id": source.id,
                "variant_count": len(variants),
                "risk_level": risk_level.value,
            }
        )
        return variants, risk_level

    def mean_urgency(self, variants: Sequence[MutationVariant]) -> float:
        if not variants:
            return 0.0
        return sum(self.extractor.urgency_score(variant.script) for variant in variants) / len(variants)
