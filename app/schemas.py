from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date as DateType, datetime

from app.core.engine import AnalysisResult
from app.core.models import MutationPrediction, MutationVariant, ScamPattern, SimilarPattern, TrendDay

# --- Request Schemas ---

class AnalyzeRequest(BaseModel):
    script: str = Field(..., min_length=1, description="Raw scam script text")
    location: Optional[str] = Field(None, max_length=200)
    targetProfile: Optional[str] = Field(None, max_length=200)

# --- Response Schemas ---

class PatternResponse(BaseModel):
    id: str
    category: str
    script: str
    features: List[float]
    createdAt: datetime
    location: Optional[str] = None
    targetProfile: Optional[str] = None
    riskScore: float = 0.0

    @classmethod
    def from_pattern(cls, pattern: ScamPattern) -> "PatternResponse":
        return cls(
            id=pattern.id,
            category=pattern.category,
            script=pattern.script,
            features=list(pattern.features),
            createdAt=pattern.created_at,
            location=pattern.location,
            targetProfile=pattern.target_profile,
            riskScore=pattern.risk_score,
        )

class VariantResponse(BaseModel):
    id: str
    category: str
    script: str
    description: str  # script preview, at most 100 characters plus ellipsis
    features: List[float]
    mutationProbability: float
    createdAt: datetime
    rule: str

    @classmethod
    def from_variant(cls, variant: MutationVariant) -> "VariantResponse":
        description = variant.script if len(variant.script) <= 100 else variant.script[:100] + "..."
        return cls(
            id=variant.id,
            category=variant.category,
            script=variant.script,
            description=description,
            features=list(variant.features),
            mutationProbability=variant.mutation_probability,
            createdAt=variant.created_at,
            rule=variant.rule,
        )

class PredictionResponse(BaseModel):
    sourcePatternId: str
    predictedVariants: List[VariantResponse] = []
    confidence: float
    timeToMutationDays: int
    riskLevel: str
    similarCount: int

    @classmethod
    def from_prediction(cls, prediction: MutationPrediction) -> "PredictionResponse":
        return cls(
            sourcePatternId=prediction.source_pattern.id,
            predictedVariants=[VariantResponse.from_variant(v) for v in prediction.predicted_variants],
            confidence=prediction.confidence,
            timeToMutationDays=prediction.time_to_mutation_days,
            riskLevel=prediction.risk_level.value,
            similarCount=prediction.similar_count,
        )

class AnalysisResponse(BaseModel):
    pattern: PatternResponse
    prediction: PredictionResponse

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalysisResponse":
        return cls(
            pattern=PatternResponse.from_pattern(result.pattern),
            prediction=PredictionResponse.from_prediction(result.prediction),
        )

class SimilarPatternResponse(BaseModel):
    pattern: PatternResponse
    score: float

    @classmethod
    def from_match(cls, match: SimilarPattern) -> "SimilarPatternResponse":
        return cls(pattern=PatternResponse.from_pattern(match.pattern), score=match.score)

class TrendDayResponse(BaseModel):
    date: DateType
    count: int
    countsByCategory: Dict[str, int]

    @classmethod
    def from_trend_day(cls, day: TrendDay) -> "TrendDayResponse":
        return cls(date=day.date, count=day.count, countsByCategory=day.counts_by_category)
