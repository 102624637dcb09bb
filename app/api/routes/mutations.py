"""
Pattern analysis, mutation prediction and trend endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.core.engine import MutationEngine
from app.core.logging import ContextLogger, get_logger
from app.core.models import ScamPattern
from app.schemas import (
    AnalysisResponse,
    AnalyzeRequest,
    PatternResponse,
    PredictionResponse,
    SimilarPatternResponse,
    TrendDayResponse,
)

logger = get_logger(__name__)
router = APIRouter()


def get_engine(request: Request) -> MutationEngine:
    """Engine created at application startup."""
    return request.app.state.engine


def _request_logger(request: Request) -> ContextLogger:
    return ContextLogger(logger, {"correlation_id": getattr(request.state, "correlation_id", None)})


def _require_pattern(engine: MutationEngine, pattern_id: str) -> ScamPattern:
    pattern = engine.get_pattern(pattern_id)
    if pattern is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pattern not found: {pattern_id}"
        )
    return pattern


@router.post("/patterns", response_model=PatternResponse, status_code=status.HTTP_201_CREATED)
async def analyze_pattern(
    request_data: AnalyzeRequest,
    request: Request,
    engine: MutationEngine = Depends(get_engine),
):
    """Analyze a scam script and add it to the pattern store."""
    pattern = await engine.analyze_async(
        request_data.script,
        location=request_data.location,
        target_profile=request_data.targetProfile,
    )
    _request_logger(request).info("Pattern stored", pattern_id=pattern.id, category=pattern.category)
    return PatternResponse.from_pattern(pattern)


@router.get("/patterns", response_model=List[PatternResponse])
async def list_patterns(
    category: Optional[str] = Query(None, description="Only patterns of this category"),
    engine: MutationEngine = Depends(get_engine),
):
    patterns = engine.patterns_by_category(category) if category else engine.all_patterns()
    return [PatternResponse.from_pattern(pattern) for pattern in patterns]


@router.get("/patterns/recent", response_model=List[PatternResponse])
async def list_recent_patterns(
    hours: float = Query(24, gt=0, description="Look-back window in hours"),
    engine: MutationEngine = Depends(get_engine),
):
    return [PatternResponse.from_pattern(pattern) for pattern in engine.recent_patterns(hours)]


@router.get("/patterns/{pattern_id}", response_model=PatternResponse)
async def get_pattern(pattern_id: str, engine: MutationEngine = Depends(get_engine)):
    return PatternResponse.from_pattern(_require_pattern(engine, pattern_id))


@router.get("/patterns/{pattern_id}/similar", response_model=List[SimilarPatternResponse])
async def get_similar_patterns(pattern_id: str, engine: MutationEngine = Depends(get_engine)):
    pattern = _require_pattern(engine, pattern_id)
    return [SimilarPatternResponse.from_match(match) for match in engine.similar_patterns(pattern)]


@router.post("/patterns/{pattern_id}/predictions", response_model=PredictionResponse)
async def predict_pattern_mutations(
    pattern_id: str,
    request: Request,
    engine: MutationEngine = Depends(get_engine),
):
    """Predict mutations of an already analyzed pattern."""
    pattern = _require_pattern(engine, pattern_id)
    prediction = await engine.predict_mutations_async(pattern)
    _request_logger(request).info(
        "Prediction served",
        pattern_id=pattern.id,
        risk_level=prediction.risk_level.value,
        cold_start=prediction.is_cold_start,
    )
    return PredictionResponse.from_prediction(prediction)


@router.post("/predictions", response_model=AnalysisResponse)
async def analyze_and_predict(
    request_data: AnalyzeRequest,
    request: Request,
    engine: MutationEngine = Depends(get_engine),
):
    """Analyze a script and immediately predict its mutations."""
    result = await engine.analyze_and_predict_async(
        request_data.script,
        location=request_data.location,
        target_profile=request_data.targetProfile,
    )
    _request_logger(request).info(
        "Prediction served",
        pattern_id=result.pattern.id,
        risk_level=result.prediction.risk_level.value,
        cold_start=result.prediction.is_cold_start,
    )
    return AnalysisResponse.from_result(result)


@router.get("/insights/mutation-trends", response_model=List[TrendDayResponse])
async def get_mutation_trends(
    days: int = Query(30, ge=1, description="Trend window in days"),
    engine: MutationEngine = Depends(get_engine),
):
    return [TrendDayResponse.from_trend_day(day) for day in engine.get_mutation_trends(days)]
