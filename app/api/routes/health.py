"""
Health check endpoint for system monitoring.
"""

from fastapi import APIRouter, Request
from pydantic import BaseModel
from datetime import datetime
from typing import Dict, Any
import time

from app.core.logging import get_logger
from app.core.metrics import get_metrics_response
from app.core.utils import utc_now
from app.database.connection import check_database_health

logger = get_logger(__name__)

router = APIRouter()

# Application start time for uptime calculation
app_start_time = time.time()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str  # "healthy", "degraded"
    timestamp: datetime
    version: str
    components: Dict[str, str]
    metrics: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """
    Health check endpoint that returns system status.

    Reports the pattern store size and, when persistence is enabled, the
    database connectivity. The service stays usable without the database,
    so a failing database only degrades the status.
    """
    engine = getattr(request.app.state, "engine", None)
    db_engine = getattr(request.app.state, "db_engine", None)

    components = {"engine": "healthy" if engine is not None else "unavailable"}
    if db_engine is not None:
        components["database"] = "healthy" if check_database_health(db_engine) else "degraded"
    else:
        components["database"] = "disabled"

    overall = "healthy" if all(state in ("healthy", "disabled") for state in components.values()) else "degraded"

    health_data = {
        "status": overall,
        "timestamp": utc_now(),
        "version": request.app.state.settings.app_version,
        "components": components,
        "metrics": {
            "uptime": int(time.time() - app_start_time),
            "storedPatterns": len(engine.store) if engine is not None else 0,
        }
    }

    logger.info(
        "Health check performed",
        extra={"status": overall, "uptime": health_data["metrics"]["uptime"]}
    )
    return HealthResponse(**health_data)


@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.

    Returns system metrics in Prometheus format for monitoring.
    """
    return get_metrics_response()
