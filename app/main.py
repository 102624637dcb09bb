"""
Main FastAPI application entry point.
Scam Mutation Engine API: pattern analysis, mutation prediction and trends.
"""

from fastapi import FastAPI, Request, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import time
import uuid
from typing import Optional, Tuple

from sqlalchemy.engine import Engine

from config.settings import Settings, settings
from app.api.routes import health, mutations
from app.core.classification import build_classifier
from app.core.engine import MutationEngine
from app.core.logging import setup_logging, get_logger
from app.core.metrics import REQUEST_COUNT, REQUEST_DURATION
from app.core.utils import utc_now
from app.core.validation import ScriptValidationError
from app.database.connection import create_db_engine, create_session_factory, create_tables
from app.database.repository import PatternRepository

logger = get_logger(__name__)


def build_engine(config: Settings) -> Tuple[MutationEngine, Optional[Engine]]:
    """
    Build the mutation engine and, when persistence is enabled, its database engine.
    """
    classifier = build_classifier(
        provider=config.classifier.provider,
        gemini_api_key=config.classifier.gemini_api_key,
        model_name=config.classifier.model_name,
        timeout_seconds=config.classifier.timeout_seconds,
    )

    db_engine = None
    repository = None
    if config.database.enabled:
        db_engine = create_db_engine(config.database.url, echo=config.database.echo)
        create_tables(db_engine)
        repository = PatternRepository(create_session_factory(db_engine))

    engine = MutationEngine.from_settings(
        config.mutation,
        classifier=classifier,
        repository=repository,
    )
    return engine, db_engine


def create_app(config: Settings = settings) -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        description="Scam script feature extraction, similarity search, mutation prediction and trend reporting",
        docs_url="/docs" if config.is_development() else None,
        redoc_url="/redoc" if config.is_development() else None,
        openapi_url="/openapi.json" if config.is_development() else None,
    )
    app.state.settings = config
    app.state.engine = None
    app.state.db_engine = None

    @app.get("/")
    async def root():
        return {
            "app": config.app_name,
            "version": config.app_version,
            "status": "running",
            "endpoints": {
                "health": "GET /health",
                "analyze": "POST /api/patterns",
                "predict": "POST /api/patterns/{id}/predictions",
                "trends": "GET /api/insights/mutation-trends?days=30",
            },
        }

    @app.middleware("http")
    async def add_request_logging_and_metrics(request: Request, call_next):
        """Add request logging and metrics collection."""
        start_time = time.time()
        correlation_id = str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        response = await call_next(request)

        duration = time.time() - start_time

        # Route template avoids high-cardinality labels
        route = request.scope.get("route")
        endpoint = route.path if route else request.url.path

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()
        REQUEST_DURATION.labels(endpoint=endpoint).observe(duration)

        logger.info(
            "Request completed",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "url": str(request.url),
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
            }
        )

        response.headers["X-Correlation-ID"] = correlation_id
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "status": "error",
                "message": "Invalid request schema",
                "details": exc.errors()
            }
        )

    @app.exception_handler(ScriptValidationError)
    async def script_validation_exception_handler(request: Request, exc: ScriptValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "status": "error",
                "message": "Invalid scam script",
                "details": str(exc)
            }
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "status": "error",
                "message": exc.detail
            },
            headers=exc.headers
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unhandled errors."""
        correlation_id = getattr(request.state, "correlation_id", str(uuid.uuid4()))

        logger.error(
            "Unhandled exception occurred",
            extra={
                "correlation_id": correlation_id,
                "method": request.method,
                "url": str(request.url),
                "exception_type": type(exc).__name__,
            },
            exc_info=True
        )

        response = JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "error": "Internal server error",
                "correlation_id": correlation_id,
                "timestamp": utc_now().isoformat()
            }
        )
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    app.include_router(health.router, tags=["Health"])
    app.include_router(mutations.router, prefix="/api", tags=["Mutations"])

    @app.on_event("startup")
    async def startup_event():
        logger.info(
            "Application starting up",
            extra={
                "app_name": config.app_name,
                "version": config.app_version,
                "environment": config.environment,
            }
        )

        # Tests install their own engine before startup
        if app.state.engine is None:
            app.state.engine, app.state.db_engine = build_engine(config)

        try:
            app.state.engine.warm_start(config.database.warm_start_limit)
        except Exception as e:
            logger.error(f"Failed to warm-start pattern store: {e}", exc_info=True)

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Application shutting down")
        if app.state.db_engine is not None:
            app.state.db_engine.dispose()

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development(),
        workers=settings.workers if settings.is_production() else 1,
        log_level="info",
    )
