"""
Applicability Service - Main Application
========================================

FastAPI application for applicability screening, confidence scoring and
organization similarity.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import settings
from shared.logging import bind_context, clear_context, get_logger, setup_logging
from shared.models.common import (
    ComponentHealth,
    ComponentStatus,
    ErrorResponse,
    HealthResponse,
)

from services.applicability.corpus import CorpusSnapshot, CorpusStore
from services.applicability.dependencies import get_engine
from services.applicability.errors import (
    CorpusUnavailable,
    InvalidProfile,
    LookupTableError,
)
from services.applicability.routes import corpus, profiles, screening, similarity

# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="applicability",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "applicability_starting",
        environment=settings.environment.value,
        port=settings.ports.applicability,
    )

    # Startup
    try:
        engine = get_engine()
        logger.info("lookup_tables_ready", version=engine.tables.version)

        if settings.corpus.path is not None:
            app.state.corpus_store.replace(
                CorpusSnapshot.from_json_file(settings.corpus.path)
            )
        else:
            logger.warning("corpus_not_configured")

    except (LookupTableError, CorpusUnavailable) as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("applicability_shutting_down")


# Create FastAPI application
app = FastAPI(
    title="Regscreen Applicability Service",
    description="Regulation applicability screening and organization similarity",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Corpus snapshots are swapped in place; the store lives as long as the app
app.state.corpus_store = CorpusStore()

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next: Any) -> Any:
    """Scope log context to one request."""
    clear_context()
    bind_context(path=request.url.path, method=request.method)
    try:
        return await call_next(request)
    finally:
        clear_context()


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    response_model_exclude_none=True,
    tags=["Health"],
)
async def health_check() -> HealthResponse:
    """
    Service health check.

    Reports lookup table and corpus snapshot status.
    """
    components: dict[str, ComponentHealth] = {}

    try:
        components["lookup_tables"] = ComponentHealth(
            status=ComponentStatus.HEALTHY,
            version=get_engine().tables.version,
        )
    except LookupTableError as e:
        components["lookup_tables"] = ComponentHealth(
            status=ComponentStatus.UNHEALTHY, error=str(e)
        )

    store: CorpusStore = app.state.corpus_store
    if store.is_loaded:
        snapshot = store.snapshot()
        components["corpus"] = ComponentHealth(
            status=ComponentStatus.HEALTHY,
            version=snapshot.version,
            records=len(snapshot),
        )
    else:
        components["corpus"] = ComponentHealth(status=ComponentStatus.UNAVAILABLE)

    return HealthResponse.from_components("applicability", "0.1.0", components)


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Regscreen Applicability Service",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    screening.router,
    prefix="/api/v1/screening",
    tags=["Screening"],
)

app.include_router(
    similarity.router,
    prefix="/api/v1/similarity",
    tags=["Similarity"],
)

app.include_router(
    profiles.router,
    prefix="/api/v1/profiles",
    tags=["Profiles"],
)

app.include_router(
    corpus.router,
    prefix="/api/v1/corpus",
    tags=["Corpus"],
)


# ============================================================================
# Error Handlers
# ============================================================================


def _error(status_code: int, error: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))


@app.exception_handler(InvalidProfile)
async def invalid_profile_handler(request: Request, exc: InvalidProfile) -> JSONResponse:
    """Profile lacks the minimal identity needed to screen."""
    logger.warning(
        "invalid_profile",
        profile_id=exc.profile_id,
        missing=exc.missing,
        path=request.url.path,
    )
    return _error(
        status.HTTP_422_UNPROCESSABLE_CONTENT,
        ErrorResponse(
            error=str(exc),
            error_code="invalid_profile",
            details={"profile_id": exc.profile_id, "missing": exc.missing},
        ),
    )


@app.exception_handler(CorpusUnavailable)
async def corpus_unavailable_handler(request: Request, exc: CorpusUnavailable) -> JSONResponse:
    """No corpus snapshot could be obtained."""
    logger.error("corpus_unavailable", error=str(exc), path=request.url.path)
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorResponse(error=str(exc), error_code="corpus_unavailable"),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return _error(exc.status_code, ErrorResponse(error=str(exc.detail)))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(error="Internal server error"),
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.applicability.main:app",
        host="0.0.0.0",
        port=settings.ports.applicability,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
