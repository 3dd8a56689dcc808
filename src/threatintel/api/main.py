"""
Threat Intel Dashboard - Main API Server

FastAPI application exposing the threat-intel store under /api/v1 and the
shared-secret POST /analyze ingress that runs the AI pipeline on the newest
raw threat log.
"""

import logging
import secrets
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from threatintel.agents.analyze import analyze
from threatintel.api import routes_analysis, routes_incidents, routes_insights, routes_iocs, routes_logs
from threatintel.config import get_settings
from threatintel.db.session import get_db, init_db
from threatintel.errors import (
    AllModelsExhaustedError,
    AuthenticationRequiredError,
    ConfigurationError,
    PermissionDeniedError,
    RecordNotFoundError,
)
from threatintel.models.analysis import AnalysisMetadata, AnalyzeResponse
from threatintel.services.analyses import save_analysis
from threatintel.services.threat_logs import latest_threat_log, mark_threat_log_analyzed

THREAT_LOG_TARGET = "threat_log"

settings = get_settings()

# Configure logging
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_settings().validate_for("store")
    init_db()
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Threat Intel Dashboard API",
    description="Threat-intelligence store with AI-assisted analysis",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

API_PREFIX = "/api/v1"
app.include_router(routes_iocs.router, prefix=API_PREFIX)
app.include_router(routes_logs.router, prefix=API_PREFIX)
app.include_router(routes_analysis.router, prefix=API_PREFIX)
app.include_router(routes_incidents.router, prefix=API_PREFIX)
app.include_router(routes_insights.router, prefix=API_PREFIX)


# ============================================================================
# Error mapping
# ============================================================================

def _error(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail})


@app.exception_handler(RecordNotFoundError)
async def not_found_handler(request: Request, exc: RecordNotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, str(exc))


@app.exception_handler(AuthenticationRequiredError)
async def auth_required_handler(request: Request, exc: AuthenticationRequiredError):
    return _error(status.HTTP_401_UNAUTHORIZED, str(exc))


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return _error(status.HTTP_403_FORBIDDEN, str(exc))


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": exc.errors(include_url=False, include_context=False)},
    )


@app.exception_handler(ValueError)
async def bad_value_handler(request: Request, exc: ValueError):
    # unknown filter values, empty analysis content
    return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc))


@app.exception_handler(ConfigurationError)
async def configuration_handler(request: Request, exc: ConfigurationError):
    logger.error("api.configuration_error", extra={"path": request.url.path, "error": str(exc)})
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, str(exc))


@app.exception_handler(AllModelsExhaustedError)
async def exhausted_handler(request: Request, exc: AllModelsExhaustedError):
    return _error(status.HTTP_502_BAD_GATEWAY, str(exc))


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "healthy", "service": "Threat Intel Dashboard API", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Detailed health check."""
    current = get_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "ai_configured": bool(current.openrouter_api_key),
        "analyze_endpoint_configured": bool(current.analysis_api_key),
    }


def _bearer_matches(authorization: Optional[str]) -> bool:
    current = get_settings()
    try:
        current.validate_for("analyze_endpoint")
    except ConfigurationError:
        logger.error("analyze_endpoint.not_configured")
        return False
    if not authorization:
        return False
    expected = current.analysis_api_key
    token = authorization.removeprefix("Bearer ").strip()
    return secrets.compare_digest(token.encode(), expected.encode())


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze_latest_threat_log(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    """
    Analyze the newest raw threat log.

    Requires `Authorization: Bearer <ANALYSIS_API_KEY>`. Runs the AI pipeline
    on the log's raw_data, stores the analysis, and links it back to the log.
    Errors come back as plain text: 401, 404 when no threat log exists, and
    500 for anything else.
    """
    if not _bearer_matches(authorization):
        logger.warning("analyze_endpoint.unauthorized")
        return PlainTextResponse("Unauthorized", status_code=status.HTTP_401_UNAUTHORIZED)

    try:
        # store calls are blocking; keep them off the event loop
        threat_log = await run_in_threadpool(latest_threat_log, db)
        if threat_log is None:
            return PlainTextResponse("No threat logs found", status_code=status.HTTP_404_NOT_FOUND)

        started = time.monotonic()
        result = await analyze(threat_log.raw_data, THREAT_LOG_TARGET)
        processing_ms = int((time.monotonic() - started) * 1000)

        saved = await run_in_threadpool(
            save_analysis,
            db,
            result,
            target_id=threat_log.id,
            metadata=AnalysisMetadata(processing_time_ms=processing_ms, data_points=1),
        )
        await run_in_threadpool(mark_threat_log_analyzed, db, threat_log.id, saved.id, saved.severity)
    except Exception:
        logger.exception("analyze_endpoint.failed")
        return PlainTextResponse(
            "Internal server error", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    logger.info(
        "analyze_endpoint.complete",
        extra={"threat_log_id": threat_log.id, "analysis_id": saved.id, "severity": saved.severity.value},
    )
    return AnalyzeResponse(
        id=saved.id,
        summary=saved.summary,
        details=saved.details,
        recommendations=saved.recommendations,
        severity=saved.severity,
        confidence=saved.confidence,
    )


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
