"""Health check endpoint."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel

from weather_analyzer.database import check_db_connection, session_scope
from weather_analyzer.repository import WeatherRepository

router = APIRouter(tags=["health"])


class IngestionStatus(BaseModel):
    """State of the background ingestion scheduler."""
    enabled: bool
    running: bool
    last_outcome: Optional[str] = None
    last_run_at: Optional[datetime] = None
    last_error: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    database: str
    record_count: int
    ingestion: IngestionStatus
    message: str


@router.get("/health", response_model=HealthResponse)
def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Verifies that the API can reach the database and reports the state of
    the ingestion scheduler.

    Returns:
        Health status information
    """
    session_factory = request.app.state.session_factory

    if not check_db_connection(session_factory):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection failed"
        )

    with session_scope(session_factory) as db:
        record_count = WeatherRepository(db).count()

    scheduler = request.app.state.scheduler
    if scheduler is None:
        ingestion = IngestionStatus(enabled=False, running=False)
    else:
        ingestion = IngestionStatus(
            enabled=True,
            running=scheduler.is_running,
            last_outcome=scheduler.last_outcome.value if scheduler.last_outcome else None,
            last_run_at=scheduler.last_run_at,
            last_error=str(scheduler.last_error) if scheduler.last_error else None,
        )

    return HealthResponse(
        status="healthy",
        database="connected",
        record_count=record_count,
        ingestion=ingestion,
        message="Weather Analyzer API is running"
    )


@router.get("/")
def root(request: Request) -> dict:
    """
    Root endpoint with API information.

    Returns:
        Basic API information
    """
    config = request.app.state.config
    return {
        "service": config.api_title,
        "version": config.api_version,
        "documentation": "/docs",
        "health_check": "/health"
    }
