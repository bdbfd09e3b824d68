"""FastAPI application entry point."""

import logging
import math
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.engine import Engine
from starlette.responses import Response

from weather_analyzer import database
from weather_analyzer.client import WeatherApiClient
from weather_analyzer.config import AppConfig, get_config
from weather_analyzer.database import check_db_connection, create_session_factory, init_db
from weather_analyzer.routers import health, weather
from weather_analyzer.scheduler import IngestionScheduler

# Configure logging
logging.basicConfig(
    level=get_config().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Prometheus metrics
REQUEST_COUNT = Counter(
    "weather_api_requests_total",
    "Total API requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = Histogram(
    "weather_api_request_duration_seconds",
    "API request duration in seconds",
    ["method", "endpoint"]
)

UNTRACKED_PATHS = ("/health", "/metrics")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Lifespan context manager for startup and shutdown events.

    Startup:
    - Create missing tables and check database connectivity
    - Start the ingestion scheduler when enabled

    Shutdown:
    - Stop the scheduler and close the provider client
    """
    config: AppConfig = app.state.config
    logger.info("Starting Weather Analyzer API")

    init_db(bind=app.state.engine)
    if check_db_connection(app.state.session_factory):
        logger.info("Database connection successful")
    else:
        logger.warning("Database connection failed - API may not function properly")

    client: Optional[WeatherApiClient] = None
    if config.scheduler_enabled:
        client = WeatherApiClient(config.provider())
        app.state.scheduler = IngestionScheduler(
            client, app.state.session_factory, config.scheduler()
        )
        app.state.scheduler.start()
    else:
        logger.info("Ingestion scheduler disabled")

    yield

    logger.info("Shutting down Weather Analyzer API")
    if app.state.scheduler is not None:
        app.state.scheduler.stop(timeout=config.weather_api_timeout + 5)
        app.state.scheduler = None
    if client is not None:
        client.close()


def create_app(config: Optional[AppConfig] = None, engine: Optional[Engine] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Service configuration, defaults to the environment
        engine: Database engine, defaults to the process-wide engine

    Returns:
        Configured application
    """
    config = config or get_config()

    app = FastAPI(
        title=config.api_title,
        version=config.api_version,
        description=config.api_description,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # App state
    app.state.config = config
    if engine is None:
        app.state.engine = database.engine
        app.state.session_factory = database.SessionLocal
    else:
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
    app.state.scheduler = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )

    @app.middleware("http")
    async def logging_and_metrics_middleware(request: Request, call_next):
        """
        Middleware to log requests and collect Prometheus metrics.

        Tracks:
        - Request count by method, endpoint, and status
        - Request duration by method and endpoint
        """
        if request.url.path in UNTRACKED_PATHS:
            return await call_next(request)

        start_time = time.time()
        request_id = f"{int(start_time * 1000)}-{id(request)}"

        logger.info(
            f"Request started: {request.method} {request.url.path} "
            f"[{request_id}]"
        )

        response = await call_next(request)

        duration = time.time() - start_time
        endpoint = request.url.path

        REQUEST_COUNT.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code
        ).inc()

        REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"[{request_id}] - {response.status_code} - {duration:.3f}s"
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Validation errors as FastAPI reports them, with NaN and infinite inputs as strings.

        Returns:
            422 error listing each invalid field
        """
        errors = []
        for error in exc.errors():
            value = error.get("input")
            if isinstance(value, float) and not math.isfinite(value):
                error = {**error, "input": str(value)}
            errors.append(error)

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": jsonable_encoder(errors)}
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Global exception handler for unhandled errors.

        Returns:
            500 error with sanitized error message
        """
        logger.error(
            f"Unhandled exception: {request.method} {request.url.path} - {str(exc)}",
            exc_info=True
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "type": "internal_error",
                "path": str(request.url.path)
            }
        )

    @app.get("/metrics")
    async def metrics():
        """
        Prometheus metrics endpoint.

        Returns:
            Prometheus metrics in text format
        """
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST
        )

    app.include_router(health.router)
    app.include_router(weather.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "weather_analyzer.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=get_config().log_level.lower()
    )
