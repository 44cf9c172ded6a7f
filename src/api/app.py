"""
FastAPI application factory.
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from src.api.dependencies import cleanup_dependencies
from src.api.middleware.timeout import TimeoutMiddleware
from src.api.routes import accounts, admin, auth, follows, health, pins
from src.config.settings import get_settings
from src.errors import ServiceError
from src.observability.logging import bind_context, clear_context

logger = structlog.get_logger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization", "X-API-KEY", "X-Request-ID"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Pin timeline API starting up")

    yield

    logger.info("Pin timeline API shutting down")
    await cleanup_dependencies()


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application
    """
    settings = get_settings()

    openapi_tags = [
        {"name": "health", "description": "Service health checks"},
        {"name": "auth", "description": "OAuth login, sessions, and handle setup"},
        {"name": "accounts", "description": "Account registration and profiles"},
        {"name": "follows", "description": "Follow graph and account search"},
        {"name": "pins", "description": "Pins and the timeline feed"},
        {"name": "admin", "description": "Timeline maintenance"},
    ]

    app = FastAPI(
        title="Pin Timeline API",
        description="""
Backend for a geotagged photo-pin social app.

## Timeline

Posting a pin writes it into the author's and every follower's timeline.
Following an account backfills its recent pins; unfollowing removes them.
Poll `GET /api/pins/timeline?since=<waterline>` for newer entries.

## Authentication

Requires `Authorization: Bearer <session_token>` except for `/health`,
OAuth callback, logout, refresh, handle checks, and registration.
Admin endpoints require the `X-API-KEY` header instead.
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=openapi_tags,
    )

    # Add CORS middleware (origins from CORS_ORIGINS env var, comma-separated)
    cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        max_age=settings.cors_max_age,
    )

    # Request timeout middleware (must be added before logging middleware
    # so timeout wraps the entire request lifecycle)
    if settings.request_timeout_seconds > 0:
        app.add_middleware(
            TimeoutMiddleware,
            timeout_seconds=settings.request_timeout_seconds,
        )

    # Request logging and correlation ID middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        # Correlation ID: use incoming header or generate a new one
        request_id = (
            request.headers.get("X-Request-ID")
            or request.headers.get("X-Correlation-ID")
            or str(uuid.uuid4())
        )

        # Bind to structlog contextvars for automatic log correlation
        bind_context(request_id=request_id)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            # Add correlation ID to response headers
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response
        finally:
            clear_context()

    # Rate limiting (opt-in via RATE_LIMIT_ENABLED=true)
    if settings.rate_limit_enabled:
        from slowapi import _rate_limit_exceeded_handler
        from slowapi.errors import RateLimitExceeded
        from slowapi.middleware import SlowAPIMiddleware

        from src.api.rate_limit import limiter

        app.state.limiter = limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
        app.add_middleware(SlowAPIMiddleware)

    # Exception handlers
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error(
                "Service error",
                error=exc.error,
                message=exc.message,
                path=request.url.path,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid request",
                "message": f"Invalid or missing fields: {', '.join(fields)}",
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "message": None},
        )

    # Include routers
    app.include_router(health.router, tags=["health"])
    app.include_router(auth.router, tags=["auth"])
    app.include_router(accounts.router, tags=["accounts"])
    app.include_router(follows.router, tags=["follows"])
    app.include_router(pins.router, tags=["pins"])
    app.include_router(admin.router, tags=["admin"])

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "service": "Pin Timeline API",
            "version": "0.1.0",
            "docs": "/docs",
        }

    # Every OPTIONS gets the same empty 200, preflight or not. Real preflights
    # are answered earlier by CORSMiddleware.
    @app.options("/{path:path}", include_in_schema=False)
    async def options_any(path: str):
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Methods": ", ".join(CORS_METHODS),
                "Access-Control-Allow-Headers": ", ".join(CORS_HEADERS),
                "Access-Control-Max-Age": str(settings.cors_max_age),
            },
        )

    return app
