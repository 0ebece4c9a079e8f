"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from lifecycle_relay.api import webhooks
from lifecycle_relay.config import get_settings
from lifecycle_relay.core.logging import (
    configure_logging,
    generate_request_id,
    get_logger,
    request_id_ctx,
)
from lifecycle_relay.core.rate_limit import limiter
from lifecycle_relay.middleware.preflight import PreflightMiddleware
from lifecycle_relay.middleware.timing import TimingMiddleware, slow_threshold_ms

settings = get_settings()

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    logger.info(
        "application_starting",
        environment=settings.environment,
        debug=settings.debug,
        mapped_apps=sorted(settings.board_targets),
    )

    if not settings.is_monday_configured:
        logger.warning(
            "monday_not_configured",
            message="Lifecycle webhooks will fail with 500. Set MONDAY_API_TOKEN.",
        )

    if not settings.is_graph_email_configured:
        logger.info("graph_email_not_configured", notifications="disabled")

    yield

    logger.info("application_shutdown")


app = FastAPI(
    title="Marketplace Lifecycle Relay",
    description=(
        "Receives marketplace app lifecycle webhooks (install, uninstall, "
        "subscription changes) and mirrors them onto a Monday.com board."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

API_PREFIX = "/api/v1"
LIFECYCLE_WEBHOOK_PATH = f"{API_PREFIX}{webhooks.router.prefix}/lifecycle"

app.add_middleware(TimingMiddleware, slow_threshold_ms=slow_threshold_ms(settings))

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["X-Request-ID", "X-Response-Time-Ms"],
)

# Outside CORSMiddleware, which would answer webhook preflights with a body
app.add_middleware(PreflightMiddleware, paths=[LIFECYCLE_WEBHOOK_PATH])

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def add_request_id_middleware(request, call_next):
    """Add correlation ID to each request."""
    request_id = generate_request_id()
    request_id_ctx.set(request_id)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(webhooks.router, prefix=API_PREFIX)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
