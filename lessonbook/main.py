"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status

from lessonbook.core.config import get_settings
from lessonbook.core.database import SessionLocal, close_engine
from lessonbook.core.metrics import build_metrics_response, instrument_http_request
from lessonbook.modules.admin.repository import AdminRepository
from lessonbook.modules.admin.router import router as admin_router
from lessonbook.modules.billing.router import router as billing_router
from lessonbook.modules.booking.router import router as booking_router
from lessonbook.modules.lessons.router import router as lessons_router
from lessonbook.modules.scheduling.router import router as scheduling_router
from lessonbook.shared.exceptions import register_exception_handlers
from lessonbook.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application startup and shutdown hooks."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info("Starting %s (timezone %s)", settings.app_name, settings.application_timezone)

    yield

    logger.info("Shutting down %s", settings.app_name)
    await close_engine()


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)
app.middleware("http")(instrument_http_request)

register_exception_handlers(app)

app.include_router(scheduling_router, prefix=settings.api_prefix)
app.include_router(booking_router, prefix=settings.api_prefix)
app.include_router(lessons_router, prefix=settings.api_prefix)
app.include_router(billing_router, prefix=settings.api_prefix)
app.include_router(admin_router, prefix=settings.api_prefix)


@app.get("/health")
async def healthcheck() -> dict[str, str]:
    """Liveness check endpoint."""
    return {"status": "ok"}


async def _load_booking_settings_source() -> str | None:
    """Read the tutor settings row; "stored" or "defaults", None when the DB is down."""
    try:
        async with SessionLocal() as session:
            row = await AdminRepository(session).get_settings()
    except Exception:
        logger.exception("Database readiness check failed")
        return None
    return "stored" if row is not None else "defaults"


@app.get("/ready")
async def readiness_check() -> dict[str, str]:
    """Ready once the booking tables answer and the policy source is known."""
    source = await _load_booking_settings_source()
    if source is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not ready",
        )
    return {
        "status": "ready",
        "database": "ok",
        "booking_settings": source,
        "timezone": settings.application_timezone,
        "timestamp": utc_now().isoformat(),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics_endpoint(_: Request) -> Response:
    """Prometheus metrics endpoint."""
    return build_metrics_response()
