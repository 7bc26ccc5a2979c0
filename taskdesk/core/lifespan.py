"""Application lifespan: startup and shutdown.

Wiring only: logging, tracing, the per-task lock manager, and SQL engine disposal.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from taskdesk.core.config import get_settings
from taskdesk.infrastructure.locking import KeyedLockManager
from taskdesk.infrastructure.persistence.database import dispose_engine, get_engine
from taskdesk.shared.telemetry.logging import setup_logging
from taskdesk.shared.telemetry.telemetry import TelemetryConfig, get_telemetry, set_telemetry

logger = logging.getLogger(__name__)


def _setup_telemetry(app: FastAPI) -> None:
    settings = get_settings()
    telemetry = TelemetryConfig(
        service_name=settings.app_name,
        service_version=settings.app_version,
        enabled=settings.telemetry_enabled,
        environment=settings.telemetry_environment,
    )
    telemetry.setup_telemetry(
        exporter_type=settings.telemetry_exporter,
        otlp_endpoint=settings.telemetry_otlp_endpoint,
        jaeger_endpoint=settings.telemetry_jaeger_endpoint,
        sample_rate=settings.telemetry_sample_rate,
    )
    set_telemetry(telemetry)
    telemetry.instrument_fastapi(app)
    telemetry.instrument_logging()
    engine = get_engine()
    if engine is not None:
        telemetry.instrument_sqlalchemy(engine)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit flush spans and dispose the SQL engine."""
    settings = get_settings()
    setup_logging()
    if settings.telemetry_enabled:
        _setup_telemetry(app)
    if getattr(app.state, "lock_manager", None) is None:
        app.state.lock_manager = KeyedLockManager()
    if not settings.database_url:
        logger.warning("DATABASE_URL is not set; workflow routes will answer 503")
    logger.info("%s %s started", settings.app_name, settings.app_version)

    yield

    telemetry = get_telemetry()
    if telemetry is not None:
        telemetry.shutdown()
        set_telemetry(None)
    await dispose_engine()
    logger.info("SQL engine disposed")
