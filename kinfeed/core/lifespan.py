"""Application lifespan: wire infrastructure at startup, release it at shutdown."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from kinfeed.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup: Redis search cache (if enabled), telemetry (if enabled).

    Shutdown: cache disconnect, telemetry flush, SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    app.state.cache = None
    if settings.redis_enabled:
        from kinfeed.infrastructure.cache import RedisSearchCache

        cache = RedisSearchCache(settings=settings)
        await cache.connect()
        app.state.cache = cache

    if settings.telemetry_enabled:
        from kinfeed.infrastructure.persistence import database
        from kinfeed.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=True,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        telemetry.instrument_logging()
        if settings.redis_enabled:
            telemetry.instrument_redis()
        if settings.database_url:
            database.ensure_engine()
            telemetry.instrument_sqlalchemy(database.engine)
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    if app.state.cache is not None:
        await app.state.cache.disconnect()
        app.state.cache = None

    from kinfeed.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)

    from kinfeed.infrastructure.persistence import database

    await database.dispose_engine()
