"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (HTTP client, channel
dispatcher, authenticator, telemetry, flow scheduler, DB engine dispose).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from app.core.config import get_settings
from app.infrastructure.external.channels import ChannelDispatcherFactory
from app.infrastructure.security.auth import Authenticator
from app.infrastructure.services.builtin_event_handlers import BuiltinEventNotifier
from app.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: logging, shared HTTP client, dispatcher and authenticator,
    telemetry (if enabled), scheduler (if enabled). Shutdown order: scheduler
    stop, HTTP client close, telemetry shutdown, SQL engine dispose.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    # Shared HTTP client for Slack, Twilio and token introspection (connection reuse).
    app.state.http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
    app.state.dispatcher = ChannelDispatcherFactory.create(settings, app.state.http_client)
    app.state.authenticator = Authenticator(settings, app.state.http_client)
    app.state.builtin_notifier = BuiltinEventNotifier(app.state.dispatcher)

    from app.infrastructure.persistence import database

    if settings.telemetry_enabled:
        from app.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

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
        database.get_session_factory()
        if database.engine is not None:
            telemetry.instrument_sqlalchemy(database.engine)
        logger.info("Telemetry initialized")

    if settings.scheduler_enabled:
        from app.infrastructure.services.flow_scheduler import init_scheduler

        await init_scheduler(
            app.state,
            database.get_session_factory(),
            app.state.dispatcher,
            settings,
        )

    yield

    # ---- Shutdown ----
    scheduler = getattr(app.state, "flow_scheduler", None)
    if scheduler is not None:
        await scheduler.stop()

    if getattr(app.state, "http_client", None) is not None:
        await app.state.http_client.aclose()
        app.state.http_client = None
        logger.info("HTTP client closed")

    from app.shared.telemetry.telemetry import get_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()

    if getattr(database, "engine", None) is not None:
        await database.engine.dispose()
        logger.info("Database engine disposed")
