"""Run one flow scheduler tick: reap stale runs, claim a batch, execute it.

Usage:
    python -m scripts.run_scheduler_tick
Uses the same settings as the API (DATABASE_URL, SCHEDULER_BATCH_SIZE,
channel credentials). Useful from an external cron when the in-process
scheduler is disabled (SCHEDULER_ENABLED=false).
"""

import asyncio
import sys

import httpx

import app.infrastructure.persistence.database as database
from app.core.config import get_settings
from app.infrastructure.external.channels import ChannelDispatcherFactory
from app.infrastructure.services.flow_scheduler import FlowScheduler
from app.shared.telemetry.logging import setup_logging


async def main() -> int:
    """Execute a single tick and return the number of runs processed."""
    settings = get_settings()
    setup_logging()
    session_factory = database.get_session_factory()
    try:
        async with httpx.AsyncClient(timeout=settings.provider_timeout_seconds) as http_client:
            dispatcher = ChannelDispatcherFactory.create(settings, http_client)
            scheduler = FlowScheduler.from_settings(session_factory, dispatcher, settings)
            return await scheduler.tick()
    finally:
        await database.engine.dispose()


if __name__ == "__main__":
    processed = asyncio.run(main())
    print(f"Processed {processed} run(s)", file=sys.stderr)
