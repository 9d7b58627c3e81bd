"""Flow, run, provider and event ingestion dependencies (composition root)."""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.use_cases.flows import EventIngestionUseCase
from app.core.config import get_settings
from app.infrastructure.external.channels import (
    ChannelDispatcher,
    ChannelDispatcherFactory,
)
from app.infrastructure.persistence.database import get_db, get_db_transactional
from app.infrastructure.persistence.repositories import (
    FlowProviderRepository,
    FlowRepository,
    FlowRunRepository,
    FlowStepRepository,
)
from app.infrastructure.services import (
    BuiltinEventNotifier,
    ProviderCredentialResolver,
)


async def get_flow_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FlowRepository:
    """Flow repository for read operations."""
    return FlowRepository(db)


async def get_flow_repo_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> FlowRepository:
    """Flow repository for create/update/delete."""
    return FlowRepository(db)


async def get_flow_step_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FlowStepRepository:
    return FlowStepRepository(db)


async def get_flow_step_repo_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> FlowStepRepository:
    return FlowStepRepository(db)


async def get_flow_run_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FlowRunRepository:
    return FlowRunRepository(db)


async def get_flow_provider_repo(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> FlowProviderRepository:
    return FlowProviderRepository(db)


async def get_flow_provider_repo_for_write(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
) -> FlowProviderRepository:
    return FlowProviderRepository(db)


def get_dispatcher(request: Request) -> ChannelDispatcher:
    """Channel dispatcher shared by the process (set at startup)."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        settings = get_settings()
        http_client = getattr(request.app.state, "http_client", None)
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
            request.app.state.http_client = http_client
        dispatcher = ChannelDispatcherFactory.create(settings, http_client)
        request.app.state.dispatcher = dispatcher
    return dispatcher


def get_builtin_notifier(
    request: Request,
    dispatcher: Annotated[ChannelDispatcher, Depends(get_dispatcher)],
) -> BuiltinEventNotifier | None:
    """Built-in event handlers, or None when disabled in settings."""
    if not get_settings().builtin_event_handlers_enabled:
        return None
    notifier = getattr(request.app.state, "builtin_notifier", None)
    return notifier or BuiltinEventNotifier(dispatcher)


async def get_event_ingestion_use_case(
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    builtin_notifier: Annotated[
        BuiltinEventNotifier | None, Depends(get_builtin_notifier)
    ],
) -> EventIngestionUseCase:
    """Event ingestion use case; all run inserts share the request transaction."""
    settings = get_settings()
    fallback = settings.default_slack_webhook_url
    return EventIngestionUseCase(
        flow_repo=FlowRepository(db),
        run_repo=FlowRunRepository(db),
        builtin_notifier=builtin_notifier,
        webhook_resolver=ProviderCredentialResolver(
            FlowProviderRepository(db),
            default_slack_webhook_url=fallback.get_secret_value() if fallback else None,
        ),
    )
