"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.flow_provider_repo import (
    FlowProviderRepository,
)
from app.infrastructure.persistence.repositories.flow_repo import FlowRepository
from app.infrastructure.persistence.repositories.flow_run_repo import FlowRunRepository
from app.infrastructure.persistence.repositories.flow_step_repo import (
    FlowStepRepository,
)

__all__ = [
    "BaseRepository",
    "FlowProviderRepository",
    "FlowRepository",
    "FlowRunRepository",
    "FlowStepRepository",
]
