"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.flow import Flow, FlowStep
from app.infrastructure.persistence.models.flow_provider import FlowProvider
from app.infrastructure.persistence.models.flow_run import FlowRun
from app.infrastructure.persistence.models.mixins import (
    CuidMixin,
    OrganizationMixin,
    OrganizationModel,
    TimestampMixin,
)

__all__ = [
    "Flow",
    "FlowStep",
    "FlowRun",
    "FlowProvider",
    "CuidMixin",
    "OrganizationMixin",
    "OrganizationModel",
    "TimestampMixin",
]
