"""Shared cross-cutting code: enums, telemetry and utilities. No business logic."""

from app.shared.enums import (
    FlowRunStatus,
    ProviderConnectionStatus,
    ProviderKind,
    StepType,
)
from app.shared.utils import ensure_utc, generate_cuid, utc_now

__all__ = [
    "FlowRunStatus",
    "ProviderConnectionStatus",
    "ProviderKind",
    "StepType",
    "ensure_utc",
    "generate_cuid",
    "utc_now",
]
