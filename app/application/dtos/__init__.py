"""Application DTOs (no ORM dependency)."""

from app.application.dtos.flow import (
    BuiltinMessage,
    EmitResult,
    FlowResult,
    FlowRunResult,
    FlowStepCreate,
    FlowStepResult,
    IngestResult,
    ProviderConnectionResult,
)

__all__ = [
    "BuiltinMessage",
    "EmitResult",
    "FlowResult",
    "FlowRunResult",
    "FlowStepCreate",
    "FlowStepResult",
    "IngestResult",
    "ProviderConnectionResult",
]
