"""DTOs for flows, steps, runs and provider connections."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class FlowResult:
    """Flow read-model (result of get_by_id, list_by_organization, create_flow, etc.)."""

    id: str
    organization_id: str
    name: str
    trigger: str
    active: bool
    meta: dict[str, Any]
    created_by: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class FlowStepCreate:
    """One step of a replace_steps call; position is 1-based."""

    position: int
    step_type: str
    config: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FlowStepResult:
    """Stored flow step."""

    id: str
    flow_id: str
    organization_id: str
    position: int
    step_type: str
    config: dict[str, Any]


@dataclass(frozen=True)
class FlowRunResult:
    """Flow run read-model. meta holds the triggering payload under "payload"."""

    id: str
    flow_id: str | None
    organization_id: str
    status: str
    error: str | None
    meta: dict[str, Any]
    started_at: datetime | None
    finished_at: datetime | None
    claimed_at: datetime | None = None
    attempts: int = 0

    @property
    def payload(self) -> dict[str, Any]:
        value = (self.meta or {}).get("payload")
        return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class ProviderConnectionResult:
    """Per-organization provider connection. credentials is opaque."""

    organization_id: str
    provider: str
    status: str
    credentials: dict[str, Any]
    updated_at: datetime | None = None


@dataclass(frozen=True)
class EmitResult:
    """Outcome of matching an event against active flows."""

    matched_flows: list[str]
    created_runs: list[str]

    @property
    def created_any(self) -> bool:
        return bool(self.created_runs)


@dataclass(frozen=True)
class IngestResult:
    """Outcome of ingesting an external event (flow matching plus built-in handler)."""

    event: str
    source: str
    organization_id: str
    handled: bool
    matched_flows: list[str]
    created_runs: list[str]

    @property
    def created_any(self) -> bool:
        return bool(self.created_runs)


@dataclass(frozen=True)
class BuiltinMessage:
    """Rendered notification of a built-in event handler."""

    event: str
    name: str
    text: str
