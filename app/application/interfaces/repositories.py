"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
Every method is organization-scoped except the cross-organization claim
and reap operations owned by the scheduler.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.flow import (
        FlowResult,
        FlowRunResult,
        FlowStepCreate,
        FlowStepResult,
        ProviderConnectionResult,
    )


class IFlowRepository(Protocol):
    """Protocol for flow repository (DIP)."""

    async def get_by_id(self, flow_id: str, organization_id: str) -> FlowResult | None:
        """Return flow by ID if it belongs to the organization."""

    async def get_active_by_trigger(
        self, organization_id: str, trigger: str
    ) -> list[FlowResult]:
        """Return active flows of the organization whose trigger equals `trigger`."""


class IFlowStepRepository(Protocol):
    """Protocol for flow step repository (DIP)."""

    async def list_for_flow(
        self, flow_id: str, organization_id: str
    ) -> list[FlowStepResult]:
        """Return the flow's steps ordered by position."""

    async def replace_steps(
        self, flow_id: str, organization_id: str, steps: list[FlowStepCreate]
    ) -> list[FlowStepResult]:
        """Replace all steps of the flow; positions must be 1..n."""


class IFlowRunRepository(Protocol):
    """Protocol for flow run repository (DIP)."""

    async def create_queued(
        self, organization_id: str, flow_id: str, meta: dict[str, Any]
    ) -> FlowRunResult:
        """Create a queued run for a flow."""

    async def create_finished(
        self,
        organization_id: str,
        status: str,
        meta: dict[str, Any],
        *,
        error: str | None = None,
    ) -> FlowRunResult:
        """Record a run without a flow that is already terminal."""

    async def mark_ok(
        self, run_id: str, organization_id: str, *, steps: list[dict[str, Any]]
    ) -> bool:
        """Move a non-terminal run to ok."""

    async def mark_error(
        self,
        run_id: str,
        organization_id: str,
        error: str,
        *,
        steps: list[dict[str, Any]],
    ) -> bool:
        """Move a non-terminal run to error with the given message."""


class IFlowProviderRepository(Protocol):
    """Protocol for provider connection repository (DIP)."""

    async def get_connection(
        self, organization_id: str, provider: str
    ) -> ProviderConnectionResult | None:
        """Return the organization's connection for a provider kind."""
