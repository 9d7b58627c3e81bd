"""Event ingestion use case: match inbound events to active flows and queue runs.

Two entry points:
- emit(): manual trigger emission; generic flow matching only.
- ingest(): external events; generic flow matching plus the built-in
  handlers that notify Slack immediately and record a flow-less run.

When an event has both a built-in handler and matching flows, both paths
run and the overlap is logged as a warning.
"""

from __future__ import annotations

from typing import Any

from app.application.dtos.flow import EmitResult, IngestResult
from app.application.interfaces.repositories import IFlowRepository, IFlowRunRepository
from app.application.interfaces.services import (
    IBuiltinEventNotifier,
    ISlackWebhookResolver,
)
from app.domain.exceptions import FlowsException, ValidationException
from app.shared.enums import FlowRunStatus
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _validate_event(event: str | None, payload: Any) -> tuple[str, dict[str, Any]]:
    name = (event or "").strip() if isinstance(event, str) else ""
    if not name:
        raise ValidationException("event is required", field="event")
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationException("payload must be an object", field="payload")
    return name, payload


class EventIngestionUseCase:
    """Creates queued runs for active flows whose trigger equals the event name."""

    def __init__(
        self,
        flow_repo: IFlowRepository,
        run_repo: IFlowRunRepository,
        *,
        builtin_notifier: IBuiltinEventNotifier | None = None,
        webhook_resolver: ISlackWebhookResolver | None = None,
    ) -> None:
        self._flow_repo = flow_repo
        self._run_repo = run_repo
        self._builtin_notifier = builtin_notifier
        self._webhook_resolver = webhook_resolver

    async def emit(
        self,
        organization_id: str,
        event: str,
        payload: dict[str, Any] | None = None,
        *,
        source: str = "manual",
    ) -> EmitResult:
        """Queue one run per active flow of the organization listening for event.

        Raises:
            ValidationException: If event is empty or payload is not an object.
        """
        event, payload = _validate_event(event, payload)
        flows = await self._flow_repo.get_active_by_trigger(organization_id, event)
        created: list[str] = []
        for flow in flows:
            run = await self._run_repo.create_queued(
                organization_id,
                flow.id,
                {"payload": payload, "name": flow.name, "event": event, "source": source},
            )
            created.append(run.id)
        if flows:
            logger.info(
                "Event %s matched %d flow(s) in organization %s",
                event,
                len(flows),
                organization_id,
            )
        return EmitResult(matched_flows=[f.id for f in flows], created_runs=created)

    async def ingest(
        self,
        source: str,
        event: str,
        payload: dict[str, Any] | None,
        organization_id: str,
    ) -> IngestResult:
        """Flow matching plus the built-in handler for event, if any."""
        event, payload = _validate_event(event, payload)
        source = (source or "").strip() or event.split(".", 1)[0]
        emitted = await self.emit(organization_id, event, payload, source=source)

        created = list(emitted.created_runs)
        handled = False
        notifier = self._builtin_notifier
        if notifier is not None and notifier.handles(event):
            if emitted.matched_flows:
                logger.warning(
                    "Event %s has a built-in handler and %d matching flow(s) in organization %s; both will notify",
                    event,
                    len(emitted.matched_flows),
                    organization_id,
                )
            created.append(
                await self._run_builtin(notifier, organization_id, source, event, payload)
            )
            handled = True

        return IngestResult(
            event=event,
            source=source,
            organization_id=organization_id,
            handled=handled,
            matched_flows=emitted.matched_flows,
            created_runs=created,
        )

    async def _run_builtin(
        self,
        notifier: IBuiltinEventNotifier,
        organization_id: str,
        source: str,
        event: str,
        payload: dict[str, Any],
    ) -> str:
        message = notifier.render(event, payload)
        webhook = (
            await self._webhook_resolver.resolve_slack_webhook(organization_id)
            if self._webhook_resolver
            else None
        )
        meta = {
            "payload": payload,
            "name": message.name,
            "event": event,
            "source": source,
            "builtin": True,
        }
        try:
            await notifier.send(message, webhook)
        except FlowsException as e:
            logger.warning("Built-in handler for %s failed: %s", event, e.message)
            run = await self._run_repo.create_finished(
                organization_id, FlowRunStatus.ERROR.value, meta, error=e.message
            )
        else:
            run = await self._run_repo.create_finished(
                organization_id, FlowRunStatus.OK.value, meta
            )
        return run.id
