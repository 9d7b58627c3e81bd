"""Flow executor: run one claimed flow run to a terminal status.

execute() never leaves a run in `running`: every failure (missing flow,
unsupported step, provider error, deadline, unexpected exception) is
recorded as the run's error. Steps already dispatched are not undone.
Cancellation propagates out of execute(); the scheduler records the
cancelled run as error run_cancelled in a fresh transaction.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, assert_never

from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.flow import FlowRunResult, FlowStepResult
from app.application.interfaces.repositories import (
    IFlowRepository,
    IFlowRunRepository,
    IFlowStepRepository,
)
from app.application.services.template_renderer import render
from app.core.config import Settings
from app.domain.entities.flow_step import (
    EmailSendStep,
    SlackPostStep,
    StepAction,
    TaskCreateStep,
    WhatsAppSendStep,
    parse_step,
)
from app.domain.exceptions import FlowsException
from app.infrastructure.exceptions import ProviderError
from app.infrastructure.external.channels.protocols import ChannelDispatcher
from app.infrastructure.persistence.repositories.flow_provider_repo import (
    FlowProviderRepository,
)
from app.infrastructure.persistence.repositories.flow_repo import FlowRepository
from app.infrastructure.persistence.repositories.flow_run_repo import FlowRunRepository
from app.infrastructure.persistence.repositories.flow_step_repo import (
    FlowStepRepository,
)
from app.infrastructure.services.provider_credentials import ProviderCredentialResolver
from app.shared.enums import FlowRunStatus, StepType
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import TracedOperation, add_span_attributes

logger = get_logger(__name__)

FLOW_NOT_FOUND = "flow_not_found"
SLACK_NOT_CONNECTED = "slack_not_connected"
RUN_DEADLINE_EXCEEDED = "run_deadline_exceeded"
RUN_CANCELLED = "run_cancelled"


@dataclass(frozen=True)
class RetryPolicy:
    """Retry provider failures with exponential backoff.

    max_attempts=1 means a single attempt. Only ProviderError is retried;
    validation errors and unsupported steps fail immediately.
    """

    max_attempts: int = 1
    backoff_seconds: float = 0.0
    multiplier: float = 2.0

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(
            max_attempts=settings.step_max_attempts,
            backoff_seconds=settings.step_retry_backoff_seconds,
        )

    def delay_before(self, attempt: int) -> float:
        """Seconds to wait before `attempt` (2 for the first retry)."""
        return self.backoff_seconds * (self.multiplier ** max(attempt - 2, 0))

    async def run[T](
        self, operation: Callable[[], Awaitable[T]], *, label: str = "step"
    ) -> tuple[T, int]:
        """Await operation until it succeeds or attempts run out. Returns (result, attempts)."""
        attempt = 1
        while True:
            try:
                return await operation(), attempt
            except ProviderError as e:
                if attempt >= self.max_attempts:
                    raise
                attempt += 1
                delay = self.delay_before(attempt)
                logger.warning(
                    "%s failed (%s); retrying in %.1fs (attempt %d/%d)",
                    label,
                    e.reason,
                    delay,
                    attempt,
                    self.max_attempts,
                )
                await asyncio.sleep(delay)


class FlowExecutor:
    """Executes the ordered steps of one run and records its terminal status."""

    def __init__(
        self,
        flow_repo: IFlowRepository,
        step_repo: IFlowStepRepository,
        run_repo: IFlowRunRepository,
        dispatcher: ChannelDispatcher,
        credentials: ProviderCredentialResolver,
        *,
        retry_policy: RetryPolicy | None = None,
        run_deadline_seconds: float | None = None,
        default_email_subject: str = "Vex Flow",
    ) -> None:
        self._flow_repo = flow_repo
        self._step_repo = step_repo
        self._run_repo = run_repo
        self._dispatcher = dispatcher
        self._credentials = credentials
        self._retry = retry_policy or RetryPolicy()
        self._deadline = run_deadline_seconds if run_deadline_seconds else None
        self._default_email_subject = default_email_subject

    async def execute(self, run: FlowRunResult) -> FlowRunStatus:
        """Execute run and persist ok/error. Returns the terminal status written."""
        steps_log: list[dict[str, Any]] = []
        with TracedOperation(
            "flows.run.execute",
            {"run.id": run.id, "organization.id": run.organization_id},
        ):
            try:
                error = await self._execute_steps(run, steps_log)
            except TimeoutError:
                error = RUN_DEADLINE_EXCEEDED
            except FlowsException as e:
                error = e.message
            except Exception as e:
                logger.exception("Run %s failed unexpectedly", run.id)
                error = str(e) or e.__class__.__name__

            if error is None:
                await self._run_repo.mark_ok(run.id, run.organization_id, steps=steps_log)
                status = FlowRunStatus.OK
                logger.info("Run %s finished: ok (%d step(s))", run.id, len(steps_log))
            else:
                await self._run_repo.mark_error(
                    run.id, run.organization_id, error, steps=steps_log
                )
                status = FlowRunStatus.ERROR
                logger.warning("Run %s finished: error (%s)", run.id, error)
            add_span_attributes(**{"run.status": status.value})
        return status

    async def _execute_steps(
        self, run: FlowRunResult, steps_log: list[dict[str, Any]]
    ) -> str | None:
        """Return None when all steps completed, or the early-exit reason."""
        flow = (
            await self._flow_repo.get_by_id(run.flow_id, run.organization_id)
            if run.flow_id
            else None
        )
        if flow is None:
            return FLOW_NOT_FOUND

        stored = await self._step_repo.list_for_flow(flow.id, run.organization_id)
        steps = sorted(stored, key=lambda s: s.position)
        context = run.payload

        # Resolved before the deadline starts so no database work is cancelled mid-query.
        webhook: str | None = None
        if any(s.step_type == StepType.SLACK_POST.value for s in steps):
            webhook = await self._credentials.resolve_slack_webhook(run.organization_id)

        async with asyncio.timeout(self._deadline):
            for step in steps:
                await self._execute_step(step, context, webhook, steps_log)
        return None

    async def _execute_step(
        self,
        stored: FlowStepResult,
        context: dict[str, Any],
        webhook: str | None,
        steps_log: list[dict[str, Any]],
    ) -> None:
        entry: dict[str, Any] = {"position": stored.position, "type": stored.step_type}
        try:
            action = parse_step(stored.position, stored.step_type, stored.config)
            result, attempts = await self._retry.run(
                lambda: self._dispatch(action, context, webhook),
                label=f"step {stored.position} ({stored.step_type})",
            )
        except FlowsException as e:
            entry.update(status=FlowRunStatus.ERROR.value, error=e.message)
            steps_log.append(entry)
            raise
        entry.update(status=FlowRunStatus.OK.value, attempts=attempts, result=result)
        steps_log.append(entry)

    async def _dispatch(
        self, action: StepAction, context: dict[str, Any], webhook: str | None
    ) -> dict[str, Any]:
        if isinstance(action, SlackPostStep):
            if not webhook:
                raise ProviderError("slack", SLACK_NOT_CONNECTED)
            return await self._dispatcher.send_slack(webhook, render(action.template, context))
        if isinstance(action, WhatsAppSendStep):
            to = render(action.to, context) if action.to else None
            return await self._dispatcher.send_whatsapp(
                to or None, render(action.template, context)
            )
        if isinstance(action, EmailSendStep):
            to = render(action.to, context) if action.to else None
            subject = (
                render(action.subject, context)
                if action.subject
                else self._default_email_subject
            )
            return await self._dispatcher.send_email(
                to or None, subject, render(action.text, context)
            )
        if isinstance(action, TaskCreateStep):
            return {"skipped": True}
        assert_never(action)


def build_executor(
    session: AsyncSession, dispatcher: ChannelDispatcher, settings: Settings
) -> FlowExecutor:
    """Wire a FlowExecutor whose repositories share `session`."""
    fallback = settings.default_slack_webhook_url
    return FlowExecutor(
        FlowRepository(session),
        FlowStepRepository(session),
        FlowRunRepository(session),
        dispatcher,
        ProviderCredentialResolver(
            FlowProviderRepository(session),
            default_slack_webhook_url=fallback.get_secret_value() if fallback else None,
        ),
        retry_policy=RetryPolicy.from_settings(settings),
        run_deadline_seconds=settings.run_deadline_seconds,
        default_email_subject=settings.default_email_subject,
    )
