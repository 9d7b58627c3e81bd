"""Infrastructure services: run claiming, flow execution, scheduling, built-in handlers."""

from app.infrastructure.services.builtin_event_handlers import BuiltinEventNotifier
from app.infrastructure.services.flow_executor import (
    FlowExecutor,
    RetryPolicy,
    build_executor,
)
from app.infrastructure.services.flow_scheduler import FlowScheduler, init_scheduler
from app.infrastructure.services.provider_credentials import ProviderCredentialResolver
from app.infrastructure.services.run_claimer import RunClaimer, claim_due_runs

__all__ = [
    "BuiltinEventNotifier",
    "FlowExecutor",
    "FlowScheduler",
    "ProviderCredentialResolver",
    "RetryPolicy",
    "RunClaimer",
    "build_executor",
    "claim_due_runs",
    "init_scheduler",
]
