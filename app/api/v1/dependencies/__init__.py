"""Presentation-layer dependency injection (composition root).

Routes depend only on these providers, never on infrastructure directly.
"""

from app.api.v1.dependencies.auth import (
    get_authenticator,
    get_current_caller,
    get_event_caller,
    get_organization_id,
    require_webhook_secret,
)
from app.api.v1.dependencies.flow import (
    get_builtin_notifier,
    get_dispatcher,
    get_event_ingestion_use_case,
    get_flow_provider_repo,
    get_flow_provider_repo_for_write,
    get_flow_repo,
    get_flow_repo_for_write,
    get_flow_run_repo,
    get_flow_step_repo,
    get_flow_step_repo_for_write,
)

__all__ = [
    "get_authenticator",
    "get_builtin_notifier",
    "get_current_caller",
    "get_dispatcher",
    "get_event_caller",
    "get_event_ingestion_use_case",
    "get_flow_provider_repo",
    "get_flow_provider_repo_for_write",
    "get_flow_repo",
    "get_flow_repo_for_write",
    "get_flow_run_repo",
    "get_flow_step_repo",
    "get_flow_step_repo_for_write",
    "get_organization_id",
    "require_webhook_secret",
]
