"""Application interfaces (ports): repository and service protocols.

No runtime imports from app.infrastructure.
"""

from app.application.interfaces.repositories import (
    IFlowProviderRepository,
    IFlowRepository,
    IFlowRunRepository,
    IFlowStepRepository,
)
from app.application.interfaces.services import (
    IBuiltinEventNotifier,
    ISlackWebhookResolver,
)

__all__ = [
    "IBuiltinEventNotifier",
    "IFlowProviderRepository",
    "IFlowRepository",
    "IFlowRunRepository",
    "IFlowStepRepository",
    "ISlackWebhookResolver",
]
