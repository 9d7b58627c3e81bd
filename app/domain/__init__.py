"""Domain layer: typed flow steps and domain exceptions.

No dependencies on infrastructure or presentation.
"""

from app.domain.entities import StepAction, parse_step
from app.domain.exceptions import (
    AuthenticationException,
    FlowsException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    UnsupportedStepException,
    ValidationException,
)

__all__ = [
    "AuthenticationException",
    "FlowsException",
    "ResourceNotFoundException",
    "SqlNotConfiguredException",
    "StepAction",
    "UnsupportedStepException",
    "ValidationException",
    "parse_step",
]
