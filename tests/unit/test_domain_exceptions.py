"""Domain and infrastructure exceptions: codes, messages and API bodies."""

from app.domain.exceptions import (
    AuthenticationException,
    FlowsException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    UnsupportedStepException,
    ValidationException,
)
from app.infrastructure.exceptions import ProviderError, ProviderException


def test_flows_exception_defaults_code_to_class_name() -> None:
    exc = FlowsException("boom")
    assert exc.error_code == "FlowsException"
    assert exc.details == {}
    assert str(exc) == "boom"


def test_to_dict_includes_details_only_when_present() -> None:
    assert ValidationException("event is required").to_dict() == {
        "ok": False,
        "error": "event is required",
        "code": "VALIDATION_ERROR",
    }
    body = ValidationException("event is required", field="event").to_dict()
    assert body["details"] == {"field": "event"}


def test_resource_not_found_details() -> None:
    exc = ResourceNotFoundException("flow", "f1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert exc.message == "flow not found: f1"
    assert exc.details == {"resource_type": "flow", "resource_id": "f1"}


def test_authentication_and_sql_not_configured_codes() -> None:
    assert AuthenticationException().error_code == "AUTHENTICATION_ERROR"
    assert SqlNotConfiguredException().error_code == "SERVICE_UNAVAILABLE"


def test_unsupported_step_message_is_reason_code() -> None:
    assert UnsupportedStepException("x.y").message == "unsupported_step:x.y"


def test_provider_error_message_is_reason() -> None:
    exc = ProviderError("slack", "post_failed", "status=500")
    assert isinstance(exc, ProviderException)
    assert isinstance(exc, FlowsException)
    assert exc.message == "post_failed"
    assert exc.error_code == "PROVIDER_ERROR"
    assert exc.details == {"provider": "slack", "reason": "post_failed", "detail": "status=500"}
    assert exc.provider == "slack"
    assert exc.reason == "post_failed"
