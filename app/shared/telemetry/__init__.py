"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from app.shared.telemetry.logging import get_logger, redact, setup_logging
from app.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)
from app.shared.telemetry.tracing import (
    TracedOperation,
    add_span_attributes,
    get_trace_id,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "redact",
    "TelemetryConfig",
    "get_telemetry",
    "set_telemetry",
    "TracedOperation",
    "add_span_attributes",
    "get_trace_id",
]
