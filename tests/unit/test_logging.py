"""Secret redaction in log output."""

import io
import logging

from app.shared.telemetry.logging import SecretRedactionFilter, redact, setup_logging


def test_redact_slack_webhook_and_bearer() -> None:
    text = "posting to https://hooks.slack.com/services/T0/B0/abc123 with Bearer eyJ.x.y"
    assert redact(text) == (
        "posting to https://hooks.slack.com/services/*** with Bearer ***"
    )


def test_redact_leaves_plain_text() -> None:
    assert redact("Run r1 finished: ok (2 step(s))") == "Run r1 finished: ok (2 step(s))"


def test_filter_rewrites_formatted_message() -> None:
    record = logging.LogRecord(
        "x", logging.INFO, __file__, 1, "webhook=%s", ("https://hooks.slack.com/services/A/B/C",), None
    )
    assert SecretRedactionFilter().filter(record) is True
    assert record.getMessage() == "webhook=https://hooks.slack.com/services/***"


def test_setup_logging_masks_output_of_preconfigured_root_handler(monkeypatch) -> None:
    root = logging.getLogger()
    stream = io.StringIO()
    existing = logging.StreamHandler(stream)
    monkeypatch.setattr(root, "handlers", [existing])

    setup_logging()
    setup_logging()

    assert root.handlers == [existing]
    assert sum(isinstance(f, SecretRedactionFilter) for f in existing.filters) == 1
    logging.getLogger("flows.test").warning(
        "posting to %s", "https://hooks.slack.com/services/T0/B0/secret"
    )
    assert "secret" not in stream.getvalue()
    assert "https://hooks.slack.com/services/***" in stream.getvalue()
