from __future__ import annotations

import json
import logging

import pytest

from fscs_backend.logging_config import (
    AUDIT_LOGGER_NAME,
    JsonLogFormatter,
    configure_logging,
    format_log_fields,
    log_security_audit_event,
    log_with_fields,
)
from fscs_backend.settings import Settings


def test_format_log_fields_escapes_control_characters() -> None:
    fields = format_log_fields(actor_username="evil\nforged", note="a\rb\tc\x00")

    assert "actor_username=evil\\nforged" in fields
    assert "note=a\\rb\\tc\\x00" in fields
    assert "\n" not in fields
    assert "\r" not in fields


def test_format_log_fields_quotes_values_with_spaces_and_skips_none() -> None:
    fields = format_log_fields(path="/api/x", reason="not the author", missing=None)

    assert fields == 'path=/api/x reason="not the author"'


def test_log_security_audit_event_sanitizes_user_controlled_values(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger=AUDIT_LOGGER_NAME)
    log_security_audit_event(
        audit_event="access.capability_required",
        outcome="denied",
        actor_username="user\nforged_line",
        capability="admin\rroot",
    )

    messages = [record.getMessage() for record in caplog.records]
    assert len(messages) == 1

    message = messages[0]
    assert "audit_event=access.capability_required" in message
    assert "actor_username=user\\nforged_line" in message
    assert "capability=admin\\rroot" in message
    assert "\n" not in message
    assert "\r" not in message


def test_configure_logging_keeps_security_audit_logger_at_info() -> None:
    configure_logging(Settings(log_level="WARNING"))

    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    assert audit_logger.getEffectiveLevel() == logging.INFO


def test_json_formatter_carries_structured_fields() -> None:
    logger = logging.getLogger("fscs_backend.test")
    records: list[logging.LogRecord] = []

    class Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    handler = Collect()
    logger.addHandler(handler)
    try:
        log_with_fields(logger, logging.WARNING, "top moved", top_id="t-1", weight=3, note=None)
    finally:
        logger.removeHandler(handler)

    payload = json.loads(JsonLogFormatter().format(records[0]))
    assert payload["message"] == "top moved top_id=t-1 weight=3"
    assert payload["fields"] == {"top_id": "t-1", "weight": "3"}
