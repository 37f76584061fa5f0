"""Logging setup and the structured ``key=value`` helpers.

Events are logged as ``message key=value ...`` so plain log lines stay
greppable. The same fields are attached to the record, so the JSON
formatter emits them as an object instead of re-parsing the text.
"""

from __future__ import annotations

import json
import logging
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from logging.config import dictConfig
from typing import Any

from fscs_backend.settings import Settings, get_settings

AUDIT_LOGGER_NAME = "fscs_backend.security.audit"

_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
_FIELDS_ATTR = "fscs_fields"

_request_id: ContextVar[str | None] = ContextVar("fscs_request_id", default=None)

_NAMED_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t", '"': '\\"'}


def normalize_log_level(raw_level: str) -> str:
    level = raw_level.strip().upper()
    return level if level in _LEVELS else "INFO"


def get_request_id() -> str | None:
    return _request_id.get()


def set_request_id(request_id: str) -> Token[str | None]:
    return _request_id.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    _request_id.reset(token)


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "message": record.getMessage(),
        }
        fields = getattr(record, _FIELDS_ATTR, None)
        if fields:
            payload["fields"] = {key: str(value) for key, value in fields.items()}
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True)


def _escape_char(ch: str) -> str:
    if ch in _NAMED_ESCAPES:
        return _NAMED_ESCAPES[ch]
    code = ord(ch)
    if code < 0x20 or code == 0x7F:
        return f"\\x{code:02x}"
    return ch


def _format_log_value(value: object) -> str:
    text = value if isinstance(value, str) else str(value)
    # Values may come from request data; keep one event per line.
    escaped = "".join(_escape_char(ch) for ch in text)
    if " " in escaped or "=" in escaped:
        return f'"{escaped}"'
    return escaped


def _present(fields: dict[str, object]) -> dict[str, object]:
    return {key: fields[key] for key in sorted(fields) if fields[key] is not None}


def format_log_fields(**fields: object) -> str:
    return " ".join(f"{key}={_format_log_value(value)}" for key, value in _present(fields).items())


def log_with_fields(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    exc_info: Any | None = None,
    **fields: object,
) -> None:
    present = _present(fields)
    extra = {_FIELDS_ATTR: present}
    if not present:
        logger.log(level, "%s", message, exc_info=exc_info, extra=extra)
        return
    logger.log(level, "%s %s", message, format_log_fields(**present), exc_info=exc_info, extra=extra)


def log_security_audit_event(
    audit_event: str,
    outcome: str,
    *,
    level: int = logging.INFO,
    **fields: object,
) -> None:
    log_with_fields(
        logging.getLogger(AUDIT_LOGGER_NAME),
        level,
        "security audit event",
        audit_event=audit_event,
        outcome=outcome,
        **fields,
    )


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings if settings is not None else get_settings()
    level = normalize_log_level(settings.log_level)

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "request_context": {"()": RequestContextFilter},
            },
            "formatters": {
                "plain": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] [req=%(request_id)s] %(message)s",
                },
                "json": {"()": JsonLogFormatter},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "filters": ["request_context"],
                    "formatter": "json" if settings.log_json else "plain",
                }
            },
            "root": {"handlers": ["default"], "level": level},
            "loggers": {
                # Audit events stay visible even when the root level is raised.
                AUDIT_LOGGER_NAME: {"level": "INFO"},
                "uvicorn": {"level": level},
                "uvicorn.error": {"level": level},
                "uvicorn.access": {"level": level},
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )
