"""Structured logging configuration with correlation IDs and secret redaction."""

import logging
import re
import sys
from contextvars import ContextVar
from typing import Any, Optional
from uuid import uuid4

import orjson
import structlog

from llm_backend.config import get_settings

# Correlation id of the orchestrated call currently running in this task
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class SecretRedactor:
    """Mask credentials that may leak into log values."""

    API_KEY_PATTERN = re.compile(r"\b(sk-|sk-ant-|pk-|api[_-]?key[\s=:]+)[\w-]{16,}\b", re.IGNORECASE)
    BEARER_PATTERN = re.compile(r"\bBearer\s+[\w.~+/-]+=*", re.IGNORECASE)
    JWT_PATTERN = re.compile(r"\beyJ[A-Za-z0-9-_]+\.[A-Za-z0-9-_]+\.[A-Za-z0-9-_]+\b")

    @classmethod
    def redact(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value

        value = cls.JWT_PATTERN.sub("[JWT_REDACTED]", value)
        value = cls.BEARER_PATTERN.sub("Bearer [REDACTED]", value)
        value = cls.API_KEY_PATTERN.sub("[API_KEY_REDACTED]", value)
        return value


def add_context_vars(logger, method_name, event_dict):
    """Add the correlation id to log events."""
    if request_id := request_id_var.get():
        event_dict["request_id"] = request_id
    return event_dict


def redact_secrets(logger, method_name, event_dict):
    """Redact credentials from logs."""
    for key, value in event_dict.items():
        if key in ("timestamp", "level", "logger", "request_id"):
            continue
        if isinstance(value, str):
            event_dict[key] = SecretRedactor.redact(value)
        elif isinstance(value, dict):
            event_dict[key] = {k: SecretRedactor.redact(v) for k, v in value.items()}
    return event_dict


def _orjson_dumps(obj: Any, **kwargs) -> str:
    return orjson.dumps(obj, default=kwargs.get("default")).decode()


def setup_logging(
    level: Optional[str] = None,
    format: Optional[str] = None,
    redact: bool = True,
) -> None:
    """Configure structured logging."""
    if level is None or format is None:
        settings = get_settings()
        level = level or settings.log_level
        format = format or settings.log_format
    log_level = level.upper()
    log_format = format

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_context_vars,
    ]

    if redact:
        processors.append(redact_secrets)

    processors.extend(
        [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]
    )

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(serializer=_orjson_dumps))
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
        force=True,
    )

    # Suppress noisy loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class RequestContext:
    """Context manager binding a correlation id for one orchestrated call."""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or uuid4().hex[:12]
        self._token = None

    def __enter__(self):
        self._token = request_id_var.set(self.request_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        request_id_var.reset(self._token)
        return False
