"""Structured logging configuration using structlog.

Decryption handles private keys, ECDH secrets and cardholder payment data.
None of those may reach a log sink, so every event passes through
``redact_sensitive_fields`` before it is rendered.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from apple_pay_token.config import settings

REDACTED = "[REDACTED]"

# Field names (or fragments of them) whose values are never rendered
SENSITIVE_FIELDS = frozenset(
    {
        "private_key",
        "shared_secret",
        "symmetric_key",
        "plaintext",
        "payment_data",
        "ciphertext",
        "ephemeral_public_key",
        "signature",
    }
)


def _is_sensitive(key: str) -> bool:
    key_lower = key.lower()
    return any(fragment in key_lower for fragment in SENSITIVE_FIELDS)


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: REDACTED if _is_sensitive(str(k)) else _redact(v) for k, v in value.items()}
    return value


def redact_sensitive_fields(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Replace key material and payment data in log events with a placeholder.

    Length fields such as ``plaintext_length`` are kept; they describe the
    value without revealing it.
    """
    for key in list(event_dict):
        if key.endswith("_length"):
            continue
        if _is_sensitive(key):
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _redact(event_dict[key])
    return event_dict


def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the service name and deployment environment."""
    event_dict.setdefault("service", settings.service_name)
    event_dict.setdefault("environment", settings.environment)
    return event_dict


def configure_logging(
    log_level: str | None = None,
    format_as_json: bool | None = None,
) -> None:
    """
    Configure structured logging for the service.

    Args:
        log_level: Logging level name. Defaults to settings.log_level.
        format_as_json: Render JSON lines instead of console output.
            Defaults to settings.log_json.
    """
    level = (log_level or settings.log_level).upper()
    as_json = settings.log_json if format_as_json is None else format_as_json

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        redact_sensitive_fields,
    ]

    if as_json:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name`` (usually the module's __name__)."""
    return structlog.get_logger(name)
