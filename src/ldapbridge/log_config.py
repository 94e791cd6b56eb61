"""
LDAP Bridge Logging Setup

structlog configuration for the bridge process. Every log call in the
package goes through structlog's event-name style:

    logger.info("auth_request_received", user="jdoe")

Secrets are never passed to loggers; redact_secrets masks them anyway
if a key that names one shows up in an event.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, List, MutableMapping

import structlog

REDACTED = "***"

# Event keys whose values are always masked.
SECRET_KEYS = frozenset({
    "password",
    "bind_password",
    "auth-pass",
    "x-ldap-bindpass",
})


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]  # noqa: ARG001
) -> MutableMapping[str, Any]:
    """structlog processor masking secret values, including inside header dicts."""
    for key in list(event_dict):
        if key.lower() in SECRET_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(event_dict[key], dict):
            event_dict[key] = {
                k: (REDACTED if str(k).lower() in SECRET_KEYS else v)
                for k, v in event_dict[key].items()
            }
    return event_dict


def build_processors(log_format: str = "console") -> List[Any]:
    """Processor chain ending with a console or JSON renderer."""
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def configure_logging(level: str = "INFO", log_format: str = "console") -> None:
    """
    Configure structlog and the stdlib root logger.

    aiohttp logs through the stdlib; it is sent to stderr at the same
    level.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    structlog.configure(
        processors=build_processors(log_format),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
        cache_logger_on_first_use=False,
    )
