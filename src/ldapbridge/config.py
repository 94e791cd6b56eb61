"""
LDAP Bridge Configuration

Process-level settings. Per-request directory parameters arrive in
request headers and are not part of this configuration.
"""

from __future__ import annotations

import os
from typing import Any, Mapping, Optional

import attrs
from attrs import field, validators

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5000
DEFAULT_AUTH_TIMEOUT = 10.0
DEFAULT_RETRY_WAIT = 3

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")

ENV_PREFIX = "LDAP_BRIDGE_"

_TRUE_VALUES = ("1", "true", "yes", "on")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


@attrs.define(frozen=True)
class BridgeConfig:
    """
    LDAP bridge configuration.

    Attributes:
        host: Address to listen on
        port: Port to listen on
        auth_timeout: Deadline in seconds for the whole directory run
        require_domain: Auth-User must be localpart@domain
        expose_transient_failures: Add Auth-Wait to connection failures
            so the proxy can tell them from rejected credentials
        retry_wait: Seconds sent in Auth-Wait
        log_level: Minimum log level
        log_format: "console" or "json"
    """

    host: str = DEFAULT_HOST
    port: int = field(
        default=DEFAULT_PORT,
        converter=int,
        validator=[validators.ge(1), validators.le(65535)],
    )
    auth_timeout: float = field(
        default=DEFAULT_AUTH_TIMEOUT,
        converter=float,
        validator=validators.gt(0),
    )
    require_domain: bool = field(default=True, converter=_to_bool)
    expose_transient_failures: bool = field(default=False, converter=_to_bool)
    retry_wait: int = field(
        default=DEFAULT_RETRY_WAIT,
        converter=int,
        validator=validators.ge(0),
    )
    log_level: str = field(
        default="INFO",
        converter=str.upper,
        validator=validators.in_(LOG_LEVELS),
    )
    log_format: str = field(
        default="console",
        converter=str.lower,
        validator=validators.in_(LOG_FORMATS),
    )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> BridgeConfig:
        """
        Build config from LDAP_BRIDGE_* environment variables.

        Keyword overrides (e.g. from the command line) win over the
        environment; None overrides are ignored.

        Example:
            LDAP_BRIDGE_PORT=8080 LDAP_BRIDGE_AUTH_TIMEOUT=5
        """
        environ = os.environ if environ is None else environ
        values = {}
        for attribute in attrs.fields(cls):
            key = ENV_PREFIX + attribute.name.upper()
            if key in environ:
                values[attribute.name] = environ[key]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
