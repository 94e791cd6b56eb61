"""
LDAP Bridge Response Mapper

Renders an outcome into the response-header contract:

- Authenticated: Auth-Status: OK, Auth-Server and Auth-Port echoed
- Any failure: Auth-Status carries a human-readable reason

The HTTP status is always 200. The calling proxy only inspects headers,
so failure is signalled through Auth-Status alone.
"""

from __future__ import annotations

from typing import Dict, Optional, Union

import attrs

from ldapbridge.core.exceptions import ValidationError
from ldapbridge.core.types import AuthAttempt, DirectoryOutcome, FailureReason
from ldapbridge.gateway import headers as h

HTTP_OK = 200

FAILURE_DESCRIPTIONS = {
    FailureReason.CONNECT: "unable to connect to directory",
    FailureReason.SERVICE_BIND: "directory service account bind failed",
    FailureReason.SEARCH: "directory search failed",
    FailureReason.TIMEOUT: "directory did not answer in time",
    FailureReason.USER_NOT_FOUND: "user not found or ambiguous",
    FailureReason.BAD_CREDENTIALS: "invalid credentials",
}


@attrs.define(frozen=True)
class ResponseHeaders:
    """HTTP status and headers to send back to the proxy."""

    headers: Dict[str, str] = attrs.Factory(dict)
    status: int = HTTP_OK

    @property
    def auth_status(self) -> str:
        return self.headers[h.AUTH_STATUS]


def describe_failure(outcome: DirectoryOutcome, attempt: Optional[AuthAttempt] = None) -> str:
    """
    Human-readable failure text for Auth-Status.

    Names the user and the failed step; never includes a password.
    """
    description = FAILURE_DESCRIPTIONS.get(outcome.reason, str(outcome.reason))
    if attempt is None:
        return f"Authentication failed: {description}"
    return f"Unable to authenticate user {attempt.user}: {description}"


def render(
    result: Union[DirectoryOutcome, ValidationError],
    attempt: Optional[AuthAttempt] = None,
    expose_transient: bool = False,
    retry_wait: int = 3,
) -> ResponseHeaders:
    """
    Render a directory outcome or a validation error.

    Args:
        result: Outcome of the directory run, or the translator's error
        attempt: The attempt (needed for passthrough echo on success)
        expose_transient: Add Auth-Wait to connection failures
        retry_wait: Seconds to put in Auth-Wait

    Returns:
        ResponseHeaders with status 200
    """
    if isinstance(result, ValidationError):
        return ResponseHeaders(headers={h.AUTH_STATUS: result.message})

    if result.success:
        if attempt is None:
            raise ValueError("Successful outcome needs the attempt to echo routing headers")
        return ResponseHeaders(
            headers={
                h.AUTH_STATUS: h.STATUS_OK,
                h.AUTH_SERVER: attempt.passthrough_server,
                h.AUTH_PORT: attempt.passthrough_port,
            }
        )

    response_headers = {h.AUTH_STATUS: describe_failure(result, attempt)}
    if expose_transient and result.is_transient:
        response_headers[h.AUTH_WAIT] = str(retry_wait)
    return ResponseHeaders(headers=response_headers)
