"""
LDAP Bridge Request Translator

Turns the inbound header set into an AuthAttempt. Pure: no network or
directory I/O happens here.

Rules, first failure wins:
1. Auth-Method must be exactly "plain"
2. Auth-Server and Auth-Port must be present and non-empty
3. Auth-User must parse as an identity (localpart@domain by default)
4. Password and X-Ldap-* values are taken verbatim, empty or not
"""

from __future__ import annotations

from typing import Mapping

from multidict import CIMultiDict
from returns.result import Failure, Result, Success

from ldapbridge.core.exceptions import (
    MissingRouteInfo,
    UnsupportedMethod,
    ValidationError,
)
from ldapbridge.core.types import PLAIN_METHOD, AuthAttempt, UserIdentity
from ldapbridge.gateway import headers as h


def translate(
    request_headers: Mapping[str, str],
    require_domain: bool = True,
) -> Result[AuthAttempt, ValidationError]:
    """
    Build an AuthAttempt from request headers.

    Args:
        request_headers: Header mapping; names are matched case-insensitively
        require_domain: Auth-User must be localpart@domain

    Returns:
        Success(AuthAttempt) or Failure(ValidationError)
    """
    headers = CIMultiDict(request_headers)

    method = headers.get(h.AUTH_METHOD, "")
    if method != PLAIN_METHOD:
        return Failure(UnsupportedMethod(method))

    server = headers.get(h.AUTH_SERVER, "")
    port = headers.get(h.AUTH_PORT, "")
    if not server or not port:
        return Failure(MissingRouteInfo())

    try:
        user = UserIdentity.parse(headers.get(h.AUTH_USER, ""), require_domain=require_domain)
        attempt = AuthAttempt(
            method=method,
            user=user,
            password=headers.get(h.AUTH_PASS, ""),
            passthrough_server=server,
            passthrough_port=port,
            directory_address=headers.get(h.X_LDAP_URL, ""),
            base_dn=headers.get(h.X_LDAP_BASE_DN, ""),
            bind_dn=headers.get(h.X_LDAP_BIND_DN, ""),
            bind_password=headers.get(h.X_LDAP_BIND_PASS, ""),
        )
    except ValidationError as e:
        return Failure(e)

    return Success(attempt)
