"""
LDAP Bridge Core Types

Value types shared by the request translator, the directory
authenticator and the response mapper.

Design Principles:
- Immutable: all types use frozen attrs
- Validated: an AuthAttempt is either complete or never constructed
- Secret-safe: password fields are excluded from repr
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Optional

import attrs
from attrs import field, validators

from ldapbridge.core.exceptions import (
    MalformedIdentity,
    MissingRouteInfo,
    UnsupportedMethod,
)


# The only Auth-Method value the bridge accepts.
PLAIN_METHOD = "plain"


# =============================================================================
# ENUMS
# =============================================================================


class OutcomeKind(Enum):
    """Class of a directory authentication outcome."""

    AUTHENTICATED = auto()
    REJECTED = auto()  # Directory-confirmed negative, terminal
    CONNECTION_FAILED = auto()  # Infrastructure failure, caller may retry


class FailureReason(Enum):
    """
    Opaque reason codes carried by failed outcomes.

    Values are stable strings suitable for logs and metrics labels.
    """

    CONNECT = "connect"
    SERVICE_BIND = "service-bind"
    SEARCH = "search"
    TIMEOUT = "timeout"
    USER_NOT_FOUND = "user-not-found-or-ambiguous"
    BAD_CREDENTIALS = "bad-credentials"

    def __str__(self) -> str:
        return self.value


# =============================================================================
# IDENTITY
# =============================================================================


@attrs.define(frozen=True, slots=True)
class UserIdentity:
    """
    User identity taken from the Auth-User header.

    Format: localpart@domain (domain-qualified) or localpart (plain).

    INVARIANT: local_part is non-empty; domain is None or non-empty
    """

    local_part: str = field(validator=[validators.instance_of(str), validators.min_len(1)])
    domain: Optional[str] = field(
        default=None,
        validator=validators.optional([validators.instance_of(str), validators.min_len(1)]),
    )

    @classmethod
    def parse(cls, raw: str, require_domain: bool = True) -> UserIdentity:
        """
        Parse identity from the raw header value.

        Examples:
            "jdoe@example.com" -> UserIdentity("jdoe", "example.com")
            "jdoe" (require_domain=False) -> UserIdentity("jdoe", None)

        Raises:
            MalformedIdentity: zero or several '@', or an empty segment
        """
        if not require_domain:
            if not raw:
                raise MalformedIdentity("Username must not be empty.")
            return cls(local_part=raw)

        parts = raw.split("@")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise MalformedIdentity()
        return cls(local_part=parts[0], domain=parts[1])

    def __str__(self) -> str:
        if self.domain is None:
            return self.local_part
        return f"{self.local_part}@{self.domain}"


# =============================================================================
# AUTH ATTEMPT
# =============================================================================


@attrs.define(frozen=True, slots=True)
class AuthAttempt:
    """
    One authentication request, fully validated.

    Created per request by the translator and discarded when the
    response has been rendered.

    INVARIANT: method is "plain"
    INVARIANT: passthrough_server and passthrough_port are non-empty
    """

    user: UserIdentity = field(validator=validators.instance_of(UserIdentity))
    password: str = field(repr=False)
    passthrough_server: str
    passthrough_port: str
    directory_address: str = ""
    base_dn: str = ""
    bind_dn: str = ""
    bind_password: str = field(default="", repr=False)
    method: str = PLAIN_METHOD

    def __attrs_post_init__(self) -> None:
        if self.method != PLAIN_METHOD:
            raise UnsupportedMethod(self.method)
        if not self.passthrough_server or not self.passthrough_port:
            raise MissingRouteInfo()


# =============================================================================
# RESULT TYPES
# =============================================================================


@attrs.define(frozen=True, slots=True)
class DirectoryOutcome:
    """
    Result of running the directory protocol for one AuthAttempt.

    Attributes:
        kind: Outcome class
        reason: Failure reason code (None when authenticated)
    """

    kind: OutcomeKind
    reason: Optional[FailureReason] = None

    def __attrs_post_init__(self) -> None:
        if self.kind is OutcomeKind.AUTHENTICATED:
            if self.reason is not None:
                raise ValueError("Authenticated outcome cannot carry a reason")
        elif self.reason is None:
            raise ValueError("Failed outcome must have a reason")

    @property
    def success(self) -> bool:
        return self.kind is OutcomeKind.AUTHENTICATED

    @property
    def is_transient(self) -> bool:
        """True when the failure was infrastructure, not a rejection."""
        return self.kind is OutcomeKind.CONNECTION_FAILED

    @classmethod
    def authenticated(cls) -> DirectoryOutcome:
        return cls(kind=OutcomeKind.AUTHENTICATED)

    @classmethod
    def rejected(cls, reason: FailureReason) -> DirectoryOutcome:
        return cls(kind=OutcomeKind.REJECTED, reason=reason)

    @classmethod
    def connection_failed(cls, reason: FailureReason) -> DirectoryOutcome:
        return cls(kind=OutcomeKind.CONNECTION_FAILED, reason=reason)
