"""
LDAP Bridge Directory Types

States, context and events of the three-step directory protocol:
service bind, user search, user rebind.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Optional

import attrs

from ldapbridge.core.types import FailureReason


# Entries the user search may match.
USER_OBJECT_CLASS = "organizationalPerson"

# Attribute compared with the local part of the identity.
USER_ID_ATTRIBUTE = "uid"


# =============================================================================
# DIRECTORY STATE MACHINE
# =============================================================================


class DirectoryState(Enum):
    """Directory authentication states."""

    INITIAL = auto()
    CONNECTED = auto()
    SERVICE_BOUND = auto()
    USER_LOCATED = auto()
    VERIFIED = auto()
    FAILED = auto()


@attrs.define
class DirectoryContext:
    """
    Directory authentication context.

    Holds only non-secret data; it is snapshotted into the transition
    history.
    """

    address: str = ""
    user: str = ""
    bind_dn: str = ""
    user_dn: Optional[str] = None
    match_count: Optional[int] = None

    failed_in: Optional[str] = None
    failure_reason: Optional[FailureReason] = None


# =============================================================================
# EVENTS
# =============================================================================


@attrs.define(frozen=True, slots=True)
class ConnectionOpened:
    """Event: Connection to the directory address is open."""

    address: str
    user: str


@attrs.define(frozen=True, slots=True)
class ServiceAccountBound:
    """Event: Service account bind accepted."""

    bind_dn: str


@attrs.define(frozen=True, slots=True)
class UserLocated:
    """Event: Search returned exactly one entry."""

    user_dn: str


@attrs.define(frozen=True, slots=True)
class PasswordVerified:
    """Event: Rebind as the located user accepted."""

    user_dn: str


@attrs.define(frozen=True, slots=True)
class StepFailed:
    """Event: A protocol step failed."""

    reason: FailureReason
    match_count: Optional[int] = None
    detail: str = ""
