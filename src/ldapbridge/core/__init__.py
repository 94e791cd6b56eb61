"""
LDAP Bridge Core Module

Provides foundational types and abstractions used by every layer.

Components:
- types: AuthAttempt, UserIdentity, DirectoryOutcome and reason codes
- state_machine: Base state machine with invariant checking
- exceptions: Custom exception types
"""

from ldapbridge.core.types import (
    PLAIN_METHOD,
    AuthAttempt,
    DirectoryOutcome,
    FailureReason,
    OutcomeKind,
    UserIdentity,
)
from ldapbridge.core.state_machine import StateMachineBase, Transition
from ldapbridge.core.exceptions import (
    LdapBridgeError,
    ValidationError,
    UnsupportedMethod,
    MissingRouteInfo,
    MalformedIdentity,
    DirectoryError,
    ConnectError,
    BindError,
    SearchError,
    StateError,
    InvariantViolation,
)

__all__ = [
    # Types
    "PLAIN_METHOD",
    "AuthAttempt",
    "DirectoryOutcome",
    "FailureReason",
    "OutcomeKind",
    "UserIdentity",
    # State Machine
    "StateMachineBase",
    "Transition",
    # Exceptions
    "LdapBridgeError",
    "ValidationError",
    "UnsupportedMethod",
    "MissingRouteInfo",
    "MalformedIdentity",
    "DirectoryError",
    "ConnectError",
    "BindError",
    "SearchError",
    "StateError",
    "InvariantViolation",
]
