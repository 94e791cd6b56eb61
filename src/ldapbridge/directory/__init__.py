"""
LDAP Bridge Directory Module

Directory-side authentication: service bind, user search, user rebind.

Components:
- types: Protocol states, context and events
- client: Directory capability and its ldap3 implementation
- authenticator: DirectoryAuthenticator driving the state machine
"""

from ldapbridge.directory.types import (
    DirectoryState,
    DirectoryContext,
    ConnectionOpened,
    ServiceAccountBound,
    UserLocated,
    PasswordVerified,
    StepFailed,
)
from ldapbridge.directory.client import (
    Directory,
    DirectoryConnection,
    Ldap3Directory,
    Ldap3Connection,
    create_directory,
)
from ldapbridge.directory.authenticator import (
    DirectoryAuthenticator,
    DirectoryStateMachine,
    build_user_filter,
    create_authenticator,
)

__all__ = [
    # State machine
    "DirectoryState",
    "DirectoryContext",
    "DirectoryStateMachine",
    # Events
    "ConnectionOpened",
    "ServiceAccountBound",
    "UserLocated",
    "PasswordVerified",
    "StepFailed",
    # Capability
    "Directory",
    "DirectoryConnection",
    "Ldap3Directory",
    "Ldap3Connection",
    # Authenticator
    "DirectoryAuthenticator",
    "build_user_filter",
    # Factory functions
    "create_directory",
    "create_authenticator",
]
