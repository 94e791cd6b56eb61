"""
LDAP Bridge Exception Types

Custom exceptions for request validation and directory errors.

Messages never include the user's password or the service-account
password; they are safe to log and to return to the caller.
"""

from typing import Optional


class LdapBridgeError(Exception):
    """Base exception for all LDAP bridge errors."""

    def __init__(self, message: str, code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


# =============================================================================
# REQUEST VALIDATION
# =============================================================================


class ValidationError(LdapBridgeError):
    """
    Inbound request is malformed.

    Raised (or returned as a Failure) before any directory I/O happens.
    Never retried.
    """

    pass


class UnsupportedMethod(ValidationError):
    """Auth-Method header is absent or is not ``plain``."""

    def __init__(self, method: str) -> None:
        super().__init__(f"Unsupported authentication method {method}")
        self.method = method


class MissingRouteInfo(ValidationError):
    """Auth-Server or Auth-Port header is absent or empty."""

    def __init__(
        self,
        message: str = "Must supply Auth-Server and Auth-Port via HTTP Header.",
    ) -> None:
        super().__init__(message)


class MalformedIdentity(ValidationError):
    """Auth-User header is not of the expected shape."""

    def __init__(
        self,
        message: str = "Username must contain both user id and domain.",
    ) -> None:
        super().__init__(message)


# =============================================================================
# DIRECTORY ERRORS
# =============================================================================


class DirectoryError(LdapBridgeError):
    """
    Directory capability failed.

    Raised by Directory and DirectoryConnection implementations and
    converted into a DirectoryOutcome by the authenticator.
    """

    pass


class ConnectError(DirectoryError):
    """Could not open a connection to the directory address."""

    pass


class BindError(DirectoryError):
    """Bind was refused or could not be performed."""

    pass


class SearchError(DirectoryError):
    """Search could not be performed (transport or server failure)."""

    pass


# =============================================================================
# STATE MACHINE
# =============================================================================


class StateError(LdapBridgeError):
    """
    Invalid state transition.

    An event was delivered that the current state does not accept.
    """

    pass


class InvariantViolation(LdapBridgeError):
    """
    Authentication invariant was violated.

    The authenticator reached a state its own rules forbid, e.g.
    VERIFIED without a located user DN. Indicates a programming error.
    """

    pass
