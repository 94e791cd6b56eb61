"""
LDAP Bridge Directory Client

The directory capability used by the authenticator, and its ldap3
implementation.

Capability:
- Directory.connect(address) -> DirectoryConnection   (ConnectError)
- DirectoryConnection.bind(dn, password)              (BindError)
- DirectoryConnection.search(base_dn, filter) -> DNs  (SearchError)
- DirectoryConnection.close()

Search is always a subtree search with alias dereferencing disabled that
requests no attributes, so only entry DNs come back. Referrals are never
chased: every bind and search stays on the one connection, and a referral
result is a search failure.
"""

from __future__ import annotations

from typing import Any, List, Protocol

import attrs
import structlog
from ldap3 import DEREF_NEVER, NO_ATTRIBUTES, NONE, SIMPLE, SUBTREE, Connection, Server
from ldap3.core.exceptions import LDAPException

from ldapbridge.core.exceptions import BindError, ConnectError, SearchError

logger = structlog.get_logger()


# Default bound on connect and receive, in seconds.
DEFAULT_TIMEOUT = 10.0

# LDAP result code for success (RFC 4511).
RESULT_SUCCESS = 0


# =============================================================================
# CAPABILITY
# =============================================================================


class DirectoryConnection(Protocol):
    """An open, exclusively owned connection to a directory server."""

    def bind(self, dn: str, password: str) -> None:
        ...

    def search(self, base_dn: str, search_filter: str) -> List[str]:
        ...

    def close(self) -> None:
        ...


class Directory(Protocol):
    """Factory for directory connections."""

    def connect(self, address: str) -> DirectoryConnection:
        ...


# =============================================================================
# LDAP3 IMPLEMENTATION
# =============================================================================


@attrs.define
class Ldap3Connection:
    """
    DirectoryConnection backed by a synchronous ldap3 Connection.

    Binds reuse the same connection: a second bind replaces the
    authentication context of the first.
    """

    connection: Connection
    address: str = ""

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def bind(self, dn: str, password: str) -> None:
        """
        Simple-bind the connection as dn.

        An empty password is refused before reaching the server, so it
        can never turn into an unauthenticated bind (RFC 4513 5.1.2).

        Raises:
            BindError: bind refused or not performed
        """
        if not password:
            raise BindError(f"Bind as {dn!r} refused: empty password")

        try:
            bound = self.connection.rebind(
                user=dn,
                password=password,
                authentication=SIMPLE,
            )
        except LDAPException as e:
            raise BindError(f"Bind as {dn!r} failed: {type(e).__name__}") from e

        if not bound:
            result = self.connection.result or {}
            raise BindError(
                f"Bind as {dn!r} refused: {result.get('description', 'unknown')}",
                code=result.get("result"),
            )

        self._logger.debug("ldap_bind_ok", address=self.address, dn=dn)

    def search(self, base_dn: str, search_filter: str) -> List[str]:
        """
        Subtree search under base_dn returning the DNs of matching entries.

        Raises:
            SearchError: transport failure or non-success result code,
                including a referral (code 10); code carries the LDAP result
        """
        try:
            self.connection.search(
                search_base=base_dn,
                search_filter=search_filter,
                search_scope=SUBTREE,
                dereference_aliases=DEREF_NEVER,
                attributes=NO_ATTRIBUTES,
            )
        except LDAPException as e:
            raise SearchError(f"Search under {base_dn!r} failed: {type(e).__name__}") from e

        result = self.connection.result or {}
        if result.get("result", RESULT_SUCCESS) != RESULT_SUCCESS:
            raise SearchError(
                f"Search under {base_dn!r} failed: {result.get('description', 'unknown')}",
                code=result["result"],
            )

        # Referrals and intermediate responses are not entries
        return [
            entry["dn"]
            for entry in (self.connection.response or [])
            if entry.get("type") == "searchResEntry"
        ]

    def close(self) -> None:
        """Unbind and close the socket."""
        try:
            self.connection.unbind()
        except LDAPException as e:
            self._logger.debug("ldap_unbind_failed", address=self.address, error=type(e).__name__)
        self._logger.debug("ldap_connection_closed", address=self.address)


@attrs.define
class Ldap3Directory:
    """
    Directory opening ldap3 connections.

    Example:
        directory = Ldap3Directory(timeout=5.0)
        conn = directory.connect("ldap://ldap.example.com:389")
        try:
            conn.bind("cn=svc,dc=example,dc=com", "secret")
            dns = conn.search("dc=example,dc=com", "(uid=jdoe)")
        finally:
            conn.close()
    """

    timeout: float = DEFAULT_TIMEOUT

    _logger: Any = attrs.Factory(lambda: structlog.get_logger())

    def connect(self, address: str) -> Ldap3Connection:
        """
        Open a connection to an ldap:// or ldaps:// address.

        Raises:
            ConnectError: invalid address or socket could not be opened
        """
        try:
            server = Server(
                address,
                get_info=NONE,
                connect_timeout=self.timeout,
                allowed_referral_hosts=[],
            )
            connection = Connection(
                server,
                receive_timeout=self.timeout,
                raise_exceptions=False,
                auto_referrals=False,
            )
            connection.open()
        except (LDAPException, OSError) as e:
            self._logger.warning(
                "ldap_connect_failed",
                address=address,
                error=type(e).__name__,
            )
            raise ConnectError(f"Failed to connect to {address!r}: {type(e).__name__}") from e

        self._logger.debug("ldap_connected", address=address)
        return Ldap3Connection(connection=connection, address=address)


def create_directory(timeout: float = DEFAULT_TIMEOUT) -> Ldap3Directory:
    """Create the production directory with the given I/O bound."""
    return Ldap3Directory(timeout=timeout)
