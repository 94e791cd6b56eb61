"""
Pytest configuration and shared fixtures for LDAP bridge tests.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

import attrs
import pytest

from ldapbridge.config import BridgeConfig
from ldapbridge.core.exceptions import BindError, ConnectError, SearchError
from ldapbridge.core.types import AuthAttempt, UserIdentity
from ldapbridge.directory.authenticator import DirectoryAuthenticator


USER_DN = "uid=jdoe,ou=people,dc=example,dc=com"
USER_PASSWORD = "TestP@ssw0rd123!"
BIND_DN = "cn=bridge,ou=services,dc=example,dc=com"
BIND_PASSWORD = "svc-S3cret!"
BASE_DN = "ou=people,dc=example,dc=com"
LDAP_URL = "ldap://ldap.example.com:389"


# =============================================================================
# DIRECTORY TEST DOUBLE
# =============================================================================


@attrs.define
class FakeConnection:
    """Connection double recording every call on its directory."""

    directory: "FakeDirectory"

    def bind(self, dn: str, password: str) -> None:
        self.directory.calls.append(("bind", dn))
        if dn == self.directory.bind_dn:
            if not self.directory.service_bind_ok:
                raise BindError(f"Bind as {dn!r} refused: invalidCredentials")
            return
        if dn in self.directory.search_results and password == self.directory.user_password:
            return
        raise BindError(f"Bind as {dn!r} refused: invalidCredentials")

    def search(self, base_dn: str, search_filter: str) -> List[str]:
        self.directory.calls.append(("search", base_dn, search_filter))
        if self.directory.search_error:
            raise SearchError(f"Search under {base_dn!r} failed: noSuchObject")
        return list(self.directory.search_results)

    def close(self) -> None:
        self.directory.calls.append(("close",))
        self.directory.closes += 1


@attrs.define
class FakeDirectory:
    """
    Directory double.

    Accepts the service account unless service_bind_ok is False, returns
    search_results for every search and accepts a rebind for any returned
    DN with user_password.
    """

    bind_dn: str = BIND_DN
    search_results: List[str] = attrs.Factory(lambda: [USER_DN])
    user_password: str = USER_PASSWORD
    service_bind_ok: bool = True
    search_error: bool = False
    connect_error: bool = False

    calls: List[Tuple[Any, ...]] = attrs.Factory(list)
    opens: int = 0
    closes: int = 0

    def connect(self, address: str) -> FakeConnection:
        self.calls.append(("connect", address))
        if self.connect_error:
            raise ConnectError(f"Failed to connect to {address!r}: LDAPSocketOpenError")
        self.opens += 1
        return FakeConnection(directory=self)

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]


# =============================================================================
# REQUEST FIXTURES
# =============================================================================


@pytest.fixture
def valid_headers() -> Dict[str, str]:
    """Headers of a well-formed auth request."""
    return {
        "Auth-Method": "plain",
        "Auth-User": "jdoe@example.com",
        "Auth-Pass": USER_PASSWORD,
        "Auth-Server": "10.0.0.5",
        "Auth-Port": "143",
        "X-Ldap-URL": LDAP_URL,
        "X-Ldap-BaseDN": BASE_DN,
        "X-Ldap-BindDN": BIND_DN,
        "X-Ldap-BindPass": BIND_PASSWORD,
    }


@pytest.fixture
def attempt() -> AuthAttempt:
    """Valid auth attempt matching valid_headers."""
    return make_attempt()


# =============================================================================
# DIRECTORY FIXTURES
# =============================================================================


@pytest.fixture
def make_directory() -> Callable[..., FakeDirectory]:
    """Factory for directory doubles."""
    return FakeDirectory


@pytest.fixture
def directory() -> FakeDirectory:
    """Directory double on the happy path."""
    return FakeDirectory()


@pytest.fixture
def authenticator(directory: FakeDirectory) -> DirectoryAuthenticator:
    """Authenticator over the happy-path directory double."""
    return DirectoryAuthenticator(directory=directory)


@pytest.fixture
def bridge_config() -> BridgeConfig:
    """Default configuration with a short timeout."""
    return BridgeConfig(auth_timeout=2.0)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def make_attempt(
    local_part: str = "jdoe",
    domain: Optional[str] = "example.com",
    password: str = USER_PASSWORD,
) -> AuthAttempt:
    """Helper to create an auth attempt."""
    return AuthAttempt(
        user=UserIdentity(local_part=local_part, domain=domain),
        password=password,
        passthrough_server="10.0.0.5",
        passthrough_port="143",
        directory_address=LDAP_URL,
        base_dn=BASE_DN,
        bind_dn=BIND_DN,
        bind_password=BIND_PASSWORD,
    )


@pytest.fixture
def attempt_factory() -> Callable[..., AuthAttempt]:
    """Factory for auth attempts."""
    return make_attempt


# =============================================================================
# PYTEST MARKERS
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests requiring a real LDAP server"
    )
