"""
Unit tests for ldapbridge.core.types module.

Tests identity parsing, AuthAttempt invariants and outcome construction.
"""

import pytest

from ldapbridge.core.exceptions import (
    MalformedIdentity,
    MissingRouteInfo,
    UnsupportedMethod,
)
from ldapbridge.core.types import (
    AuthAttempt,
    DirectoryOutcome,
    FailureReason,
    OutcomeKind,
    UserIdentity,
)


class TestUserIdentity:
    """Tests for UserIdentity parsing."""

    def test_parse_qualified(self):
        """Test localpart@domain splits into two parts."""
        identity = UserIdentity.parse("jdoe@example.com")
        assert identity.local_part == "jdoe"
        assert identity.domain == "example.com"

    @pytest.mark.parametrize(
        "raw",
        ["", "jdoe", "@example.com", "jdoe@", "@", "a@b@c", "jdoe@@example.com"],
    )
    def test_parse_malformed(self, raw):
        """Test identities without exactly one '@' and two parts are rejected."""
        with pytest.raises(MalformedIdentity):
            UserIdentity.parse(raw)

    def test_parse_plain_variant(self):
        """Test plain identity is taken verbatim when domain not required."""
        identity = UserIdentity.parse("jdoe", require_domain=False)
        assert identity.local_part == "jdoe"
        assert identity.domain is None

    def test_parse_plain_variant_empty(self):
        """Test empty identity is rejected even when domain not required."""
        with pytest.raises(MalformedIdentity):
            UserIdentity.parse("", require_domain=False)

    def test_str(self):
        """Test string representation."""
        assert str(UserIdentity("jdoe", "example.com")) == "jdoe@example.com"
        assert str(UserIdentity("jdoe")) == "jdoe"

    def test_identity_hashable(self):
        """Test identity can be used in sets."""
        assert UserIdentity("jdoe", "example.com") in {UserIdentity("jdoe", "example.com")}


class TestAuthAttempt:
    """Tests for AuthAttempt construction."""

    def test_valid_attempt(self, attempt):
        """Test a complete attempt is constructed."""
        assert attempt.method == "plain"
        assert attempt.passthrough_server == "10.0.0.5"
        assert attempt.passthrough_port == "143"

    def test_unsupported_method(self):
        """Test non-plain method fails construction."""
        with pytest.raises(UnsupportedMethod):
            AuthAttempt(
                user=UserIdentity("jdoe", "example.com"),
                password="pw",
                passthrough_server="10.0.0.5",
                passthrough_port="143",
                method="cram-md5",
            )

    @pytest.mark.parametrize("server,port", [("", "143"), ("10.0.0.5", ""), ("", "")])
    def test_missing_route_info(self, server, port):
        """Test empty passthrough fields fail construction."""
        with pytest.raises(MissingRouteInfo):
            AuthAttempt(
                user=UserIdentity("jdoe", "example.com"),
                password="pw",
                passthrough_server=server,
                passthrough_port=port,
            )

    def test_repr_hides_passwords(self, attempt):
        """Test neither password appears in repr."""
        text = repr(attempt)
        assert attempt.password not in text
        assert attempt.bind_password not in text
        assert "jdoe" in text

    def test_attempt_is_frozen(self, attempt):
        """Test attempt cannot be mutated."""
        with pytest.raises(AttributeError):
            attempt.password = "other"


class TestDirectoryOutcome:
    """Tests for DirectoryOutcome."""

    def test_authenticated(self):
        """Test authenticated outcome."""
        outcome = DirectoryOutcome.authenticated()
        assert outcome.success
        assert outcome.kind is OutcomeKind.AUTHENTICATED
        assert outcome.reason is None
        assert not outcome.is_transient

    def test_rejected(self):
        """Test rejected outcome is not transient."""
        outcome = DirectoryOutcome.rejected(FailureReason.BAD_CREDENTIALS)
        assert not outcome.success
        assert outcome.kind is OutcomeKind.REJECTED
        assert not outcome.is_transient

    def test_connection_failed(self):
        """Test connection failure is transient."""
        outcome = DirectoryOutcome.connection_failed(FailureReason.CONNECT)
        assert not outcome.success
        assert outcome.is_transient

    def test_failure_requires_reason(self):
        """Test failed outcome must carry a reason."""
        with pytest.raises(ValueError):
            DirectoryOutcome(kind=OutcomeKind.REJECTED)

    def test_success_rejects_reason(self):
        """Test authenticated outcome cannot carry a reason."""
        with pytest.raises(ValueError):
            DirectoryOutcome(kind=OutcomeKind.AUTHENTICATED, reason=FailureReason.CONNECT)

    def test_reason_codes(self):
        """Test reason codes render as stable strings."""
        assert str(FailureReason.USER_NOT_FOUND) == "user-not-found-or-ambiguous"
        assert str(FailureReason.BAD_CREDENTIALS) == "bad-credentials"
        assert FailureReason.SERVICE_BIND.value == "service-bind"
