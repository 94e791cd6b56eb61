"""
Unit tests for ldapbridge.config module.
"""

import pytest

from ldapbridge.config import DEFAULT_PORT, BridgeConfig


class TestBridgeConfig:
    """Tests for BridgeConfig validation."""

    def test_defaults(self):
        """Test defaults match the documented values."""
        config = BridgeConfig()
        assert config.port == DEFAULT_PORT == 5000
        assert config.host == "0.0.0.0"
        assert config.auth_timeout == 10.0
        assert config.require_domain is True
        assert config.expose_transient_failures is False
        assert config.log_level == "INFO"
        assert config.log_format == "console"

    @pytest.mark.parametrize("port", [0, -1, 65536])
    def test_port_out_of_range(self, port):
        """Test invalid ports are rejected."""
        with pytest.raises(ValueError):
            BridgeConfig(port=port)

    def test_port_converted(self):
        """Test string port is converted."""
        assert BridgeConfig(port="8080").port == 8080

    def test_non_positive_timeout(self):
        """Test timeout must be positive."""
        with pytest.raises(ValueError):
            BridgeConfig(auth_timeout=0)

    def test_log_level_normalized(self):
        """Test log level is upper-cased and validated."""
        assert BridgeConfig(log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValueError):
            BridgeConfig(log_level="chatty")

    def test_unknown_log_format(self):
        """Test only console and json formats are accepted."""
        with pytest.raises(ValueError):
            BridgeConfig(log_format="xml")

    def test_frozen(self):
        """Test config cannot be mutated."""
        with pytest.raises(AttributeError):
            BridgeConfig().port = 1


class TestFromEnv:
    """Tests for environment loading."""

    def test_empty_environment(self):
        """Test empty environment gives defaults."""
        assert BridgeConfig.from_env({}) == BridgeConfig()

    def test_reads_prefixed_variables(self):
        """Test LDAP_BRIDGE_* variables are read and converted."""
        config = BridgeConfig.from_env(
            {
                "LDAP_BRIDGE_PORT": "8080",
                "LDAP_BRIDGE_AUTH_TIMEOUT": "2.5",
                "LDAP_BRIDGE_REQUIRE_DOMAIN": "false",
                "LDAP_BRIDGE_EXPOSE_TRANSIENT_FAILURES": "yes",
                "LDAP_BRIDGE_LOG_FORMAT": "JSON",
                "PORT": "1",
            }
        )
        assert config.port == 8080
        assert config.auth_timeout == 2.5
        assert config.require_domain is False
        assert config.expose_transient_failures is True
        assert config.log_format == "json"

    def test_overrides_win(self):
        """Test keyword overrides beat the environment."""
        config = BridgeConfig.from_env({"LDAP_BRIDGE_PORT": "8080"}, port=9090)
        assert config.port == 9090

    def test_none_overrides_ignored(self):
        """Test None overrides leave the environment value."""
        config = BridgeConfig.from_env({"LDAP_BRIDGE_PORT": "8080"}, port=None)
        assert config.port == 8080

    def test_invalid_value(self):
        """Test unparseable values raise ValueError."""
        with pytest.raises(ValueError):
            BridgeConfig.from_env({"LDAP_BRIDGE_PORT": "http"})

    def test_reads_os_environ(self, monkeypatch):
        """Test process environment is used by default."""
        monkeypatch.setenv("LDAP_BRIDGE_RETRY_WAIT", "9")
        assert BridgeConfig.from_env().retry_wait == 9
