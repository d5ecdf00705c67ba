"""
Tests for environment configuration.
"""

import pytest

from ide_mcp_proxy import env_config
from ide_mcp_proxy.config import ProxyConfig

ENV_KEYS = [
    "IDE_PORT", "HOST", "IDE_API_PREFIX", "IDE_PORT_SCAN_BASE", "IDE_PORT_SCAN_COUNT",
    "REFRESH_INTERVAL", "PROBE_TIMEOUT", "CALL_TIMEOUT", "EVICT_AFTER_FAILURES",
    "SHUTDOWN_GRACE", "TRANSPORT_MODE", "HTTP_HOST", "HTTP_PORT", "LOG_ENABLED",
    "LOG_LEVEL", "LOG_FILE", "SENTRY_DSN",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        # setenv first so teardown also removes values written by load_env_file
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


class TestProxyConfig:
    """Test ProxyConfig defaults, env parsing and validation."""

    def test_defaults(self, clean_env):
        config = ProxyConfig.from_env()

        assert config.explicit_port is None
        assert config.host == "127.0.0.1"
        assert config.scan_ports == range(63342, 63353)
        assert config.refresh_interval == 10.0
        assert config.evict_after == 0
        assert config.transport_mode == "stdio"
        assert config.http_port == 3000
        assert config.log_enabled is False

    def test_from_env(self, clean_env):
        clean_env.setenv("IDE_PORT", "63343")
        clean_env.setenv("HOST", "localhost")
        clean_env.setenv("TRANSPORT_MODE", "HTTP")
        clean_env.setenv("LOG_ENABLED", "true")
        clean_env.setenv("REFRESH_INTERVAL", "2.5")

        config = ProxyConfig.from_env()

        assert config.explicit_port == 63343
        assert config.host == "localhost"
        assert config.transport_mode == "http"
        assert config.log_enabled is True
        assert config.refresh_interval == 2.5

    def test_empty_value_means_unset(self, clean_env):
        clean_env.setenv("IDE_PORT", "")
        assert ProxyConfig.from_env().explicit_port is None

    def test_junk_port_rejected(self, clean_env):
        clean_env.setenv("IDE_PORT", "abc")
        with pytest.raises(ValueError, match="IDE_PORT must be an integer"):
            ProxyConfig.from_env()

    def test_out_of_range_port_rejected(self):
        with pytest.raises(ValueError):
            ProxyConfig(explicit_port=70000)

    def test_unknown_transport_rejected(self, clean_env):
        clean_env.setenv("TRANSPORT_MODE", "websocket")
        with pytest.raises(ValueError, match="TRANSPORT_MODE"):
            ProxyConfig.from_env()

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValueError):
            ProxyConfig(refresh_interval=0)

    def test_with_overrides_skips_none(self):
        config = ProxyConfig(http_port=3000).with_overrides(http_port=None, explicit_port=63350)
        assert config.http_port == 3000
        assert config.explicit_port == 63350

    def test_to_dict_hides_sentry_dsn(self):
        data = ProxyConfig(sentry_dsn="https://key@sentry.example/1").to_dict()
        assert data["sentry_dsn"] is True


class TestEnvFile:
    """Test .env loading."""

    def test_env_file_does_not_override_environment(self, tmp_path, clean_env):
        env_file = tmp_path / ".env"
        env_file.write_text('# comment\nHOST="10.0.0.5"\nHTTP_PORT=4000\n')
        clean_env.setenv("HTTP_PORT", "5000")

        env_config.load_env_file(env_file)

        assert env_config.get_env("HOST") == "10.0.0.5"
        assert env_config.get_int("HTTP_PORT") == 5000

    def test_get_bool(self, clean_env):
        for value in ("1", "true", "Yes", "on"):
            clean_env.setenv("LOG_ENABLED", value)
            assert env_config.get_bool("LOG_ENABLED") is True
        clean_env.setenv("LOG_ENABLED", "off")
        assert env_config.get_bool("LOG_ENABLED") is False
