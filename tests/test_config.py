"""
Tests for configuration loading.
"""

import logging

import pytest

from kubeguard import logging_config
from kubeguard.modules import config as config_module
from kubeguard.modules.config import ConfigModule, get_config

ENV_VARS = [
    "CLUSTER_NAME",
    "AGENT_NAMESPACE",
    "API_PORT",
    "MAX_OWNER_DEPTH",
    "RESYNC_BACKOFF_SECONDS",
    "KUBEGUARD_BACKEND_URL",
    "KUBEGUARD_SSL_VERIFY",
    "KUBEGUARD_POLICY_CONFIG",
]


@pytest.fixture
def clean_env(monkeypatch):
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config_module, "_instance", None)
    return monkeypatch


class TestConfigModule:
    """Test environment-based configuration."""

    def test_defaults(self, clean_env):
        clean_env.setenv("CLUSTER_NAME", "prod")

        config = ConfigModule()

        assert config.get("cluster_name") == "prod"
        assert config.get("agent_namespace") == "kubeguard-system"
        assert config.get("port") == 4002
        assert config.get("max_owner_depth") == 10
        assert config.get("resync_backoff_seconds") == 5.0
        assert config.get("backend_url") is None
        assert config.get("ssl_verify") is True
        assert config.get("policy_config_path") == "/etc/kubeguard/policy.yaml"

    def test_overrides(self, clean_env):
        clean_env.setenv("CLUSTER_NAME", "prod")
        clean_env.setenv("AGENT_NAMESPACE", "security")
        clean_env.setenv("API_PORT", "8080")
        clean_env.setenv("MAX_OWNER_DEPTH", "4")
        clean_env.setenv("KUBEGUARD_SSL_VERIFY", "false")

        config = ConfigModule()

        assert config.get("agent_namespace") == "security"
        assert config.get("port") == 8080
        assert config.get("max_owner_depth") == 4
        assert config.get("ssl_verify") is False

    def test_cluster_name_required(self, clean_env):
        with pytest.raises(ValueError, match="cluster_name"):
            ConfigModule()

    def test_set_and_get_all(self, clean_env):
        clean_env.setenv("CLUSTER_NAME", "prod")
        config = ConfigModule()

        config.set("cluster_name", "staging")

        assert config.get_all()["cluster_name"] == "staging"
        assert config.get("missing", "fallback") == "fallback"

    def test_schema_lists_required_keys(self):
        schema = ConfigModule.get_config_schema()
        assert "cluster_name" in schema["required"]
        assert schema["optional"]["backend_url"]["default"] is None

    def test_singleton(self, clean_env):
        clean_env.setenv("CLUSTER_NAME", "prod")
        assert get_config() is get_config()


class TestLoggingConfig:
    """Test logging configuration."""

    def test_level_applied_to_agent_loggers(self):
        config = logging_config.get_logging_config("debug")

        assert config["loggers"]["kubeguard"]["level"] == "DEBUG"
        assert config["loggers"]["kubernetes"]["level"] == "WARNING"

    @pytest.mark.parametrize("path, expected", [("/health", False), ("/healthz", False), ("/v1/images", True)])
    def test_health_check_filter(self, path, expected):
        record = logging.LogRecord(
            "uvicorn.access", logging.INFO, __file__, 1,
            '%s - "%s %s HTTP/%s" %d', ("127.0.0.1:5000", "GET", path, "1.1", 200), None,
        )

        assert logging_config.HealthCheckFilter().filter(record) is expected
