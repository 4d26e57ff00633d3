"""
Tests for the command policy tables.
"""

import pytest

from kubeguard.modules.api import CommandKind
from kubeguard.modules.resolver import CommandPolicy, get_command_policy
from kubeguard.modules.resolver import policy as policy_module


@pytest.fixture
def reset_policy(monkeypatch):
    """Clear the process-wide policy around a test."""
    monkeypatch.setattr(policy_module, "_instance", None)


class TestDefaultPolicy:
    """Test the built-in tables."""

    def test_protected_namespaces(self):
        policy = CommandPolicy.default(agent_namespace="security")

        for command in ("update", "inject", "remove", "encryptSecret", "decryptSecret"):
            assert policy.is_namespace_excluded(command, "kube-system")
            assert policy.is_namespace_excluded(command, "kube-public")
            assert policy.is_namespace_excluded(command, "security")
            assert not policy.is_namespace_excluded(command, "kubeguard-system")

    def test_restart_only_protects_system_namespaces(self):
        policy = CommandPolicy.default()

        assert policy.is_namespace_excluded(CommandKind.RESTART, "kube-system")
        assert not policy.is_namespace_excluded(CommandKind.RESTART, "kubeguard-system")

    def test_scan_excludes_nothing(self):
        policy = CommandPolicy.default()
        assert not policy.is_namespace_excluded(CommandKind.SCAN, "kube-system")

    def test_empty_namespace_never_excluded(self):
        assert not CommandPolicy.default().is_namespace_excluded("update", "")

    def test_tables_are_read_only(self):
        policy = CommandPolicy.default()

        with pytest.raises(TypeError):
            policy.excluded_namespaces["update"] = frozenset()
        with pytest.raises(TypeError):
            policy.resource_kinds["update"] = ("deployments",)


class TestConfiguredPolicy:
    """Test policy additions from configuration."""

    def test_from_dict_adds_to_defaults(self):
        policy = CommandPolicy.from_dict({"excludedNamespaces": {"restart": ["monitoring"], "scan": ["sandbox"]}})

        assert policy.is_namespace_excluded("restart", "monitoring")
        assert policy.is_namespace_excluded("restart", "kube-system")
        assert policy.is_namespace_excluded("scan", "sandbox")
        assert not policy.is_namespace_excluded("update", "monitoring")

    def test_from_dict_empty(self):
        assert CommandPolicy.from_dict({}) == CommandPolicy.default()
        assert CommandPolicy.from_dict(None) == CommandPolicy.default()

    @pytest.mark.parametrize(
        "config_data",
        [
            {"excludedNamespaces": ["monitoring"]},
            {"excludedNamespaces": {"restart": "monitoring"}},
        ],
    )
    def test_from_dict_invalid(self, config_data):
        with pytest.raises(ValueError):
            CommandPolicy.from_dict(config_data)

    def test_from_file(self, tmp_path):
        config_file = tmp_path / "policy.yaml"
        config_file.write_text(
            "excludedNamespaces:\n"
            "  update:\n"
            "    - payments\n"
            "    - ledger\n"
        )

        policy = CommandPolicy.from_file(str(config_file), agent_namespace="guard")

        assert policy.is_namespace_excluded("update", "payments")
        assert policy.is_namespace_excluded("update", "ledger")
        assert policy.is_namespace_excluded("update", "guard")

    def test_from_empty_file(self, tmp_path):
        config_file = tmp_path / "policy.yaml"
        config_file.write_text("")

        assert CommandPolicy.from_file(str(config_file)) == CommandPolicy.default()

    def test_missing_file_uses_defaults(self, tmp_path):
        policy = CommandPolicy.from_file(str(tmp_path / "absent.yaml"))
        assert policy == CommandPolicy.default()


class TestCommandPolicySingleton:
    """Test process-wide policy initialization."""

    def test_initialized_once(self, reset_policy, tmp_path):
        config_file = tmp_path / "policy.yaml"
        config_file.write_text("excludedNamespaces:\n  restart: [monitoring]\n")

        first = get_command_policy(agent_namespace="guard", config_path=str(config_file))
        second = get_command_policy(agent_namespace="other", config_path=None)

        assert second is first
        assert first.is_namespace_excluded("restart", "monitoring")
        assert first.is_namespace_excluded("update", "guard")
        assert not first.is_namespace_excluded("update", "other")
