"""
Command policy tables.

Which resource kinds a command lists, and which namespaces a command may
never touch. The policy is built once at startup and is read-only after.
"""

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

import yaml

from kubeguard.modules.api import CommandKind

logger = logging.getLogger("kubeguard.resolver.policy")

NAMESPACE_SYSTEM = "kube-system"
NAMESPACE_PUBLIC = "kube-public"
DEFAULT_AGENT_NAMESPACE = "kubeguard-system"

DEFAULT_RESOURCE_KINDS: Tuple[str, ...] = ("pods",)


def _command_key(command_name) -> str:
    return command_name.value if isinstance(command_name, CommandKind) else str(command_name)


def _default_excluded_namespaces(agent_namespace: str) -> Dict[str, FrozenSet[str]]:
    protected = frozenset({NAMESPACE_SYSTEM, NAMESPACE_PUBLIC, agent_namespace})
    return {
        CommandKind.UPDATE.value: protected,
        CommandKind.INJECT.value: protected,
        CommandKind.DECRYPT.value: protected,
        CommandKind.ENCRYPT.value: protected,
        CommandKind.REMOVE.value: protected,
        CommandKind.RESTART.value: frozenset({NAMESPACE_SYSTEM, NAMESPACE_PUBLIC}),
        CommandKind.SCAN.value: frozenset(),
    }


def _default_resource_kinds() -> Dict[str, Tuple[str, ...]]:
    return {
        CommandKind.UNREGISTERED.value: ("namespaces", "pods"),
        CommandKind.DECRYPT.value: ("secrets",),
        CommandKind.ENCRYPT.value: ("secrets",),
    }


@dataclass(frozen=True)
class CommandPolicy:
    """Immutable resource-kind and namespace-exclusion tables."""

    excluded_namespaces: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    resource_kinds: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def default(cls, agent_namespace: str = DEFAULT_AGENT_NAMESPACE) -> "CommandPolicy":
        return cls(
            excluded_namespaces=MappingProxyType(_default_excluded_namespaces(agent_namespace)),
            resource_kinds=MappingProxyType(_default_resource_kinds()),
        )

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any], agent_namespace: str = DEFAULT_AGENT_NAMESPACE) -> "CommandPolicy":
        """
        Build a policy from defaults plus configured additions.

        Configured namespaces are added to the defaults, never replace them.

        Example:
            excludedNamespaces:
              restart: [monitoring]
        """
        excluded = _default_excluded_namespaces(agent_namespace)
        additions = (config_data or {}).get("excludedNamespaces") or {}
        if not isinstance(additions, dict):
            raise ValueError("excludedNamespaces must be a mapping of command to namespaces")

        for command_name, namespaces in additions.items():
            if not isinstance(namespaces, list):
                raise ValueError(f"excludedNamespaces.{command_name} must be a list")
            excluded[command_name] = excluded.get(command_name, frozenset()) | frozenset(
                str(ns) for ns in namespaces
            )

        return cls(
            excluded_namespaces=MappingProxyType(excluded),
            resource_kinds=MappingProxyType(_default_resource_kinds()),
        )

    @classmethod
    def from_file(cls, config_path: Optional[str], agent_namespace: str = DEFAULT_AGENT_NAMESPACE) -> "CommandPolicy":
        """Load policy additions from a YAML file; a missing file means defaults only."""
        if not config_path or not Path(config_path).exists():
            logger.info("No policy config found, using default command policy")
            return cls.default(agent_namespace)

        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}

        policy = cls.from_dict(config_data, agent_namespace)
        logger.info(f"Command policy loaded from {config_path}")
        return policy

    def relevant_resource_kinds(self, command_name) -> Tuple[str, ...]:
        """Resources listed when resolving a command."""
        return self.resource_kinds.get(_command_key(command_name), DEFAULT_RESOURCE_KINDS)

    def is_namespace_excluded(self, command_name, namespace: str) -> bool:
        return namespace in self.excluded_namespaces.get(_command_key(command_name), frozenset())


# Process-wide policy, built once
_instance: Optional[CommandPolicy] = None
_instance_lock = threading.Lock()


def get_command_policy(
    agent_namespace: str = DEFAULT_AGENT_NAMESPACE, config_path: Optional[str] = None
) -> CommandPolicy:
    """Get the command policy singleton. Arguments only apply to the first call."""
    global _instance
    with _instance_lock:
        if _instance is None:
            _instance = CommandPolicy.from_file(config_path, agent_namespace)
        return _instance
