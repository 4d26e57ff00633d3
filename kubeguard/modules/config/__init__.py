"""
Config Module - Black Box Interface

Purpose: Agent configuration management
Interface: get_config(), ConfigModule.get(), set(), get_all()
Hidden: Config sources, validation logic, environment parsing

Can be replaced with different config systems (ConfigMaps, Vault, files).
"""

import os
from typing import Any, Dict


# Configuration Contract: Required and Optional Keys
# This defines the black box interface - what the config module guarantees to provide

REQUIRED_CONFIG_KEYS = {
    "cluster_name": "Name of this cluster, embedded in every identifier",
    "agent_namespace": "Namespace the agent runs in (protected from mutating commands)",
    "host": "HTTP callback API bind address",
    "port": "HTTP callback API port",
    "log_level": "Logging level (DEBUG, INFO, WARNING, ERROR)",
    "watch_timeout_seconds": "Server-side timeout of each pod watch",
    "resync_backoff_seconds": "Wait before relisting pods after a failure",
    "max_owner_depth": "Maximum owner references climbed per object",
}

OPTIONAL_CONFIG_KEYS = {
    "backend_url": {
        "description": "Control backend URL for the command channel",
        "default": None,  # Command channel disabled if not provided
    },
    "token": {
        "description": "Bearer token for the command channel",
        "default": None,
    },
    "ssl_verify": {
        "description": "Verify TLS certificates of the backend",
        "default": True,
    },
    "ca_cert_path": {
        "description": "CA bundle for the backend",
        "default": None,
    },
    "policy_config_path": {
        "description": "YAML file with additional excluded namespaces per command",
        "default": "/etc/kubeguard/policy.yaml",
    },
}


class ConfigModule:
    """Configuration management module."""

    def __init__(self):
        """Initialize with environment variables."""
        self._config = self._load_from_env()
        self._validate_required_keys()

    def _validate_required_keys(self) -> None:
        """
        Validate that all required configuration keys are present.

        Raises:
            ValueError: If required keys are missing
        """
        missing_keys = []
        for key in REQUIRED_CONFIG_KEYS:
            if key not in self._config or self._config[key] is None:
                missing_keys.append(key)

        if missing_keys:
            raise ValueError(
                f"Missing required configuration keys: {', '.join(missing_keys)}. "
                f"Check environment variables and deployment configuration."
            )

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment."""
        return {
            # Cluster settings
            "cluster_name": os.getenv("CLUSTER_NAME"),
            "agent_namespace": os.getenv("AGENT_NAMESPACE", "kubeguard-system"),
            # API settings
            "host": os.getenv("API_HOST", "0.0.0.0"),
            "port": int(os.getenv("API_PORT", "4002")),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            # Watcher settings
            "watch_timeout_seconds": int(os.getenv("WATCH_TIMEOUT_SECONDS", "300")),
            "resync_backoff_seconds": float(os.getenv("RESYNC_BACKOFF_SECONDS", "5")),
            "max_owner_depth": int(os.getenv("MAX_OWNER_DEPTH", "10")),
            # Command channel settings
            "backend_url": os.getenv("KUBEGUARD_BACKEND_URL"),
            "token": os.getenv("KUBEGUARD_TOKEN"),
            "ssl_verify": os.getenv("KUBEGUARD_SSL_VERIFY", "true").lower() == "true",
            "ca_cert_path": os.getenv("KUBEGUARD_CA_CERT"),
            # Policy settings
            "policy_config_path": os.getenv(
                "KUBEGUARD_POLICY_CONFIG", "/etc/kubeguard/policy.yaml"
            ),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set configuration value."""
        self._config[key] = value

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return self._config.copy()

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """
        Get the configuration schema (contract) for this module.

        Returns:
            Dictionary with 'required' and 'optional' key specifications

        Example:
            >>> schema = ConfigModule.get_config_schema()
            >>> print(schema['required']['cluster_name'])
            'Name of this cluster, embedded in every identifier'
        """
        return {
            "required": REQUIRED_CONFIG_KEYS.copy(),
            "optional": OPTIONAL_CONFIG_KEYS.copy(),
        }


# Singleton instance
_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["get_config", "ConfigModule", "REQUIRED_CONFIG_KEYS", "OPTIONAL_CONFIG_KEYS"]
