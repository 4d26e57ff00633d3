"""
Resolver Module - Black Box Interface

Purpose: Resolve inbound commands to concrete target identifiers
Interface: CommandResolver.resolve_command(), resolve_resource_identifiers(),
           CommandPolicy, get_command_policy()
Hidden: Namespace exclusion tables, owner resolution, per-item error collection

Partial failures are returned as data; only listing failures and excluded
namespaces raise.
"""

from .policy import (
    DEFAULT_AGENT_NAMESPACE,
    NAMESPACE_PUBLIC,
    NAMESPACE_SYSTEM,
    CommandPolicy,
    get_command_policy,
)
from .resolver import (
    CommandResolver,
    ItemResolution,
    NamespaceExcludedError,
    ResolutionResult,
    get_command_id,
    get_command_namespace,
)

__all__ = [
    "CommandPolicy",
    "CommandResolver",
    "DEFAULT_AGENT_NAMESPACE",
    "ItemResolution",
    "NAMESPACE_PUBLIC",
    "NAMESPACE_SYSTEM",
    "NamespaceExcludedError",
    "ResolutionResult",
    "get_command_id",
    "get_command_namespace",
    "get_command_policy",
]
