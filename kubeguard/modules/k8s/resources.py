"""
Mapping of resource names and kinds to group/version/resource triples.
"""

from typing import NamedTuple

from .errors import AccessorError


class GroupVersionResource(NamedTuple):
    group: str
    version: str
    resource: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


# resource -> (group, version, kind)
RESOURCE_GROUP_MAPPING = {
    "namespaces": ("", "v1", "Namespace"),
    "pods": ("", "v1", "Pod"),
    "secrets": ("", "v1", "Secret"),
    "configmaps": ("", "v1", "ConfigMap"),
    "services": ("", "v1", "Service"),
    "nodes": ("", "v1", "Node"),
    "replicationcontrollers": ("", "v1", "ReplicationController"),
    "serviceaccounts": ("", "v1", "ServiceAccount"),
    "deployments": ("apps", "v1", "Deployment"),
    "replicasets": ("apps", "v1", "ReplicaSet"),
    "statefulsets": ("apps", "v1", "StatefulSet"),
    "daemonsets": ("apps", "v1", "DaemonSet"),
    "jobs": ("batch", "v1", "Job"),
    "cronjobs": ("batch", "v1", "CronJob"),
}

_KIND_TO_RESOURCE = {kind.lower(): resource for resource, (_, _, kind) in RESOURCE_GROUP_MAPPING.items()}


def resource_name(name: str) -> str:
    """Normalize a resource name or kind ("Deployment", "deployment") to the plural resource."""
    lowered = name.lower()
    if lowered in RESOURCE_GROUP_MAPPING:
        return lowered
    if lowered in _KIND_TO_RESOURCE:
        return _KIND_TO_RESOURCE[lowered]
    raise AccessorError(f"Resource '{name}' not supported")


def get_group_version_resource(name: str) -> GroupVersionResource:
    """
    Look up the group/version/resource of a resource name or kind.

    Raises:
        AccessorError: If the name is unknown
    """
    resource = resource_name(name)
    group, version, _ = RESOURCE_GROUP_MAPPING[resource]
    return GroupVersionResource(group=group, version=version, resource=resource)


def get_kind(name: str) -> str:
    """Kind of a resource name or kind."""
    return RESOURCE_GROUP_MAPPING[resource_name(name)][2]
