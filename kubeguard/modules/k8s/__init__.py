"""
K8s Module - Black Box Interface

Purpose: Access cluster state (list, get, watch, owner resolution)
Interface: ClusterAccessor, KubernetesClusterAccessor, Workload, resolve_owner_chain()
Hidden: kubernetes client configuration, dynamic resource discovery, watch streams

Can be replaced with any object implementing the ClusterAccessor protocol
(tests use an in-memory fake).
"""

from .accessor import ClusterAccessor, KubernetesClusterAccessor, load_kube_config
from .errors import AccessorError, OwnerResolutionError
from .owners import DEFAULT_MAX_OWNER_DEPTH, resolve_owner_chain
from .resources import GroupVersionResource, get_group_version_resource
from .workload import WLID_ANNOTATION, Workload

__all__ = [
    "AccessorError",
    "ClusterAccessor",
    "DEFAULT_MAX_OWNER_DEPTH",
    "GroupVersionResource",
    "KubernetesClusterAccessor",
    "OwnerResolutionError",
    "WLID_ANNOTATION",
    "Workload",
    "get_group_version_resource",
    "load_kube_config",
    "resolve_owner_chain",
]
