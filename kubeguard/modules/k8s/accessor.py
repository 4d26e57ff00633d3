"""
Cluster accessor backed by the kubernetes Python client.

The rest of the agent depends only on the ClusterAccessor protocol; this
module is the only place that talks to the Kubernetes API.
"""

import logging
import threading
from typing import Dict, Iterator, List, Optional, Protocol, Tuple

import urllib3
from kubernetes import client, config, watch
from kubernetes.client.rest import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import ResourceNotFoundError, ResourceNotUniqueError

from .errors import AccessorError
from .owners import DEFAULT_MAX_OWNER_DEPTH, resolve_owner_chain
from .resources import GroupVersionResource, get_group_version_resource
from .workload import Workload

logger = logging.getLogger("kubeguard.k8s")

# Failures of a single API call: HTTP errors, transport errors (timeouts,
# resets, exhausted retries) and ambiguous discovery results
API_CALL_ERRORS = (ApiException, urllib3.exceptions.HTTPError, ResourceNotFoundError, ResourceNotUniqueError)

DEFAULT_WATCH_READ_TIMEOUT_SECONDS = 5


class ClusterAccessor(Protocol):
    """Protocol for cluster access."""

    def list_workloads(
        self, resource: str, namespace: str = "", labels: Optional[Dict[str, str]] = None
    ) -> List[Workload]:
        """List objects of a resource, optionally scoped by namespace and labels."""
        ...

    def get_workload(
        self, kind: str, namespace: str, name: str, api_version: Optional[str] = None
    ) -> Workload:
        """Get a single object."""
        ...

    def resolve_owning_controller(self, workload: Workload) -> Tuple[str, str]:
        """Get (kind, name) of the top-level controller of an object."""
        ...

    def get_group_version_resource(self, name: str) -> GroupVersionResource:
        """Look up the group/version/resource of a resource name or kind."""
        ...

    def list_pods(self) -> Tuple[List[Workload], str]:
        """List all pods, returning them with the listing resource version."""
        ...

    def watch_pods(
        self, resource_version: str, stop_event: Optional[threading.Event] = None
    ) -> Iterator[Tuple[str, Workload]]:
        """Yield (event_type, pod) until the stream closes or stop_event is set."""
        ...


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to kubeconfig."""
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except config.ConfigException:
        config.load_kube_config()
        logger.info("Loaded kubeconfig")


def label_selector(labels: Optional[Dict[str, str]]) -> str:
    """Render a label map as a selector string."""
    if not labels:
        return ""
    return ",".join(f"{key}={value}" for key, value in labels.items())


class KubernetesClusterAccessor:
    """ClusterAccessor implementation using the kubernetes client."""

    def __init__(
        self,
        api_client: Optional[client.ApiClient] = None,
        max_owner_depth: int = DEFAULT_MAX_OWNER_DEPTH,
        watch_timeout_seconds: int = 300,
        watch_read_timeout_seconds: float = DEFAULT_WATCH_READ_TIMEOUT_SECONDS,
    ):
        """
        Initialize accessor.

        Args:
            api_client: Configured API client (loads cluster config when omitted)
            max_owner_depth: Maximum owner references climbed per object
            watch_timeout_seconds: Server-side timeout closing each pod watch
            watch_read_timeout_seconds: Longest a watch read blocks before the
                stop event is checked again
        """
        if api_client is None:
            load_kube_config()
            api_client = client.ApiClient()

        self.api_client = api_client
        self.core = client.CoreV1Api(api_client)
        self.max_owner_depth = max_owner_depth
        self.watch_timeout_seconds = watch_timeout_seconds
        self.watch_read_timeout_seconds = watch_read_timeout_seconds
        self._dynamic: Optional[DynamicClient] = None

    @property
    def dynamic(self) -> DynamicClient:
        # Discovery runs on construction, so defer it to first use
        if self._dynamic is None:
            try:
                self._dynamic = DynamicClient(self.api_client)
            except API_CALL_ERRORS as e:
                raise AccessorError(f"API discovery failed: {e}") from e
        return self._dynamic

    def _resource(self, api_version: str, kind: Optional[str] = None, name: Optional[str] = None):
        try:
            if kind:
                return self.dynamic.resources.get(api_version=api_version, kind=kind)
            return self.dynamic.resources.get(api_version=api_version, name=name)
        except API_CALL_ERRORS as e:
            raise AccessorError(f"Resource {kind or name} ({api_version}) not found: {e}") from e

    def get_group_version_resource(self, name: str) -> GroupVersionResource:
        return get_group_version_resource(name)

    def list_workloads(
        self, resource: str, namespace: str = "", labels: Optional[Dict[str, str]] = None
    ) -> List[Workload]:
        gvr = get_group_version_resource(resource)
        api = self._resource(gvr.api_version, name=gvr.resource)

        kwargs = {}
        selector = label_selector(labels)
        if selector:
            kwargs["label_selector"] = selector
        if namespace and api.namespaced:
            kwargs["namespace"] = namespace

        try:
            listing = api.get(**kwargs)
        except API_CALL_ERRORS as e:
            raise AccessorError(f"Failed to list {gvr.resource} in '{namespace}': {e}") from e

        items = listing.to_dict().get("items") or []
        logger.debug(f"Listed {len(items)} {gvr.resource} in '{namespace or '*'}'")
        return [Workload(item, kind=api.kind, api_version=gvr.api_version) for item in items]

    def get_workload(
        self, kind: str, namespace: str, name: str, api_version: Optional[str] = None
    ) -> Workload:
        if not api_version:
            api_version = get_group_version_resource(kind).api_version
        api = self._resource(api_version, kind=kind)

        try:
            if api.namespaced:
                obj = api.get(name=name, namespace=namespace)
            else:
                obj = api.get(name=name)
        except API_CALL_ERRORS as e:
            raise AccessorError(f"Failed to get {kind} {namespace}/{name}: {e}") from e

        return Workload(obj.to_dict(), kind=kind, api_version=api_version)

    def resolve_owning_controller(self, workload: Workload) -> Tuple[str, str]:
        return resolve_owner_chain(workload, self.get_workload, self.max_owner_depth)

    def _pod(self, pod: client.V1Pod) -> Workload:
        return Workload(self.api_client.sanitize_for_serialization(pod), kind="Pod", api_version="v1")

    def list_pods(self) -> Tuple[List[Workload], str]:
        try:
            pod_list = self.core.list_pod_for_all_namespaces()
        except API_CALL_ERRORS as e:
            raise AccessorError(f"Failed to list pods: {e}") from e

        resource_version = pod_list.metadata.resource_version if pod_list.metadata else ""
        return [self._pod(pod) for pod in pod_list.items], resource_version or ""

    def watch_pods(
        self, resource_version: str, stop_event: Optional[threading.Event] = None
    ) -> Iterator[Tuple[str, Workload]]:
        """
        Yield pod events starting after resource_version.

        Reads are bounded by watch_read_timeout_seconds. A read timeout only
        means the cluster was quiet: the stream is reopened from the last seen
        resource version unless stop_event is set, in which case the
        generator returns.

        Raises:
            AccessorError: On an ERROR event or a failed request
        """
        stop_event = stop_event or threading.Event()

        while not stop_event.is_set():
            pod_watch = watch.Watch()
            kwargs = {
                "timeout_seconds": self.watch_timeout_seconds,
                "_request_timeout": self.watch_read_timeout_seconds,
            }
            if resource_version:
                kwargs["resource_version"] = resource_version

            try:
                for event in pod_watch.stream(self.core.list_pod_for_all_namespaces, **kwargs):
                    if stop_event.is_set():
                        return
                    event_type = event.get("type")
                    if event_type == "ERROR":
                        raise AccessorError(f"Pod watch error: {event.get('raw_object')}")
                    pod = self._pod(event["object"])
                    resource_version = pod.get_resource_version() or resource_version
                    yield event_type, pod
                # Server-side timeout closed the stream
                return
            except urllib3.exceptions.ReadTimeoutError:
                logger.debug("Pod watch read timed out, reopening")
            except API_CALL_ERRORS as e:
                raise AccessorError(f"Pod watch failed: {e}") from e
            finally:
                pod_watch.stop()
