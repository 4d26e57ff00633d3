"""
Owner chain traversal.

Climbs controller owner references from an object (typically a pod) up to
its top-level controller, e.g. Pod -> ReplicaSet -> Deployment.
"""

import logging
from typing import Callable, Optional, Tuple

from .errors import AccessorError, OwnerResolutionError
from .workload import Workload

logger = logging.getLogger("kubeguard.k8s.owners")

DEFAULT_MAX_OWNER_DEPTH = 10

# fetch_owner(kind, namespace, name, api_version) -> Workload
OwnerFetcher = Callable[[str, str, str, Optional[str]], Workload]


def resolve_owner_chain(
    workload: Workload,
    fetch_owner: OwnerFetcher,
    max_depth: int = DEFAULT_MAX_OWNER_DEPTH,
) -> Tuple[str, str]:
    """
    Find the top-level controller of a workload.

    Args:
        workload: Object to start from
        fetch_owner: Callable fetching an owner object from the cluster
        max_depth: Maximum number of owners to climb

    Returns:
        (kind, name) of the top-level controller. An object without owners
        is its own top-level controller.

    Raises:
        OwnerResolutionError: On a malformed reference, a cycle, a failed
            fetch, or a chain longer than max_depth
    """
    namespace = workload.get_namespace()
    name = workload.get_name()
    current = workload
    visited = {(current.get_kind().lower(), current.get_name())}

    for depth in range(max_depth + 1):
        ref = current.get_controller_reference()

        # Static (mirror) pods are owned by their node
        if ref is None or ref.get("kind") == "Node":
            return current.get_kind(), current.get_name()

        owner_kind = ref.get("kind")
        owner_name = ref.get("name")
        if not owner_kind or not owner_name:
            raise OwnerResolutionError(namespace, name, f"malformed owner reference: {ref}")

        if depth == max_depth:
            raise OwnerResolutionError(namespace, name, f"owner chain deeper than {max_depth}")

        key = (owner_kind.lower(), owner_name)
        if key in visited:
            raise OwnerResolutionError(
                namespace, name, f"owner reference cycle at {owner_kind}/{owner_name}"
            )
        visited.add(key)

        try:
            current = fetch_owner(owner_kind, namespace, owner_name, ref.get("apiVersion"))
        except AccessorError as e:
            raise OwnerResolutionError(
                namespace, name, f"failed to get {owner_kind} {owner_name}: {e}"
            ) from e
        logger.debug(f"{namespace}/{name}: climbed to {owner_kind}/{owner_name}")
