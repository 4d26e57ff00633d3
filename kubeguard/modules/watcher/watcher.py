#!/usr/bin/env python3
"""
Workload/image watcher for the Kubeguard agent.

Keeps two live maps built from observed pod state:
- image id -> WLIDs running that image
- WLID -> container name -> image id

Each map has its own lock and the two locks are never held together, so a
reader may see one map reflect a newer observation than the other. The maps
converge once the writer finishes the pod it is processing.
"""

import logging
import threading
from typing import Dict, List, Optional

from kubeguard.modules.identifiers import get_instance_id, get_wlid, normalize_image_id
from kubeguard.modules.k8s import AccessorError, ClusterAccessor, OwnerResolutionError, Workload

logger = logging.getLogger("kubeguard.watcher")

EVENT_ADDED = "ADDED"
EVENT_MODIFIED = "MODIFIED"
EVENT_DELETED = "DELETED"


def extract_container_to_image_ids(pod: Workload) -> Dict[str, str]:
    """Container name -> normalized image id, in container status order."""
    containers = {}
    for status in pod.get_container_statuses():
        image_id = status.get("imageID") or ""
        if not image_id:
            # Image not pulled yet
            continue
        containers[status.get("name", "")] = normalize_image_id(image_id)
    return containers


def extract_image_ids_from_pod(pod: Workload) -> List[str]:
    return list(extract_container_to_image_ids(pod).values())


class WatchHandler:
    """Maintains the image/workload maps against the pod list-watch stream."""

    def __init__(
        self,
        accessor: ClusterAccessor,
        cluster_name: str = "",
        resync_backoff_seconds: float = 5,
    ):
        """
        Initialize watcher.

        Args:
            accessor: Cluster accessor used for pod listing/watching and owner lookups
            cluster_name: Cluster name embedded in derived WLIDs
            resync_backoff_seconds: Wait before relisting after a listing or stream failure
        """
        self.accessor = accessor
        self.cluster_name = cluster_name
        self.resync_backoff_seconds = resync_backoff_seconds

        self.image_ids_to_wlids: Dict[str, List[str]] = {}
        self.wlids_to_container_image_ids: Dict[str, Dict[str, str]] = {}
        self._image_ids_lock = threading.Lock()
        self._wlids_lock = threading.Lock()

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # Read accessors

    def get_image_ids_to_wlids(self) -> Dict[str, List[str]]:
        """Point-in-time copy of the image id -> WLIDs map."""
        with self._image_ids_lock:
            return {image_id: list(wlids) for image_id, wlids in self.image_ids_to_wlids.items()}

    def get_wlids_to_container_image_ids(self) -> Dict[str, Dict[str, str]]:
        """Point-in-time copy of the WLID -> container -> image id map."""
        with self._wlids_lock:
            return {wlid: dict(containers) for wlid, containers in self.wlids_to_container_image_ids.items()}

    # Mutators

    def add_to_image_ids_to_wlids(self, image_id: str, wlid: str) -> None:
        with self._image_ids_lock:
            wlids = self.image_ids_to_wlids.setdefault(image_id, [])
            if wlid not in wlids:
                wlids.append(wlid)

    def add_to_wlids_to_container_image_ids(self, wlid: str, container: str, image_id: str) -> None:
        with self._wlids_lock:
            self.wlids_to_container_image_ids.setdefault(wlid, {})[container] = image_id

    def _record(self, wlid: str, containers: Dict[str, str]) -> None:
        for container, image_id in containers.items():
            self.add_to_image_ids_to_wlids(image_id, wlid)
            self.add_to_wlids_to_container_image_ids(wlid, container, image_id)

    def clean_up_image_ids_to_wlids(self) -> None:
        with self._image_ids_lock:
            self.image_ids_to_wlids = {}

    def clean_up_wlids_to_container_image_ids(self) -> None:
        with self._wlids_lock:
            self.wlids_to_container_image_ids = {}

    def clean_up_maps(self) -> None:
        """Empty both maps. Only used as part of a resync."""
        self.clean_up_image_ids_to_wlids()
        self.clean_up_wlids_to_container_image_ids()

    # Pod processing

    def get_parent_wlid(self, pod: Workload) -> str:
        """
        WLID of the workload owning a pod.

        Raises:
            OwnerResolutionError: If the owner chain cannot be resolved
        """
        wlid = pod.get_wlid()
        if wlid:
            return wlid
        kind, name = self.accessor.resolve_owning_controller(pod)
        # Watch events may omit the kind of their objects
        return get_wlid(self.cluster_name, pod.get_namespace(), kind or "Pod", name)

    def get_new_container_to_image_ids(self, wlid: str, pod: Workload) -> Dict[str, str]:
        """Containers of a pod whose image is not yet recorded for its WLID."""
        with self._wlids_lock:
            known = dict(self.wlids_to_container_image_ids.get(wlid, {}))
        return {
            container: image_id
            for container, image_id in extract_container_to_image_ids(pod).items()
            if known.get(container) != image_id
        }

    def build_maps(self, pods: List[Workload]) -> List[OwnerResolutionError]:
        """
        Record every container of every pod in both maps.

        Pods whose owner cannot be resolved are skipped; their errors are
        logged and returned.

        Args:
            pods: Pod snapshot

        Returns:
            Per-pod resolution errors
        """
        errors = []
        for pod in pods:
            containers = extract_container_to_image_ids(pod)
            if not containers:
                continue
            try:
                wlid = self.get_parent_wlid(pod)
            except OwnerResolutionError as e:
                logger.error(f"Failed to resolve owner of pod: {e}")
                errors.append(e)
                continue
            self._record(wlid, containers)

        logger.info(
            f"Built maps from {len(pods)} pods: {len(self.get_image_ids_to_wlids())} images, "
            f"{len(self.get_wlids_to_container_image_ids())} workloads, {len(errors)} errors"
        )
        return errors

    def handle_pod_update(self, pod: Workload) -> Dict[str, str]:
        """
        Apply an added/modified pod.

        Only containers whose image is new for the pod's WLID are recorded.

        Returns:
            The applied container -> image id delta
        """
        if not extract_container_to_image_ids(pod):
            return {}

        try:
            wlid = self.get_parent_wlid(pod)
        except OwnerResolutionError as e:
            logger.error(f"Failed to resolve owner of pod: {e}")
            return {}

        new_containers = self.get_new_container_to_image_ids(wlid, pod)
        if new_containers:
            logger.debug(f"{wlid}: new images {new_containers}")
            self._record(wlid, new_containers)
        return new_containers

    def get_instance_ids_and_build_maps(self, wlid: str, parent: Workload, pod: Workload) -> List[str]:
        """
        Instance IDs of a pod's containers under an already known parent.

        Also records the pod's containers for the WLID in both maps.

        Args:
            wlid: WLID of the parent workload
            parent: Parent workload object
            pod: Pod running under the parent

        Returns:
            One instance ID per container status, in status order
        """
        namespace = parent.get_namespace() or pod.get_namespace()
        instance_ids = []
        for status in pod.get_container_statuses():
            container = status.get("name", "")
            instance_ids.append(
                get_instance_id(
                    parent.get_api_version(),
                    namespace,
                    parent.get_kind(),
                    parent.get_name(),
                    parent.get_resource_version(),
                    container,
                )
            )
            image_id = status.get("imageID") or ""
            if image_id:
                self._record(wlid, {container: normalize_image_id(image_id)})
        return instance_ids

    def handle_event(self, event_type: str, pod: Workload) -> None:
        if event_type in (EVENT_ADDED, EVENT_MODIFIED):
            self.handle_pod_update(pod)
        elif event_type == EVENT_DELETED:
            # Entries stay until the next resync
            logger.debug(f"Pod {pod.get_namespace()}/{pod.get_name()} deleted")
        else:
            logger.warning(f"Unknown pod event type: {event_type}")

    # List-watch loop

    def run(self) -> None:
        """
        List pods, build the maps, then apply watch events.

        When the watch stream closes or fails, the maps are emptied and
        rebuilt from a fresh listing. Returns once stop() is called; the maps
        keep their last contents.
        """
        logger.info("Pod watcher started")

        while not self._stop.is_set():
            try:
                pods, resource_version = self.accessor.list_pods()
                self.build_maps(pods)

                for event_type, pod in self.accessor.watch_pods(resource_version, self._stop):
                    if self._stop.is_set():
                        break
                    self.handle_event(event_type, pod)
                else:
                    logger.info("Pod watch closed, resyncing")

            except AccessorError as e:
                logger.error(f"Pod watch failed: {e}")
                self._stop.wait(self.resync_backoff_seconds)

            except Exception as e:
                logger.exception(f"Unexpected error in pod watcher: {e}")
                self._stop.wait(self.resync_backoff_seconds)

            if self._stop.is_set():
                break
            self.clean_up_maps()

        logger.info("Pod watcher stopped")

    def start(self) -> None:
        """Run the list-watch loop on a background thread."""
        if self._thread and self._thread.is_alive():
            return

        self._stop.clear()
        self._thread = threading.Thread(target=self.run, daemon=True, name="pod-watcher")
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
