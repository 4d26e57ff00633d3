"""
Watcher Module - Black Box Interface

Purpose: Track which container images run under which workloads
Interface: WatchHandler.start(), stop(), get_image_ids_to_wlids(),
           get_wlids_to_container_image_ids(), get_instance_ids_and_build_maps()
Hidden: Pod list-watch loop, resync, per-map locking

The two maps are eventually consistent with each other, not atomically joint.
"""

from .watcher import (
    EVENT_ADDED,
    EVENT_DELETED,
    EVENT_MODIFIED,
    WatchHandler,
    extract_container_to_image_ids,
    extract_image_ids_from_pod,
)

__all__ = [
    "EVENT_ADDED",
    "EVENT_DELETED",
    "EVENT_MODIFIED",
    "WatchHandler",
    "extract_container_to_image_ids",
    "extract_image_ids_from_pod",
]
