"""
Identifiers Module - Black Box Interface

Purpose: Derive canonical identifiers from cluster object metadata
Interface: get_wlid(), get_sid(), get_instance_id(), normalize_image_id()
Hidden: Identifier string formats and parsing

Pure functions only, no state.
"""

from .identifiers import (
    IMAGE_ID_PREFIX,
    get_cluster_from_wlid,
    get_instance_id,
    get_kind_from_wlid,
    get_name_from_wlid,
    get_namespace_from_wild_wlid,
    get_namespace_from_wlid,
    get_sid,
    get_wlid,
    normalize_image_id,
)

__all__ = [
    "IMAGE_ID_PREFIX",
    "get_cluster_from_wlid",
    "get_instance_id",
    "get_kind_from_wlid",
    "get_name_from_wlid",
    "get_namespace_from_wild_wlid",
    "get_namespace_from_wlid",
    "get_sid",
    "get_wlid",
    "normalize_image_id",
]
