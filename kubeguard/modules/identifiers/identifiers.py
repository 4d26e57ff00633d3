"""
Identifier derivation for cluster objects.

WLID:        wlid://cluster-<cluster>/namespace-<namespace>/<kind>-<name>
SID:         sid://cluster-<cluster>/namespace-<namespace>/secret-<name>[/subsecret-<subkey>]
Instance ID: apiversion-<v>/namespace-<ns>/kind-<kind>/name-<name>/resourceversion-<rv>/container-<c>
"""

from typing import Optional

WLID_PREFIX = "wlid://"
SID_PREFIX = "sid://"

CLUSTER_SEGMENT = "cluster-"
NAMESPACE_SEGMENT = "namespace-"

# Marker added by the docker runtime in front of pullable image digests
IMAGE_ID_PREFIX = "docker-pullable://"


def get_wlid(cluster: str, namespace: str, kind: str, name: str) -> str:
    """
    Build the workload identifier of a resource.

    Kinds are lowercased, so "Deployment" and "deployment" name the same
    workload.
    """
    return f"{WLID_PREFIX}{CLUSTER_SEGMENT}{cluster}/{NAMESPACE_SEGMENT}{namespace}/{kind.lower()}-{name}"


def get_sid(cluster: str, namespace: str, name: str, subkey: Optional[str] = "") -> str:
    """Build the secret identifier of a secret, optionally scoped to one key."""
    sid = f"{SID_PREFIX}{CLUSTER_SEGMENT}{cluster}/{NAMESPACE_SEGMENT}{namespace}/secret-{name}"
    if subkey:
        sid += f"/subsecret-{subkey}"
    return sid


def get_instance_id(
    api_version: str,
    namespace: str,
    kind: str,
    name: str,
    resource_version: str,
    container: str,
) -> str:
    """
    Build the identifier of one container in one revision of a workload.

    Replicas of the same revision share an instance ID; a new resource
    version yields a new one.
    """
    return (
        f"apiversion-{api_version}/namespace-{namespace}/kind-{kind.lower()}"
        f"/name-{name}/resourceversion-{resource_version}/container-{container}"
    )


def normalize_image_id(image_id: str) -> str:
    """Strip the runtime marker from an image reference."""
    if image_id.startswith(IMAGE_ID_PREFIX):
        return image_id[len(IMAGE_ID_PREFIX):]
    return image_id


def _segments(identifier: str) -> list:
    for prefix in (WLID_PREFIX, SID_PREFIX):
        if identifier.startswith(prefix):
            identifier = identifier[len(prefix):]
            break
    return [s for s in identifier.split("/") if s]


def _segment_value(identifier: str, position: int, segment: str) -> str:
    parts = _segments(identifier)
    if len(parts) > position and parts[position].startswith(segment):
        return parts[position][len(segment):]
    return ""


def get_cluster_from_wlid(wlid: str) -> str:
    return _segment_value(wlid, 0, CLUSTER_SEGMENT)


def get_namespace_from_wlid(wlid: str) -> str:
    return _segment_value(wlid, 1, NAMESPACE_SEGMENT)


def get_namespace_from_wild_wlid(wild_wlid: str) -> str:
    """Wildcard WLIDs carry the namespace the same way full WLIDs do."""
    return get_namespace_from_wlid(wild_wlid)


def _kind_and_name(wlid: str):
    parts = _segments(wlid)
    if len(parts) < 3:
        return "", ""
    kind, _, name = parts[2].partition("-")
    return kind, name


def get_kind_from_wlid(wlid: str) -> str:
    return _kind_and_name(wlid)[0]


def get_name_from_wlid(wlid: str) -> str:
    return _kind_and_name(wlid)[1]
