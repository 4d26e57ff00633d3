"""
Dict-backed wrapper around a cluster object.

Objects are kept in their API JSON form (camelCase keys), which is what the
dynamic client returns and what the typed client produces through
ApiClient.sanitize_for_serialization().
"""

from typing import Any, Dict, List, Optional

# Annotation carrying an explicit workload identifier
WLID_ANNOTATION = "wlid"


class Workload:
    """Read-only accessors over a cluster object."""

    def __init__(
        self,
        obj: Dict[str, Any],
        kind: Optional[str] = None,
        api_version: Optional[str] = None,
    ):
        """
        Args:
            obj: Object in API JSON form
            kind: Kind to report when the object does not carry one (list items)
            api_version: apiVersion to report when the object does not carry one
        """
        self.obj = obj or {}
        self._default_kind = kind or ""
        self._default_api_version = api_version or ""

    def __repr__(self) -> str:
        return f"Workload({self.get_kind()}/{self.get_namespace()}/{self.get_name()})"

    @property
    def metadata(self) -> Dict[str, Any]:
        return self.obj.get("metadata") or {}

    def get_kind(self) -> str:
        return self.obj.get("kind") or self._default_kind

    def get_api_version(self) -> str:
        return self.obj.get("apiVersion") or self._default_api_version

    def get_name(self) -> str:
        return self.metadata.get("name") or ""

    def get_namespace(self) -> str:
        return self.metadata.get("namespace") or ""

    def get_resource_version(self) -> str:
        return self.metadata.get("resourceVersion") or ""

    def get_annotations(self) -> Dict[str, str]:
        return self.metadata.get("annotations") or {}

    def get_labels(self) -> Dict[str, str]:
        return self.metadata.get("labels") or {}

    def get_wlid(self) -> str:
        """Explicit identifier set on the object, or empty."""
        return self.get_annotations().get(WLID_ANNOTATION, "")

    def get_owner_references(self) -> List[Dict[str, Any]]:
        return self.metadata.get("ownerReferences") or []

    def get_controller_reference(self) -> Optional[Dict[str, Any]]:
        """
        Owner reference of the managing controller.

        Falls back to the first owner when none is flagged as controller.
        """
        refs = self.get_owner_references()
        for ref in refs:
            if ref.get("controller"):
                return ref
        return refs[0] if refs else None

    def get_container_statuses(self) -> List[Dict[str, Any]]:
        status = self.obj.get("status") or {}
        return status.get("containerStatuses") or []

    def to_dict(self) -> Dict[str, Any]:
        return self.obj
