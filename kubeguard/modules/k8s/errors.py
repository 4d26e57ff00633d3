"""Cluster access errors."""


class AccessorError(Exception):
    """A call against the cluster API failed."""


class OwnerResolutionError(Exception):
    """The owning controller of an object could not be determined."""

    def __init__(self, namespace: str, name: str, reason: str):
        self.namespace = namespace
        self.name = name
        self.reason = reason
        super().__init__(f"namespace: {namespace}, name: {name}, error: {reason}")
