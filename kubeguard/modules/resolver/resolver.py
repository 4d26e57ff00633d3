#!/usr/bin/env python3
"""
Command Resolver for the Kubeguard agent.

Turns an inbound command into the concrete set of identifiers it targets,
using the command policy, the cluster accessor and (for scans) the watcher.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from kubeguard.modules.api import Command, CommandKind
from kubeguard.modules.identifiers import (
    get_namespace_from_wild_wlid,
    get_namespace_from_wlid,
    get_sid,
    get_wlid,
)
from kubeguard.modules.k8s import AccessorError, ClusterAccessor, OwnerResolutionError, Workload

from .policy import CommandPolicy

logger = logging.getLogger("kubeguard.resolver")


class NamespaceExcludedError(Exception):
    """A command addressed a namespace it may not touch."""

    def __init__(self, command_name: str, namespace: str):
        self.command_name = command_name
        self.namespace = namespace
        super().__init__(f"Command '{command_name}' is not allowed in namespace '{namespace}'")


@dataclass
class ItemResolution:
    """Outcome of resolving one listed object: an identifier or an error."""

    identifier: str = ""
    error: Optional[str] = None
    owner: Optional[Tuple[str, str]] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ResolutionResult:
    """Targets of a command plus the items that could not be resolved."""

    target_id: str = ""
    identifiers: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    instance_ids: Dict[str, List[str]] = field(default_factory=dict)


def get_command_namespace(command: Command) -> str:
    """Namespace addressed by a command, or empty for cluster-wide."""
    if command.wlid:
        return get_namespace_from_wlid(command.wlid)
    if command.wild_wlid:
        return get_namespace_from_wild_wlid(command.wild_wlid)
    return ""


def get_command_id(command: Command) -> str:
    """Addressing key of a command."""
    if command.wlid:
        return command.wlid
    if command.wild_wlid:
        return command.wild_wlid
    return ""


class CommandResolver:
    """Resolves commands to target identifiers."""

    def __init__(
        self,
        accessor: ClusterAccessor,
        policy: CommandPolicy,
        cluster_name: str = "",
        watcher=None,
    ):
        """
        Initialize resolver.

        Args:
            accessor: Cluster accessor for listing and owner lookups
            policy: Command policy tables
            cluster_name: Cluster name embedded in derived identifiers
            watcher: Optional WatchHandler, fed with scanned pods
        """
        self.accessor = accessor
        self.policy = policy
        self.cluster_name = cluster_name
        self.watcher = watcher

    def relevant_resource_kinds(self, command_name) -> Tuple[str, ...]:
        return self.policy.relevant_resource_kinds(command_name)

    def is_namespace_excluded(self, command_name, namespace: str) -> bool:
        return self.policy.is_namespace_excluded(command_name, namespace)

    def resolve_workload(self, namespace: str, workload: Workload) -> ItemResolution:
        """Identifier of one listed object."""
        kind = workload.get_kind()
        name = workload.get_name()
        namespace = namespace or workload.get_namespace()

        if kind == "Namespace":
            return ItemResolution(identifier=get_wlid(self.cluster_name, name, "namespace", name))

        if kind == "Secret":
            return ItemResolution(identifier=get_sid(self.cluster_name, namespace, name, ""))

        wlid = workload.get_wlid()
        if wlid:
            return ItemResolution(identifier=wlid)

        try:
            owner_kind, owner_name = self.accessor.resolve_owning_controller(workload)
        except OwnerResolutionError as e:
            return ItemResolution(
                error=(
                    f"failed to resolve owner: namespace: {workload.get_namespace()}, "
                    f"name: {name}, error: {e.reason}"
                )
            )

        return ItemResolution(
            identifier=get_wlid(self.cluster_name, namespace, owner_kind, owner_name),
            owner=(owner_kind, owner_name),
        )

    def resolve_workloads(
        self, namespace: str, workloads: List[Workload]
    ) -> List[Tuple[Workload, ItemResolution]]:
        return [(workload, self.resolve_workload(namespace, workload)) for workload in workloads]

    def resolve_resource_identifiers(
        self, namespace: str, workloads: List[Workload]
    ) -> Tuple[List[str], List[str]]:
        """
        Identifiers of listed objects.

        Objects that cannot be resolved are reported in the error list and
        never abort the batch.

        Args:
            namespace: Namespace the objects were listed in (empty for cluster-wide)
            workloads: Listed objects

        Returns:
            (deduplicated identifiers, per-item errors)
        """
        identifiers: Dict[str, bool] = {}
        errors = []
        for _, item in self.resolve_workloads(namespace, workloads):
            if item.ok:
                identifiers[item.identifier] = True
            else:
                errors.append(item.error)
        return list(identifiers), errors

    def resolve_command(self, command: Command) -> ResolutionResult:
        """
        Compute the targets of a command.

        Raises:
            NamespaceExcludedError: If the command addresses an excluded namespace
            AccessorError: If listing objects fails
        """
        command_name = command.command_name
        result = ResolutionResult(target_id=get_command_id(command))
        namespace = get_command_namespace(command)

        if namespace and self.is_namespace_excluded(command_name, namespace):
            raise NamespaceExcludedError(command_name, namespace)

        if command.wlid:
            result.identifiers = [command.wlid]
            return result

        labels = command.get_labels()
        identifiers: Dict[str, bool] = {}
        for resource in self.relevant_resource_kinds(command_name):
            workloads = self.accessor.list_workloads(resource, namespace, labels)

            for workload, item in self.resolve_workloads(namespace, workloads):
                if not item.ok:
                    result.errors.append(item.error)
                    continue

                target_namespace = get_namespace_from_wlid(item.identifier)
                if self.is_namespace_excluded(command_name, target_namespace):
                    logger.debug(f"Skipping {item.identifier}: namespace excluded for {command_name}")
                    continue

                identifiers[item.identifier] = True
                if command_name == CommandKind.SCAN.value and item.owner:
                    self._add_instance_ids(result, item, workload)

        result.identifiers = list(identifiers)
        logger.info(
            f"Command {command_name} ({result.target_id or 'cluster'}): "
            f"{len(result.identifiers)} targets, {len(result.errors)} errors"
        )
        return result

    def _add_instance_ids(self, result: ResolutionResult, item: ItemResolution, pod: Workload) -> None:
        if self.watcher is None or pod.get_kind() != "Pod":
            return

        owner_kind, owner_name = item.owner
        if (owner_kind, owner_name) == (pod.get_kind(), pod.get_name()):
            parent = pod
        else:
            try:
                parent = self.accessor.get_workload(owner_kind, pod.get_namespace(), owner_name)
            except AccessorError as e:
                result.errors.append(
                    f"failed to get parent workload: namespace: {pod.get_namespace()}, "
                    f"name: {pod.get_name()}, error: {e}"
                )
                return

        instance_ids = result.instance_ids.setdefault(item.identifier, [])
        for instance_id in self.watcher.get_instance_ids_and_build_maps(item.identifier, parent, pod):
            if instance_id not in instance_ids:
                instance_ids.append(instance_id)
