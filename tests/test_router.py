"""
Tests for command routing.
"""

from unittest.mock import MagicMock

import pytest
from urllib3.exceptions import MaxRetryError

from fixtures.cluster import CLUSTER_NAME, make_pod, owner_ref
from kubeguard.modules.api import Command, CommandKind, DispatchStatus
from kubeguard.modules.executor import CommandRouter, logging_executor
from kubeguard.modules.identifiers import get_wlid
from kubeguard.modules.k8s import AccessorError, KubernetesClusterAccessor
from kubeguard.modules.resolver import CommandResolver


@pytest.fixture
def calls():
    return []


@pytest.fixture
def router(resolver, calls):
    def record(command, result):
        calls.append((command.command_name, result.identifiers))

    return CommandRouter(resolver).register(CommandKind.UPDATE, record).register("scan", record)


class TestRegistration:
    """Test executor registration."""

    def test_registered_commands(self, router):
        assert router.registered_commands() == ["scan", "update"]

    def test_enum_and_string_keys_are_equivalent(self, resolver):
        router = CommandRouter(resolver).register(CommandKind.RESTART, logging_executor)
        router.register("restart", logging_executor)
        assert router.registered_commands() == ["restart"]


class TestDispatch:
    """Test dispatch outcomes."""

    def test_success(self, router, calls):
        target = get_wlid(CLUSTER_NAME, "default", "deployment", "web")

        report = router.dispatch(Command(commandName="update", wlid=target, responseID="r-1"))

        assert report.status == DispatchStatus.SUCCESS
        assert report.response_id == "r-1"
        assert report.target_id == target
        assert report.targets == [target]
        assert report.errors == []
        assert calls == [("update", [target])]

    def test_unhandled_command(self, router, accessor, calls):
        report = router.dispatch(Command(commandName="inject", wildWlid=f"wlid://cluster-{CLUSTER_NAME}"))

        assert report.status == DispatchStatus.UNHANDLED
        assert report.errors == ["unsupported command: inject"]
        assert accessor.list_calls == []
        assert calls == []

    def test_rejected_namespace(self, router, calls):
        target = get_wlid(CLUSTER_NAME, "kube-system", "deployment", "coredns")

        report = router.dispatch(Command(commandName="update", wlid=target))

        assert report.status == DispatchStatus.REJECTED
        assert "kube-system" in report.errors[0]
        assert calls == []

    def test_listing_failure(self, router, accessor, calls):
        accessor.failing_lists["pods"] = AccessorError("forbidden")

        report = router.dispatch(Command(commandName="update", wildWlid=f"wlid://cluster-{CLUSTER_NAME}"))

        assert report.status == DispatchStatus.FAILURE
        assert report.errors == ["forbidden"]
        assert calls == []

    def test_partial(self, router, accessor, calls):
        accessor.add(make_pod("debug"), make_pod("orphan", owners=[owner_ref("ReplicaSet", "gone")]))
        target = get_wlid(CLUSTER_NAME, "default", "pod", "debug")

        report = router.dispatch(Command(commandName="update", wildWlid=f"wlid://cluster-{CLUSTER_NAME}"))

        assert report.status == DispatchStatus.PARTIAL
        assert report.targets == [target]
        assert len(report.errors) == 1
        assert calls == [("update", [target])]

    def test_executor_failure(self, resolver):
        def explode(command, result):
            raise RuntimeError("rollout failed")

        router = CommandRouter(resolver).register("restart", explode)
        target = get_wlid(CLUSTER_NAME, "default", "deployment", "web")

        report = router.dispatch(Command(commandName="restart", wlid=target))

        assert report.status == DispatchStatus.FAILURE
        assert report.targets == [target]
        assert report.errors == ["rollout failed"]

    def test_scan_reports_instance_ids(self, router, accessor):
        accessor.add(make_pod("debug", containers=[("shell", "busybox@sha256:1")]))
        target = get_wlid(CLUSTER_NAME, "default", "pod", "debug")

        report = router.dispatch(Command(commandName="scan", wildWlid=f"wlid://cluster-{CLUSTER_NAME}/namespace-default"))

        assert report.status == DispatchStatus.SUCCESS
        assert report.instance_ids == {
            target: ["apiversion-v1/namespace-default/kind-pod/name-debug/resourceversion-1/container-shell"]
        }

    def test_transport_failure_is_reported(self, policy):
        accessor = KubernetesClusterAccessor(api_client=MagicMock())
        accessor._dynamic = MagicMock()
        accessor._dynamic.resources.get.return_value.get.side_effect = MaxRetryError(
            None, "/api/v1/pods", "connection timed out"
        )
        router = CommandRouter(CommandResolver(accessor, policy, cluster_name=CLUSTER_NAME))
        router.register("restart", logging_executor)

        report = router.dispatch(Command(commandName="restart", wildWlid=f"wlid://cluster-{CLUSTER_NAME}/namespace-default"))

        assert report.status == DispatchStatus.FAILURE
        assert "connection timed out" in report.errors[0]

    def test_unexpected_resolution_error_is_reported(self, router, accessor, calls):
        accessor.failing_lists["pods"] = RuntimeError("unexpected discovery payload")

        report = router.dispatch(Command(commandName="update", wildWlid=f"wlid://cluster-{CLUSTER_NAME}", responseID="r-9"))

        assert report.status == DispatchStatus.FAILURE
        assert report.response_id == "r-9"
        assert report.errors == ["unexpected discovery payload"]
        assert calls == []
