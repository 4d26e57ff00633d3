"""
Tests for identifier derivation.
"""

import pytest

from kubeguard.modules.identifiers import (
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


class TestWlid:
    """Test workload identifiers."""

    def test_format(self):
        assert get_wlid("prod", "default", "Deployment", "web") == "wlid://cluster-prod/namespace-default/deployment-web"

    def test_empty_cluster(self):
        assert get_wlid("", "default", "pod", "test") == "wlid://cluster-/namespace-default/pod-test"

    def test_kind_is_case_insensitive(self):
        assert get_wlid("c", "ns", "Pod", "p") == get_wlid("c", "ns", "pod", "p")

    def test_distinct_tuples_do_not_collide(self):
        wlids = {
            get_wlid("c", "a", "pod", "b-c"),
            get_wlid("c", "a-b", "pod", "c"),
            get_wlid("c", "a", "deployment", "b"),
            get_wlid("c", "a", "pod", "b"),
        }
        assert len(wlids) == 4

    def test_parse_round_trip(self):
        wlid = get_wlid("prod", "payments", "statefulset", "db-primary")

        assert get_cluster_from_wlid(wlid) == "prod"
        assert get_namespace_from_wlid(wlid) == "payments"
        assert get_kind_from_wlid(wlid) == "statefulset"
        assert get_name_from_wlid(wlid) == "db-primary"

    def test_namespace_from_wild_wlid(self):
        assert get_namespace_from_wild_wlid("wlid://cluster-prod/namespace-payments") == "payments"
        assert get_namespace_from_wild_wlid("wlid://cluster-prod/namespace-payments/") == "payments"
        assert get_namespace_from_wild_wlid("wlid://cluster-prod") == ""

    def test_parse_malformed(self):
        assert get_namespace_from_wlid("") == ""
        assert get_kind_from_wlid("wlid://cluster-prod/namespace-a") == ""


class TestSid:
    """Test secret identifiers."""

    def test_format(self):
        assert get_sid("prod", "default", "creds", "") == "sid://cluster-prod/namespace-default/secret-creds"

    def test_subkey(self):
        assert get_sid("prod", "default", "creds", "password") == (
            "sid://cluster-prod/namespace-default/secret-creds/subsecret-password"
        )

    def test_namespace_parses_like_wlid(self):
        assert get_namespace_from_wlid(get_sid("prod", "vault", "creds")) == "vault"


class TestInstanceId:
    """Test instance identifiers."""

    def test_format(self):
        assert get_instance_id("apps/v1", "test", "Deployment", "nginx-deployment", "59145", "nginx") == (
            "apiversion-apps/v1/namespace-test/kind-deployment/name-nginx-deployment"
            "/resourceversion-59145/container-nginx"
        )

    def test_new_revision_yields_new_id(self):
        first = get_instance_id("apps/v1", "test", "Deployment", "web", "1", "nginx")
        second = get_instance_id("apps/v1", "test", "Deployment", "web", "2", "nginx")
        assert first != second


class TestNormalizeImageId:
    """Test image reference normalization."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("docker-pullable://alpine@sha256:1", "alpine@sha256:1"),
            ("alpine@sha256:1", "alpine@sha256:1"),
            ("docker.io/library/nginx@sha256:abc", "docker.io/library/nginx@sha256:abc"),
            ("", ""),
        ],
    )
    def test_strip_prefix(self, raw, expected):
        assert normalize_image_id(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        ["docker-pullable://alpine@sha256:1", "alpine@sha256:1", "quay.io/org/app@sha256:ff"],
    )
    def test_idempotent(self, raw):
        assert normalize_image_id(normalize_image_id(raw)) == normalize_image_id(raw)
