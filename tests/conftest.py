"""
Shared pytest fixtures for Kubeguard tests.

This module provides common fixtures including:
- FakeClusterAccessor: in-memory ClusterAccessor (see fixtures/cluster.py)
- WatchHandler and CommandResolver instances wired to the fake accessor
"""

import os
import sys

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fixtures.cluster import CLUSTER_NAME, FakeClusterAccessor
from kubeguard.modules.resolver import CommandPolicy, CommandResolver
from kubeguard.modules.watcher import WatchHandler


@pytest.fixture
def accessor():
    """Empty in-memory cluster accessor."""
    return FakeClusterAccessor()


@pytest.fixture
def watcher(accessor):
    """Watcher with an empty cluster name, matching bare WLIDs in expectations."""
    return WatchHandler(accessor, cluster_name="", resync_backoff_seconds=0)


@pytest.fixture
def policy():
    return CommandPolicy.default(agent_namespace="kubeguard-system")


@pytest.fixture
def resolver(accessor, policy, watcher):
    return CommandResolver(accessor, policy, cluster_name=CLUSTER_NAME, watcher=watcher)


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: Tests that take a long time to run"
    )
