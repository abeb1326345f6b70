"""Pytest configuration and shared fixtures."""

import io
from unittest.mock import Mock

import pytest
from hypothesis import Verbosity, settings
from rich.console import Console

from devcluster.engine import ContainerEngine
from devcluster.kind import KindClient
from devcluster.kube import KubeClient
from devcluster.models.environment import Environment
from devcluster.models.status import NodeInfo
from devcluster.orchestrator import LifecycleOrchestrator

# Configure Hypothesis for property-based testing
settings.register_profile("default", max_examples=100, verbosity=Verbosity.normal)
settings.register_profile("ci", max_examples=1000, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=10, verbosity=Verbosity.verbose)

# Load the default profile
settings.load_profile("default")


@pytest.fixture
def env():
    """Environment with the default names and a short rollout timeout."""
    return Environment(rollout_timeout=5, poll_interval=0.01)


@pytest.fixture
def manager():
    """Parent mock recording the calls of every collaborator in order."""
    parent = Mock()

    kind = Mock(spec=KindClient)
    kind.get_clusters.return_value = []
    kind.get_nodes.return_value = [
        NodeInfo(name="devcluster-control-plane", role="control-plane"),
        NodeInfo(name="devcluster-worker", role="worker"),
    ]

    engine = Mock(spec=ContainerEngine)
    engine.inspect.return_value = None
    engine.connect_network.return_value = True

    kube = Mock(spec=KubeClient)
    kube.fetch_manifest.return_value = [
        {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": "ingress-nginx"}}
    ]
    kube.apply_objects.return_value = 1

    parent.attach_mock(kind, "kind")
    parent.attach_mock(engine, "engine")
    parent.attach_mock(kube, "kube")
    return parent


@pytest.fixture
def orchestrator(env, manager):
    """Orchestrator wired to mocked collaborators with captured console output."""
    console = Console(file=io.StringIO(), width=120)
    return LifecycleOrchestrator(
        env, kind=manager.kind, engine=manager.engine, kube=manager.kube, console=console
    )


@pytest.fixture
def running_container():
    """Factory for container mocks in the running state."""

    def make(container_id="abc123"):
        container = Mock()
        container.id = container_id
        container.status = "running"
        return container

    return make
