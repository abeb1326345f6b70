"""Unit tests for the command surface."""

from unittest.mock import patch

from typer.testing import CliRunner

from devcluster.cli import app
from devcluster.exceptions import (
    ClusterNotFoundError,
    ContainerEngineError,
    RolloutTimeoutError,
)
from devcluster.models.status import ClusterStatus, ExposedService, NodeInfo

runner = CliRunner()


def test_no_command_prints_usage():
    """Test that running without a command prints usage and exits 1."""
    result = runner.invoke(app, [])
    assert result.exit_code == 1
    assert "Usage" in result.output


def test_unknown_command_prints_usage():
    """Test that an unknown command prints usage and exits 1."""
    result = runner.invoke(app, ["launch"])
    assert result.exit_code == 1
    assert "No such command" in result.output
    assert "Usage" in result.output


def test_unknown_command_after_global_option():
    """Test that global options do not hide an unknown command."""
    result = runner.invoke(app, ["--cluster-name", "demo", "launch"])
    assert result.exit_code == 1
    assert "No such command 'launch'" in result.output


def test_help_lists_commands():
    """Test that --help lists the fixed command set."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("start", "stop", "status", "expose"):
        assert command in result.output


def test_version():
    """Test that version prints the package version."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


@patch("devcluster.cli.LifecycleOrchestrator")
def test_start_success(mock_orchestrator):
    """Test that start exits 0 when provisioning succeeds."""
    mock_orchestrator.return_value.start.return_value = True

    result = runner.invoke(app, ["start"])

    assert result.exit_code == 0
    mock_orchestrator.return_value.start.assert_called_once()


@patch("devcluster.cli.LifecycleOrchestrator")
def test_start_already_exists_exits_zero(mock_orchestrator):
    """Test that start on an existing cluster is a successful no-op."""
    mock_orchestrator.return_value.start.return_value = False

    result = runner.invoke(app, ["start"])

    assert result.exit_code == 0


@patch("devcluster.cli.LifecycleOrchestrator")
def test_start_partial_failure_lists_completed_steps(mock_orchestrator):
    """Test that a failed start exits 1 and shows what was provisioned."""
    error = RolloutTimeoutError("Deployment ingress-nginx/ingress-nginx-controller timed out")
    error.completed_steps = ["registry", "cluster"]
    mock_orchestrator.return_value.start.side_effect = error

    result = runner.invoke(app, ["start"])

    assert result.exit_code == 1
    assert "Timeout Error" in result.output
    assert "registry, cluster" in result.output
    assert "'devcluster stop' and then 'devcluster start'" in result.output
    assert "start' again" not in result.output


@patch("devcluster.cli.LifecycleOrchestrator")
def test_start_failure_before_cluster_suggests_rerun(mock_orchestrator):
    """Test that start can simply be run again when no cluster was created."""
    error = ContainerEngineError("Failed to connect devcluster-registry to network kind")
    error.completed_steps = ["registry"]
    mock_orchestrator.return_value.start.side_effect = error

    result = runner.invoke(app, ["start"])

    assert result.exit_code == 1
    assert "Run 'devcluster start' again" in result.output


@patch("devcluster.cli.LifecycleOrchestrator")
def test_start_interrupted(mock_orchestrator):
    """Test that Ctrl-C during start exits 130."""
    mock_orchestrator.return_value.start.side_effect = KeyboardInterrupt

    result = runner.invoke(app, ["start"])

    assert result.exit_code == 130
    assert "'devcluster stop' and then 'devcluster start'" in result.output


@patch("devcluster.cli.LifecycleOrchestrator")
def test_stop_missing_cluster_exits_one(mock_orchestrator):
    """Test that stop without a cluster exits 1."""
    mock_orchestrator.return_value.stop.side_effect = ClusterNotFoundError(
        "Cluster 'devcluster' does not exist"
    )

    result = runner.invoke(app, ["stop"])

    assert result.exit_code == 1
    assert "does not exist" in result.output


@patch("devcluster.cli.LifecycleOrchestrator")
def test_stop_success(mock_orchestrator):
    """Test that stop exits 0 on success."""
    result = runner.invoke(app, ["stop"])

    assert result.exit_code == 0
    mock_orchestrator.return_value.stop.assert_called_once()


@patch("devcluster.cli.LifecycleOrchestrator")
def test_status_running(mock_orchestrator):
    """Test that status prints versions and namespaces of a running cluster."""
    mock_orchestrator.return_value.status.return_value = ClusterStatus(
        name="devcluster",
        running=True,
        registry_running=True,
        client_version="29.0.0",
        server_version="v1.29.2",
        namespaces=["default", "ingress-nginx"],
        nodes=[NodeInfo(name="devcluster-control-plane", role="control-plane")],
    )

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "running" in result.output
    assert "v1.29.2" in result.output
    assert "ingress-nginx" in result.output


@patch("devcluster.cli.LifecycleOrchestrator")
def test_status_not_running(mock_orchestrator):
    """Test that status of a missing cluster still exits 0."""
    mock_orchestrator.return_value.status.return_value = ClusterStatus(
        name="devcluster", running=False
    )

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "not running" in result.output


@patch("devcluster.cli.LifecycleOrchestrator")
def test_expose_success(mock_orchestrator):
    """Test that expose prints the host of the new ingress."""
    mock_orchestrator.return_value.expose.return_value = ExposedService(
        service_name="web", port=8080, ingress_name="web-ingress", host="web.127.0.0.1.nip.io"
    )

    result = runner.invoke(app, ["expose", "web"])

    assert result.exit_code == 0
    assert "web.127.0.0.1.nip.io" in result.output
    mock_orchestrator.return_value.expose.assert_called_once_with("web")


def test_expose_without_name_exits_one():
    """Test that expose without a Service name is a precondition error."""
    result = runner.invoke(app, ["expose"])

    assert result.exit_code == 1
    assert "Service name is required" in result.output


def test_invalid_registry_port_exits_one():
    """Test that an out-of-range port is reported as a configuration error."""
    result = runner.invoke(app, ["--registry-port", "70000", "start"])

    assert result.exit_code == 1
    assert "Configuration Error" in result.output


@patch("devcluster.cli.LifecycleOrchestrator")
def test_cluster_name_from_environment(mock_orchestrator):
    """Test that DEVCLUSTER_CLUSTER_NAME selects the environment."""
    mock_orchestrator.return_value.status.return_value = ClusterStatus(name="other", running=False)

    result = runner.invoke(app, ["status"], env={"DEVCLUSTER_CLUSTER_NAME": "other"})

    assert result.exit_code == 0
    env = mock_orchestrator.call_args[0][0]
    assert env.cluster_name == "other"
    assert env.kube_context == "kind-other"
