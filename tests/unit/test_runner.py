"""Unit tests for the command runner."""

import subprocess
from unittest.mock import patch

import pytest

from devcluster.exceptions import ExternalCommandError
from devcluster.runner import CommandRunner


@patch("devcluster.runner.subprocess.run")
def test_run_returns_typed_result(mock_run):
    """Test that a successful command returns a CommandResult."""
    mock_run.return_value = subprocess.CompletedProcess(
        ["kind", "get", "clusters"], 0, "a\n\nb\n", ""
    )

    result = CommandRunner().run(["kind", "get", "clusters"])

    assert result.ok
    assert result.lines == ["a", "b"]


@patch("devcluster.runner.subprocess.run")
def test_run_failure_raises_with_result(mock_run):
    """Test that a non-zero exit status raises ExternalCommandError carrying the result."""
    mock_run.return_value = subprocess.CompletedProcess(
        ["kind", "delete", "cluster"], 1, "", "ERROR: failed to delete cluster"
    )

    with pytest.raises(ExternalCommandError) as exc_info:
        CommandRunner().run(["kind", "delete", "cluster"])

    assert exc_info.value.result.returncode == 1
    assert "failed to delete cluster" in exc_info.value.details


@patch("devcluster.runner.subprocess.run")
def test_run_unchecked_failure(mock_run):
    """Test that check=False returns the failed result instead of raising."""
    mock_run.return_value = subprocess.CompletedProcess(["false"], 1, "", "")

    result = CommandRunner().run(["false"], check=False)

    assert not result.ok


@patch("devcluster.runner.subprocess.run", side_effect=FileNotFoundError)
def test_run_missing_binary(mock_run):
    """Test that a missing binary gives an installation hint."""
    with pytest.raises(ExternalCommandError) as exc_info:
        CommandRunner().run(["kind", "version"])

    assert "kind is not installed" in exc_info.value.message


@patch(
    "devcluster.runner.subprocess.run",
    side_effect=subprocess.TimeoutExpired(["kind", "version"], 5),
)
def test_run_timeout(mock_run):
    """Test that a timeout becomes ExternalCommandError."""
    with pytest.raises(ExternalCommandError) as exc_info:
        CommandRunner(timeout=5).run(["kind", "version"])

    assert "timed out" in exc_info.value.message
