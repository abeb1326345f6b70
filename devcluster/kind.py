"""Thin wrapper around the kind CLI."""

from pathlib import Path

from devcluster.logging_config import get_logger
from devcluster.models.status import NodeInfo
from devcluster.runner import CommandResult, CommandRunner

logger = get_logger(__name__)


class KindClient:
    """Cluster lifecycle operations of the kind node runtime."""

    def __init__(self, runner: CommandRunner | None = None, binary: str = "kind"):
        self.runner = runner or CommandRunner()
        self.binary = binary

    def _run(self, *args: str, check: bool = True) -> CommandResult:
        return self.runner.run([self.binary, *args], check=check)

    def get_clusters(self) -> list[str]:
        """Names of all kind clusters on this machine."""
        # kind reports "No kind clusters found." on stderr with an empty stdout
        return self._run("get", "clusters").lines

    def create_cluster(self, name: str, image: str, config_path: Path) -> CommandResult:
        logger.info(f"Creating kind cluster {name} with image {image}")
        return self._run(
            "create", "cluster", "--name", name, "--image", image, "--config", str(config_path)
        )

    def delete_cluster(self, name: str) -> CommandResult:
        logger.info(f"Deleting kind cluster {name}")
        return self._run("delete", "cluster", "--name", name)

    def get_nodes(self, name: str) -> list[NodeInfo]:
        """
        List the node containers of a cluster.

        kind names nodes <cluster>-control-plane, <cluster>-worker, <cluster>-worker2
        and so on, which is enough to recover each node's role.
        """
        nodes = []
        for node_name in self._run("get", "nodes", "--name", name).lines:
            suffix = node_name.removeprefix(f"{name}-")
            role = "control-plane" if suffix.startswith("control-plane") else "worker"
            nodes.append(NodeInfo(name=node_name, role=role))
        return nodes
