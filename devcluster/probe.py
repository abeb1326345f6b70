"""Read-only checks against the cluster, the registry and Services."""

from devcluster.engine import ContainerEngine
from devcluster.exceptions import ContainerEngineError
from devcluster.kind import KindClient
from devcluster.kube import KubeClient
from devcluster.logging_config import get_logger
from devcluster.models.environment import Environment

logger = get_logger(__name__)


class ResourceProbe:
    """Answers whether the resources of an environment exist, re-querying every time."""

    def __init__(
        self, env: Environment, kind: KindClient, engine: ContainerEngine, kube: KubeClient
    ):
        self.env = env
        self.kind = kind
        self.engine = engine
        self.kube = kube

    def cluster_exists(self) -> bool:
        exists = self.env.cluster_name in self.kind.get_clusters()
        logger.debug(f"Cluster {self.env.cluster_name} exists: {exists}")
        return exists

    def registry_running(self) -> bool:
        """Whether the registry container is running. Never raises."""
        try:
            container = self.engine.inspect(self.env.registry_name)
        except ContainerEngineError as e:
            logger.debug(f"Treating registry as not running: {e.message}")
            return False
        running = container is not None and container.status == "running"
        logger.debug(f"Registry {self.env.registry_name} running: {running}")
        return running

    def service_port(self, service_name: str) -> int | None:
        """First declared port of a Service, or None if it is missing or has no ports."""
        ports = self.kube.service_ports(service_name, self.env.namespace)
        if not ports:
            return None
        return ports[0]
