"""Lifecycle of a local dev cluster: start, stop, status and expose.

Every mutating step is gated by a fresh probe of the real resources, so running
``start`` or ``stop`` against an environment that has already converged does
nothing. Nothing is rolled back on failure; re-running ``start`` picks up from
whatever exists.
"""

from rich.console import Console

from devcluster.engine import ContainerEngine
from devcluster.exceptions import (
    ClusterNotFoundError,
    DevClusterError,
    PreconditionError,
    ServiceNotFoundError,
)
from devcluster.kind import KindClient
from devcluster.kube import KubeClient
from devcluster.logging_config import get_logger
from devcluster.manifests import (
    REGISTRY_ANNOTATION,
    cluster_topology,
    ingress_controller_patch,
    ingress_name,
    manifest_file,
    registry_hosting_configmap,
    service_ingress,
)
from devcluster.models.environment import Environment
from devcluster.models.status import ClusterStatus, ExposedService
from devcluster.probe import ResourceProbe

logger = get_logger(__name__)


class LifecycleOrchestrator:
    """Sequences the external calls that provision and tear down an environment."""

    def __init__(
        self,
        env: Environment,
        kind: KindClient | None = None,
        engine: ContainerEngine | None = None,
        kube: KubeClient | None = None,
        console: Console | None = None,
    ):
        self.env = env
        self.kind = kind or KindClient()
        self.engine = engine or ContainerEngine()
        self.kube = kube or KubeClient(context=env.kube_context)
        self.console = console or Console()
        self.probe = ResourceProbe(env, self.kind, self.engine, self.kube)

    # ------------------------------------------------------------------ start

    def start(self) -> bool:
        """
        Provision the registry, the cluster and the ingress controller.

        Returns:
            True if the cluster was created, False if it already existed

        Raises:
            DevClusterError: If any step fails; ``completed_steps`` lists what was done
        """
        name = self.env.cluster_name
        if self.probe.cluster_exists():
            logger.info(f"Cluster {name} already exists, nothing to do")
            self.console.print(f"[yellow]Cluster '{name}' already exists[/yellow]")
            return False

        completed: list[str] = []
        try:
            self._ensure_registry()
            completed.append("registry")

            self._create_cluster()
            completed.append("cluster")

            self._connect_registry()
            completed.append("network")

            self._annotate_nodes()
            completed.append("node annotations")

            self.kube.create_or_replace(registry_hosting_configmap(self.env))
            completed.append("registry configmap")

            self._install_ingress()
            completed.append("ingress controller")
        except DevClusterError as e:
            e.completed_steps = list(completed)
            logger.error(f"Start failed after: {', '.join(completed) or 'no steps'}")
            raise

        self.console.print(f"[green]✓[/green] Cluster '{name}' is ready")
        self.console.print(f"  Registry: {self.env.registry_address}")
        self.console.print(f"  Ingress domain: *.{self.env.dns_suffix}")
        return True

    def _ensure_registry(self) -> None:
        registry = self.env.registry_name
        if self.probe.registry_running():
            self.console.print(f"Registry '{registry}' already running")
            return
        self.console.print(f"Creating registry '{registry}' on port {self.env.registry_port}...")
        self.engine.run_registry(registry, self.env.registry_image, self.env.registry_port)

    def _create_cluster(self) -> None:
        self.console.print(
            f"Creating cluster '{self.env.cluster_name}' with {self.env.node_image}..."
        )
        with manifest_file(cluster_topology(self.env)) as config_path:
            self.kind.create_cluster(self.env.cluster_name, self.env.node_image, config_path)

    def _connect_registry(self) -> None:
        if not self.engine.connect_network(self.env.kind_network, self.env.registry_name):
            logger.info(f"Registry already attached to network {self.env.kind_network}")

    def _annotate_nodes(self) -> None:
        for node in self.kind.get_nodes(self.env.cluster_name):
            self.kube.annotate_node(node.name, REGISTRY_ANNOTATION, self.env.registry_address)

    def _install_ingress(self) -> None:
        env = self.env
        self.console.print(f"Installing ingress-nginx {env.ingress_nginx_version}...")
        objects = self.kube.fetch_manifest(env.ingress_manifest_url)
        created = self.kube.apply_objects(objects)
        logger.info(f"Created {created} of {len(objects)} ingress-nginx objects")

        self.kube.patch_deployment(
            env.ingress_deployment, env.ingress_namespace, ingress_controller_patch()
        )
        self.console.print("Waiting for the ingress controller to become available...")
        self.kube.wait_for_rollout(
            env.ingress_deployment,
            env.ingress_namespace,
            timeout=env.rollout_timeout,
            poll_interval=env.poll_interval,
        )

    # ------------------------------------------------------------------- stop

    def stop(self) -> None:
        """
        Delete the cluster, then stop and remove the registry if it is running.

        Raises:
            ClusterNotFoundError: If there was no cluster to delete. The registry
                is still torn down before this is raised.
        """
        name = self.env.cluster_name
        cluster_found = self.probe.cluster_exists()
        if cluster_found:
            self.console.print(f"Deleting cluster '{name}'...")
            self.kind.delete_cluster(name)
        else:
            logger.warning(f"Cluster {name} does not exist")

        if self.probe.registry_running():
            container = self.engine.inspect(self.env.registry_name)
            if container is not None:
                self.console.print(f"Removing registry '{self.env.registry_name}'...")
                self.engine.stop(container.id)
                self.engine.remove(container.id)

        if not cluster_found:
            raise ClusterNotFoundError(
                f"Cluster '{name}' does not exist",
                "Nothing to delete. Run 'devcluster status' to check the cluster state",
            )
        self.console.print(f"[green]✓[/green] Cluster '{name}' deleted")

    # ----------------------------------------------------------------- status

    def status(self) -> ClusterStatus:
        """Query the live state of the environment. Never mutates anything."""
        name = self.env.cluster_name
        registry_running = self.probe.registry_running()
        if not self.probe.cluster_exists():
            return ClusterStatus(name=name, running=False, registry_running=registry_running)

        return ClusterStatus(
            name=name,
            running=True,
            registry_running=registry_running,
            client_version=self.kube.client_version(),
            server_version=self.kube.server_version(),
            namespaces=self.kube.list_namespaces(),
            nodes=self.kind.get_nodes(name),
        )

    # ----------------------------------------------------------------- expose

    def expose(self, service_name: str) -> ExposedService:
        """
        Route <service>.<dns suffix> to a Service through the ingress controller.

        Raises:
            PreconditionError: If the name is empty
            ServiceNotFoundError: If the Service is missing or declares no ports
        """
        if not service_name:
            raise PreconditionError(
                "Service name is required", "Usage: devcluster expose <service-name>"
            )

        port = self.probe.service_port(service_name)
        if port is None:
            raise ServiceNotFoundError(
                f"Service '{service_name}' not found or has no port",
                f"Check it with: kubectl -n {self.env.namespace} get service {service_name}",
            )

        self.kube.create_or_replace(service_ingress(self.env, service_name, port))
        exposed = ExposedService(
            service_name=service_name,
            port=port,
            ingress_name=ingress_name(service_name),
            host=self.env.service_host(service_name),
        )
        logger.info(f"Exposed {service_name}:{port} at {exposed.host}")
        return exposed
