"""Kubernetes API operations used while provisioning and exposing services."""

import time

import kubernetes
import requests
from kubernetes import client, config, utils
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from ruamel.yaml import YAML

from devcluster.exceptions import KubernetesError, RolloutTimeoutError
from devcluster.logging_config import get_logger

logger = get_logger(__name__)


def _api_error(action: str, e: ApiException) -> KubernetesError:
    return KubernetesError(f"Failed to {action}", f"HTTP {e.status} {e.reason}: {e.body}")


class KubeClient:
    """Wrapper around the official Kubernetes client bound to one kubeconfig context."""

    def __init__(self, context: str | None = None, api_client: client.ApiClient | None = None):
        """Initialize the client.

        The kubeconfig is only loaded on first use, because the context does not
        exist until kind has created the cluster.

        Args:
            context: kubeconfig context to use, or None for the current context
            api_client: Preconfigured API client (mainly for tests)
        """
        self.context = context
        self._api_client = api_client

    @property
    def api_client(self) -> client.ApiClient:
        if self._api_client is None:
            try:
                self._api_client = config.new_client_from_config(context=self.context)
            except ConfigException as e:
                raise KubernetesError(
                    f"Failed to load kubeconfig context {self.context}",
                    f"{e}\n\nMake sure the cluster exists and KUBECONFIG points at its kubeconfig",
                )
            logger.debug(f"Loaded kubeconfig context {self.context}")
        return self._api_client

    @property
    def core(self) -> client.CoreV1Api:
        return client.CoreV1Api(self.api_client)

    @property
    def apps(self) -> client.AppsV1Api:
        return client.AppsV1Api(self.api_client)

    @property
    def networking(self) -> client.NetworkingV1Api:
        return client.NetworkingV1Api(self.api_client)

    # ------------------------------------------------------------------ manifests

    @staticmethod
    def fetch_manifest(url: str, timeout: float = 30) -> list[dict]:
        """
        Download a multi-document YAML manifest.

        Returns:
            The non-empty documents of the manifest

        Raises:
            KubernetesError: If the manifest cannot be downloaded or parsed
        """
        logger.debug(f"Fetching manifest {url}")
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise KubernetesError(f"Failed to download manifest {url}", str(e))

        try:
            documents = list(YAML(typ="safe").load_all(response.text))
        except Exception as e:
            raise KubernetesError(f"Manifest {url} is not valid YAML", str(e))
        return [doc for doc in documents if doc]

    def apply_objects(self, objects: list[dict]) -> int:
        """
        Create every object that does not exist yet.

        Objects that already exist are left untouched, so applying the same
        manifest twice is harmless.

        Returns:
            Number of objects created
        """
        created = 0
        for obj in objects:
            kind = obj.get("kind")
            name = obj.get("metadata", {}).get("name")
            try:
                utils.create_from_dict(self.api_client, obj)
                created += 1
                logger.debug(f"Created {kind} {name}")
            except utils.FailToCreateError as e:
                failures = [exc for exc in e.api_exceptions if exc.status != 409]
                if failures:
                    raise _api_error(f"create {kind} {name}", failures[0])
                logger.debug(f"{kind} {name} already exists")
        return created

    def create_or_replace(self, obj: dict) -> None:
        """Create a namespaced Ingress or ConfigMap, replacing it if it already exists."""
        kind = obj["kind"]
        name = obj["metadata"]["name"]
        namespace = obj["metadata"].get("namespace", "default")
        operations = {
            "Ingress": (
                self.networking.create_namespaced_ingress,
                self.networking.replace_namespaced_ingress,
            ),
            "ConfigMap": (
                self.core.create_namespaced_config_map,
                self.core.replace_namespaced_config_map,
            ),
        }
        if kind not in operations:
            raise KubernetesError(f"Unsupported kind for create_or_replace: {kind}")
        create, replace = operations[kind]

        try:
            create(namespace, obj)
            logger.info(f"Created {kind} {namespace}/{name}")
        except ApiException as e:
            if e.status != 409:
                raise _api_error(f"create {kind} {namespace}/{name}", e)
            try:
                replace(name, namespace, obj)
            except ApiException as e:
                raise _api_error(f"replace {kind} {namespace}/{name}", e)
            logger.info(f"Replaced {kind} {namespace}/{name}")

    # ---------------------------------------------------------------- deployments

    def patch_deployment(self, name: str, namespace: str, patch: list[dict]) -> None:
        """Apply a JSON patch to a deployment."""
        # A list body makes the client send application/json-patch+json
        try:
            self.apps.patch_namespaced_deployment(name, namespace, patch)
        except ApiException as e:
            raise _api_error(f"patch deployment {namespace}/{name}", e)
        logger.info(f"Patched deployment {namespace}/{name}")

    def rollout_complete(self, name: str, namespace: str) -> bool:
        """Whether every replica of the deployment runs the latest spec and is available."""
        try:
            deployment = self.apps.read_namespaced_deployment_status(name, namespace)
        except ApiException as e:
            if e.status == 404:
                return False
            raise _api_error(f"read deployment {namespace}/{name}", e)

        desired = deployment.spec.replicas if deployment.spec.replicas is not None else 1
        status = deployment.status
        if (status.observed_generation or 0) < (deployment.metadata.generation or 0):
            return False
        return (
            (status.updated_replicas or 0) >= desired
            and (status.available_replicas or 0) >= desired
            and (status.replicas or 0) <= (status.updated_replicas or 0)
        )

    def wait_for_rollout(
        self, name: str, namespace: str, timeout: float, poll_interval: float = 2.0
    ) -> None:
        """
        Block until the deployment rollout completes.

        Raises:
            RolloutTimeoutError: If the rollout is not complete after timeout seconds
        """
        deadline = time.monotonic() + timeout
        while True:
            if self.rollout_complete(name, namespace):
                logger.info(f"Deployment {namespace}/{name} is available")
                return
            if time.monotonic() >= deadline:
                raise RolloutTimeoutError(
                    f"Deployment {namespace}/{name} did not become available within {timeout:g}s",
                    f"Inspect it with: kubectl -n {namespace} describe deployment {name}",
                )
            logger.debug(f"Waiting for deployment {namespace}/{name}")
            time.sleep(poll_interval)

    # --------------------------------------------------------------------- nodes

    def annotate_node(self, name: str, key: str, value: str) -> None:
        body = {"metadata": {"annotations": {key: value}}}
        try:
            self.core.patch_node(name, body)
        except ApiException as e:
            raise _api_error(f"annotate node {name}", e)
        logger.debug(f"Annotated node {name} with {key}={value}")

    # ------------------------------------------------------------------ queries

    def service_ports(self, name: str, namespace: str) -> list[int] | None:
        """
        Declared ports of a Service.

        Returns:
            The ports in declaration order, or None if the Service does not exist
        """
        try:
            service = self.core.read_namespaced_service(name, namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise _api_error(f"read service {namespace}/{name}", e)
        return [port.port for port in service.spec.ports or []]

    def list_namespaces(self) -> list[str]:
        try:
            namespaces = self.core.list_namespace()
        except ApiException as e:
            raise _api_error("list namespaces", e)
        return sorted(ns.metadata.name for ns in namespaces.items)

    def server_version(self) -> str:
        try:
            return client.VersionApi(self.api_client).get_code().git_version
        except ApiException as e:
            raise _api_error("query server version", e)

    @staticmethod
    def client_version() -> str:
        return kubernetes.__version__
