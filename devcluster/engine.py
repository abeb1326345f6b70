"""Container engine operations for the local registry, using the Docker SDK."""

import docker
import requests
from docker.errors import APIError, DockerException, NotFound
from docker.models.containers import Container

from devcluster.exceptions import ContainerEngineError
from devcluster.logging_config import get_logger
from devcluster.models.environment import REGISTRY_CONTAINER_PORT

logger = get_logger(__name__)


class ContainerEngine:
    """Runs, inspects and removes containers through the Docker daemon."""

    def __init__(self, client: docker.DockerClient | None = None):
        self._client = client

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            try:
                self._client = docker.from_env()
            except DockerException as e:
                raise ContainerEngineError(
                    "Cannot connect to the Docker daemon",
                    f"{e}\n\nMake sure Docker is running and DOCKER_HOST is set correctly",
                )
        return self._client

    def inspect(self, name: str) -> Container | None:
        """
        Look up a container by name.

        Returns:
            The container, or None if it does not exist
        """
        try:
            return self.client.containers.get(name)
        except NotFound:
            return None
        except APIError as e:
            raise ContainerEngineError(f"Failed to inspect container {name}", e.explanation)
        except (DockerException, requests.RequestException) as e:
            raise ContainerEngineError(f"Failed to inspect container {name}", str(e))

    def run_registry(self, name: str, image: str, host_port: int) -> Container:
        """
        Start the registry container, detached and restarted by the daemon on failure.

        A stopped container left over from an earlier run is started again instead
        of being recreated.
        """
        existing = self.inspect(name)
        try:
            if existing is not None:
                logger.info(f"Starting existing registry container {name}")
                existing.start()
                return existing

            logger.info(f"Running registry container {name} on port {host_port}")
            return self.client.containers.run(
                image,
                name=name,
                detach=True,
                restart_policy={"Name": "always"},
                ports={f"{REGISTRY_CONTAINER_PORT}/tcp": ("127.0.0.1", host_port)},
            )
        except APIError as e:
            raise ContainerEngineError(f"Failed to start registry container {name}", e.explanation)
        except (DockerException, requests.RequestException) as e:
            raise ContainerEngineError(f"Failed to start registry container {name}", str(e))

    def stop(self, container_id: str) -> None:
        try:
            self.client.containers.get(container_id).stop()
        except APIError as e:
            raise ContainerEngineError(f"Failed to stop container {container_id}", e.explanation)
        except (DockerException, requests.RequestException) as e:
            raise ContainerEngineError(f"Failed to stop container {container_id}", str(e))

    def remove(self, container_id: str) -> None:
        try:
            self.client.containers.get(container_id).remove()
        except APIError as e:
            raise ContainerEngineError(f"Failed to remove container {container_id}", e.explanation)
        except (DockerException, requests.RequestException) as e:
            raise ContainerEngineError(f"Failed to remove container {container_id}", str(e))

    def connect_network(self, network_name: str, container_name: str) -> bool:
        """
        Attach a container to a network.

        Returns:
            True if the container was attached, False if it already was
        """
        try:
            network = self.client.networks.get(network_name)
            network.connect(container_name)
        except NotFound as e:
            raise ContainerEngineError(
                f"Network {network_name} or container {container_name} not found", e.explanation
            )
        except APIError as e:
            if "already exists" in str(e.explanation):
                logger.debug(f"{container_name} is already connected to {network_name}")
                return False
            raise ContainerEngineError(
                f"Failed to connect {container_name} to network {network_name}", e.explanation
            )
        except (DockerException, requests.RequestException) as e:
            raise ContainerEngineError(
                f"Failed to connect {container_name} to network {network_name}", str(e)
            )
        logger.info(f"Connected {container_name} to network {network_name}")
        return True
