"""Environment model holding the names and pinned versions of a dev cluster."""

import re

from pydantic import BaseModel, Field, ValidationError, field_validator

from devcluster.exceptions import ConfigurationError

# DNS-1123 label, which is what kind and Docker both accept for these names
NAME_PATTERN = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?")

DEFAULT_CLUSTER_NAME = "devcluster"
DEFAULT_REGISTRY_NAME = "devcluster-registry"
DEFAULT_REGISTRY_PORT = 5000
DEFAULT_NODE_IMAGE = "kindest/node:v1.29.2"
DEFAULT_INGRESS_NGINX_VERSION = "v1.10.0"

# Port the registry:2 image listens on inside its container
REGISTRY_CONTAINER_PORT = 5000

INGRESS_MANIFEST_URL = (
    "https://raw.githubusercontent.com/kubernetes/ingress-nginx/"
    "controller-{version}/deploy/static/provider/kind/deploy.yaml"
)


class Environment(BaseModel):
    """Identifies one local development environment.

    Every component receives an instance of this model instead of reading
    module-level constants, so two environments with different names can
    coexist on the same machine.
    """

    cluster_name: str = DEFAULT_CLUSTER_NAME
    registry_name: str = DEFAULT_REGISTRY_NAME
    registry_port: int = DEFAULT_REGISTRY_PORT
    registry_image: str = "registry:2"
    node_image: str = DEFAULT_NODE_IMAGE
    ingress_nginx_version: str = DEFAULT_INGRESS_NGINX_VERSION
    http_port: int = 80
    https_port: int = 443
    dns_suffix: str = "127.0.0.1.nip.io"
    namespace: str = "default"
    kind_network: str = "kind"
    ingress_namespace: str = "ingress-nginx"
    ingress_deployment: str = "ingress-nginx-controller"
    rollout_timeout: float = Field(default=300.0, gt=0)
    poll_interval: float = Field(default=2.0, gt=0)

    @field_validator("cluster_name", "registry_name", "namespace")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate resource names are DNS-1123 labels."""
        if not v:
            raise ValueError("name cannot be empty")
        if len(v) > 63:
            raise ValueError("name cannot exceed 63 characters")
        if not NAME_PATTERN.fullmatch(v):
            raise ValueError(
                f"name '{v}' must contain only lowercase alphanumeric characters "
                "and hyphens, and cannot start or end with a hyphen"
            )
        return v

    @field_validator("registry_port", "http_port", "https_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate ports are in the TCP range."""
        if not 1 <= v <= 65535:
            raise ValueError(f"port must be between 1 and 65535, got {v}")
        return v

    @field_validator("ingress_nginx_version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate the ingress-nginx version is a pinned tag."""
        if not re.fullmatch(r"v\d+\.\d+\.\d+", v):
            raise ValueError(f"ingress_nginx_version '{v}' must look like v1.10.0")
        return v

    @property
    def kube_context(self) -> str:
        """Name of the kubeconfig context kind writes for the cluster."""
        return f"kind-{self.cluster_name}"

    @property
    def registry_address(self) -> str:
        """Registry address as seen from the host."""
        return f"localhost:{self.registry_port}"

    @property
    def registry_endpoint(self) -> str:
        """Registry endpoint as seen from inside the kind network."""
        return f"http://{self.registry_name}:{REGISTRY_CONTAINER_PORT}"

    @property
    def ingress_manifest_url(self) -> str:
        """Pinned URL of the ingress-nginx manifest for the kind provider."""
        return INGRESS_MANIFEST_URL.format(version=self.ingress_nginx_version)

    def service_host(self, service_name: str) -> str:
        """Host rule used when exposing a Service."""
        return f"{service_name}.{self.dns_suffix}"

    @classmethod
    def from_options(cls, **options) -> "Environment":
        """Build an environment from CLI options, ignoring unset values.

        Raises:
            ConfigurationError: If any value fails validation
        """
        values = {k: v for k, v in options.items() if v is not None}
        try:
            return cls(**values)
        except ValidationError as e:
            problems = "\n".join(
                f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise ConfigurationError("Invalid environment configuration", problems)
