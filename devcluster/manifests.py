"""Builders for the manifests devcluster applies.

Every builder returns plain dictionaries so the Kubernetes client can send them
as structured payloads. Only the kind cluster configuration has to go through a
file, which ``manifest_file`` creates and removes around a single use.
"""

import io
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.scalarstring import LiteralScalarString

from devcluster.logging_config import get_logger
from devcluster.models.environment import Environment

logger = get_logger(__name__)

REGISTRY_ANNOTATION = "kind.x-k8s.io/registry"
SSL_PASSTHROUGH_FLAG = "--enable-ssl-passthrough"


def _yaml() -> YAML:
    yaml = YAML()
    yaml.default_flow_style = False
    yaml.indent(mapping=2, sequence=4, offset=2)
    return yaml


def cluster_topology(env: Environment) -> dict:
    """kind cluster configuration: an ingress-ready control plane and one worker."""
    mirror = (
        f'[plugins."io.containerd.grpc.v1.cri".registry.mirrors."{env.registry_address}"]\n'
        f'  endpoint = ["{env.registry_endpoint}"]'
    )
    init_configuration = (
        "kind: InitConfiguration\n"
        "nodeRegistration:\n"
        "  kubeletExtraArgs:\n"
        '    node-labels: "ingress-ready=true"\n'
    )
    return {
        "kind": "Cluster",
        "apiVersion": "kind.x-k8s.io/v1alpha4",
        "containerdConfigPatches": [LiteralScalarString(mirror)],
        "nodes": [
            {
                "role": "control-plane",
                "kubeadmConfigPatches": [LiteralScalarString(init_configuration)],
                "extraPortMappings": [
                    {"containerPort": 80, "hostPort": env.http_port, "protocol": "TCP"},
                    {"containerPort": 443, "hostPort": env.https_port, "protocol": "TCP"},
                ],
            },
            {"role": "worker"},
        ],
    }


def ingress_controller_patch() -> list[dict]:
    """JSON patch appending the SSL passthrough flag to the controller's args."""
    return [
        {
            "op": "add",
            "path": "/spec/template/spec/containers/0/args/-",
            "value": SSL_PASSTHROUGH_FLAG,
        }
    ]


def ingress_name(service_name: str) -> str:
    return f"{service_name}-ingress"


def service_ingress(env: Environment, service_name: str, service_port: int) -> dict:
    """Ingress routing <service>.<dns suffix>/ to the Service."""
    return {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": {
            "name": ingress_name(service_name),
            "namespace": env.namespace,
            "annotations": {"nginx.ingress.kubernetes.io/rewrite-target": "/"},
        },
        "spec": {
            "rules": [
                {
                    "host": env.service_host(service_name),
                    "http": {
                        "paths": [
                            {
                                "path": "/",
                                "pathType": "Prefix",
                                "backend": {
                                    "service": {
                                        "name": service_name,
                                        "port": {"number": service_port},
                                    }
                                },
                            }
                        ]
                    },
                }
            ]
        },
    }


def registry_hosting_configmap(env: Environment) -> dict:
    """ConfigMap advertising the local registry to in-cluster tooling (KEP-1755)."""
    hosting = (
        f'host: "{env.registry_address}"\n'
        'help: "https://kind.sigs.k8s.io/docs/user/local-registry/"\n'
    )
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": "local-registry-hosting", "namespace": "kube-public"},
        "data": {"localRegistryHosting.v1": hosting},
    }


def render_yaml(obj: dict) -> str:
    """Serialize a manifest to YAML; identical input gives identical output."""
    stream = io.StringIO()
    _yaml().dump(obj, stream)
    return stream.getvalue()


@contextmanager
def manifest_file(obj: dict, prefix: str = "devcluster-") -> Iterator[Path]:
    """
    Write a manifest to a uniquely named temporary file for one use.

    The file is removed when the block exits, whether or not it raised.
    """
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=".yaml")
    path = Path(name)
    try:
        with os.fdopen(fd, "w") as f:
            f.write(render_yaml(obj))
        logger.debug(f"Wrote manifest to {path}")
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug(f"Removed manifest {path}")
