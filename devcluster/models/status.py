"""Data models for observed cluster state."""

from pydantic import BaseModel, Field


class NodeInfo(BaseModel):
    """A node of the kind cluster."""

    name: str
    role: str  # control-plane or worker


class ClusterStatus(BaseModel):
    """Result of a status query."""

    name: str
    running: bool
    registry_running: bool = False
    client_version: str | None = None
    server_version: str | None = None
    namespaces: list[str] = Field(default_factory=list)
    nodes: list[NodeInfo] = Field(default_factory=list)


class ExposedService(BaseModel):
    """An ingress record created for a Service."""

    service_name: str
    port: int
    ingress_name: str
    host: str

    @property
    def url(self) -> str:
        """URL the Service is reachable at from the host."""
        return f"http://{self.host}/"
