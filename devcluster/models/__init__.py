"""Data models for environment configuration and observed state."""

from devcluster.models.environment import Environment
from devcluster.models.status import ClusterStatus, ExposedService, NodeInfo

__all__ = [
    "Environment",
    "ClusterStatus",
    "ExposedService",
    "NodeInfo",
]
