"""Local kind cluster with a companion registry and ingress."""

__version__ = "0.1.0"
