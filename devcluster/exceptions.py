"""Custom exceptions for devcluster."""


class DevClusterError(Exception):
    """Base exception for all devcluster errors."""

    kind = "Cluster"

    def __init__(self, message: str, details: str = None):
        """Initialize the exception.

        Args:
            message: Main error message
            details: Additional details or suggestions
        """
        self.message = message
        self.details = details
        # Filled in by the orchestrator when a multi-step operation fails midway
        self.completed_steps: list[str] = []
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message

    @property
    def partial(self) -> bool:
        """True when some steps completed before the failure."""
        return bool(self.completed_steps)


class PreconditionError(DevClusterError):
    """Exception raised when an operation is refused before any change is made."""

    kind = "Precondition"


class ServiceNotFoundError(PreconditionError):
    """Exception raised when a Service is missing or declares no ports."""

    pass


class ClusterNotFoundError(PreconditionError):
    """Exception raised when the cluster does not exist."""

    pass


class ExternalCommandError(DevClusterError):
    """Exception raised when an external binary fails."""

    kind = "Command"

    def __init__(self, message: str, details: str = None, result=None):
        self.result = result
        super().__init__(message, details)


class ContainerEngineError(DevClusterError):
    """Exception raised for container engine errors."""

    kind = "Container Engine"


class KubernetesError(DevClusterError):
    """Exception raised for Kubernetes API errors."""

    kind = "Kubernetes"


class RolloutTimeoutError(DevClusterError):
    """Exception raised when a deployment does not become available in time."""

    kind = "Timeout"


class ConfigurationError(DevClusterError):
    """Exception raised for configuration errors."""

    kind = "Configuration"
