"""
Builder for the set of API clients used by the toolkit commands.
"""

from dataclasses import dataclass

from ..core.models import ConfigError
from .cloud import CloudServicesClient
from .connectors import ConnectorsClient
from .integrations import IntegrationClient


@dataclass
class ToolkitClients:
    """The API clients an apply run talks to."""
    integrations: IntegrationClient
    connectors: ConnectorsClient
    cloud: CloudServicesClient

    def close(self) -> None:
        """Close every client."""
        self.integrations.close()
        self.connectors.close()
        self.cloud.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def build_clients(project: str, region: str, token: str) -> ToolkitClients:
    """
    Create the API clients for a project and region.

    Args:
        project: Project id
        region: Region of the integration resources
        token: OAuth2 access token

    Returns:
        ToolkitClients ready to use (close when done)

    Raises:
        ConfigError: If project, region or token is missing

    Example:
        >>> with build_clients("my-project", "us-central1", token) as clients:
        ...     apply_scaffold(config, clients)
    """
    missing = [label for label, value in
               (("project", project), ("region", region), ("token", token)) if not value]
    if missing:
        raise ConfigError(f"Missing required settings: {', '.join(missing)}")

    cloud = CloudServicesClient(project, region, token)
    return ToolkitClients(
        integrations=IntegrationClient(project, region, token, cloud=cloud),
        connectors=ConnectorsClient(project, region, token, cloud=cloud),
        cloud=cloud,
    )
