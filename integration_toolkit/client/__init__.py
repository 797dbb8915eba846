"""
API clients for Application Integration, Integration Connectors and the
surrounding Google Cloud services.
"""

from .transport import ApiTransport, APIError
from .cloud import CloudServicesClient
from .connectors import ConnectorsClient
from .integrations import IntegrationClient
from .builder import ToolkitClients, build_clients

__all__ = [
    "ApiTransport",
    "APIError",
    "CloudServicesClient",
    "ConnectorsClient",
    "IntegrationClient",
    "ToolkitClients",
    "build_clients",
]
