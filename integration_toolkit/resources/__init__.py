"""Resource handlers for each kind of scaffolded resource."""

from .base import ResourceHandler
from .authconfigs import AuthConfigHandler
from .connectors import (
    EndpointHandler,
    ManagedZoneHandler,
    ConnectorHandler,
    CustomConnectorHandler,
    get_service_attachment,
)
from .sfdc import SfdcInstanceHandler, SfdcChannelHandler

__all__ = [
    "ResourceHandler",
    "AuthConfigHandler",
    "EndpointHandler",
    "ManagedZoneHandler",
    "ConnectorHandler",
    "CustomConnectorHandler",
    "SfdcInstanceHandler",
    "SfdcChannelHandler",
    "get_service_attachment",
]
