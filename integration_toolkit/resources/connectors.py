"""Handlers for the Integration Connectors resource kinds."""

import logging
from pathlib import Path
from typing import Any

from integration_toolkit.client.transport import APIError
from integration_toolkit.core.config_store import parse_json
from integration_toolkit.core.locator import split_file_name
from integration_toolkit.core.models import (
    ResourceDescriptor,
    ResourceKind,
    ServiceAttachmentNotFoundError,
)
from .base import ResourceHandler

logger = logging.getLogger(__name__)


def get_service_attachment(content: bytes) -> str:
    """
    Read the service attachment from an endpoint definition.

    Raises:
        ServiceAttachmentNotFoundError: If the field is missing or empty
    """
    endpoint = parse_json(content, "endpoint attachment")
    service_attachment = endpoint.get("serviceAttachment") if isinstance(endpoint, dict) else None
    if not service_attachment:
        raise ServiceAttachmentNotFoundError("serviceAttachment not found")
    return service_attachment


class EndpointHandler(ResourceHandler):
    """Endpoint attachments; the lookup is a plain boolean check."""

    label = "endpoint attachment"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.ENDPOINT

    def exists(self, descriptor: ResourceDescriptor) -> bool:
        return self.client.endpoint_exists(descriptor.name)

    def create(self, descriptor: ResourceDescriptor, content: bytes) -> Any:
        service_attachment = get_service_attachment(content)
        return self.client.create_endpoint(descriptor.name, service_attachment)


class ManagedZoneHandler(ResourceHandler):
    """Managed zones; a failed lookup means the zone is absent."""

    label = "managed zone"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.MANAGED_ZONE

    def exists(self, descriptor: ResourceDescriptor) -> bool:
        try:
            self.client.get_zone(descriptor.name)
        except APIError as e:
            logger.debug(f"Zone {descriptor.name} lookup failed: {e}")
            return False
        return True

    def create(self, descriptor: ResourceDescriptor, content: bytes) -> Any:
        return self.client.create_zone(descriptor.name, content)


class ConnectorHandler(ResourceHandler):
    """Connections; a failed lookup means the connection is absent."""

    label = "connector"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.CONNECTOR

    def exists(self, descriptor: ResourceDescriptor) -> bool:
        try:
            self.client.get_connection(descriptor.name)
        except APIError as e:
            logger.debug(f"Connector {descriptor.name} lookup failed: {e}")
            return False
        return True

    def create(self, descriptor: ResourceDescriptor, content: bytes) -> Any:
        return self.client.create_connection(
            descriptor.name,
            content,
            service_account_name=self.config.service_account_name,
            service_account_project=self.config.service_account_project,
            encryption_key=self.config.encryption_key,
            grant_permission=self.config.grant_permission,
            create_secret=self.config.create_secret,
            wait=self.config.wait,
        )


class CustomConnectorHandler(ResourceHandler):
    """
    Custom connector versions, from files named ``<name><sep><version>.json``.

    Files that do not split into exactly two segments are skipped without
    any log message.
    """

    label = "custom connector"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.CUSTOM_CONNECTOR

    def parse(self, path: Path) -> ResourceDescriptor | None:
        segments = split_file_name(path.name, self.config.file_splitter)
        if segments is None:
            return None
        name, version = segments
        return ResourceDescriptor(kind=self.kind, path=path, name=name, secondary=version)

    def exists(self, descriptor: ResourceDescriptor) -> bool:
        try:
            self.client.get_custom_connector_version(descriptor.name, descriptor.secondary)
        except APIError as e:
            logger.debug(f"Custom connector {descriptor.name} lookup failed: {e}")
            return False
        return True

    def create(self, descriptor: ResourceDescriptor, content: bytes) -> Any:
        return self.client.create_custom_connector_version(
            descriptor.name,
            descriptor.secondary,
            content,
            service_account_name=self.config.service_account_name,
            service_account_project=self.config.service_account_project,
        )
