"""Handlers for Salesforce (SFDC) instances and channels."""

import logging
from pathlib import Path
from typing import Any

from integration_toolkit.client.transport import APIError
from integration_toolkit.core.locator import split_file_name
from integration_toolkit.core.models import ResourceDescriptor, ResourceKind
from .base import ResourceHandler

logger = logging.getLogger(__name__)


class SfdcInstanceHandler(ResourceHandler):
    """SFDC instances; a failed lookup means the instance is absent."""

    label = "sfdc instance"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.SFDC_INSTANCE

    def exists(self, descriptor: ResourceDescriptor) -> bool:
        try:
            self.client.get_sfdc_instance(descriptor.name, minimal=True)
        except APIError as e:
            logger.debug(f"sfdc instance {descriptor.name} lookup failed: {e}")
            return False
        return True

    def create(self, descriptor: ResourceDescriptor, content: bytes) -> Any:
        return self.client.create_sfdc_instance(content)


class SfdcChannelHandler(ResourceHandler):
    """
    SFDC channels, from files named ``<instance><sep><channel>.json``.

    The channel lookup takes (channel, instance), the reverse of the file
    name order.
    """

    label = "sfdc channel"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.SFDC_CHANNEL

    def parse(self, path: Path) -> ResourceDescriptor | None:
        segments = split_file_name(path.name, self.config.file_splitter)
        if segments is None:
            logger.warning(
                f"sfdc channel file {path.name} does not follow the naming convention "
                f"instanceName{self.config.file_splitter}channelName.json"
            )
            return None
        instance, channel = segments
        return ResourceDescriptor(kind=self.kind, path=path, name=instance, secondary=channel)

    def exists(self, descriptor: ResourceDescriptor) -> bool:
        try:
            self.client.find_sfdc_channel(descriptor.secondary, descriptor.name)
        except APIError as e:
            logger.debug(f"sfdc channel {descriptor.secondary} lookup failed: {e}")
            return False
        return True

    def create(self, descriptor: ResourceDescriptor, content: bytes) -> Any:
        return self.client.create_sfdc_channel(descriptor.name, content)
