"""Auth config handler."""

import logging
from typing import Any

from integration_toolkit.client.transport import APIError
from integration_toolkit.core.models import ResourceDescriptor, ResourceKind
from .base import ResourceHandler

logger = logging.getLogger(__name__)


class AuthConfigHandler(ResourceHandler):
    """
    Auth configs are looked up by display name.

    The lookup returns the auth config id; an empty id, or a failed
    lookup, means the auth config is absent.
    """

    label = "authconfig"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.AUTHCONFIG

    def exists(self, descriptor: ResourceDescriptor) -> bool:
        try:
            version = self.client.find_authconfig(descriptor.name)
        except APIError as e:
            logger.debug(f"Authconfig {descriptor.name} lookup failed: {e}")
            return False
        return bool(version)

    def create(self, descriptor: ResourceDescriptor, content: bytes) -> Any:
        return self.client.create_authconfig(content)
