"""Base class for resource handlers."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from integration_toolkit.core.config_store import read_file
from integration_toolkit.core.locator import find_resource_files, file_stem
from integration_toolkit.core.models import ApplyConfig, ResourceDescriptor, ResourceKind

logger = logging.getLogger(__name__)


class ResourceHandler(ABC):
    """
    Abstract base class for per-kind resource reconciliation.

    Each resource kind (auth config, connector, SFDC channel, ...) has its
    own handler. Handlers adapt whatever lookup style their API client
    offers to a single ``exists`` predicate, so every kind follows the same
    create-if-absent flow in ``apply``.
    """

    #: Human-readable label used in log messages
    label = "resource"

    def __init__(self, client: Any, config: ApplyConfig):
        """
        Initialize the handler.

        Args:
            client: API client offering this kind's lookup and create calls
            config: Configuration of the apply run
        """
        self.client = client
        self.config = config

    @property
    @abstractmethod
    def kind(self) -> ResourceKind:
        """Return the resource kind handled."""
        pass

    def parse(self, path: Path) -> ResourceDescriptor | None:
        """
        Derive the resource identifiers from a file path.

        Flat kinds use the file name without extension. Split kinds
        override this and return None for names that break the convention.
        """
        return ResourceDescriptor(kind=self.kind, path=path, name=file_stem(path.name))

    @abstractmethod
    def exists(self, descriptor: ResourceDescriptor) -> bool:
        """Return True if the resource already exists remotely."""
        pass

    @abstractmethod
    def create(self, descriptor: ResourceDescriptor, content: bytes) -> Any:
        """
        Create the resource from the file content.

        Raises:
            APIError: If creation fails
        """
        pass

    def apply_file(self, path: Path) -> bool:
        """
        Create the resource described by one file unless it exists.

        Returns:
            True if a create call was made
        """
        descriptor = self.parse(path)
        if descriptor is None:
            return False

        logger.info(f"Found configuration for {self.label}: {path.name}")

        if self.exists(descriptor):
            logger.info(f"{self.label.capitalize()} {path.name} already exists")
            return False

        content = read_file(path)
        logger.info(f"Creating {self.label}: {path.name}")
        self.create(descriptor, content)
        return True

    def apply(self, folder: Path) -> int:
        """
        Apply every resource file of a kind folder.

        A missing folder is not an error; nothing is applied.

        Returns:
            Number of resources created
        """
        created = 0
        for path in find_resource_files(folder):
            if self.apply_file(path):
                created += 1
        return created
