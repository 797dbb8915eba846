"""Apply a scaffold folder to a project and region."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from integration_toolkit.core.config_store import (
    extract_archive,
    get_base_dir,
    is_directory,
)
from integration_toolkit.core.models import (
    ApplyConfig,
    PublishResult,
    ResourceKind,
    ScaffoldError,
    ScaffoldLayout,
)
from integration_toolkit.core.publisher import publish_integration
from integration_toolkit.resources import (
    ResourceHandler,
    AuthConfigHandler,
    EndpointHandler,
    ManagedZoneHandler,
    CustomConnectorHandler,
    ConnectorHandler,
    SfdcInstanceHandler,
    SfdcChannelHandler,
)

logger = logging.getLogger(__name__)


class HandlerNotFoundError(Exception):
    """Raised when no handler is available for a resource kind."""
    pass


@dataclass(frozen=True)
class Stage:
    """One step of an apply run."""
    kind: ResourceKind
    skip: Callable[[ApplyConfig], bool] | None = None


# Resources are created in this order; later kinds may depend on earlier ones.
APPLY_STAGES: tuple[Stage, ...] = (
    Stage(ResourceKind.AUTHCONFIG, skip=lambda config: config.skip_authconfigs),
    Stage(ResourceKind.ENDPOINT),
    Stage(ResourceKind.MANAGED_ZONE),
    Stage(ResourceKind.CUSTOM_CONNECTOR, skip=lambda config: config.skip_connectors),
    Stage(ResourceKind.CONNECTOR, skip=lambda config: config.skip_connectors),
    Stage(ResourceKind.SFDC_INSTANCE),
    Stage(ResourceKind.SFDC_CHANNEL),
    Stage(ResourceKind.INTEGRATION),
)


@dataclass
class ApplyReport:
    """What an apply run did."""
    created: dict[ResourceKind, int] = field(default_factory=dict)
    skipped_stages: list[ResourceKind] = field(default_factory=list)
    published: PublishResult | None = None

    @property
    def total_created(self) -> int:
        return sum(self.created.values())


def get_handler_for_kind(kind: ResourceKind, clients: Any, config: ApplyConfig) -> ResourceHandler:
    """
    Get the handler for a resource kind.

    Args:
        kind: Resource kind
        clients: Bundle with ``integrations`` and ``connectors`` clients
        config: Run configuration

    Returns:
        ResourceHandler bound to the client serving that kind

    Raises:
        HandlerNotFoundError: If the kind has no resource handler
    """
    if kind == ResourceKind.AUTHCONFIG:
        return AuthConfigHandler(clients.integrations, config)
    elif kind == ResourceKind.ENDPOINT:
        return EndpointHandler(clients.connectors, config)
    elif kind == ResourceKind.MANAGED_ZONE:
        return ManagedZoneHandler(clients.connectors, config)
    elif kind == ResourceKind.CUSTOM_CONNECTOR:
        return CustomConnectorHandler(clients.connectors, config)
    elif kind == ResourceKind.CONNECTOR:
        return ConnectorHandler(clients.connectors, config)
    elif kind == ResourceKind.SFDC_INSTANCE:
        return SfdcInstanceHandler(clients.integrations, config)
    elif kind == ResourceKind.SFDC_CHANNEL:
        return SfdcChannelHandler(clients.integrations, config)
    else:
        raise HandlerNotFoundError(f"No resource handler for '{kind.value}'")


def resolve_scaffold_folder(config: ApplyConfig, clients: Any) -> Path:
    """
    Return the scaffold folder of a run.

    A local folder is used as is. For pipeline runs the release's skaffold
    archive is downloaded and extracted under the toolkit home.
    """
    if config.folder:
        return Path(config.folder)

    uri = clients.cloud.get_release_skaffold_uri(config.pipeline, config.release)
    archive = clients.cloud.download_object(uri)
    destination = get_base_dir() / "releases" / f"{config.pipeline}-{config.release}"
    extract_archive(archive, destination)
    logger.info(f"Extracted release {config.release} to {destination}")
    return destination


def apply_scaffold(config: ApplyConfig, clients: Any, folder: str | Path | None = None) -> ApplyReport:
    """
    Apply a scaffold folder.

    This is the main entry point of an apply run. It:
    1. Validates the run configuration
    2. Resolves the scaffold folder (local or from a pipeline release)
    3. Creates absent resources kind by kind in APPLY_STAGES order
    4. Creates, tests and publishes the integration

    The first error aborts the run; resources created by earlier stages
    are left in place.

    Args:
        config: Run configuration
        clients: ToolkitClients (or any object with the same attributes)
        folder: Already resolved scaffold folder, overriding the config

    Returns:
        ApplyReport describing what was created and published

    Raises:
        ConfigError: If the configuration is invalid
        ScaffoldError: If the scaffold folder is not a directory
        APIError: If any remote call fails
    """
    config.validate()

    if folder is None:
        folder = resolve_scaffold_folder(config, clients)

    layout = ScaffoldLayout.from_folder(folder, config.env)
    if not is_directory(layout.env_root):
        raise ScaffoldError(f"Problem with supplied path, {layout.env_root} is not a directory")

    logger.info(f"Applying scaffold folder {layout.env_root}")
    report = ApplyReport()

    for stage in APPLY_STAGES:
        if stage.skip is not None and stage.skip(config):
            logger.info(f"Skipping applying {stage.kind.value} configuration")
            report.skipped_stages.append(stage.kind)
            continue

        if stage.kind == ResourceKind.INTEGRATION:
            report.published = publish_integration(layout, config, clients)
            continue

        handler = get_handler_for_kind(stage.kind, clients, config)
        created = handler.apply(layout.kind_folder(stage.kind))
        report.created[stage.kind] = created
        if created:
            logger.info(f"Created {created} {stage.kind.value}")

    return report
