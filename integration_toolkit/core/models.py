"""Core data models for the Integration Toolkit."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


DEFAULT_FILE_SPLITTER = "__"
LEGACY_FILE_SPLITTER = "_"


class ResourceKind(Enum):
    """Kind of resource managed by an apply run, valued by its scaffold folder."""
    AUTHCONFIG = "authconfigs"
    ENDPOINT = "endpoints"
    MANAGED_ZONE = "zones"
    CUSTOM_CONNECTOR = "custom-connectors"
    CONNECTOR = "connectors"
    SFDC_INSTANCE = "sfdcinstances"
    SFDC_CHANNEL = "sfdcchannels"
    INTEGRATION = "src"


class TaskType(Enum):
    """Integration task types whose code is kept in separate files."""
    JAVASCRIPT = "JavaScriptTask"
    JSONNET_MAPPER = "JsonnetMapperTask"


@dataclass(frozen=True)
class ApplyConfig:
    """Run-scoped configuration for one apply invocation."""
    folder: str = ""
    env: str = ""
    pipeline: str = ""
    release: str = ""
    output_gcs_path: str = ""
    user_label: str = ""
    service_account_name: str = ""
    service_account_project: str = ""
    encryption_key: str = ""
    grant_permission: bool = False
    create_secret: bool = False
    wait: bool = False
    skip_connectors: bool = False
    skip_authconfigs: bool = False
    use_underscore: bool = False

    @property
    def file_splitter(self) -> str:
        """Return the separator used in split resource file names."""
        return LEGACY_FILE_SPLITTER if self.use_underscore else DEFAULT_FILE_SPLITTER

    @property
    def pipeline_managed(self) -> bool:
        """Whether the run was started for a Cloud Deploy pipeline."""
        return bool(self.pipeline)

    def validate(self) -> None:
        """
        Check that the run parameters are consistent.

        Either a local folder or the full pipeline triple (pipeline, release,
        output path) must be supplied, never both.

        Raises:
            ConfigError: If the parameters conflict or are incomplete
        """
        pipeline_args = [self.pipeline, self.release, self.output_gcs_path]

        if not self.folder and not any(pipeline_args):
            raise ConfigError(
                "At least one of folder or pipeline, release and "
                "output_gcs_path must be supplied"
            )
        if self.folder and any(pipeline_args):
            raise ConfigError(
                "Both folder and pipeline, release and output_gcs_path cannot be supplied"
            )
        if any(pipeline_args) and not all(pipeline_args):
            raise ConfigError("release, pipeline and output_gcs_path must be set")


@dataclass(frozen=True)
class ScaffoldLayout:
    """Paths of every kind folder inside a scaffold folder."""
    root: Path
    env_root: Path

    @classmethod
    def from_folder(cls, folder: str | Path, env: str = "") -> "ScaffoldLayout":
        """
        Build the layout for a scaffold folder.

        Kind folders live under the environment sub-folder when one is given;
        the integration sources always live under the root.
        """
        root = Path(folder)
        env_root = root / env if env else root
        return cls(root=root, env_root=env_root)

    def kind_folder(self, kind: ResourceKind) -> Path:
        """Return the folder holding resources of the given kind."""
        if kind == ResourceKind.INTEGRATION:
            return self.src_folder
        return self.env_root / kind.value

    @property
    def src_folder(self) -> Path:
        return self.root / "src"

    @property
    def javascript_folder(self) -> Path:
        return self.src_folder / "javascript"

    @property
    def jsonnet_folder(self) -> Path:
        return self.src_folder / "datatransformer"

    @property
    def config_vars_folder(self) -> Path:
        return self.env_root / "config-variables"

    @property
    def overrides_file(self) -> Path:
        return self.env_root / "overrides" / "overrides.json"

    def config_vars_file(self, integration_name: str) -> Path:
        """Return the config variables file for an integration."""
        return self.config_vars_folder / f"{integration_name}-config.json"


@dataclass
class ResourceDescriptor:
    """
    Identifiers derived from a resource file name.

    For flat kinds only ``name`` is set. Custom connectors carry the
    connector version in ``secondary``; SFDC channels carry the instance
    in ``name`` and the channel in ``secondary``.
    """
    kind: ResourceKind
    path: Path
    name: str
    secondary: str | None = None

    @property
    def file_name(self) -> str:
        return self.path.name


@dataclass
class PublishResult:
    """Outcome of a successful integration publish."""
    integration_name: str
    version: str
    test_cases: list[str] = field(default_factory=list)


class ConfigError(Exception):
    """Raised when run parameters or local configuration files are invalid."""
    pass


class ApplyError(Exception):
    """Base class for errors raised while applying a scaffold folder."""
    pass


class ScaffoldError(ApplyError):
    """Raised when the scaffold folder cannot be used."""
    pass


class VersionNotFoundError(ApplyError):
    """Raised when a version create response carries no version name."""
    pass


class ServiceAttachmentNotFoundError(ApplyError):
    """Raised when an endpoint file has no serviceAttachment."""
    pass


class ResultArtifactError(ApplyError):
    """Raised when the results file cannot be written after a publish."""

    def __init__(self, message: str, result: PublishResult | None = None):
        super().__init__(message)
        self.result = result
