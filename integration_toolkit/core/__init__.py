"""Core components for the Integration Toolkit."""

from .models import (
    ResourceKind,
    TaskType,
    ApplyConfig,
    ScaffoldLayout,
    ResourceDescriptor,
    PublishResult,
    ConfigError,
    ApplyError,
    ScaffoldError,
    VersionNotFoundError,
    ServiceAttachmentNotFoundError,
    ResultArtifactError,
    DEFAULT_FILE_SPLITTER,
    LEGACY_FILE_SPLITTER,
)
from .config_store import (
    get_base_dir,
    is_directory,
    read_file,
    read_text,
    read_optional_file,
    parse_json,
    save_json,
    extract_archive,
)
from .locator import (
    find_resource_files,
    file_stem,
    split_file_name,
    JSON_FILE_PATTERN,
)
from .inliner import build_code_map, set_code, escape_code

__all__ = [
    "ResourceKind",
    "TaskType",
    "ApplyConfig",
    "ScaffoldLayout",
    "ResourceDescriptor",
    "PublishResult",
    "ConfigError",
    "ApplyError",
    "ScaffoldError",
    "VersionNotFoundError",
    "ServiceAttachmentNotFoundError",
    "ResultArtifactError",
    "DEFAULT_FILE_SPLITTER",
    "LEGACY_FILE_SPLITTER",
    "get_base_dir",
    "is_directory",
    "read_file",
    "read_text",
    "read_optional_file",
    "parse_json",
    "save_json",
    "extract_archive",
    "find_resource_files",
    "file_stem",
    "split_file_name",
    "JSON_FILE_PATTERN",
    "build_code_map",
    "set_code",
    "escape_code",
]
