"""Tests for core data models."""

from pathlib import Path

import pytest

from integration_toolkit.core.models import (
    ApplyConfig,
    ScaffoldLayout,
    ResourceDescriptor,
    ResourceKind,
    TaskType,
    ConfigError,
    ApplyError,
    ScaffoldError,
    VersionNotFoundError,
    ServiceAttachmentNotFoundError,
    ResultArtifactError,
    PublishResult,
)


def test_resource_kind_values_are_folder_names():
    """Test ResourceKind values match the scaffold folder names."""
    assert ResourceKind.AUTHCONFIG.value == "authconfigs"
    assert ResourceKind.ENDPOINT.value == "endpoints"
    assert ResourceKind.MANAGED_ZONE.value == "zones"
    assert ResourceKind.CUSTOM_CONNECTOR.value == "custom-connectors"
    assert ResourceKind.CONNECTOR.value == "connectors"
    assert ResourceKind.SFDC_INSTANCE.value == "sfdcinstances"
    assert ResourceKind.SFDC_CHANNEL.value == "sfdcchannels"
    assert ResourceKind.INTEGRATION.value == "src"


def test_task_type_values():
    """Test TaskType values are the integration task names."""
    assert TaskType.JAVASCRIPT.value == "JavaScriptTask"
    assert TaskType.JSONNET_MAPPER.value == "JsonnetMapperTask"


def test_file_splitter_default():
    """Test the default file splitter is a double underscore."""
    assert ApplyConfig(folder="f").file_splitter == "__"


def test_file_splitter_legacy():
    """Test use_underscore selects the single underscore splitter."""
    assert ApplyConfig(folder="f", use_underscore=True).file_splitter == "_"


def test_validate_folder_only():
    """Test a folder alone is a valid configuration."""
    ApplyConfig(folder="scaffold").validate()


def test_validate_pipeline_only():
    """Test the full pipeline triple is a valid configuration."""
    config = ApplyConfig(pipeline="p", release="r", output_gcs_path="gs://b/out")
    config.validate()
    assert config.pipeline_managed is True


def test_validate_requires_folder_or_pipeline():
    """Test that an empty configuration is rejected."""
    with pytest.raises(ConfigError, match="At least one of folder"):
        ApplyConfig().validate()


def test_validate_rejects_folder_and_pipeline():
    """Test that folder and pipeline options cannot be combined."""
    with pytest.raises(ConfigError, match="cannot be supplied"):
        ApplyConfig(folder="f", pipeline="p").validate()


@pytest.mark.parametrize("kwargs", [
    {"pipeline": "p"},
    {"release": "r"},
    {"output_gcs_path": "gs://b/o"},
    {"pipeline": "p", "release": "r"},
])
def test_validate_requires_full_pipeline_triple(kwargs):
    """Test that a partial pipeline triple is rejected."""
    with pytest.raises(ConfigError, match="must be set"):
        ApplyConfig(**kwargs).validate()


def test_apply_config_is_immutable():
    """Test that ApplyConfig cannot be modified during a run."""
    config = ApplyConfig(folder="f")
    with pytest.raises(AttributeError):
        config.folder = "other"


def test_scaffold_layout_without_env():
    """Test layout paths when no environment is given."""
    layout = ScaffoldLayout.from_folder("/scaffold")

    assert layout.kind_folder(ResourceKind.CONNECTOR) == Path("/scaffold/connectors")
    assert layout.kind_folder(ResourceKind.INTEGRATION) == Path("/scaffold/src")
    assert layout.overrides_file == Path("/scaffold/overrides/overrides.json")
    assert layout.config_vars_file("flow") == Path("/scaffold/config-variables/flow-config.json")


def test_scaffold_layout_with_env():
    """Test kind folders move under the environment but src stays at the root."""
    layout = ScaffoldLayout.from_folder("/scaffold", "dev")

    assert layout.kind_folder(ResourceKind.AUTHCONFIG) == Path("/scaffold/dev/authconfigs")
    assert layout.kind_folder(ResourceKind.SFDC_CHANNEL) == Path("/scaffold/dev/sfdcchannels")
    assert layout.overrides_file == Path("/scaffold/dev/overrides/overrides.json")
    assert layout.src_folder == Path("/scaffold/src")
    assert layout.javascript_folder == Path("/scaffold/src/javascript")
    assert layout.jsonnet_folder == Path("/scaffold/src/datatransformer")


def test_resource_descriptor_file_name():
    """Test ResourceDescriptor exposes the file name."""
    descriptor = ResourceDescriptor(
        kind=ResourceKind.SFDC_CHANNEL,
        path=Path("/x/inst__chan.json"),
        name="inst",
        secondary="chan",
    )
    assert descriptor.file_name == "inst__chan.json"


def test_apply_error_hierarchy():
    """Test apply errors share a common base class."""
    for error_class in (ScaffoldError, VersionNotFoundError,
                        ServiceAttachmentNotFoundError, ResultArtifactError):
        assert issubclass(error_class, ApplyError)
    assert not issubclass(ConfigError, ApplyError)


def test_result_artifact_error_carries_result():
    """Test ResultArtifactError keeps the publish result."""
    result = PublishResult(integration_name="flow", version="3")
    error = ResultArtifactError("upload failed", result=result)
    assert error.result is result
    assert "upload failed" in str(error)
