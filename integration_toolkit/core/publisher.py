"""Creation, testing and publishing of the scaffolded integration."""

import json
import logging
from pathlib import Path
from typing import Any

from .config_store import read_file, read_optional_file, read_text
from .inliner import build_code_map, has_code, set_code
from .locator import find_resource_files, file_stem
from .models import (
    ApplyConfig,
    PublishResult,
    ResultArtifactError,
    ScaffoldLayout,
    VersionNotFoundError,
)

logger = logging.getLogger(__name__)

SUCCEEDED = "SUCCEEDED"


def extract_version_id(response_body: bytes | str) -> str:
    """
    Extract the version id from a version create response.

    The id is the last path segment of the response's ``name`` field,
    e.g. ``projects/p/locations/l/integrations/i/versions/42`` -> ``42``.

    Raises:
        VersionNotFoundError: If the response has no usable name
    """
    try:
        response = json.loads(response_body)
    except json.JSONDecodeError as e:
        raise VersionNotFoundError(f"version not found, invalid response: {e}")

    name = response.get("name") if isinstance(response, dict) else None
    if not name or not isinstance(name, str):
        raise VersionNotFoundError("version not found")

    version = name.rstrip("/").rsplit("/", 1)[-1]
    if not version:
        raise VersionNotFoundError("version not found")
    return version


def find_integration_file(src_folder: Path) -> Path | None:
    """Return the first integration definition file, or None."""
    for path in find_resource_files(src_folder):
        logger.info(f"Found configuration for integration: {path.name}")
        return path
    return None


def create_test_cases(
    integrations: Any,
    src_folder: Path,
    integration_file: Path,
    version: str,
) -> list[str]:
    """
    Create a test case for every other JSON file in the integration folder.

    Returns:
        File names of the test cases created

    Raises:
        APIError: On the first failing test case
    """
    integration_name = file_stem(integration_file.name)
    created = []

    for path in find_resource_files(src_folder):
        if path == integration_file:
            continue
        logger.info(f"Found test case file {path.name} for integration: {integration_name}")
        content = read_text(path)
        integrations.create_test_case(integration_name, version, content)
        created.append(path.name)

    return created


def publish_integration(layout: ScaffoldLayout, config: ApplyConfig, clients: Any) -> PublishResult | None:
    """
    Create, test and publish the integration of a scaffold folder.

    Steps:
    1. Locate the integration definition (none: warn and return None)
    2. Load overrides, if present
    3. Inline JavaScript and Jsonnet code into the definition
    4. Create a new version and read its id
    5. Attach test cases to the version
    6. Publish with the integration's config variables, if present
    7. For pipeline runs, write the results file

    Args:
        layout: Scaffold folder layout
        config: Run configuration
        clients: Bundle with ``integrations`` and ``cloud`` clients

    Returns:
        The published integration and version, or None if there is no
        integration definition

    Raises:
        APIError: If any remote call fails
        VersionNotFoundError: If the version create response has no name
        ResultArtifactError: If the results file cannot be written after
            a successful publish
    """
    integration_file = find_integration_file(layout.src_folder)
    if integration_file is None:
        logger.warning("No integration files were found")
        return None

    integration_name = file_stem(integration_file.name)
    integration_body = read_file(integration_file)

    overrides = read_optional_file(layout.overrides_file)
    if overrides:
        logger.info(f"Found overrides file {layout.overrides_file}")

    code_map = build_code_map(layout.javascript_folder, layout.jsonnet_folder)
    if has_code(code_map):
        integration_body = set_code(integration_body, code_map)

    logger.info(f"Create integration {integration_name}")
    response_body = clients.integrations.create_version(
        integration_name,
        integration_body,
        overrides,
        config.user_label,
        config.grant_permission,
    )
    version = extract_version_id(response_body)

    test_cases = create_test_cases(clients.integrations, layout.src_folder, integration_file, version)

    config_vars = read_optional_file(layout.config_vars_file(integration_name))
    logger.info(f"Publish integration {integration_name} with version {version}")
    clients.integrations.publish_version(integration_name, version, config_vars)

    result = PublishResult(integration_name=integration_name, version=version, test_cases=test_cases)

    if config.pipeline_managed:
        try:
            clients.cloud.write_results_file(config.output_gcs_path, SUCCEEDED)
        except Exception as e:
            raise ResultArtifactError(
                f"Integration {integration_name} version {version} was published "
                f"but the results file could not be written: {e}",
                result=result,
            ) from e

    return result
