"""Creating and executing integration test cases outside an apply run."""

import logging
from pathlib import Path
from typing import Any

from .config_store import read_text
from .locator import find_resource_files, file_stem
from .models import ConfigError, ApplyError

logger = logging.getLogger(__name__)

FAILED = "FAILED"


class FailedTestCaseError(ApplyError):
    """Raised when one or more executed test cases fail."""

    def __init__(self, message: str, failed: list[str]):
        super().__init__(message)
        self.failed = failed


def validate_version_selector(version: str, user_label: str, snapshot: str) -> None:
    """
    Check that exactly one way of selecting a version was given.

    Raises:
        ConfigError: If none or more than one of version, user label and
            snapshot is set
    """
    given = [value for value in (version, user_label, snapshot) if value]
    if not given:
        raise ConfigError("One of version, user label or snapshot must be passed")
    if len(given) > 1:
        raise ConfigError("Only one of version, user label or snapshot can be passed")


def validate_execute_inputs(input_file: str, input_folder: str, test_case_id: str) -> None:
    """
    Check the input options of a test case execution.

    Raises:
        ConfigError: If the combination of options is invalid
    """
    if input_file and not test_case_id:
        raise ConfigError("Test case id must be set with input-file")
    if not input_file and not input_folder:
        raise ConfigError("At least one of input-file or input-folder must be passed")
    if input_file and input_folder:
        raise ConfigError("Only one of input-file or input-folder can be passed")
    if input_folder and test_case_id:
        raise ConfigError("Test case id cannot be set with input-folder")


def resolve_version(
    integrations: Any,
    name: str,
    version: str = "",
    user_label: str = "",
    snapshot: str = "",
) -> str:
    """
    Return the version id selected by version, user label or snapshot.
    """
    if version:
        return version
    if snapshot:
        integration_version = integrations.get_version_by_snapshot(name, snapshot)
    else:
        integration_version = integrations.get_version_by_user_label(name, user_label)
    return integration_version["name"].rstrip("/").rsplit("/", 1)[-1]


def create_test_case_from_file(integrations: Any, name: str, version: str, path: str | Path) -> dict:
    """
    Create a test case from a file.

    Raises:
        ConfigError: If the file does not exist
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Test case file {path} not found")

    response = integrations.create_test_case(name, version, read_text(path))
    logger.info(f"Created test case from {path.name} for {name} version {version}")
    return response


def _passed(response: dict) -> bool:
    return response.get("testExecutionState") != FAILED


def execute_test_case_file(
    integrations: Any,
    name: str,
    version: str,
    test_case_id: str,
    path: str | Path,
) -> dict:
    """
    Execute one test case with the input parameters in a file.

    Raises:
        ConfigError: If the file does not exist
        FailedTestCaseError: If the test case fails
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Input file {path} not found")

    response = integrations.execute_test_case(
        name, version, test_case_id, read_text(path)
    )
    if not _passed(response):
        raise FailedTestCaseError(f"Test case {test_case_id} failed", [test_case_id])

    logger.info(f"Test case {test_case_id} executed successfully")
    return response


def execute_all_test_cases(integrations: Any, folder: str | Path, name: str, version: str) -> list[str]:
    """
    Execute every test case that has an input file in a folder.

    Input files are matched to test cases by display name: the file
    ``<displayName>.json`` feeds the test case with that display name.

    Returns:
        Display names of the test cases executed

    Raises:
        FailedTestCaseError: If any executed test case failed
    """
    test_cases = {
        tc.get("displayName"): tc["name"].rstrip("/").rsplit("/", 1)[-1]
        for tc in integrations.list_test_cases(name, version)
    }

    executed = []
    failed = []

    for path in find_resource_files(folder):
        display_name = file_stem(path.name)
        test_case_id = test_cases.get(display_name)
        if test_case_id is None:
            logger.warning(f"No test case named {display_name} in {name} version {version}")
            continue

        logger.info(f"Executing test case {display_name}")
        response = integrations.execute_test_case(
            name, version, test_case_id, read_text(path)
        )
        executed.append(display_name)
        if _passed(response):
            logger.info(f"Test case {display_name} executed successfully")
        else:
            logger.error(f"Test case {display_name} failed")
            failed.append(display_name)

    if failed:
        raise FailedTestCaseError(f"{len(failed)} test case(s) failed: {', '.join(failed)}", failed)
    return executed
