"""Inlining of JavaScript and Jsonnet files into an integration body."""

import json
import logging
import re
from pathlib import Path

from .config_store import read_text, parse_json
from .locator import find_resource_files, JAVASCRIPT_FILE_PATTERN, JSONNET_FILE_PATTERN
from .models import TaskType, ConfigError

logger = logging.getLogger(__name__)

# Task parameter holding the code for each task type
CODE_PARAMETERS = {
    TaskType.JAVASCRIPT.value: "script",
    TaskType.JSONNET_MAPPER.value: "template",
}

CodeMap = dict[str, dict[str, str]]


def escape_code(content: str) -> str:
    """Replace every newline with the two characters backslash and n."""
    return content.replace("\n", "\\n")


def _collect_code(folder: Path, pattern: re.Pattern, label: str) -> dict[str, str]:
    bucket: dict[str, str] = {}
    for path in find_resource_files(folder, pattern):
        logger.info(f"Found {label} file for integration: {path.name}")
        ordinal = pattern.match(path.name).group(1)
        bucket[ordinal] = escape_code(read_text(path))
    return bucket


def build_code_map(javascript_folder: Path, jsonnet_folder: Path) -> CodeMap:
    """
    Collect the code files of an integration.

    Both task-type buckets are always present; an empty bucket means the
    integration has no code of that type.

    Args:
        javascript_folder: Folder with ``javascript_<n>.js`` files
        jsonnet_folder: Folder with ``datatransformer_<n>.jsonnet`` files

    Returns:
        Mapping of task type to {ordinal: escaped code}
    """
    return {
        TaskType.JAVASCRIPT.value: _collect_code(javascript_folder, JAVASCRIPT_FILE_PATTERN, "JavaScript"),
        TaskType.JSONNET_MAPPER.value: _collect_code(jsonnet_folder, JSONNET_FILE_PATTERN, "Jsonnet"),
    }


def has_code(code_map: CodeMap) -> bool:
    """Return True if any task-type bucket holds code."""
    return any(code_map.values())


def set_code(integration_body: bytes, code_map: CodeMap) -> bytes:
    """
    Patch task code into an integration body.

    Every task config whose ``task`` is a code task type and whose
    ``taskId`` has an entry in that type's bucket gets the code set as the
    string value of its code parameter.

    Args:
        integration_body: Integration definition JSON
        code_map: Output of build_code_map

    Returns:
        The patched integration body as JSON bytes

    Raises:
        ConfigError: If the body is not a JSON object
    """
    body = parse_json(integration_body, "integration definition")
    if not isinstance(body, dict):
        raise ConfigError("Integration definition must be a JSON object")

    for task_config in body.get("taskConfigs", []):
        task_type = task_config.get("task")
        bucket = code_map.get(task_type)
        if not bucket:
            continue

        task_id = str(task_config.get("taskId", ""))
        if task_id not in bucket:
            continue

        param_name = CODE_PARAMETERS[task_type]
        parameters = task_config.setdefault("parameters", {})
        parameter = parameters.setdefault(param_name, {"key": param_name})
        parameter["value"] = {"stringValue": bucket[task_id]}
        logger.debug(f"Inlined {task_type} code for task {task_id}")

    return json.dumps(body).encode("utf-8")
