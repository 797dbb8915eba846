"""
Application Integration API client.

Covers auth configs, SFDC instances and channels, integration versions,
test cases and publishing for one project and region.
"""

import json
import logging
from typing import Any

import httpx

from ..core.config_store import parse_json
from ..core.models import ConfigError
from .cloud import CloudServicesClient
from .transport import ApiTransport, APIError

logger = logging.getLogger(__name__)

INTEGRATIONS_API = "https://integrations.googleapis.com/v1"

INVOKER_ROLE = "roles/connectors.invoker"


def resource_id(resource_name: str) -> str:
    """Return the last path segment of a resource name."""
    return resource_name.rstrip("/").rsplit("/", 1)[-1]


def merge_overrides(version: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment overrides to an integration version body.

    Supported sections:
    - task_overrides: parameters merged into the task with the same taskId
    - trigger_overrides: fields set on the trigger with the same triggerNumber
    - param_overrides: defaultValue set on the integration parameter with the same key

    Returns:
        The updated version body (modified in place)
    """
    tasks = {str(t.get("taskId")): t for t in version.get("taskConfigs", [])}
    for task_override in overrides.get("task_overrides", []):
        task = tasks.get(str(task_override.get("taskId")))
        if task is None:
            logger.warning(f"Override for unknown task {task_override.get('taskId')} ignored")
            continue
        task.setdefault("parameters", {}).update(task_override.get("parameters", {}))

    triggers = {str(t.get("triggerNumber")): t for t in version.get("triggerConfigs", [])}
    for trigger_override in overrides.get("trigger_overrides", []):
        trigger = triggers.get(str(trigger_override.get("triggerNumber")))
        if trigger is None:
            logger.warning(
                f"Override for unknown trigger {trigger_override.get('triggerNumber')} ignored"
            )
            continue
        trigger.update({k: v for k, v in trigger_override.items() if k != "triggerNumber"})

    params = {p.get("key"): p for p in version.get("integrationParameters", [])}
    for param_override in overrides.get("param_overrides", []):
        param = params.get(param_override.get("key"))
        if param is None:
            logger.warning(f"Override for unknown parameter {param_override.get('key')} ignored")
            continue
        param["defaultValue"] = param_override.get("defaultValue")

    return version


def to_config_parameters(config_vars: dict[str, Any]) -> list[dict[str, Any]]:
    """Convert a {key: value} mapping into publish configParameters."""
    parameters = []
    for key, value in config_vars.items():
        if isinstance(value, bool):
            typed = {"booleanValue": value}
        elif isinstance(value, int):
            typed = {"intValue": str(value)}
        elif isinstance(value, float):
            typed = {"doubleValue": value}
        elif isinstance(value, str):
            typed = {"stringValue": value}
        else:
            typed = {"jsonValue": json.dumps(value)}
        parameters.append({"parameter": {"key": key}, "value": typed})
    return parameters


class IntegrationClient(ApiTransport):
    """Client for the Application Integration API."""

    def __init__(
        self,
        project: str,
        region: str,
        token: str,
        cloud: CloudServicesClient | None = None,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
    ):
        super().__init__(
            base_url=f"{INTEGRATIONS_API}/projects/{project}/locations/{region}",
            token=token,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        )
        self.project = project
        self.region = region
        self.cloud = cloud

    def _list(self, path: str, key: str, filter_expr: str = "") -> list[dict[str, Any]]:
        """List every item of a collection, following page tokens."""
        items: list[dict[str, Any]] = []
        params: dict[str, Any] = {}
        if filter_expr:
            params["filter"] = filter_expr

        while True:
            response = self._request("GET", path, params=dict(params))
            items.extend(response.get(key, []))
            page_token = response.get("nextPageToken")
            if not page_token:
                return items
            params["pageToken"] = page_token

    # ===== AUTH CONFIGS =====

    def find_authconfig(self, name: str) -> str:
        """
        Find an auth config by display name.

        Returns:
            The auth config id, or "" if none has that display name
        """
        auth_configs = self._list("authConfigs", "authConfigs", f'displayName="{name}"')
        if not auth_configs:
            return ""
        return resource_id(auth_configs[0].get("name", ""))

    def create_authconfig(self, content: bytes) -> dict[str, Any]:
        """Create an auth config from its JSON definition."""
        return self._request("POST", "authConfigs", json_body=parse_json(content, "auth config"))

    # ===== SFDC =====

    def get_sfdc_instance(self, name: str, minimal: bool = False) -> dict[str, Any]:
        """
        Get an SFDC instance by display name.

        Args:
            name: Display name of the instance
            minimal: Return only the instance's resource name

        Raises:
            APIError: If no instance has that display name
        """
        instances = self._list("sfdcInstances", "sfdcInstances", f'displayName="{name}"')
        if not instances:
            raise APIError(f"sfdc instance {name} not found", status_code=404)
        instance = instances[0]
        if minimal:
            return {"name": instance.get("name", "")}
        return instance

    def create_sfdc_instance(self, content: bytes) -> dict[str, Any]:
        """Create an SFDC instance from its JSON definition."""
        return self._request("POST", "sfdcInstances", json_body=parse_json(content, "sfdc instance"))

    def find_sfdc_channel(self, channel: str, instance: str) -> dict[str, Any]:
        """
        Find an SFDC channel by channel and instance display names.

        Raises:
            APIError: If the instance or the channel does not exist
        """
        instance_id = resource_id(self.get_sfdc_instance(instance, minimal=True)["name"])
        channels = self._list(
            f"sfdcInstances/{instance_id}/sfdcChannels",
            "sfdcChannels",
            f'displayName="{channel}"',
        )
        if not channels:
            raise APIError(f"sfdc channel {channel} not found in {instance}", status_code=404)
        return channels[0]

    def create_sfdc_channel(self, instance: str, content: bytes) -> dict[str, Any]:
        """Create an SFDC channel under the instance with the given display name."""
        instance_id = resource_id(self.get_sfdc_instance(instance, minimal=True)["name"])
        return self._request(
            "POST",
            f"sfdcInstances/{instance_id}/sfdcChannels",
            json_body=parse_json(content, "sfdc channel"),
        )

    # ===== INTEGRATION VERSIONS =====

    def create_version(
        self,
        name: str,
        body: bytes,
        overrides: bytes = b"",
        user_label: str = "",
        grant_permission: bool = False,
    ) -> bytes:
        """
        Create a new draft version of an integration.

        Args:
            name: Integration name
            body: Integration version definition
            overrides: Optional overrides document
            user_label: Optional user label for the version
            grant_permission: Grant the run-as service account the invoker role

        Returns:
            The raw response body describing the new version
        """
        version = parse_json(body, f"integration {name}")
        if overrides:
            merge_overrides(version, parse_json(overrides, "overrides"))
        if user_label:
            version["userLabel"] = user_label

        run_as = version.get("runAsServiceAccount")
        if grant_permission and run_as:
            if self.cloud is None:
                logger.warning(f"No Cloud services client, cannot grant {INVOKER_ROLE} to {run_as}")
            else:
                self.cloud.grant_project_role(f"serviceAccount:{run_as}", INVOKER_ROLE)

        response = self._send("POST", f"integrations/{name}/versions", json_body=version)
        return response.content

    def list_versions(self, name: str, filter_expr: str = "") -> list[dict[str, Any]]:
        """List versions of an integration."""
        return self._list(f"integrations/{name}/versions", "integrationVersions", filter_expr)

    def get_version_by_user_label(self, name: str, user_label: str) -> dict[str, Any]:
        """
        Get the integration version carrying a user label.

        Raises:
            APIError: If no version has the label
        """
        versions = self.list_versions(name, f'userLabel="{user_label}"')
        if not versions:
            raise APIError(f"No version of {name} with user label {user_label}", status_code=404)
        return versions[0]

    def get_version_by_snapshot(self, name: str, snapshot: str) -> dict[str, Any]:
        """
        Get the integration version with a snapshot number.

        Raises:
            APIError: If no version has the snapshot number
        """
        versions = self.list_versions(name, f"snapshotNumber={snapshot}")
        if not versions:
            raise APIError(f"No version of {name} with snapshot {snapshot}", status_code=404)
        return versions[0]

    def publish_version(self, name: str, version: str, config_vars: bytes = b"") -> dict[str, Any]:
        """
        Publish an integration version.

        Args:
            name: Integration name
            version: Version id
            config_vars: Optional JSON mapping of config variable values
        """
        body: dict[str, Any] = {}
        if config_vars:
            values = parse_json(config_vars, f"config variables of {name}")
            if not isinstance(values, dict):
                raise ConfigError(f"Config variables of {name} must be a JSON object")
            if "configParameters" in values:
                body = values
            else:
                body["configParameters"] = to_config_parameters(values)

        return self._request(
            "POST",
            f"integrations/{name}/versions/{version}:publish",
            json_body=body,
        )

    # ===== TEST CASES =====

    def create_test_case(self, name: str, version: str, content: str) -> dict[str, Any]:
        """Create a test case for an integration version."""
        return self._request(
            "POST",
            f"integrations/{name}/versions/{version}/testCases",
            json_body=parse_json(content, f"test case of {name}"),
        )

    def list_test_cases(self, name: str, version: str) -> list[dict[str, Any]]:
        """List the test cases of an integration version."""
        return self._list(f"integrations/{name}/versions/{version}/testCases", "testCases")

    def execute_test_case(
        self,
        name: str,
        version: str,
        test_case_id: str,
        content: str,
    ) -> dict[str, Any]:
        """Execute a test case with the given input parameters."""
        return self._request(
            "POST",
            f"integrations/{name}/versions/{version}/testCases/{test_case_id}:executeTest",
            json_body=parse_json(content, f"test case input {test_case_id}"),
        )
