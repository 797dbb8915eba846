"""
Integration Connectors API client.

Covers endpoint attachments, managed zones, connections and custom
connectors for one project and region.
"""

import logging
import time
from typing import Any

import httpx

from ..core.config_store import parse_json
from ..core.models import ConfigError
from .cloud import CloudServicesClient
from .transport import ApiTransport, APIError

logger = logging.getLogger(__name__)

CONNECTORS_API = "https://connectors.googleapis.com/v1"

SECRET_ACCESSOR_ROLE = "roles/secretmanager.secretAccessor"


def service_account_email(name: str, project: str) -> str:
    """Build a service account email from its name and project."""
    return f"{name}@{project}.iam.gserviceaccount.com"


class ConnectorsClient(ApiTransport):
    """Client for the Integration Connectors API."""

    def __init__(
        self,
        project: str,
        region: str,
        token: str,
        cloud: CloudServicesClient | None = None,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
        poll_interval: float = 10.0,
        max_polls: int = 60,
    ):
        """
        Initialize the Connectors client.

        Args:
            project: Project id
            region: Region of the connections
            token: OAuth2 access token
            cloud: Client used for secrets and IAM grants
            http_client: Optional httpx client (created if None)
            timeout_seconds: Request timeout in seconds
            max_retries: Maximum attempts for transient failures
            poll_interval: Seconds between long-running operation polls
            max_polls: Polls before giving up on an operation
        """
        super().__init__(
            base_url=f"{CONNECTORS_API}/projects/{project}/locations/{region}",
            token=token,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        )
        self.project = project
        self.region = region
        self.cloud = cloud
        self.poll_interval = poll_interval
        self.max_polls = max_polls

    @property
    def global_url(self) -> str:
        """Base URL of the project's global location."""
        return f"{CONNECTORS_API}/projects/{self.project}/locations/global"

    def wait_for_operation(self, operation_name: str) -> dict[str, Any]:
        """
        Poll a long-running operation until it is done.

        Raises:
            APIError: If the operation fails or does not finish in time
        """
        for _ in range(self.max_polls):
            operation = self._request("GET", f"{CONNECTORS_API}/{operation_name}")
            if operation.get("done"):
                if "error" in operation:
                    error = operation["error"]
                    raise APIError(
                        f"Operation {operation_name} failed: {error.get('message', error)}"
                    )
                logger.info(f"Operation {operation_name} completed")
                return operation
            logger.info(f"Waiting for operation {operation_name}...")
            time.sleep(self.poll_interval)

        raise APIError(f"Timed out waiting for operation {operation_name}")

    # ===== ENDPOINT ATTACHMENTS =====

    def endpoint_exists(self, name: str) -> bool:
        """Return True if the endpoint attachment exists."""
        try:
            self._request("GET", f"endpointAttachments/{name}")
            return True
        except APIError as e:
            logger.debug(f"Endpoint attachment {name} lookup failed: {e}")
            return False

    def create_endpoint(
        self,
        name: str,
        service_attachment: str,
        description: str = "",
        wait: bool = False,
    ) -> dict[str, Any]:
        """Create an endpoint attachment for a service attachment."""
        body = {"serviceAttachment": service_attachment}
        if description:
            body["description"] = description

        operation = self._request(
            "POST",
            "endpointAttachments",
            params={"endpointAttachmentId": name},
            json_body=body,
        )
        if wait and operation.get("name"):
            return self.wait_for_operation(operation["name"])
        return operation

    # ===== MANAGED ZONES =====

    def get_zone(self, name: str) -> dict[str, Any]:
        """
        Get a managed zone.

        Raises:
            APIError: If the zone does not exist
        """
        return self._request("GET", f"{self.global_url}/managedZones/{name}")

    def create_zone(self, name: str, content: bytes) -> dict[str, Any]:
        """Create a managed zone from its JSON definition."""
        return self._request(
            "POST",
            f"{self.global_url}/managedZones",
            params={"managedZoneId": name},
            json_body=parse_json(content, f"managed zone {name}"),
        )

    def delete_zone(self, name: str) -> dict[str, Any]:
        """Delete a managed zone."""
        return self._request("DELETE", f"{self.global_url}/managedZones/{name}")

    # ===== CONNECTIONS =====

    def get_connection(self, name: str, view: str = "BASIC") -> dict[str, Any]:
        """
        Get a connection.

        Raises:
            APIError: If the connection does not exist
        """
        return self._request("GET", f"connections/{name}", params={"view": view})

    def create_connection(
        self,
        name: str,
        content: bytes,
        service_account_name: str = "",
        service_account_project: str = "",
        encryption_key: str = "",
        grant_permission: bool = False,
        create_secret: bool = False,
        wait: bool = False,
    ) -> dict[str, Any]:
        """
        Create a connection from its JSON definition.

        Args:
            name: Connection id
            content: Connection definition
            service_account_name: Service account the connection runs as
            service_account_project: Project of the service account
            encryption_key: KMS key decrypting inline secret values
            grant_permission: Grant the service account access to secrets
            create_secret: Create Secret Manager secrets for inline values
            wait: Wait for the create operation to finish

        Returns:
            The create operation (finished if wait is set)
        """
        connection = parse_json(content, f"connection {name}")

        if service_account_name:
            connection["serviceAccount"] = service_account_email(
                service_account_name, service_account_project or self.project
            )

        self._resolve_secrets(connection, encryption_key, create_secret)

        if grant_permission and connection.get("serviceAccount"):
            self._require_cloud("grant permissions").grant_project_role(
                f"serviceAccount:{connection['serviceAccount']}", SECRET_ACCESSOR_ROLE
            )

        operation = self._request(
            "POST",
            "connections",
            params={"connectionId": name},
            json_body=connection,
        )
        logger.info(f"Connection {name} creation started")

        if wait and operation.get("name"):
            return self.wait_for_operation(operation["name"])
        return operation

    def _require_cloud(self, action: str) -> CloudServicesClient:
        if self.cloud is None:
            raise ConfigError(f"A Cloud services client is required to {action}")
        return self.cloud

    def _resolve_secrets(self, node: Any, encryption_key: str, create_secret: bool) -> None:
        """
        Replace secret entries of a connection with secret version references.

        An entry is a dict carrying ``secretName``. With create_secret its
        ``secretValue`` (KMS ciphertext when an encryption key is set) is
        stored as a new secret version; otherwise the latest version of the
        existing secret is referenced.
        """
        if isinstance(node, list):
            for item in node:
                self._resolve_secrets(item, encryption_key, create_secret)
            return
        if not isinstance(node, dict):
            return

        if "secretName" in node:
            secret_name = node.pop("secretName")
            secret_value = node.pop("secretValue", None)

            if create_secret and secret_value is not None:
                cloud = self._require_cloud("create secrets")
                if encryption_key:
                    data = cloud.decrypt(encryption_key, secret_value)
                else:
                    data = str(secret_value).encode("utf-8")
                node["secretVersion"] = cloud.create_secret(secret_name, data)
            else:
                if secret_value is not None:
                    logger.warning(
                        f"Ignoring inline value of secret {secret_name}; "
                        f"use --create-secret to store it"
                    )
                node["secretVersion"] = (
                    f"projects/{self.project}/secrets/{secret_name}/versions/latest"
                )
            return

        for value in node.values():
            self._resolve_secrets(value, encryption_key, create_secret)

    # ===== CUSTOM CONNECTORS =====

    def get_custom_connector_version(self, name: str, version: str) -> dict[str, Any]:
        """
        Get a custom connector version.

        Raises:
            APIError: If the custom connector or version does not exist
        """
        return self._request(
            "GET",
            f"{self.global_url}/customConnectors/{name}/customConnectorVersions/{version}",
        )

    def create_custom_connector_version(
        self,
        name: str,
        version: str,
        content: bytes,
        service_account_name: str = "",
        service_account_project: str = "",
    ) -> dict[str, Any]:
        """
        Create a custom connector version, creating the connector if needed.

        The content holds ``customConnector`` and ``customConnectorVersion``
        objects; content without them is used as the version definition.
        """
        definition = parse_json(content, f"custom connector {name}")
        connector = definition.get("customConnector", {"customConnectorType": "OPEN_API"})
        connector_version = definition.get("customConnectorVersion", definition)

        try:
            self._request("GET", f"{self.global_url}/customConnectors/{name}")
        except APIError as e:
            if e.status_code != 404:
                raise
            logger.info(f"Creating custom connector {name}")
            operation = self._request(
                "POST",
                f"{self.global_url}/customConnectors",
                params={"customConnectorId": name},
                json_body=connector,
            )
            if operation.get("name"):
                self.wait_for_operation(operation["name"])

        if service_account_name:
            connector_version["serviceAccount"] = service_account_email(
                service_account_name, service_account_project or self.project
            )

        logger.info(f"Creating custom connector {name} version {version}")
        return self._request(
            "POST",
            f"{self.global_url}/customConnectors/{name}/customConnectorVersions",
            params={"customConnectorVersionId": version},
            json_body=connector_version,
        )
