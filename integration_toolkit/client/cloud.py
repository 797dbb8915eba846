"""
Supporting Google Cloud services used around an apply run.

Cloud Deploy (pipeline releases), Cloud Storage (scaffold archives and
result files), Secret Manager and Cloud KMS (connection secrets) and
Resource Manager (IAM grants).
"""

import base64
import json
import logging
from pathlib import Path
from urllib.parse import quote

import httpx

from ..core.config_store import save_json
from ..core.models import ScaffoldError
from .transport import ApiTransport, APIError

logger = logging.getLogger(__name__)

CLOUD_DEPLOY_API = "https://clouddeploy.googleapis.com/v1"
STORAGE_API = "https://storage.googleapis.com/storage/v1"
STORAGE_UPLOAD_API = "https://storage.googleapis.com/upload/storage/v1"
SECRET_MANAGER_API = "https://secretmanager.googleapis.com/v1"
KMS_API = "https://cloudkms.googleapis.com/v1"
RESOURCE_MANAGER_API = "https://cloudresourcemanager.googleapis.com/v1"

RESULTS_FILE_NAME = "results.json"


def split_gcs_uri(uri: str) -> tuple[str, str]:
    """
    Split a ``gs://bucket/object`` URI.

    Raises:
        ValueError: If the URI is not a GCS object URI
    """
    if not uri.startswith("gs://"):
        raise ValueError(f"Not a GCS URI: {uri}")
    bucket, _, obj = uri[len("gs://"):].partition("/")
    if not bucket or not obj:
        raise ValueError(f"GCS URI must name a bucket and an object: {uri}")
    return bucket, obj


def results_location(output_path: str) -> str:
    """Return where the results file goes for an output path (file or folder)."""
    if output_path.endswith(".json"):
        return output_path
    return f"{output_path.rstrip('/')}/{RESULTS_FILE_NAME}"


class CloudServicesClient(ApiTransport):
    """Client for the Cloud services surrounding an integration deployment."""

    def __init__(
        self,
        project: str,
        region: str,
        token: str,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
    ):
        super().__init__(
            base_url=CLOUD_DEPLOY_API,
            token=token,
            http_client=http_client,
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
        )
        self.project = project
        self.region = region

    # ===== CLOUD DEPLOY =====

    def get_release_skaffold_uri(self, pipeline: str, release: str) -> str:
        """
        Look up the skaffold configuration archive of a Cloud Deploy release.

        Raises:
            ScaffoldError: If the release has no skaffoldConfigUri
        """
        release_path = (
            f"projects/{self.project}/locations/{self.region}/"
            f"deliveryPipelines/{pipeline}/releases/{release}"
        )
        response = self._request("GET", f"{CLOUD_DEPLOY_API}/{release_path}")
        uri = response.get("skaffoldConfigUri")
        if not uri:
            raise ScaffoldError(f"Release {release} of pipeline {pipeline} has no skaffoldConfigUri")
        logger.info(f"Release {release} configuration at {uri}")
        return uri

    # ===== CLOUD STORAGE =====

    def download_object(self, uri: str) -> bytes:
        """Download the content of a GCS object."""
        bucket, obj = split_gcs_uri(uri)
        response = self._send(
            "GET",
            f"{STORAGE_API}/b/{bucket}/o/{quote(obj, safe='')}",
            params={"alt": "media"},
        )
        logger.debug(f"Downloaded {len(response.content)} bytes from {uri}")
        return response.content

    def upload_object(self, uri: str, data: bytes, content_type: str = "application/json") -> dict:
        """Upload bytes to a GCS object, replacing any existing content."""
        bucket, obj = split_gcs_uri(uri)
        response = self._send(
            "POST",
            f"{STORAGE_UPLOAD_API}/b/{bucket}/o",
            params={"uploadType": "media", "name": obj},
            content=data,
            content_type=content_type,
        )
        logger.debug(f"Uploaded {len(data)} bytes to {uri}")
        return response.json() if response.content else {}

    def write_results_file(self, output_path: str, status: str) -> str:
        """
        Write a results file recording the status of a run.

        Args:
            output_path: GCS URI or local path (file or folder)
            status: Run status, e.g. "SUCCEEDED"

        Returns:
            Location the results were written to
        """
        location = results_location(output_path)
        results = {"status": status}
        if location.startswith("gs://"):
            self.upload_object(location, json.dumps(results).encode("utf-8"))
        else:
            save_json(Path(location), results)
        logger.info(f"Wrote results file {location}")
        return location

    # ===== SECRETS =====

    def decrypt(self, key_name: str, ciphertext: str) -> bytes:
        """
        Decrypt base64 ciphertext with a Cloud KMS key.

        Args:
            key_name: Key in the form locations/*/keyRings/*/cryptoKeys/*
            ciphertext: Base64 encoded ciphertext
        """
        response = self._request(
            "POST",
            f"{KMS_API}/projects/{self.project}/{key_name}:decrypt",
            json_body={"ciphertext": ciphertext},
        )
        return base64.b64decode(response.get("plaintext", ""))

    def create_secret(self, secret_id: str, data: bytes) -> str:
        """
        Create a Secret Manager secret (if needed) and add a version.

        Returns:
            Resource name of the new secret version
        """
        secrets_path = f"{SECRET_MANAGER_API}/projects/{self.project}/secrets"
        try:
            self._request(
                "POST",
                secrets_path,
                params={"secretId": secret_id},
                json_body={"replication": {"automatic": {}}},
            )
            logger.info(f"Created secret {secret_id}")
        except APIError as e:
            if e.status_code != 409:
                raise
            logger.info(f"Secret {secret_id} already exists, adding a version")

        response = self._request(
            "POST",
            f"{secrets_path}/{secret_id}:addVersion",
            json_body={"payload": {"data": base64.b64encode(data).decode("ascii")}},
        )
        return response["name"]

    # ===== IAM =====

    def grant_project_role(self, member: str, role: str) -> None:
        """Add a member to a project-level IAM role binding."""
        project_path = f"{RESOURCE_MANAGER_API}/projects/{self.project}"
        policy = self._request("POST", f"{project_path}:getIamPolicy", json_body={})

        bindings = policy.setdefault("bindings", [])
        binding = next((b for b in bindings if b.get("role") == role), None)
        if binding is None:
            binding = {"role": role, "members": []}
            bindings.append(binding)
        if member in binding.setdefault("members", []):
            logger.info(f"{member} already has {role}")
            return

        binding["members"].append(member)
        self._request("POST", f"{project_path}:setIamPolicy", json_body={"policy": policy})
        logger.info(f"Granted {role} to {member}")
