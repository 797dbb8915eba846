"""
HTTP transport shared by the Google Cloud API clients.

Handles authentication headers, JSON and raw bodies, and retries of
transient failures.
"""

import logging
import time
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Raised when API requests fail after retries."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ApiTransport:
    """
    Authenticated HTTP access to one Google Cloud REST service.

    Features:
    - Bearer token authentication
    - Built-in retries for 5xx responses and network errors
    - Optional injection of an httpx client (for testing or sharing)
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 30.0,
        max_retries: int = 3,
    ):
        """
        Initialize the transport.

        Args:
            base_url: Service root, e.g. "https://integrations.googleapis.com/v1"
            token: OAuth2 access token
            http_client: Optional httpx client (created if None)
            timeout_seconds: Request timeout in seconds
            max_retries: Maximum attempts for transient failures
        """
        self.base_url = base_url
        self.token = token
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries

        # Track if we own the HTTP client (for cleanup)
        self._owns_client = http_client is None

        if http_client is None:
            self.http_client = httpx.Client(timeout=timeout_seconds)
        else:
            self.http_client = http_client

    def close(self) -> None:
        """Close the HTTP client if we created it."""
        if self._owns_client and self.http_client:
            self.http_client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def _build_url(self, path: str) -> str:
        """
        Build a full URL from the base URL and a path.

        Absolute URLs are returned unchanged.
        """
        if path.startswith("https://") or path.startswith("http://"):
            return path
        base_url = self.base_url.rstrip("/")
        path = path.lstrip("/")
        return f"{base_url}/{path}"

    def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        content: bytes | None = None,
        content_type: str = "application/json",
    ) -> httpx.Response:
        """
        Make an authenticated HTTP request with retry logic.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: API path relative to the base URL, or an absolute URL
            params: Query parameters
            json_body: JSON request body
            content: Raw request body (used instead of json_body)
            content_type: Content type sent with a raw body

        Returns:
            The successful httpx response

        Raises:
            APIError: On non-2xx response after retries
        """
        url = self._build_url(path)
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": content_type if content is not None else "application/json",
        }

        last_error = None
        for attempt in range(self.max_retries):
            try:
                response = self.http_client.request(
                    method=method,
                    url=url,
                    headers=headers,
                    params=params,
                    json=json_body,
                    content=content,
                )

                if 200 <= response.status_code < 300:
                    return response

                # 4xx errors - don't retry, fail immediately
                if 400 <= response.status_code < 500:
                    raise APIError(
                        f"{method} {url} failed: {response.status_code} {response.text}",
                        status_code=response.status_code
                    )

                # 5xx errors - retry
                last_error = APIError(
                    f"Server error: {response.status_code} {response.text}",
                    status_code=response.status_code
                )

            except httpx.RequestError as e:
                # Network errors - retry
                last_error = APIError(f"Request failed: {str(e)}")

            # Wait before retry (exponential backoff)
            if attempt < self.max_retries - 1:
                logger.debug(f"Retrying {method} {url} (attempt {attempt + 2})")
                time.sleep(2 ** attempt)

        raise last_error or APIError("Request failed after retries")

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
    ) -> dict[str, Any]:
        """
        Make a JSON request and return the decoded response.

        Returns:
            Response JSON as dict ({} for an empty body)
        """
        response = self._send(method, path, params=params, json_body=json_body)
        return response.json() if response.content else {}
