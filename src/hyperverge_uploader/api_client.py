"""Hyperverge API client using httpx for async HTTP calls."""

import logging
import mimetypes
from pathlib import Path
from typing import Any

import httpx

from hyperverge_uploader.models import Action, UploadFailure, UploadOutcome, UploadSuccess
from hyperverge_uploader.utils import extension_field, is_supported_file

logger = logging.getLogger(__name__)

# Hyperverge India documents API
DEFAULT_HOST = "https://ind-docs.hyperverge.co/v2.0/"

# Body "status" values the service uses to report a rejected document
FAILURE_STATUSES = {"failure", "error"}


class HypervergeAPIError(Exception):
    """Base exception for Hyperverge API errors."""

    pass


class ConnectionCheckError(HypervergeAPIError):
    """Exception raised when the Hyperverge host cannot be reached."""

    pass


def normalise_host(host: str | None) -> str:
    """Return the host with exactly one trailing slash, or the default host."""
    if not host:
        return DEFAULT_HOST
    return host.rstrip("/") + "/"


class HypervergeAPIClient:
    """Client for interacting with the Hyperverge API using httpx."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        app_id: str = "",
        app_key: str = "",
        timeout: float = 30.0,
    ) -> None:
        """Initialize Hyperverge API client.

        Args:
            host: Base URL of the Hyperverge service
            app_id: Hyperverge App ID
            app_key: Hyperverge App Key
            timeout: Per-request timeout in seconds
        """
        self.host = normalise_host(host)
        self.app_id = app_id
        self.app_key = app_key
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "HypervergeAPIClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(timeout=self.timeout)
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
        self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get the httpx AsyncClient instance.

        Returns:
            The httpx.AsyncClient instance

        Raises:
            RuntimeError: If client is used outside of async context manager
        """
        if self._client is None:
            raise RuntimeError("Client must be used within async context manager")
        return self._client

    @property
    def headers(self) -> dict[str, str]:
        return {
            "appid": self.app_id,
            "appkey": self.app_key,
            "Accept": "application/json",
        }

    def action_url(self, action: Action) -> str:
        return f"{self.host}{action}"

    async def check_connection(self) -> str:
        """Check that the Hyperverge host answers.

        Returns:
            The response body, as text

        Raises:
            ConnectionCheckError: If the host cannot be reached
        """
        logger.info("test: Testing connection to Hyperverge...")
        try:
            response = await self.client.get(self.host)
        except httpx.RequestError as e:
            raise ConnectionCheckError(
                f"Failed to connect to Hyperverge on host {self.host}: {e}"
            ) from e
        return response.text

    async def upload(self, file_path: Path, action: Action) -> UploadOutcome:
        """Upload a document to the given Hyperverge action.

        Never raises for a failed upload: every problem is reported through
        an UploadFailure so callers only need to check ``succeeded``.

        Args:
            file_path: Path to the document
            action: The Hyperverge action to run on it

        Returns:
            UploadSuccess or UploadFailure
        """
        action = Action(action)
        file_path = Path(file_path)
        logger.debug(f"{action}: Running on {file_path}")

        field = extension_field(file_path)
        logger.debug(f"{action}: TYPE: {field}")
        if not is_supported_file(file_path):
            return UploadFailure(
                action=action,
                file=file_path,
                err=f"Unsupported file format {field or '(none)'} for {file_path}",
            )

        try:
            # Read file into memory to avoid blocking the event loop during async upload
            content = file_path.read_bytes()
        except OSError as e:
            return UploadFailure(
                action=action,
                file=file_path,
                err=f"Failed to read file {file_path}: {e}",
            )

        mime_type = mimetypes.guess_type(file_path)[0] or "application/octet-stream"
        files = {field: (file_path.name, content, mime_type)}

        try:
            response = await self.client.post(
                self.action_url(action), files=files, headers=self.headers
            )
        except httpx.RequestError as e:
            logger.warning(f"Network error while uploading {file_path.name}: {e}")
            return UploadFailure(action=action, file=file_path, err=f"Network error: {e}")
        except (httpx.InvalidURL, ValueError) as e:
            # Raised while building the request, e.g. non-ASCII header values
            logger.warning(f"Could not build request for {file_path.name}: {e}")
            return UploadFailure(action=action, file=file_path, err=f"Invalid request: {e}")

        return self._outcome_from_response(action, file_path, response)

    def _parse_json_response(self, response: httpx.Response) -> dict[str, Any] | None:
        """Parse a JSON object body, returning None for anything else.

        Args:
            response: The httpx Response object

        Returns:
            Parsed JSON object, or None if the body is not a JSON object
        """
        try:
            body = response.json()
        except ValueError:
            # Non-JSON response (e.g., HTML error page during outages)
            return None
        return body if isinstance(body, dict) else None

    def _outcome_from_response(
        self, action: Action, file_path: Path, response: httpx.Response
    ) -> UploadOutcome:
        """Classify a service response as a success or a failure.

        Args:
            action: Action that was requested
            file_path: Uploaded file
            response: The httpx Response object

        Returns:
            UploadSuccess or UploadFailure
        """
        body = self._parse_json_response(response)
        if body is None:
            return UploadFailure(
                action=action,
                file=file_path,
                err=(
                    f"Invalid API response ({response.status_code}) while uploading "
                    f"{file_path.name}: {response.text[:200]}"
                ),
            )

        status = body.get("status")
        status_code = body.get("statusCode")
        result = body.get("result")

        rejected = str(status).lower() in FAILURE_STATUSES
        if response.status_code >= 400 or rejected:
            message = body.get("error") or body.get("message")
            if not message and status is not None:
                message = f"{status} ({status_code})" if status_code is not None else str(status)
            if not message:
                message = f"HTTP {response.status_code}"
            logger.debug(f"{action}: service rejected {file_path.name}: {message}")
            return UploadFailure(
                action=action,
                file=file_path,
                err=str(message),
                status=status,
                status_code=status_code,
                result=result,
            )

        if status is None and result is None:
            return UploadFailure(
                action=action,
                file=file_path,
                err=f"Response for {file_path.name} has neither status nor result",
                status_code=status_code,
            )

        return UploadSuccess(
            action=action,
            file=file_path,
            status=status,
            status_code=status_code,
            result=result,
        )
