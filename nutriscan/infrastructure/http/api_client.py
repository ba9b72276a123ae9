"""
NutriScan backend API client.

Handles HTTP requests to the scoring backend: authentication,
profile, multipart scan uploads and history. Maps transport
failures and status codes onto the domain error taxonomy.
"""

import asyncio
from typing import Any, Optional, Sequence

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from nutriscan.domain.scan.models import ImageRef, ScanModeDescriptor
from nutriscan.domain.shared.errors import (
    AuthRejectedError,
    BackendError,
    EmailInUseError,
    ExternalServiceError,
    MalformedResponseError,
    NetworkError,
    TimeoutError,
)
from nutriscan.infrastructure.config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_SECONDS,
)

logger = structlog.get_logger(__name__)

_EMAIL_IN_USE_HINTS = ("already registered", "already exists", "already in use", "in use")


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Request failed, retrying",
        attempt=retry_state.attempt_number,
        error=str(exc) if exc else None,
    )


def _error_message(response: httpx.Response, default: str) -> str:
    """Extract `error` or `message` from a JSON error body."""
    try:
        data = response.json()
    except ValueError:
        return default
    if isinstance(data, dict):
        for key in ("error", "message"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return default


class NutriScanApiClient:
    """NutriScan REST API client.

    Implements IAuthGateway, IScanGateway, IProfileGateway and
    IHistoryGateway. The transport is injectable so tests can
    substitute httpx.MockTransport or simulate slow uploads.

    Example:
        >>> async with NutriScanApiClient("http://localhost:3000/api") as client:
        ...     payload = await client.login("ada@example.com", "secret1")
    """

    USER_AGENT = "NutriScan-Client/1.0"

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize API client.

        Args:
            base_url: Backend base URL including the /api prefix
            timeout_seconds: Transport timeout for every request
            max_retries: Attempts for idempotent GET requests
            retry_backoff: Exponential backoff multiplier in seconds
            transport: Optional httpx transport (tests, proxies)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "NutriScanApiClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout_seconds),
            headers={"User-Agent": self.USER_AGENT},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # ═══════════════════════════════════════════════════════════
    # TRANSPORT
    # ═══════════════════════════════════════════════════════════

    async def _send(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[dict[str, Any]] = None,
        files: Optional[list[tuple[str, tuple[str, bytes, str]]]] = None,
    ) -> httpx.Response:
        if not self._client:
            msg = "Client not initialized, use async with"
            raise ExternalServiceError(msg)

        headers: dict[str, str] = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(
                method, path, headers=headers, json=json, files=files
            )
        except httpx.TimeoutException as e:
            logger.error("Backend timeout", method=method, path=path)
            msg = f"Backend timeout after {self.timeout_seconds}s"
            raise TimeoutError(msg) from e
        except httpx.TransportError as e:
            logger.error("Backend unreachable", method=method, path=path, error=str(e))
            msg = f"Network error: {e}"
            raise NetworkError(msg) from e

        logger.debug("Backend response", method=method, path=path, status=response.status_code)
        return response

    async def _get(self, path: str, token: str) -> httpx.Response:
        """GET with retries on transport failures only."""
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_backoff, max=10),
            retry=retry_if_exception_type(NetworkError),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                return await self._send("GET", path, token=token)
        msg = "Max retries exceeded"
        raise NetworkError(msg)

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        body = response.text
        status = response.status_code
        if status == 401:
            message = _error_message(response, "Authentication rejected")
            raise AuthRejectedError(message, status_code=status, body=body)
        raise BackendError(f"Server error: {status} - {body}", status_code=status, body=body)

    @staticmethod
    def _json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            msg = f"Response is not JSON (status {response.status_code})"
            raise MalformedResponseError(msg) from e
        if not isinstance(data, dict):
            msg = f"Expected a JSON object, got {type(data).__name__}"
            raise MalformedResponseError(msg)
        return data

    @classmethod
    def _auth_payload(cls, response: httpx.Response) -> dict[str, Any]:
        data = cls._json(response)
        token = data.get("token")
        if not isinstance(token, str) or not token or not isinstance(data.get("user"), dict):
            msg = "Auth response missing token or user"
            raise MalformedResponseError(msg)
        return data

    # ═══════════════════════════════════════════════════════════
    # AUTH
    # ═══════════════════════════════════════════════════════════

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """POST /auth/login.

        Returns:
            `{token, user}` payload

        Raises:
            AuthRejectedError: Any non-success status
            NetworkError: Transport failure
            MalformedResponseError: 2xx without token/user
        """
        response = await self._send(
            "POST", "/auth/login", json={"email": email, "password": password}
        )
        if not response.is_success:
            message = _error_message(response, "Login failed")
            logger.info("Login rejected", status=response.status_code)
            raise AuthRejectedError(
                message, status_code=response.status_code, body=response.text
            )
        return self._auth_payload(response)

    async def register(self, email: str, password: str) -> dict[str, Any]:
        """POST /auth/register.

        Raises:
            EmailInUseError: 409, or an error saying the email is taken
            BackendError: Any other non-success status
            NetworkError: Transport failure
        """
        response = await self._send(
            "POST", "/auth/register", json={"email": email, "password": password}
        )
        if not response.is_success:
            message = _error_message(response, "Registration failed")
            status = response.status_code
            lowered = message.lower()
            if status == 409 or any(hint in lowered for hint in _EMAIL_IN_USE_HINTS):
                raise EmailInUseError(message, status_code=status, body=response.text)
            raise BackendError(message, status_code=status, body=response.text)
        return self._auth_payload(response)

    # ═══════════════════════════════════════════════════════════
    # PROFILE
    # ═══════════════════════════════════════════════════════════

    async def get_profile(self, token: str) -> dict[str, Any]:
        """GET /user/profile."""
        response = await self._get("/user/profile", token)
        self._raise_for_status(response)
        data = self._json(response)
        # Some backend versions wrap the record in {"user": {...}}
        user = data.get("user")
        return user if isinstance(user, dict) else data

    async def update_profile(self, token: str, payload: dict[str, Any]) -> dict[str, Any]:
        """PUT /user/profile with a sparse biometric payload."""
        response = await self._send("PUT", "/user/profile", token=token, json=payload)
        self._raise_for_status(response)
        return self._json(response)

    # ═══════════════════════════════════════════════════════════
    # SCAN
    # ═══════════════════════════════════════════════════════════

    async def upload_scan(
        self,
        token: str,
        descriptor: ScanModeDescriptor,
        images: Sequence[ImageRef],
    ) -> dict[str, Any]:
        """POST images as multipart form data.

        One part per image under descriptor.field. Uploads are
        never retried automatically.
        """
        files: list[tuple[str, tuple[str, bytes, str]]] = []
        for index, image in enumerate(images):
            content = await asyncio.to_thread(image.read_bytes)
            files.append(
                (
                    descriptor.field,
                    (descriptor.filename(index, image.extension), content, image.content_type),
                )
            )

        logger.info(
            "Uploading scan",
            endpoint=descriptor.endpoint,
            images=len(files),
        )
        response = await self._send("POST", descriptor.endpoint, token=token, files=files)
        self._raise_for_status(response)
        return self._json(response)

    # ═══════════════════════════════════════════════════════════
    # HISTORY
    # ═══════════════════════════════════════════════════════════

    async def list_history(self, token: str) -> dict[str, Any]:
        """GET /history."""
        response = await self._get("/history", token)
        self._raise_for_status(response)
        return self._json(response)

    async def get_history_item(self, token: str, scan_id: str) -> dict[str, Any]:
        """GET /history/{id}."""
        response = await self._get(f"/history/{scan_id}", token)
        self._raise_for_status(response)
        return self._json(response)
