"""httpx implementation of the statistics gateway."""

import logging
from typing import Any, Optional

import httpx

from ..errors import ApiError, FetchError
from .base import CACHEABLE_ENDPOINTS, PUBLIC_ACCESS_TOKEN, ApiResult, StatisticsGateway


logger = logging.getLogger(__name__)


class HttpClientManager:
    """Manages the shared httpx client lifecycle."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout_seconds = timeout_seconds
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def get_client(self) -> httpx.AsyncClient:
        """Get or create the httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout_seconds),
                transport=self.transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def _extract_message(response: httpx.Response) -> Optional[str]:
    """Pull a server-provided error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    for key in ("message", "error", "detail"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class HttpStatisticsGateway(StatisticsGateway):
    """REST-backed statistics gateway."""

    def __init__(self, client_manager: HttpClientManager, login_path: str = "/api/auth/login"):
        self.client_manager = client_manager
        self.login_path = login_path
        # Reference data is the same for every caller, so it is keyed by endpoint only.
        self._cache: dict[str, ApiResult] = {}

    def _headers(self, token: str, method: str) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if method != "GET":
            headers["Content-Type"] = "application/json"
        if token != PUBLIC_ACCESS_TOKEN:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def call(
        self,
        endpoint: str,
        token: str = PUBLIC_ACCESS_TOKEN,
        method: str = "GET",
        body: Optional[Any] = None,
        action: str = "contact the statistics service",
    ) -> ApiResult:
        method = method.upper()
        cacheable = method == "GET" and endpoint in CACHEABLE_ENDPOINTS
        if cacheable and endpoint in self._cache:
            return self._cache[endpoint]

        client = self.client_manager.get_client()
        try:
            response = await client.request(
                method,
                endpoint,
                headers=self._headers(token, method),
                json=body,
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, endpoint, e)
            return ApiResult(error=FetchError(f"Network error while trying to {action}"))

        if not response.is_success:
            message = _extract_message(response) or f"Failed to {action}"
            logger.warning("%s %s returned %s", method, endpoint, response.status_code)
            return ApiResult(error=ApiError(message, status_code=response.status_code))

        try:
            data = response.json() if response.content else None
        except ValueError:
            logger.warning("%s %s returned a non-JSON body", method, endpoint)
            return ApiResult(error=ApiError(f"Failed to {action}", status_code=response.status_code))

        result = ApiResult(data=data)
        if cacheable:
            self._cache[endpoint] = result
        return result

    def clear_cache(self) -> None:
        self._cache.clear()

    async def login(self, email: str, password: str) -> ApiResult:
        """Exchange credentials for an access token.

        Returns ``{"token": ..., "name": ...}`` on success.
        """
        result = await self.call(
            self.login_path,
            method="POST",
            body={"email": email, "password": password},
            action="sign in",
        )
        if not result.ok:
            if result.error.status_code in (400, 401, 403):
                return ApiResult(error=ApiError("Identifiants invalides", result.error.status_code))
            return result

        data = result.data if isinstance(result.data, dict) else {}
        user = data.get("user") if isinstance(data.get("user"), dict) else {}
        token = data.get("accessToken") or data.get("access_token") or data.get("token") or user.get("accessToken")
        if not token:
            return ApiResult(error=ApiError("Login response did not include an access token"))
        name = user.get("name") or data.get("name") or email
        return ApiResult(data={"token": token, "name": name})

    async def aclose(self) -> None:
        await self.client_manager.aclose()
