"""
JSON HTTP client for the registration backend.
"""

import logging
from typing import Any, Optional

import httpx

from conference_checkout.errors import HttpError, NetworkError

DEFAULT_BASE_URL = "http://localhost:4000"
USER_AGENT = "conference-checkout/0.1.0"

logger = logging.getLogger("conference_checkout.transport.http")


class HttpClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_token(self, token: str) -> None:
        self._token = token

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, headers=self._headers(), **kwargs)
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError(f"{method} {path} failed: {e}") from e
        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = None
            raise HttpError(resp.status_code, f"HTTP {resp.status_code}: {resp.text[:200]}", body)
        if not resp.content:
            return None
        return resp.json()

    async def get(self, path: str, params: Optional[dict[str, str]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        return await self._request("POST", path, json=body)

    async def close(self) -> None:
        await self._client.aclose()
