"""Production HttpClient backed by httpx."""

import logging
from typing import Any

import httpx

from vkt.core.errors import TransportError
from vkt.gateway.http.abc import HttpClient, HttpMethod, HttpResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
USER_AGENT = "vkt/0.3.0"


class RealHttpClient(HttpClient):
    """HttpClient issuing requests with a shared httpx.Client.

    The auth headers are attached to every request and never logged.
    """

    def __init__(
        self,
        *,
        base_url: str,
        headers: dict[str, str],
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/") + "/",
            headers={"User-Agent": USER_AGENT, **headers},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def request(
        self,
        method: HttpMethod,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, Any] | None = None,
    ) -> HttpResponse:
        path = endpoint.lstrip("/")
        logger.debug("%s %s params=%s", method, path, params)
        try:
            response = self._client.request(method, path, params=params, json=data)
        except httpx.TimeoutException as e:
            raise TransportError(f"Timed out: {method} {path}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Request failed: {method} {path}: {e}") from e

        logger.debug("%s %s -> %d", method, path, response.status_code)
        return HttpResponse(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        self._client.close()
