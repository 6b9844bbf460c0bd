"""Abstract HTTP client used by forge provider implementations.

Providers build endpoint paths relative to the configured API base URL and
receive raw responses; mapping status codes to forge errors is the caller's
concern. Network failures and timeouts raise TransportError.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

HttpMethod = str


@dataclass(frozen=True)
class HttpRequest:
    """A request as issued by a provider, recorded by fakes."""

    method: HttpMethod
    endpoint: str
    params: dict[str, str] = field(default_factory=dict)
    data: dict[str, Any] | None = None


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and raw body of a completed request."""

    status_code: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


class HttpClient(ABC):
    """Abstract interface for authenticated forge API calls.

    All implementations (real and fake) must implement this interface.
    """

    @abstractmethod
    def request(
        self,
        method: HttpMethod,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, Any] | None = None,
    ) -> HttpResponse:
        """Issue a request against the API base URL.

        Args:
            method: HTTP method ("GET", "POST", "PUT", ...)
            endpoint: Path relative to the API base URL, without leading slash
            params: Query string parameters
            data: JSON body

        Returns:
            The response, whatever its status code

        Raises:
            TransportError: If the request could not be completed (network, timeout)
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the underlying connection pool."""
        ...

    def get(self, endpoint: str, *, params: dict[str, str] | None = None) -> HttpResponse:
        return self.request("GET", endpoint, params=params)

    def post(self, endpoint: str, *, data: dict[str, Any]) -> HttpResponse:
        return self.request("POST", endpoint, data=data)

    def put(self, endpoint: str, *, data: dict[str, Any]) -> HttpResponse:
        return self.request("PUT", endpoint, data=data)
