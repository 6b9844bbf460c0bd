"""Fake HttpClient for testing provider implementations."""

import json
from typing import Any

from vkt.core.errors import TransportError
from vkt.gateway.http.abc import HttpClient, HttpMethod, HttpRequest, HttpResponse

# (method, endpoint)
RouteKey = tuple[HttpMethod, str]


def json_response(
    data: Any,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> HttpResponse:
    """Build an HttpResponse with a JSON body."""
    return HttpResponse(
        status_code=status_code,
        body=json.dumps(data).encode("utf-8"),
        headers=headers or {},
    )


class FakeHttpClient(HttpClient):
    """In-memory HttpClient returning canned responses keyed by (method, endpoint).

    This class has NO public setup methods. All state is provided via
    constructor. Query parameters are recorded but not matched on.
    Unregistered routes answer 404. Every request is recorded in `requests`.
    """

    def __init__(
        self,
        *,
        responses: dict[RouteKey, HttpResponse | list[HttpResponse]] | None = None,
        transport_errors: set[RouteKey] | None = None,
    ) -> None:
        """Create FakeHttpClient with pre-configured routes.

        Args:
            responses: Mapping of (method, endpoint) -> response. A list is
                consumed one response per request; its last element repeats.
            transport_errors: Routes whose requests raise TransportError
        """
        self._responses: dict[RouteKey, list[HttpResponse]] = {
            key: list(value) if isinstance(value, list) else [value]
            for key, value in (responses or {}).items()
        }
        self._transport_errors = set(transport_errors or set())
        self._requests: list[HttpRequest] = []
        self._closed = False

    def request(
        self,
        method: HttpMethod,
        endpoint: str,
        *,
        params: dict[str, str] | None = None,
        data: dict[str, Any] | None = None,
    ) -> HttpResponse:
        self._requests.append(
            HttpRequest(method=method, endpoint=endpoint, params=dict(params or {}), data=data)
        )
        key = (method, endpoint)
        if key in self._transport_errors:
            raise TransportError(f"connection reset: {method} {endpoint}")
        queued = self._responses.get(key)
        if not queued:
            return HttpResponse(status_code=404, body=b'{"message": "Not Found"}')
        if len(queued) > 1:
            return queued.pop(0)
        return queued[0]

    def close(self) -> None:
        self._closed = True

    @property
    def requests(self) -> list[HttpRequest]:
        return list(self._requests)

    def requests_for(self, method: HttpMethod) -> list[HttpRequest]:
        return [r for r in self._requests if r.method == method]

    @property
    def closed(self) -> bool:
        return self._closed
