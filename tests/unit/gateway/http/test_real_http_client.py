"""Tests for RealHttpClient using httpx.MockTransport."""

import json

import httpx
import pytest

from vkt.core.errors import TransportError
from vkt.gateway.http.real import USER_AGENT, RealHttpClient


def _client(handler) -> RealHttpClient:
    return RealHttpClient(
        base_url="https://api.example.com/api/v5/",
        headers={"Authorization": "Bearer tok"},
        transport=httpx.MockTransport(handler),
    )


def test_request_joins_base_url_and_sends_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True}, headers={"X-Next-Page": "2"})

    response = _client(handler).get("/repos/owner/repo/file_list", params={"ref_name": "main"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert response.header("x-next-page") == "2"
    request = seen[0]
    assert request.url.path == "/api/v5/repos/owner/repo/file_list"
    assert request.url.params["ref_name"] == "main"
    assert request.headers["Authorization"] == "Bearer tok"
    assert request.headers["User-Agent"] == USER_AGENT


def test_post_sends_json_body() -> None:
    bodies: list[object] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={})

    _client(handler).post("repos/owner/repo/branches", data={"branch_name": "feat/x"})

    assert bodies == [{"branch_name": "feat/x"}]


def test_error_statuses_are_returned_not_raised() -> None:
    client = _client(lambda request: httpx.Response(404, json={"message": "Not Found"}))

    assert client.get("missing").status_code == 404


def test_connection_error_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransportError, match="Request failed"):
        _client(handler).get("repos/owner/repo/file_list")


def test_timeout_raises_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(TransportError, match="Timed out"):
        _client(handler).get("repos/owner/repo/file_list")


def test_close_releases_the_client() -> None:
    client = _client(lambda request: httpx.Response(200))

    client.close()

    with pytest.raises(RuntimeError, match="closed"):
        client.get("anything")
