"""Tests for mapping HTTP responses onto forge errors."""

import pytest

from vkt.core.errors import (
    AuthFailure,
    Conflict,
    ForgeError,
    NotFound,
    PayloadTooLarge,
    RateLimited,
    TransportError,
    ValidationFailed,
)
from vkt.gateway.forge.http_errors import (
    error_for_response,
    parse_retry_after,
    raise_for_response,
)
from vkt.gateway.http.abc import HttpResponse


def _response(status: int, body: str = "", headers: dict[str, str] | None = None) -> HttpResponse:
    return HttpResponse(status_code=status, body=body.encode("utf-8"), headers=headers or {})


@pytest.mark.parametrize(
    ("status", "body", "expected"),
    [
        (401, '{"message": "Bad credentials"}', AuthFailure),
        (403, '{"message": "Resource not accessible"}', AuthFailure),
        (403, '{"message": "API rate limit exceeded"}', RateLimited),
        (404, '{"message": "Not Found"}', NotFound),
        (409, '{"message": "sha mismatch"}', Conflict),
        (413, "", PayloadTooLarge),
        (422, '{"message": "No commits between main and x"}', ValidationFailed),
        (400, '{"message": "bad"}', ValidationFailed),
        (429, "", RateLimited),
        (500, "oops", TransportError),
        (503, "", TransportError),
    ],
)
def test_error_for_response_maps_status(status: int, body: str, expected: type) -> None:
    error = error_for_response(_response(status, body), context="upload a.sh")

    assert type(error) is expected
    assert error.status_code == status
    assert "upload a.sh" in error.message


def test_unknown_status_maps_to_base_forge_error() -> None:
    error = error_for_response(_response(418, "teapot"), context="x")

    assert type(error) is ForgeError
    assert not error.is_transient


def test_transient_classification() -> None:
    assert error_for_response(_response(429), context="x").is_transient
    assert error_for_response(_response(502), context="x").is_transient
    assert not error_for_response(_response(401), context="x").is_transient


def test_rate_limit_carries_retry_after_hint() -> None:
    error = error_for_response(_response(429, headers={"retry-after": "7"}), context="x")

    assert isinstance(error, RateLimited)
    assert error.retry_after == 7.0


def test_parse_retry_after_ignores_http_dates() -> None:
    response = _response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})

    assert parse_retry_after(response) is None


def test_long_bodies_are_truncated_in_messages() -> None:
    error = error_for_response(_response(500, "x" * 1000), context="x")

    assert len(error.message) < 300
    assert error.message.endswith("...")


def test_raise_for_response_passes_success_through() -> None:
    response = _response(201, "{}")

    assert raise_for_response(response, context="x") is response


def test_raise_for_response_raises_mapped_error() -> None:
    with pytest.raises(NotFound):
        raise_for_response(_response(404), context="read a.sh")
