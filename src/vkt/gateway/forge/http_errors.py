"""Mapping of forge HTTP responses onto the vkt error taxonomy."""

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
from vkt.gateway.http.abc import HttpResponse

# Longest body excerpt carried into error messages
_BODY_EXCERPT_LIMIT = 200


def _excerpt(response: HttpResponse) -> str:
    text = response.text.strip()
    if len(text) > _BODY_EXCERPT_LIMIT:
        return text[:_BODY_EXCERPT_LIMIT] + "..."
    return text or "(empty body)"


def parse_retry_after(response: HttpResponse) -> float | None:
    """Return the Retry-After hint in seconds, or None when absent or not numeric."""
    raw = response.header("Retry-After")
    if raw is None:
        return None
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return None


def error_for_response(response: HttpResponse, *, context: str) -> ForgeError:
    """Build the ForgeError matching a non-2xx response.

    Args:
        response: The failed response
        context: What was being attempted, e.g. "create branch 'x'"
    """
    status = response.status_code
    detail = _excerpt(response)
    message = f"{context}: HTTP {status}: {detail}"

    if status == 401:
        return AuthFailure(f"Authentication failed: {message}", status_code=status)
    if status == 403:
        lowered = detail.lower()
        if "rate" in lowered or "limit" in lowered:
            return RateLimited(
                f"Rate limited: {message}",
                status_code=status,
                retry_after=parse_retry_after(response),
            )
        return AuthFailure(f"Permission denied: {message}", status_code=status)
    if status == 404:
        return NotFound(f"Not found: {message}", status_code=status)
    if status == 409:
        return Conflict(f"Conflict: {message}", status_code=status)
    if status == 413:
        return PayloadTooLarge(f"Payload too large: {message}", status_code=status)
    if status in (400, 422):
        return ValidationFailed(f"Rejected: {message}", status_code=status)
    if status == 429:
        return RateLimited(
            f"Rate limited: {message}",
            status_code=status,
            retry_after=parse_retry_after(response),
        )
    if status >= 500:
        return TransportError(f"Server error: {message}", status_code=status)
    return ForgeError(f"Unexpected response: {message}", status_code=status)


def raise_for_response(response: HttpResponse, *, context: str) -> HttpResponse:
    """Return the response unchanged if successful, otherwise raise its ForgeError."""
    if response.is_success:
        return response
    raise error_for_response(response, context=context)
