"""Error taxonomy for forge operations and configuration.

Forge errors are raised by ForgeClient implementations and mapped from HTTP
status codes in one place (see vkt.gateway.forge.http_errors). The submit
pipeline converts them into outcome values at stage boundaries; the CLI
converts outcomes into exit codes.
"""


class VktError(Exception):
    """Base class for all vkt errors."""


class ConfigError(VktError):
    """Configuration file is missing, unparsable, or fails validation."""


class ForgeError(VktError):
    """Error returned by (or while talking to) a forge API."""

    is_transient: bool = False

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthFailure(ForgeError):
    """Token is missing, invalid, expired, or lacks permission (401/403)."""


class NotFound(ForgeError):
    """Requested path, ref, or project does not exist (404)."""


class BranchExists(ForgeError):
    """Branch to be created already exists on the remote."""


class RefNotFound(ForgeError):
    """Base ref to branch from does not exist."""


class Conflict(ForgeError):
    """Remote resource changed underneath us (409)."""


class PayloadTooLarge(ForgeError):
    """Upload body exceeds the provider's limit (413)."""


class ValidationFailed(ForgeError):
    """Provider rejected the request as semantically invalid (422)."""


class RateLimited(ForgeError):
    """Provider throttled the request. Retryable after `retry_after` seconds."""

    is_transient = True

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class TransportError(ForgeError):
    """Network failure, timeout, or 5xx response. Retryable."""

    is_transient = True


class TargetConflict(VktError):
    """One or more planned remote paths already exist on the base branch."""

    def __init__(self, paths: list[str]) -> None:
        joined = ", ".join(paths)
        super().__init__(f"Remote path(s) already exist: {joined}")
        self.paths = paths
