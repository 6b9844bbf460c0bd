"""Selection of the ForgeClient implementation from configuration."""

from vkt.core.config import ForgeCredentials, VktConfig
from vkt.core.errors import ConfigError
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.gitcode import GitCodeForgeClient
from vkt.gateway.forge.github import GitHubForgeClient
from vkt.gateway.forge.gitlab import GitLabForgeClient
from vkt.gateway.forge.types import ProviderType
from vkt.gateway.http.abc import HttpClient
from vkt.gateway.http.real import RealHttpClient


def detect_provider(api_url: str) -> ProviderType | None:
    """Guess the provider from the API URL, or None when it is not recognizable.

    Examples:
        >>> detect_provider("https://api.gitcode.com/api/v5")
        <ProviderType.GITCODE: 'gitcode'>
        >>> detect_provider("https://gitlab.example.com/api/v4")
        <ProviderType.GITLAB: 'gitlab'>
    """
    lowered = api_url.lower()
    if "gitcode" in lowered:
        return ProviderType.GITCODE
    if "gitlab" in lowered or "git-lab" in lowered:
        return ProviderType.GITLAB
    if "github" in lowered:
        return ProviderType.GITHUB
    return None


def resolve_provider(credentials: ForgeCredentials) -> ProviderType:
    """Resolve the configured provider, auto-detecting from the URL when unset.

    Raises:
        ConfigError: If the provider is unknown or cannot be detected
    """
    name = credentials.provider.strip().lower()
    if not name:
        detected = detect_provider(credentials.api_url)
        if detected is None:
            msg = (
                f"Cannot detect provider from {credentials.api_url}; "
                "set remote.provider to gitcode, github or gitlab"
            )
            raise ConfigError(msg)
        return detected
    try:
        return ProviderType(name)
    except ValueError:
        msg = (
            f"Unknown provider: {credentials.provider}. "
            "Supported providers: gitcode, github, gitlab"
        )
        raise ConfigError(msg) from None


def auth_headers(provider: ProviderType, token: str) -> dict[str, str]:
    """Authentication headers for the provider's REST API."""
    if provider is ProviderType.GITLAB:
        return {"PRIVATE-TOKEN": token}
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
    }


def create_forge_client(config: VktConfig, *, http: HttpClient | None = None) -> ForgeClient:
    """Create the ForgeClient for the configured provider.

    Args:
        config: Validated configuration
        http: HttpClient to use; a RealHttpClient for the configured API URL if None
    """
    provider = resolve_provider(config.credentials)
    if http is None:
        http = RealHttpClient(
            base_url=config.credentials.api_url,
            headers=auth_headers(provider, config.credentials.token),
        )

    project_id = config.repo.project_id
    default_branch = config.repo.default_branch
    if provider is ProviderType.GITCODE:
        return GitCodeForgeClient(http, project_id=project_id, default_branch=default_branch)
    if provider is ProviderType.GITHUB:
        return GitHubForgeClient(http, project_id=project_id, default_branch=default_branch)
    return GitLabForgeClient(http, project_id=project_id, default_branch=default_branch)
