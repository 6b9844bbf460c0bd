"""Tests for provider detection and client construction."""

from dataclasses import replace

import pytest

from vkt.core.config import ForgeCredentials
from vkt.core.context import make_test_config
from vkt.core.errors import ConfigError
from vkt.gateway.forge.factory import (
    auth_headers,
    create_forge_client,
    detect_provider,
    resolve_provider,
)
from vkt.gateway.forge.gitcode import GitCodeForgeClient
from vkt.gateway.forge.github import GitHubForgeClient
from vkt.gateway.forge.gitlab import GitLabForgeClient
from vkt.gateway.forge.types import ProviderType
from vkt.gateway.http.fake import FakeHttpClient


@pytest.mark.parametrize(
    ("api_url", "expected"),
    [
        ("https://api.gitcode.com/api/v5", ProviderType.GITCODE),
        ("https://gitlab.com/api/v4", ProviderType.GITLAB),
        ("https://git-lab.internal/api/v4", ProviderType.GITLAB),
        ("https://api.github.com", ProviderType.GITHUB),
        ("https://forge.internal/api", None),
    ],
)
def test_detect_provider(api_url: str, expected: ProviderType | None) -> None:
    assert detect_provider(api_url) == expected


def test_resolve_provider_explicit_name_wins_over_url() -> None:
    credentials = ForgeCredentials(
        provider="GitLab", api_url="https://api.github.com", token="t"
    )

    assert resolve_provider(credentials) is ProviderType.GITLAB


def test_resolve_provider_detects_when_unset() -> None:
    credentials = ForgeCredentials(provider="", api_url="https://api.github.com", token="t")

    assert resolve_provider(credentials) is ProviderType.GITHUB


def test_resolve_provider_unknown_name() -> None:
    credentials = ForgeCredentials(provider="bitbucket", api_url="https://x.org/api", token="t")

    with pytest.raises(ConfigError, match="Unknown provider: bitbucket"):
        resolve_provider(credentials)


def test_resolve_provider_undetectable_url() -> None:
    credentials = ForgeCredentials(provider="", api_url="https://forge.internal/api", token="t")

    with pytest.raises(ConfigError, match="Cannot detect provider"):
        resolve_provider(credentials)


def test_auth_headers() -> None:
    assert auth_headers(ProviderType.GITLAB, "tok") == {"PRIVATE-TOKEN": "tok"}
    assert auth_headers(ProviderType.GITCODE, "tok")["Authorization"] == "Bearer tok"


@pytest.mark.parametrize(
    ("provider", "expected"),
    [
        ("gitcode", GitCodeForgeClient),
        ("github", GitHubForgeClient),
        ("gitlab", GitLabForgeClient),
    ],
)
def test_create_forge_client_selects_implementation(provider: str, expected: type) -> None:
    config = make_test_config()
    config = replace(config, credentials=replace(config.credentials, provider=provider))

    client = create_forge_client(config, http=FakeHttpClient())

    assert isinstance(client, expected)


def test_credentials_repr_hides_token() -> None:
    credentials = ForgeCredentials(provider="gitcode", api_url="https://x.org", token="s3cret")

    assert "s3cret" not in repr(credentials)
