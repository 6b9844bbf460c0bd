"""Application context with dependency injection."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from vkt.core.config import (
    ForgeCredentials,
    RepoConfig,
    TemplateConfig,
    UserConfig,
    VktConfig,
    default_config_path,
    load_config,
)
from vkt.core.errors import ConfigError
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.factory import create_forge_client
from vkt.gateway.forge.fake import FakeForgeClient
from vkt.gateway.time.abc import Time
from vkt.gateway.time.fake import FakeTime
from vkt.gateway.time.real import RealTime


@dataclass(frozen=True)
class VktContext:
    """Immutable context holding all dependencies for vkt operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.

    `config` and `forge` are None when configuration failed to load;
    `config_error` then holds the reason. Only the `config` command group
    works in that state.
    """

    forge: ForgeClient | None
    time: Time
    config: VktConfig | None
    config_error: str | None
    config_path: Path
    cwd: Path
    env: Mapping[str, str] = field(repr=False)

    @staticmethod
    def for_test(
        forge: ForgeClient | None = None,
        time: Time | None = None,
        config: VktConfig | None = None,
        config_path: Path | None = None,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "VktContext":
        """Create test context with fakes for any unspecified dependency.

        Args:
            forge: ForgeClient. If None, creates an empty FakeForgeClient.
            time: Time. If None, creates FakeTime at its default instant.
            config: VktConfig. If None, uses make_test_config().
            config_path: Config file path. If None, uses Path("/test/vkt/config.toml").
            cwd: Working directory. If None, uses Path("/test/default/cwd").
            env: Environment. If None, empty.

        Example:
            >>> forge = FakeForgeClient(files={"scripts/a.sh": b"echo"})
            >>> ctx = VktContext.for_test(forge=forge)
        """
        return VktContext(
            forge=forge if forge is not None else FakeForgeClient(),
            time=time if time is not None else FakeTime(),
            config=config if config is not None else make_test_config(),
            config_error=None,
            config_path=config_path if config_path is not None else Path("/test/vkt/config.toml"),
            cwd=cwd if cwd is not None else Path("/test/default/cwd"),
            env=env if env is not None else {},
        )

    def close(self) -> None:
        """Release the forge connection, if one was created."""
        if self.forge is not None:
            self.forge.close()


def make_test_config(
    *,
    auto_signoff: bool = False,
    pr_prefix: str = "",
    default_branch: str = "main",
) -> VktConfig:
    """Valid configuration with test defaults."""
    return VktConfig(
        user=UserConfig(name="Test User", email="test@example.com", auto_signoff=auto_signoff),
        credentials=ForgeCredentials(
            provider="gitcode",
            api_url="https://api.gitcode.com/api/v5",
            token="test-token",
        ),
        repo=RepoConfig(project_id="owner/repo", default_branch=default_branch),
        template=TemplateConfig(pr_prefix=pr_prefix),
    )


def create_context(*, env: Mapping[str, str] | None = None) -> VktContext:
    """Create production context with real implementations.

    Configuration errors do not abort here: they are kept on the context
    and reported by the commands that need a forge.
    """
    resolved_env = env if env is not None else dict(os.environ)
    config_path = default_config_path(resolved_env)

    config: VktConfig | None = None
    config_error: str | None = None
    forge: ForgeClient | None = None
    try:
        config = load_config(config_path, resolved_env)
        forge = create_forge_client(config)
    except ConfigError as e:
        config_error = str(e)

    return VktContext(
        forge=forge,
        time=RealTime(),
        config=config,
        config_error=config_error,
        config_path=config_path,
        cwd=Path.cwd(),
        env=resolved_env,
    )
