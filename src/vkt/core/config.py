"""Configuration loading for vkt.

Configuration lives in a TOML file (default `~/.config/vkt/config.toml`,
overridable with `$VKT_CONFIG`). Every key can be overridden by an
environment variable named `VKT_<SECTION>_<KEY>`, e.g. `VKT_REMOTE_TOKEN`.

Example config.toml:

    [user]
    name = "John Doe"
    email = "john.doe@example.com"
    auto_signoff = true

    [remote]
    provider = "gitcode"
    api_url = "https://api.gitcode.com/api/v5"
    token = "your-api-token-here"

    [repo]
    project_id = "owner/repo"
    default_branch = "main"

    [template]
    pr_prefix = "[VKT]"
"""

import logging
import tomllib
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from functools import cache
from pathlib import Path
from typing import Any, cast

import tomlkit

from vkt.core.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "VKT"
CONFIG_PATH_ENV = "VKT_CONFIG"
DEFAULT_BRANCH = "main"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class ForgeCredentials:
    """Provider, API base URL and token. The token is never printed."""

    provider: str
    api_url: str
    token: str = field(repr=False)


@dataclass(frozen=True)
class UserConfig:
    name: str
    email: str
    auto_signoff: bool


@dataclass(frozen=True)
class RepoConfig:
    project_id: str
    default_branch: str


@dataclass(frozen=True)
class TemplateConfig:
    pr_prefix: str


@dataclass(frozen=True)
class VktConfig:
    """Validated configuration, constructed once at startup and passed explicitly."""

    user: UserConfig
    credentials: ForgeCredentials
    repo: RepoConfig
    template: TemplateConfig


@cache
def get_config_keys() -> dict[str, str]:
    """User-exposed config keys with descriptions, in display order."""
    return {
        "user.name": "Author name used for commits and sign-off",
        "user.email": "Author email used for commits and sign-off",
        "user.auto_signoff": "Append a Signed-off-by trailer to commit messages",
        "remote.provider": "Forge provider: gitcode, github or gitlab",
        "remote.api_url": "Base URL of the forge REST API",
        "remote.token": "Personal access token (never displayed)",
        "repo.project_id": "Target project as owner/repo",
        "repo.default_branch": "Base branch for new branches and pull requests",
        "template.pr_prefix": "Prefix prepended to pull request titles",
    }


def env_var_name(key: str) -> str:
    """Environment variable overriding a dotted key, e.g. remote.token -> VKT_REMOTE_TOKEN."""
    section, name = key.split(".", 1)
    return f"{ENV_PREFIX}_{section.upper()}_{name.upper()}"


def default_config_path(env: Mapping[str, str]) -> Path:
    """Return $VKT_CONFIG, else $XDG_CONFIG_HOME/vkt/config.toml, else ~/.config/vkt/config.toml."""
    explicit = env.get(CONFIG_PATH_ENV)
    if explicit:
        return Path(explicit).expanduser()
    xdg = env.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "vkt" / "config.toml"


def _parse_bool(raw: str, *, key: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    msg = f"Invalid boolean for {key}: {raw!r}"
    raise ConfigError(msg)


def _flatten(data: dict[str, Any]) -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key in get_config_keys():
        section, name = key.split(".", 1)
        section_data = data.get(section)
        if isinstance(section_data, dict) and name in section_data:
            flat[key] = section_data[name]
    return flat


def _apply_env_overrides(flat: dict[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    merged = dict(flat)
    for key in get_config_keys():
        value = env.get(env_var_name(key))
        if value is not None:
            logger.debug("Config key %s overridden by %s", key, env_var_name(key))
            merged[key] = value
    return merged


def _is_valid_email(email: str) -> bool:
    return (
        "@" in email
        and "." in email
        and not email.startswith("@")
        and not email.endswith(".")
        and len(email) > 5
    )


def _is_valid_url(url: str) -> bool:
    return url.startswith(("http://", "https://")) and len(url) > 10


def _validate(flat: dict[str, Any]) -> VktConfig:
    def text(key: str, default: str = "") -> str:
        value = flat.get(key, default)
        return str(value).strip()

    name = text("user.name")
    email = text("user.email")
    provider = text("remote.provider")
    api_url = text("remote.api_url")
    token = text("remote.token")
    project_id = text("repo.project_id")

    for key, value in (
        ("user.name", name),
        ("user.email", email),
        ("remote.api_url", api_url),
        ("remote.token", token),
        ("repo.project_id", project_id),
    ):
        if not value:
            msg = f"{key} cannot be empty (set it in the config file or {env_var_name(key)})"
            raise ConfigError(msg)

    if not _is_valid_email(email):
        raise ConfigError(f"Invalid email format: {email}")
    if not _is_valid_url(api_url):
        raise ConfigError(f"Invalid API URL format: {api_url}")
    if "/" not in project_id.strip("/"):
        raise ConfigError("Project ID format should be 'owner/repo'")

    raw_signoff = flat.get("user.auto_signoff", False)
    if isinstance(raw_signoff, bool):
        auto_signoff = raw_signoff
    else:
        auto_signoff = _parse_bool(str(raw_signoff), key="user.auto_signoff")

    return VktConfig(
        user=UserConfig(name=name, email=email, auto_signoff=auto_signoff),
        credentials=ForgeCredentials(provider=provider, api_url=api_url, token=token),
        repo=RepoConfig(
            project_id=project_id.strip("/"),
            default_branch=text("repo.default_branch", DEFAULT_BRANCH) or DEFAULT_BRANCH,
        ),
        template=TemplateConfig(pr_prefix=text("template.pr_prefix")),
    )


def parse_config(content: str, env: Mapping[str, str]) -> VktConfig:
    """Parse TOML content, apply environment overrides and validate.

    Raises:
        ConfigError: If the TOML is malformed or validation fails
    """
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse configuration file: {e}") from e
    return _validate(_apply_env_overrides(_flatten(data), env))


def load_config(path: Path, env: Mapping[str, str]) -> VktConfig:
    """Load configuration from path, falling back to environment variables alone.

    A missing file is not an error by itself: every key can come from the
    environment. Validation errors mention the missing file in that case.
    """
    if not path.exists():
        try:
            return parse_config("", env)
        except ConfigError as e:
            msg = f"{e}\nNo configuration file at {path}. Run 'vkt config init' to create one."
            raise ConfigError(msg) from e
    return parse_config(path.read_text(encoding="utf-8"), env)


def get_config_value(config: VktConfig, key: str) -> str:
    """Return the display value of a dotted key. The token is masked."""
    values: dict[str, str] = {
        "user.name": config.user.name,
        "user.email": config.user.email,
        "user.auto_signoff": str(config.user.auto_signoff).lower(),
        "remote.provider": config.credentials.provider,
        "remote.api_url": config.credentials.api_url,
        "remote.token": "********",
        "repo.project_id": config.repo.project_id,
        "repo.default_branch": config.repo.default_branch,
        "template.pr_prefix": config.template.pr_prefix,
    }
    if key not in values:
        raise ConfigError(f"Unknown config key: {key}")
    return values[key]


def write_config_value(path: Path, key: str, value: str) -> None:
    """Set one dotted key in the config file, preserving formatting and comments.

    Creates the file (and its directory) when missing.
    """
    if key not in get_config_keys():
        raise ConfigError(f"Unknown config key: {key}")
    section, name = key.split(".", 1)

    if path.exists():
        doc = tomlkit.parse(path.read_text(encoding="utf-8"))
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()

    if section not in doc:
        doc[section] = tomlkit.table()
    table = doc[section]
    assert isinstance(table, MutableMapping), type(table)
    table = cast(dict[str, Any], table)

    if key == "user.auto_signoff":
        table[name] = _parse_bool(value, key=key)
    else:
        table[name] = value

    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def render_example_config() -> str:
    """Build an example config file with tomlkit."""
    doc = tomlkit.document()
    doc.add(tomlkit.comment("vkt configuration"))
    doc.add(tomlkit.comment(f"Every key can be overridden with {ENV_PREFIX}_<SECTION>_<KEY>"))

    user = tomlkit.table()
    user["name"] = "John Doe"
    user["email"] = "john.doe@example.com"
    user["auto_signoff"] = True
    doc["user"] = user

    remote = tomlkit.table()
    remote["provider"] = "gitcode"
    remote["api_url"] = "https://api.gitcode.com/api/v5"
    remote["token"] = "your-api-token-here"
    doc["remote"] = remote

    repo = tomlkit.table()
    repo["project_id"] = "owner/repo"
    repo["default_branch"] = DEFAULT_BRANCH
    doc["repo"] = repo

    template = tomlkit.table()
    template["pr_prefix"] = "[VKT]"
    doc["template"] = template

    return tomlkit.dumps(doc)

