"""Parsing helpers shared by forge provider implementations."""

import base64
import binascii
from typing import Any

from vkt.core.errors import ConfigError, ForgeError
from vkt.gateway.forge.types import RemoteEntry


def split_project_id(project_id: str) -> tuple[str, str]:
    """Split an "owner/repo" project id.

    Raises:
        ConfigError: If the id is not exactly two non-empty components
    """
    parts = project_id.strip("/").split("/")
    if len(parts) != 2 or not all(parts):
        msg = f"Project ID format should be 'owner/repo', got {project_id!r}"
        raise ConfigError(msg)
    return parts[0], parts[1]


def normalize_remote_path(path: str | None) -> str:
    """Strip leading and trailing slashes; None and "/" become the root ("")."""
    if path is None:
        return ""
    return path.strip("/")


def encode_content(content: bytes) -> str:
    return base64.b64encode(content).decode("ascii")


def decode_content(encoded: str, *, path: str) -> bytes:
    """Decode a base64 "content" field, tolerating embedded newlines."""
    try:
        return base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        msg = f"Failed to decode content of {path}: {e}"
        raise ForgeError(msg) from e


def fold_paths(paths: list[str], parent: str | None, *, recursive: bool) -> list[RemoteEntry]:
    """Turn a flat path listing into entries under `parent`.

    Paths ending in "/" denote directories. For non-recursive listings only
    the immediate children of `parent` are returned; a child is a directory
    when any listed path nests below it. Output order follows first
    appearance in `paths`.

    Examples:
        >>> fold_paths(["src/main.rs", "src/cli/mod.rs", "README.md"], "src", recursive=False)
        [RemoteEntry(path="src/main.rs", kind="file"),
         RemoteEntry(path="src/cli", kind="directory")]
    """
    prefix = normalize_remote_path(parent)
    prefix_with_slash = f"{prefix}/" if prefix else ""

    if recursive:
        entries: list[RemoteEntry] = []
        for raw in paths:
            trimmed = raw.rstrip("/")
            if not trimmed.startswith(prefix_with_slash) or trimmed == prefix:
                continue
            kind = "directory" if raw.endswith("/") else "file"
            entries.append(RemoteEntry(path=trimmed, kind=kind))
        return entries

    children: dict[str, RemoteEntry] = {}
    for raw in paths:
        if not raw.startswith(prefix_with_slash):
            continue
        relative = raw[len(prefix_with_slash) :]
        trimmed = relative.rstrip("/")
        if not trimmed:
            continue
        name, sep, _rest = trimmed.partition("/")
        is_dir = bool(sep) or relative.endswith("/")
        child_path = f"{prefix_with_slash}{name}"
        existing = children.get(name)
        if existing is None or (is_dir and not existing.is_dir):
            children[name] = RemoteEntry(path=child_path, kind="directory" if is_dir else "file")
    return list(children.values())


def first_present(data: dict[str, Any], *keys: str) -> Any:
    """Return the first non-None value among keys, or None."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None
