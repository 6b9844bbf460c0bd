"""Resolve local files against a remote target directory.

Directory walks are lexicographic by relative POSIX path and never follow
symlinks, so the same tree always yields the same upload order.
"""

import hashlib
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from vkt.core.errors import ValidationFailed
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.parsing import normalize_remote_path
from vkt.gateway.forge.retry import with_forge_retry
from vkt.gateway.time.abc import Time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadItem:
    """One local file and its remote destination.

    Items never hold file content. `size` and `content_hash` (SHA-256 hex
    digest) are computed once when the item is created; the bytes are read
    again only for the upload call itself.
    """

    local_path: Path
    remote_path: str
    size: int
    content_hash: str

    def read_content(self) -> bytes:
        """Read the file for upload, checking it still matches the planned hash.

        Raises:
            ValidationFailed: If the file can no longer be read or changed
                since it was planned
        """
        try:
            content = self.local_path.read_bytes()
        except OSError as e:
            raise ValidationFailed(f"Cannot read {self.local_path}: {e.strerror}") from e
        if hashlib.sha256(content).hexdigest() != self.content_hash:
            raise ValidationFailed(f"{self.local_path} changed since it was planned")
        return content


@dataclass(frozen=True)
class SubmitPlan:
    """Everything the submit pipeline needs, fixed before any remote call."""

    local_path: Path
    target_dir: str
    items: tuple[UploadItem, ...]
    branch: str
    base_branch: str
    message: str
    dry_run: bool
    force: bool
    conflicts: tuple[str, ...] = ()


def make_upload_item(local_path: Path, remote_path: str) -> UploadItem:
    with local_path.open("rb") as f:
        digest = hashlib.file_digest(f, "sha256")
        size = f.tell()
    return UploadItem(
        local_path=local_path,
        remote_path=remote_path,
        size=size,
        content_hash=digest.hexdigest(),
    )


def normalize_target_dir(target_dir: str) -> str:
    """Normalize a remote target directory; "" is the repository root.

    Raises:
        ValidationFailed: If a path segment is empty, "." or ".."
    """
    target = normalize_remote_path(target_dir)
    if target and any(segment in ("", ".", "..") for segment in target.split("/")):
        msg = (
            f"Invalid target directory {target_dir!r}: "
            "empty, '.' and '..' segments are not allowed"
        )
        raise ValidationFailed(msg)
    return target


def join_remote(target_dir: str, relative: str) -> str:
    """Join a normalized target directory and a relative POSIX path."""
    return f"{target_dir}/{relative}" if target_dir else relative


def _walk_files(root: Path) -> list[str]:
    """Relative POSIX paths of regular files under root, sorted, symlinks skipped."""
    relatives: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        # Symlinked directories show up in dirnames but are never descended into
        dirnames[:] = [d for d in dirnames if not (current / d).is_symlink()]
        for filename in filenames:
            path = current / filename
            if path.is_symlink():
                logger.debug("Skipping symlink %s", path)
                continue
            relatives.append(path.relative_to(root).as_posix())
    return sorted(relatives)


def build_upload_items(local_path: Path, target_dir: str) -> list[UploadItem]:
    """Build upload items for a local file or directory.

    A single file lands at `<target_dir>/<file name>`; a directory's files
    land at `<target_dir>/<relative path>`.

    Raises:
        ValidationFailed: If the target directory is malformed, or the path
            does not exist, is a symlink, or is a directory containing no
            regular files
    """
    target = normalize_target_dir(target_dir)

    if local_path.is_symlink():
        raise ValidationFailed(f"Refusing to submit symlink: {local_path}")
    if local_path.is_file():
        return [make_upload_item(local_path, join_remote(target, local_path.name))]
    if not local_path.is_dir():
        raise ValidationFailed(f"Local path does not exist: {local_path}")

    relatives = _walk_files(local_path)
    if not relatives:
        raise ValidationFailed(f"Directory contains no files: {local_path}")
    return [make_upload_item(local_path / rel, join_remote(target, rel)) for rel in relatives]


def find_conflicts(
    forge: ForgeClient,
    items: Sequence[UploadItem],
    *,
    ref: str,
    time: Time,
    retry_delays: list[float] | None = None,
) -> list[str]:
    """Remote paths of items that already exist at ref, in planner order.

    Each check is retried on transient errors. Read-only.

    Raises:
        ForgeError: If a check fails for a reason other than absence
    """
    conflicts: list[str] = []
    for item in items:
        exists = with_forge_retry(
            time,
            f"check {item.remote_path}",
            lambda item=item: forge.path_exists(item.remote_path, ref=ref),
            retry_delays,
        )
        if exists:
            conflicts.append(item.remote_path)
    return conflicts


def plan_submit(
    *,
    local_path: Path,
    target_dir: str,
    branch: str,
    base_branch: str,
    message: str,
    dry_run: bool,
    force: bool,
) -> SubmitPlan:
    """Build a SubmitPlan from local files. Issues no remote calls.

    Conflicts are filled in later, by the pipeline's validation step.
    """
    if not message.strip():
        raise ValidationFailed("Commit message cannot be empty")
    items = build_upload_items(local_path, target_dir)
    return SubmitPlan(
        local_path=local_path,
        target_dir=normalize_target_dir(target_dir),
        items=tuple(items),
        branch=branch,
        base_branch=base_branch,
        message=message,
        dry_run=dry_run,
        force=force,
    )
