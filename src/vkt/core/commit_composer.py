"""Commit and pull request metadata for a submission.

The content hash ties a commit and its pull request back to the exact
bytes uploaded: SHA-256 over the concatenated per-file hex digests in
planner order. It is order dependent and meant for audit, not dedup.
"""

import hashlib
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from vkt.core.config import UserConfig
from vkt.core.path_planner import UploadItem
from vkt.gateway.forge.types import CommitMeta

CONTENT_HASH_TRAILER = "X-Content-Hash"
SIGNOFF_TRAILER = "Signed-off-by"


def aggregate_content_hash(items: Sequence[UploadItem]) -> str:
    """SHA-256 hex digest over the item hashes, in the given order."""
    digest = hashlib.sha256()
    for item in items:
        digest.update(item.content_hash.encode("ascii"))
    return digest.hexdigest()


def compose_commit_message(
    message: str,
    *,
    signoff: UserConfig | None,
    content_hash: str,
) -> str:
    """Append the trailer block to a commit message.

    The message body is kept verbatim. The trailer block follows a blank
    line: the sign-off line first (when signoff is given), then the
    content hash.

    Example:
        feat: add debugging utility

        Signed-off-by: John Doe <john.doe@example.com>
        X-Content-Hash: 3f2a...
    """
    trailers: list[str] = []
    if signoff is not None:
        trailers.append(f"{SIGNOFF_TRAILER}: {signoff.name} <{signoff.email}>")
    trailers.append(f"{CONTENT_HASH_TRAILER}: {content_hash}")
    return message + "\n\n" + "\n".join(trailers)


def build_commit_meta(
    message: str,
    *,
    user: UserConfig,
    items: Sequence[UploadItem],
    timestamp: datetime,
) -> CommitMeta:
    """Build the CommitMeta shared by every upload of one submission."""
    content_hash = aggregate_content_hash(items)
    return CommitMeta(
        message=compose_commit_message(
            message,
            signoff=user if user.auto_signoff else None,
            content_hash=content_hash,
        ),
        author_name=user.name,
        author_email=user.email,
        content_hash=content_hash,
        timestamp=timestamp,
    )


def compose_pr_title(message: str, prefix: str) -> str:
    """Pull request title: the first message line, prefixed when a prefix is configured."""
    lines = message.strip().splitlines()
    subject = lines[0] if lines else ""
    if not prefix.strip():
        return subject
    return f"{prefix.strip()} {subject}"


def _format_size(size: int) -> str:
    return f"{size} byte" if size == 1 else f"{size} bytes"


def compose_pr_body(
    message: str,
    *,
    local_path: Path,
    items: Sequence[UploadItem],
    meta: CommitMeta,
) -> str:
    """Pull request body with the change description and trace information."""
    file_lines = [
        f"  - `{item.remote_path}` ({_format_size(item.size)}, sha256 `{item.content_hash[:12]}`)"
        for item in items
    ]
    sections = [
        "## Change Description",
        message.strip(),
        "",
        "## Trace Information",
        f"- Original Path: {local_path}",
        "- Files:",
        *file_lines,
        f"- Submission Time: {meta.timestamp.isoformat()}",
        f"- Submitter: {meta.author_name} <{meta.author_email}>",
        "",
        f"{CONTENT_HASH_TRAILER}: {meta.content_hash}",
    ]
    return "\n".join(sections)
