"""Type definitions for forge operations."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

EntryKind = Literal["file", "directory"]


class ProviderType(Enum):
    """Supported forge providers. Selected once from configuration."""

    GITCODE = "gitcode"
    GITHUB = "github"
    GITLAB = "gitlab"


@dataclass(frozen=True)
class RemoteEntry:
    """A file or directory in the remote repository tree.

    `path` is forge-relative with no leading slash; `size` is only known for
    files, and only when the provider's listing reports it.
    """

    path: str
    kind: EntryKind
    size: int | None = None

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def is_dir(self) -> bool:
        return self.kind == "directory"


@dataclass(frozen=True)
class BranchRef:
    """A branch and the commit it points at."""

    name: str
    commit_id: str


@dataclass(frozen=True)
class CommitMeta:
    """Commit metadata passed with every upload."""

    message: str
    author_name: str
    author_email: str
    content_hash: str
    timestamp: datetime


@dataclass(frozen=True)
class UploadResult:
    """Acknowledgement of one uploaded file."""

    path: str
    commit_id: str


@dataclass(frozen=True)
class PullRequestRef:
    """A created pull (or merge) request."""

    number: int
    url: str
