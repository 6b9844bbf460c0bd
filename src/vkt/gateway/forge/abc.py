"""Abstract base class for forge API operations."""

from abc import ABC, abstractmethod

from vkt.gateway.forge.types import (
    BranchRef,
    CommitMeta,
    PullRequestRef,
    RemoteEntry,
    UploadResult,
)


class ForgeClient(ABC):
    """Capability interface over one forge provider's REST API.

    All implementations (real and fake) must implement this interface. Each
    method performs exactly the remote mutation its name states and nothing
    else. Errors are raised as vkt.core.errors.ForgeError subclasses.
    """

    @abstractmethod
    def list_tree(
        self,
        path: str | None,
        *,
        recursive: bool,
        ref: str | None,
    ) -> list[RemoteEntry]:
        """List repository contents under a path.

        Args:
            path: Directory to list, root if None
            recursive: If True, list every descendant instead of immediate children
            ref: Branch or commit to list from, default branch if None

        Raises:
            NotFound: If the path does not exist
            AuthFailure: If the token is invalid or expired
            RateLimited: If the provider throttled the request
        """
        ...

    @abstractmethod
    def read_blob(self, path: str, *, ref: str | None) -> bytes:
        """Return the raw bytes of a file.

        Raises:
            NotFound: If the file does not exist
            AuthFailure: If the token is invalid or expired
        """
        ...

    @abstractmethod
    def path_exists(self, path: str, *, ref: str | None) -> bool:
        """Check whether a path exists.

        Never raises on absence; only transport and auth failures propagate.
        """
        ...

    @abstractmethod
    def create_branch(self, name: str, *, from_ref: str) -> BranchRef:
        """Create a branch pointing at from_ref.

        Raises:
            BranchExists: If a branch with this name already exists
            RefNotFound: If from_ref does not exist
        """
        ...

    @abstractmethod
    def upload_file(
        self,
        branch: str,
        remote_path: str,
        content: bytes,
        meta: CommitMeta,
    ) -> UploadResult:
        """Create or update one file on a branch as a commit.

        Raises:
            Conflict: If the remote path changed since it was checked
            AuthFailure: If the token is invalid or expired
            PayloadTooLarge: If the content exceeds the provider limit
        """
        ...

    @abstractmethod
    def create_pull_request(
        self,
        branch: str,
        *,
        base: str,
        title: str,
        body: str,
    ) -> PullRequestRef:
        """Open a pull request from branch into base.

        Raises:
            AuthFailure: If the token is invalid or expired
            ValidationFailed: If the provider rejects it (e.g. empty diff)
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release any connection held by the client."""
        ...
