"""Fake ForgeClient for testing."""

from dataclasses import replace

from vkt.core.errors import BranchExists, NotFound, RefNotFound
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.parsing import fold_paths, normalize_remote_path
from vkt.gateway.forge.types import (
    BranchRef,
    CommitMeta,
    PullRequestRef,
    RemoteEntry,
    UploadResult,
)


class FakeForgeClient(ForgeClient):
    """In-memory fake implementation of forge operations.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults. Every call is recorded in
    `calls` (method name in call order) so tests can assert which remote
    mutations did or did not happen.
    """

    MUTATING_CALLS = frozenset({"create_branch", "upload_file", "create_pull_request"})

    def __init__(
        self,
        *,
        files: dict[str, bytes] | None = None,
        branches: set[str] | None = None,
        upload_errors: dict[str, list[BaseException]] | None = None,
        path_exists_errors: list[BaseException] | None = None,
        create_branch_errors: list[BaseException] | None = None,
        create_pr_errors: list[BaseException] | None = None,
        pr_number: int = 999,
    ) -> None:
        """Create FakeForgeClient with pre-configured state.

        Args:
            files: Mapping of remote path -> content present on every existing branch
            branches: Existing branch names (defaults to {"main"})
            upload_errors: Mapping of remote path -> errors raised by successive
                upload_file() calls for that path, before uploads succeed
            path_exists_errors: Errors raised by successive path_exists() calls
            create_branch_errors: Errors raised by successive create_branch() calls
            create_pr_errors: Errors raised by successive create_pull_request() calls
            pr_number: Number assigned to the created pull request
        """
        self._files = dict(files or {})
        self._branches = set(branches) if branches is not None else {"main"}
        self._upload_errors = {k: list(v) for k, v in (upload_errors or {}).items()}
        self._path_exists_errors = list(path_exists_errors or [])
        self._create_branch_errors = list(create_branch_errors or [])
        self._create_pr_errors = list(create_pr_errors or [])
        self._pr_number = pr_number

        # Mutation tracking
        self._calls: list[str] = []
        self._path_exists_calls: list[tuple[str, str | None]] = []
        self._created_branches: list[tuple[str, str]] = []
        self._uploaded_files: list[tuple[str, str, bytes, CommitMeta]] = []
        self._created_prs: list[tuple[str, str, str, str]] = []
        self._closed = False

    def list_tree(
        self,
        path: str | None,
        *,
        recursive: bool,
        ref: str | None,
    ) -> list[RemoteEntry]:
        self._calls.append("list_tree")
        if ref is not None and ref not in self._branches:
            raise NotFound(f"Ref not found: {ref}", status_code=404)
        entries = fold_paths(sorted(self._files), path, recursive=recursive)
        if normalize_remote_path(path) and not entries:
            raise NotFound(f"Path not found: {path}", status_code=404)
        return [
            entry if entry.is_dir else replace(entry, size=len(self._files[entry.path]))
            for entry in entries
        ]

    def read_blob(self, path: str, *, ref: str | None) -> bytes:
        self._calls.append("read_blob")
        content = self._files.get(normalize_remote_path(path))
        if content is None:
            raise NotFound(f"File not found: {path}", status_code=404)
        return content

    def path_exists(self, path: str, *, ref: str | None) -> bool:
        self._calls.append("path_exists")
        self._path_exists_calls.append((path, ref))
        if self._path_exists_errors:
            raise self._path_exists_errors.pop(0)
        return normalize_remote_path(path) in self._files

    def create_branch(self, name: str, *, from_ref: str) -> BranchRef:
        self._calls.append("create_branch")
        if self._create_branch_errors:
            raise self._create_branch_errors.pop(0)
        if from_ref not in self._branches:
            raise RefNotFound(f"Base ref not found: {from_ref}", status_code=404)
        if name in self._branches:
            raise BranchExists(f"Branch already exists: {name}", status_code=409)
        self._branches.add(name)
        self._created_branches.append((name, from_ref))
        return BranchRef(name=name, commit_id=f"base-{from_ref}")

    def upload_file(
        self,
        branch: str,
        remote_path: str,
        content: bytes,
        meta: CommitMeta,
    ) -> UploadResult:
        self._calls.append("upload_file")
        pending = self._upload_errors.get(remote_path)
        if pending:
            raise pending.pop(0)
        self._uploaded_files.append((branch, remote_path, content, meta))
        return UploadResult(path=remote_path, commit_id=f"commit-{len(self._uploaded_files)}")

    def create_pull_request(
        self,
        branch: str,
        *,
        base: str,
        title: str,
        body: str,
    ) -> PullRequestRef:
        self._calls.append("create_pull_request")
        if self._create_pr_errors:
            raise self._create_pr_errors.pop(0)
        self._created_prs.append((branch, base, title, body))
        return PullRequestRef(
            number=self._pr_number,
            url=f"https://forge.example.com/owner/repo/pull/{self._pr_number}",
        )

    def close(self) -> None:
        self._closed = True

    @property
    def calls(self) -> list[str]:
        """Names of every method called, in order."""
        return list(self._calls)

    @property
    def mutating_calls(self) -> list[str]:
        """Names of remote-mutating methods called, in order."""
        return [c for c in self._calls if c in self.MUTATING_CALLS]

    @property
    def path_exists_calls(self) -> list[tuple[str, str | None]]:
        return list(self._path_exists_calls)

    @property
    def created_branches(self) -> list[tuple[str, str]]:
        """(name, from_ref) of each successfully created branch."""
        return list(self._created_branches)

    @property
    def uploaded_files(self) -> list[tuple[str, str, bytes, CommitMeta]]:
        """(branch, remote_path, content, meta) of each successful upload."""
        return list(self._uploaded_files)

    @property
    def created_prs(self) -> list[tuple[str, str, str, str]]:
        """(branch, base, title, body) of each created pull request."""
        return list(self._created_prs)

    @property
    def closed(self) -> bool:
        """Whether close() was called."""
        return self._closed
