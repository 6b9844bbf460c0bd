"""GitCode implementation of ForgeClient.

GitCode exposes a GitHub-compatible v5 API with a few differences: tree
listing goes through a flat `file_list` endpoint, branches are created with
`{branch_name, refs}`, and new files are created with POST while updates use
PUT with the existing blob SHA.
"""

import logging
from typing import Any
from urllib.parse import quote

from vkt.core.errors import BranchExists, ForgeError, NotFound, RefNotFound
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.http_errors import raise_for_response
from vkt.gateway.forge.parsing import (
    decode_content,
    encode_content,
    first_present,
    fold_paths,
    normalize_remote_path,
    split_project_id,
)
from vkt.gateway.forge.types import (
    BranchRef,
    CommitMeta,
    PullRequestRef,
    RemoteEntry,
    UploadResult,
)
from vkt.gateway.http.abc import HttpClient

logger = logging.getLogger(__name__)


class GitCodeForgeClient(ForgeClient):
    """ForgeClient speaking the GitCode v5 REST API through an HttpClient."""

    def __init__(self, http: HttpClient, *, project_id: str, default_branch: str) -> None:
        self._http = http
        self._owner, self._repo = split_project_id(project_id)
        self._default_branch = default_branch

    @property
    def _repo_path(self) -> str:
        return f"repos/{self._owner}/{self._repo}"

    def _contents_endpoint(self, path: str) -> str:
        return f"{self._repo_path}/contents/{quote(path)}"

    def list_tree(
        self,
        path: str | None,
        *,
        recursive: bool,
        ref: str | None,
    ) -> list[RemoteEntry]:
        params: dict[str, str] = {}
        if ref is not None:
            params["ref_name"] = ref
        response = self._http.get(f"{self._repo_path}/file_list", params=params)
        raise_for_response(response, context="list repository files")
        paths: list[str] = response.json() or []

        entries = fold_paths(paths, path, recursive=recursive)
        prefix = normalize_remote_path(path)
        if prefix and not entries:
            raise NotFound(f"Path not found: {prefix}", status_code=404)
        return entries

    def read_blob(self, path: str, *, ref: str | None) -> bytes:
        data = self._get_contents(path, ref=ref)
        if data is None:
            raise NotFound(f"File not found: {path}", status_code=404)
        return decode_content(data.get("content") or "", path=path)

    def path_exists(self, path: str, *, ref: str | None) -> bool:
        target = normalize_remote_path(path)
        params = {"file_name": target}
        if ref is not None:
            params["ref_name"] = ref
        response = self._http.get(f"{self._repo_path}/file_list", params=params)
        if response.status_code == 404:
            return False
        raise_for_response(response, context=f"check {target}")
        paths: list[str] = response.json() or []
        return any(p.rstrip("/") == target for p in paths)

    def create_branch(self, name: str, *, from_ref: str) -> BranchRef:
        response = self._http.post(
            f"{self._repo_path}/branches",
            data={"branch_name": name, "refs": from_ref},
        )
        if response.status_code == 404:
            raise RefNotFound(f"Base ref not found: {from_ref}", status_code=404)
        if response.status_code in (400, 409, 422) and "exist" in response.text.lower():
            raise BranchExists(f"Branch already exists: {name}", status_code=response.status_code)
        raise_for_response(response, context=f"create branch '{name}'")

        data: dict[str, Any] = response.json()
        commit: dict[str, Any] = data.get("commit") or {}
        nested: dict[str, Any] = commit.get("commit") or {}
        commit_id = first_present(commit, "sha", "id") or nested.get("sha")
        if commit_id is None:
            raise ForgeError("Could not extract commit SHA from branch response")
        return BranchRef(name=data.get("name", name), commit_id=str(commit_id))

    def upload_file(
        self,
        branch: str,
        remote_path: str,
        content: bytes,
        meta: CommitMeta,
    ) -> UploadResult:
        existing_sha = self._find_blob_sha(remote_path, ref=branch)
        if existing_sha is None and branch != self._default_branch:
            existing_sha = self._find_blob_sha(remote_path, ref=self._default_branch)

        body: dict[str, Any] = {
            "message": meta.message,
            "content": encode_content(content),
            "branch": branch,
            "author_name": meta.author_name,
            "author_email": meta.author_email,
        }
        endpoint = self._contents_endpoint(remote_path)
        if existing_sha is not None:
            logger.debug("Updating %s (sha %s)", remote_path, existing_sha)
            body["sha"] = existing_sha
            response = self._http.put(endpoint, data=body)
        else:
            logger.debug("Creating %s", remote_path)
            response = self._http.post(endpoint, data=body)
        raise_for_response(response, context=f"upload {remote_path}")

        data: dict[str, Any] = response.json()
        commit: dict[str, Any] = data.get("commit") or {}
        commit_id = first_present(commit, "sha", "id")
        if commit_id is None:
            raise ForgeError(f"Upload of {remote_path} returned no commit id")
        return UploadResult(path=remote_path, commit_id=str(commit_id))

    def create_pull_request(
        self,
        branch: str,
        *,
        base: str,
        title: str,
        body: str,
    ) -> PullRequestRef:
        response = self._http.post(
            f"{self._repo_path}/pulls",
            data={"title": title, "head": branch, "base": base, "body": body},
        )
        raise_for_response(response, context=f"create pull request from '{branch}'")

        data: dict[str, Any] = response.json()
        number = first_present(data, "number", "iid")
        if number is None:
            raise ForgeError("Pull request response carried no number")
        url = first_present(data, "html_url", "web_url")
        if url is None:
            url = f"https://gitcode.com/{self._owner}/{self._repo}/pull/{number}"
        return PullRequestRef(number=int(number), url=str(url))

    def close(self) -> None:
        self._http.close()

    def _get_contents(self, path: str, *, ref: str | None) -> dict[str, Any] | None:
        """Fetch contents metadata for a file, or None when it does not exist."""
        params = {"ref": ref} if ref is not None else None
        response = self._http.get(self._contents_endpoint(path), params=params)
        if response.status_code == 404:
            return None
        raise_for_response(response, context=f"read {path}")
        data = response.json()
        # A list means the path is a directory
        if not isinstance(data, dict):
            return None
        return data

    def _find_blob_sha(self, path: str, *, ref: str) -> str | None:
        data = self._get_contents(path, ref=ref)
        if data is None:
            return None
        sha = data.get("sha")
        return str(sha) if sha else None
