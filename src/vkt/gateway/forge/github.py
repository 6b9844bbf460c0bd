"""GitHub implementation of ForgeClient using the REST v3 API."""

import logging
from typing import Any
from urllib.parse import quote

from vkt.core.errors import BranchExists, ForgeError, NotFound, RefNotFound
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.http_errors import raise_for_response
from vkt.gateway.forge.parsing import (
    decode_content,
    encode_content,
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


class GitHubForgeClient(ForgeClient):
    """ForgeClient for github.com and GitHub Enterprise.

    Listing uses the git trees API (one request, recursive), uploads use the
    contents API, which commits each file individually.
    """

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
        tree_ref = ref if ref is not None else self._default_branch
        response = self._http.get(
            f"{self._repo_path}/git/trees/{quote(tree_ref, safe='')}",
            params={"recursive": "1"},
        )
        raise_for_response(response, context=f"list tree at {tree_ref}")
        data: dict[str, Any] = response.json()
        if data.get("truncated"):
            logger.warning("Tree listing for %s was truncated by GitHub", tree_ref)

        prefix = normalize_remote_path(path)
        prefix_with_slash = f"{prefix}/" if prefix else ""
        entries: list[RemoteEntry] = []
        for item in data.get("tree", []):
            item_path: str = item["path"]
            if not item_path.startswith(prefix_with_slash):
                continue
            relative = item_path[len(prefix_with_slash) :]
            if not recursive and "/" in relative:
                continue
            if item.get("type") == "tree":
                entries.append(RemoteEntry(path=item_path, kind="directory"))
            elif item.get("type") == "blob":
                entries.append(RemoteEntry(path=item_path, kind="file", size=item.get("size")))

        if prefix and not entries:
            raise NotFound(f"Path not found: {prefix}", status_code=404)
        return entries

    def read_blob(self, path: str, *, ref: str | None) -> bytes:
        params = {"ref": ref} if ref is not None else None
        response = self._http.get(self._contents_endpoint(path), params=params)
        raise_for_response(response, context=f"read {path}")
        data = response.json()
        if not isinstance(data, dict) or data.get("type") != "file":
            raise NotFound(f"Not a file: {path}", status_code=404)

        # Files over 1 MB come back without inline content
        if data.get("encoding") == "none" or not data.get("content"):
            return self._read_git_blob(str(data["sha"]), path=path)
        return decode_content(data["content"], path=path)

    def path_exists(self, path: str, *, ref: str | None) -> bool:
        params = {"ref": ref} if ref is not None else None
        response = self._http.get(
            self._contents_endpoint(normalize_remote_path(path)), params=params
        )
        if response.status_code == 404:
            return False
        raise_for_response(response, context=f"check {path}")
        return True

    def create_branch(self, name: str, *, from_ref: str) -> BranchRef:
        ref_response = self._http.get(
            f"{self._repo_path}/git/ref/heads/{quote(from_ref, safe='/')}"
        )
        if ref_response.status_code == 404:
            raise RefNotFound(f"Base ref not found: {from_ref}", status_code=404)
        raise_for_response(ref_response, context=f"resolve ref '{from_ref}'")
        base_sha = str(ref_response.json()["object"]["sha"])

        response = self._http.post(
            f"{self._repo_path}/git/refs",
            data={"ref": f"refs/heads/{name}", "sha": base_sha},
        )
        if response.status_code == 422 and "already exists" in response.text.lower():
            raise BranchExists(f"Branch already exists: {name}", status_code=422)
        raise_for_response(response, context=f"create branch '{name}'")
        return BranchRef(name=name, commit_id=base_sha)

    def upload_file(
        self,
        branch: str,
        remote_path: str,
        content: bytes,
        meta: CommitMeta,
    ) -> UploadResult:
        endpoint = self._contents_endpoint(remote_path)
        identity = {"name": meta.author_name, "email": meta.author_email}
        body: dict[str, Any] = {
            "message": meta.message,
            "content": encode_content(content),
            "branch": branch,
            "author": identity,
            "committer": identity,
        }

        existing = self._http.get(endpoint, params={"ref": branch})
        if existing.status_code != 404:
            raise_for_response(existing, context=f"look up {remote_path}")
            existing_data = existing.json()
            if isinstance(existing_data, dict) and existing_data.get("sha"):
                body["sha"] = existing_data["sha"]

        response = self._http.put(endpoint, data=body)
        raise_for_response(response, context=f"upload {remote_path}")
        commit: dict[str, Any] = response.json().get("commit") or {}
        commit_id = commit.get("sha")
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
        return PullRequestRef(number=int(data["number"]), url=str(data["html_url"]))

    def close(self) -> None:
        self._http.close()

    def _read_git_blob(self, sha: str, *, path: str) -> bytes:
        response = self._http.get(f"{self._repo_path}/git/blobs/{sha}")
        raise_for_response(response, context=f"read blob of {path}")
        return decode_content(response.json().get("content", ""), path=path)
