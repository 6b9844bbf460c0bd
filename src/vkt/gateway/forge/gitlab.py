"""GitLab implementation of ForgeClient using the v4 API.

Projects are addressed by their URL-encoded full path, so nested groups
("group/subgroup/project") work. Uploads go through the commits API, which
returns the commit id in the same response.
"""

import logging
from typing import Any
from urllib.parse import quote

from vkt.core.errors import BranchExists, ConfigError, ForgeError, NotFound, RefNotFound
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.http_errors import raise_for_response
from vkt.gateway.forge.parsing import encode_content, normalize_remote_path
from vkt.gateway.forge.types import (
    BranchRef,
    CommitMeta,
    PullRequestRef,
    RemoteEntry,
    UploadResult,
)
from vkt.gateway.http.abc import HttpClient

logger = logging.getLogger(__name__)

# Items per page for tree listing (GitLab maximum)
TREE_PAGE_SIZE = 100


class GitLabForgeClient(ForgeClient):
    """ForgeClient for gitlab.com and self-managed GitLab instances."""

    def __init__(self, http: HttpClient, *, project_id: str, default_branch: str) -> None:
        if "/" not in project_id.strip("/"):
            msg = f"Project ID format should be 'group/project', got {project_id!r}"
            raise ConfigError(msg)
        self._http = http
        self._project = quote(project_id.strip("/"), safe="")
        self._default_branch = default_branch

    @property
    def _project_path(self) -> str:
        return f"projects/{self._project}"

    def _file_endpoint(self, path: str) -> str:
        return f"{self._project_path}/repository/files/{quote(path, safe='')}"

    def list_tree(
        self,
        path: str | None,
        *,
        recursive: bool,
        ref: str | None,
    ) -> list[RemoteEntry]:
        prefix = normalize_remote_path(path)
        params: dict[str, str] = {
            "ref": ref if ref is not None else self._default_branch,
            "recursive": "true" if recursive else "false",
            "per_page": str(TREE_PAGE_SIZE),
        }
        if prefix:
            params["path"] = prefix

        entries: list[RemoteEntry] = []
        page = "1"
        while page:
            response = self._http.get(
                f"{self._project_path}/repository/tree", params={**params, "page": page}
            )
            raise_for_response(response, context=f"list tree under '{prefix or '/'}'")
            for item in response.json() or []:
                kind = "directory" if item.get("type") == "tree" else "file"
                entries.append(RemoteEntry(path=item["path"], kind=kind))
            page = response.header("X-Next-Page") or ""

        if prefix and not entries:
            raise NotFound(f"Path not found: {prefix}", status_code=404)
        return entries

    def read_blob(self, path: str, *, ref: str | None) -> bytes:
        response = self._http.get(
            f"{self._file_endpoint(path)}/raw",
            params={"ref": ref if ref is not None else self._default_branch},
        )
        raise_for_response(response, context=f"read {path}")
        return response.body

    def path_exists(self, path: str, *, ref: str | None) -> bool:
        response = self._http.get(
            self._file_endpoint(normalize_remote_path(path)),
            params={"ref": ref if ref is not None else self._default_branch},
        )
        if response.status_code == 404:
            return False
        raise_for_response(response, context=f"check {path}")
        return True

    def create_branch(self, name: str, *, from_ref: str) -> BranchRef:
        response = self._http.post(
            f"{self._project_path}/repository/branches",
            data={"branch": name, "ref": from_ref},
        )
        if response.status_code == 400:
            text = response.text.lower()
            if "already exists" in text:
                raise BranchExists(f"Branch already exists: {name}", status_code=400)
            if "invalid reference" in text:
                raise RefNotFound(f"Base ref not found: {from_ref}", status_code=400)
        if response.status_code == 404:
            raise RefNotFound(f"Base ref not found: {from_ref}", status_code=404)
        raise_for_response(response, context=f"create branch '{name}'")

        data: dict[str, Any] = response.json()
        commit: dict[str, Any] = data.get("commit") or {}
        if commit.get("id") is None:
            raise ForgeError("Could not extract commit id from branch response")
        return BranchRef(name=data.get("name", name), commit_id=str(commit["id"]))

    def upload_file(
        self,
        branch: str,
        remote_path: str,
        content: bytes,
        meta: CommitMeta,
    ) -> UploadResult:
        action = "update" if self.path_exists(remote_path, ref=branch) else "create"
        logger.debug("Committing %s (%s) to %s", remote_path, action, branch)
        response = self._http.post(
            f"{self._project_path}/repository/commits",
            data={
                "branch": branch,
                "commit_message": meta.message,
                "author_name": meta.author_name,
                "author_email": meta.author_email,
                "actions": [
                    {
                        "action": action,
                        "file_path": remote_path,
                        "content": encode_content(content),
                        "encoding": "base64",
                    }
                ],
            },
        )
        raise_for_response(response, context=f"upload {remote_path}")
        commit_id = response.json().get("id")
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
            f"{self._project_path}/merge_requests",
            data={
                "source_branch": branch,
                "target_branch": base,
                "title": title,
                "description": body,
            },
        )
        raise_for_response(response, context=f"create merge request from '{branch}'")
        data: dict[str, Any] = response.json()
        return PullRequestRef(number=int(data["iid"]), url=str(data["web_url"]))

    def close(self) -> None:
        self._http.close()
