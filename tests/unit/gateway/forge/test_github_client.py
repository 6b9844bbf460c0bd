"""Tests for GitHubForgeClient against a FakeHttpClient."""

from datetime import datetime

import pytest

from vkt.core.errors import AuthFailure, BranchExists, NotFound, RefNotFound
from vkt.gateway.forge.github import GitHubForgeClient
from vkt.gateway.forge.parsing import encode_content
from vkt.gateway.forge.types import BranchRef, CommitMeta, PullRequestRef, RemoteEntry
from vkt.gateway.http.fake import FakeHttpClient, json_response

REPO = "repos/owner/repo"

META = CommitMeta(
    message="feat: add tool",
    author_name="Test User",
    author_email="test@example.com",
    content_hash="abc",
    timestamp=datetime(2024, 1, 15, 14, 30),
)

TREE = {
    "sha": "root",
    "truncated": False,
    "tree": [
        {"path": "README.md", "type": "blob", "size": 120},
        {"path": "scripts", "type": "tree"},
        {"path": "scripts/setup.sh", "type": "blob", "size": 64},
        {"path": "scripts/tools", "type": "tree"},
        {"path": "scripts/tools/debug.sh", "type": "blob", "size": 4200},
        {"path": "vendor", "type": "commit"},
    ],
}


def _client(http: FakeHttpClient) -> GitHubForgeClient:
    return GitHubForgeClient(http, project_id="owner/repo", default_branch="main")


def _tree_http() -> FakeHttpClient:
    return FakeHttpClient(responses={("GET", f"{REPO}/git/trees/main"): json_response(TREE)})


def test_list_tree_root_returns_immediate_children_with_sizes() -> None:
    http = _tree_http()

    entries = _client(http).list_tree(None, recursive=False, ref=None)

    assert entries == [
        RemoteEntry(path="README.md", kind="file", size=120),
        RemoteEntry(path="scripts", kind="directory"),
    ]
    assert http.requests[0].params == {"recursive": "1"}


def test_list_tree_recursive_under_directory() -> None:
    entries = _client(_tree_http()).list_tree("scripts/", recursive=True, ref="main")

    assert [e.path for e in entries] == [
        "scripts/setup.sh",
        "scripts/tools",
        "scripts/tools/debug.sh",
    ]


def test_list_tree_unknown_directory_raises_not_found() -> None:
    with pytest.raises(NotFound):
        _client(_tree_http()).list_tree("nope", recursive=False, ref="main")


def test_list_tree_escapes_ref_with_slash() -> None:
    http = FakeHttpClient(
        responses={("GET", f"{REPO}/git/trees/release%2F1.0"): json_response(TREE)}
    )

    entries = _client(http).list_tree(None, recursive=False, ref="release/1.0")

    assert len(entries) == 2


def test_read_blob_inline_content() -> None:
    http = FakeHttpClient(
        responses={
            ("GET", f"{REPO}/contents/README.md"): json_response(
                {
                    "type": "file",
                    "sha": "s1",
                    "encoding": "base64",
                    "content": encode_content(b"hi"),
                }
            )
        }
    )

    assert _client(http).read_blob("README.md", ref="main") == b"hi"


def test_read_blob_large_file_falls_back_to_git_blob() -> None:
    http = FakeHttpClient(
        responses={
            ("GET", f"{REPO}/contents/big.bin"): json_response(
                {"type": "file", "sha": "bigsha", "encoding": "none", "content": ""}
            ),
            ("GET", f"{REPO}/git/blobs/bigsha"): json_response(
                {"content": encode_content(b"\x00" * 16)}
            ),
        }
    )

    assert _client(http).read_blob("big.bin", ref="main") == b"\x00" * 16


def test_read_blob_on_directory_raises_not_found() -> None:
    http = FakeHttpClient(
        responses={("GET", f"{REPO}/contents/scripts"): json_response([{"name": "setup.sh"}])}
    )

    with pytest.raises(NotFound):
        _client(http).read_blob("scripts", ref="main")


def test_path_exists() -> None:
    http = FakeHttpClient(
        responses={("GET", f"{REPO}/contents/README.md"): json_response({"type": "file"})}
    )
    client = _client(http)

    assert client.path_exists("/README.md", ref="main") is True
    assert client.path_exists("missing.md", ref="main") is False


def test_path_exists_propagates_auth_failure() -> None:
    http = FakeHttpClient(
        responses={
            ("GET", f"{REPO}/contents/a.sh"): json_response(
                {"message": "Bad credentials"}, status_code=401
            )
        }
    )

    with pytest.raises(AuthFailure):
        _client(http).path_exists("a.sh", ref="main")


def test_create_branch_resolves_base_then_creates_ref() -> None:
    http = FakeHttpClient(
        responses={
            ("GET", f"{REPO}/git/ref/heads/main"): json_response({"object": {"sha": "base123"}}),
            ("POST", f"{REPO}/git/refs"): json_response(
                {"ref": "refs/heads/feat/x"}, status_code=201
            ),
        }
    )

    ref = _client(http).create_branch("feat/x", from_ref="main")

    assert ref == BranchRef(name="feat/x", commit_id="base123")
    assert http.requests_for("POST")[0].data == {"ref": "refs/heads/feat/x", "sha": "base123"}


def test_create_branch_missing_base_raises_ref_not_found() -> None:
    http = FakeHttpClient()

    with pytest.raises(RefNotFound):
        _client(http).create_branch("feat/x", from_ref="nope")
    assert http.requests_for("POST") == []


def test_create_branch_existing_raises_branch_exists() -> None:
    http = FakeHttpClient(
        responses={
            ("GET", f"{REPO}/git/ref/heads/main"): json_response({"object": {"sha": "base123"}}),
            ("POST", f"{REPO}/git/refs"): json_response(
                {"message": "Reference already exists"}, status_code=422
            ),
        }
    )

    with pytest.raises(BranchExists):
        _client(http).create_branch("feat/x", from_ref="main")


def test_upload_new_file_puts_without_sha() -> None:
    endpoint = f"{REPO}/contents/scripts/tools/debug.sh"
    http = FakeHttpClient(
        responses={("PUT", endpoint): json_response({"commit": {"sha": "c1"}}, status_code=201)}
    )

    result = _client(http).upload_file("feat/x", "scripts/tools/debug.sh", b"echo", META)

    assert result.commit_id == "c1"
    put = http.requests_for("PUT")[0]
    assert put.data is not None
    assert "sha" not in put.data
    assert put.data["author"] == {"name": "Test User", "email": "test@example.com"}
    assert put.data["committer"] == put.data["author"]
    assert put.data["content"] == encode_content(b"echo")


def test_upload_existing_file_puts_with_sha() -> None:
    endpoint = f"{REPO}/contents/README.md"
    http = FakeHttpClient(
        responses={
            ("GET", endpoint): json_response({"type": "file", "sha": "old"}),
            ("PUT", endpoint): json_response({"commit": {"sha": "c2"}}),
        }
    )

    _client(http).upload_file("feat/x", "README.md", b"new", META)

    put = http.requests_for("PUT")[0]
    assert put.data is not None
    assert put.data["sha"] == "old"


def test_create_pull_request() -> None:
    http = FakeHttpClient(
        responses={
            ("POST", f"{REPO}/pulls"): json_response(
                {"number": 7, "html_url": "https://github.com/owner/repo/pull/7"},
                status_code=201,
            )
        }
    )

    pr = _client(http).create_pull_request("feat/x", base="main", title="T", body="B")

    assert pr == PullRequestRef(number=7, url="https://github.com/owner/repo/pull/7")


def test_close_closes_http_client() -> None:
    http = FakeHttpClient()

    _client(http).close()

    assert http.closed is True
