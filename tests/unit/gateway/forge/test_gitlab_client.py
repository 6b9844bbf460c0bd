"""Tests for GitLabForgeClient against a FakeHttpClient."""

from datetime import datetime

import pytest

from vkt.core.errors import BranchExists, ConfigError, NotFound, RefNotFound
from vkt.gateway.forge.gitlab import GitLabForgeClient
from vkt.gateway.forge.parsing import encode_content
from vkt.gateway.forge.types import BranchRef, CommitMeta, PullRequestRef, RemoteEntry
from vkt.gateway.http.abc import HttpResponse
from vkt.gateway.http.fake import FakeHttpClient, json_response

PROJECT = "projects/owner%2Frepo"

META = CommitMeta(
    message="feat: add tool",
    author_name="Test User",
    author_email="test@example.com",
    content_hash="abc",
    timestamp=datetime(2024, 1, 15, 14, 30),
)


def _client(http: FakeHttpClient) -> GitLabForgeClient:
    return GitLabForgeClient(http, project_id="owner/repo", default_branch="main")


def test_project_id_must_contain_namespace() -> None:
    with pytest.raises(ConfigError):
        GitLabForgeClient(FakeHttpClient(), project_id="repo", default_branch="main")


def test_nested_group_project_is_url_encoded() -> None:
    http = FakeHttpClient(
        responses={
            ("GET", "projects/group%2Fsub%2Frepo/repository/files/a.sh"): json_response({})
        }
    )
    client = GitLabForgeClient(http, project_id="group/sub/repo", default_branch="main")

    assert client.path_exists("a.sh", ref="main") is True


def test_list_tree_follows_next_page_header() -> None:
    http = FakeHttpClient(
        responses={
            ("GET", f"{PROJECT}/repository/tree"): [
                json_response(
                    [{"path": "scripts/setup.sh", "type": "blob"}],
                    headers={"X-Next-Page": "2"},
                ),
                json_response(
                    [{"path": "scripts/tools", "type": "tree"}],
                    headers={"X-Next-Page": ""},
                ),
            ]
        }
    )

    entries = _client(http).list_tree("scripts", recursive=False, ref=None)

    assert entries == [
        RemoteEntry(path="scripts/setup.sh", kind="file"),
        RemoteEntry(path="scripts/tools", kind="directory"),
    ]
    assert [r.params["page"] for r in http.requests] == ["1", "2"]
    assert http.requests[0].params["path"] == "scripts"
    assert http.requests[0].params["ref"] == "main"
    assert http.requests[0].params["recursive"] == "false"


def test_list_tree_empty_subdirectory_raises_not_found() -> None:
    http = FakeHttpClient(responses={("GET", f"{PROJECT}/repository/tree"): json_response([])})

    with pytest.raises(NotFound):
        _client(http).list_tree("nope", recursive=True, ref="main")


def test_read_blob_returns_raw_body() -> None:
    http = FakeHttpClient(
        responses={
            ("GET", f"{PROJECT}/repository/files/scripts%2Fsetup.sh/raw"): HttpResponse(
                status_code=200, body=b"echo setup\n"
            )
        }
    )

    assert _client(http).read_blob("scripts/setup.sh", ref="dev") == b"echo setup\n"
    assert http.requests[0].params == {"ref": "dev"}


def test_path_exists_false_on_404() -> None:
    assert _client(FakeHttpClient()).path_exists("missing.sh", ref=None) is False


def test_create_branch() -> None:
    http = FakeHttpClient(
        responses={
            ("POST", f"{PROJECT}/repository/branches"): json_response(
                {"name": "feat/x", "commit": {"id": "abc"}}, status_code=201
            )
        }
    )

    ref = _client(http).create_branch("feat/x", from_ref="main")

    assert ref == BranchRef(name="feat/x", commit_id="abc")
    assert http.requests[0].data == {"branch": "feat/x", "ref": "main"}


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("Branch already exists", BranchExists),
        ("Invalid reference name: nope", RefNotFound),
    ],
)
def test_create_branch_maps_400_messages(message: str, expected: type[Exception]) -> None:
    http = FakeHttpClient(
        responses={
            ("POST", f"{PROJECT}/repository/branches"): json_response(
                {"message": message}, status_code=400
            )
        }
    )

    with pytest.raises(expected):
        _client(http).create_branch("feat/x", from_ref="nope")


def test_upload_new_file_commits_create_action() -> None:
    http = FakeHttpClient(
        responses={
            ("POST", f"{PROJECT}/repository/commits"): json_response({"id": "c1"}, status_code=201)
        }
    )

    result = _client(http).upload_file("feat/x", "scripts/new.sh", b"echo", META)

    assert result.commit_id == "c1"
    commit = http.requests_for("POST")[0]
    assert commit.data is not None
    assert commit.data["branch"] == "feat/x"
    assert commit.data["commit_message"] == "feat: add tool"
    assert commit.data["actions"] == [
        {
            "action": "create",
            "file_path": "scripts/new.sh",
            "content": encode_content(b"echo"),
            "encoding": "base64",
        }
    ]


def test_upload_existing_file_commits_update_action() -> None:
    http = FakeHttpClient(
        responses={
            ("GET", f"{PROJECT}/repository/files/scripts%2Fsetup.sh"): json_response({}),
            ("POST", f"{PROJECT}/repository/commits"): json_response({"id": "c2"}),
        }
    )

    _client(http).upload_file("feat/x", "scripts/setup.sh", b"echo", META)

    commit = http.requests_for("POST")[0]
    assert commit.data is not None
    assert commit.data["actions"][0]["action"] == "update"


def test_create_merge_request_uses_iid_and_web_url() -> None:
    http = FakeHttpClient(
        responses={
            ("POST", f"{PROJECT}/merge_requests"): json_response(
                {
                    "id": 9001,
                    "iid": 12,
                    "web_url": "https://gitlab.com/owner/repo/-/merge_requests/12",
                }
            )
        }
    )

    pr = _client(http).create_pull_request("feat/x", base="main", title="T", body="B")

    assert pr == PullRequestRef(
        number=12, url="https://gitlab.com/owner/repo/-/merge_requests/12"
    )
    assert http.requests[0].data == {
        "source_branch": "feat/x",
        "target_branch": "main",
        "title": "T",
        "description": "B",
    }


def test_close_closes_http_client() -> None:
    http = FakeHttpClient()

    _client(http).close()

    assert http.closed is True
