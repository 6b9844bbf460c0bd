"""Tests for progress and outcome rendering."""

import hashlib
from collections.abc import Generator
from pathlib import Path

import click
import pytest

from vkt.cli.reporter import render_events, render_outcome
from vkt.core.events import CompletionEvent, ProgressEvent
from vkt.core.path_planner import UploadItem
from vkt.core.submit_pipeline import SubmitAborted, SubmitFailed, SubmitSuccess

ITEM = UploadItem(
    local_path=Path("/work/debug.sh"),
    remote_path="scripts/tools/debug.sh",
    size=4,
    content_hash=hashlib.sha256(b"echo").hexdigest(),
)


def test_render_events_prints_progress_and_returns_result(
    capsys: pytest.CaptureFixture[str],
) -> None:
    def events() -> Generator[ProgressEvent | CompletionEvent[int]]:
        yield ProgressEvent("working")
        yield ProgressEvent("careful", style="warning")
        yield CompletionEvent(42)

    assert render_events(events()) == 42
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "  working" in captured.err
    assert "  careful" in captured.err


def test_render_events_without_completion_raises() -> None:
    def events() -> Generator[ProgressEvent | CompletionEvent[int]]:
        yield ProgressEvent("working")

    with pytest.raises(RuntimeError, match="without completion"):
        render_events(events())


def test_interrupt_while_rendering_is_handed_to_the_operation(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def events() -> Generator[ProgressEvent | CompletionEvent[str]]:
        try:
            yield ProgressEvent("uploading")
        except KeyboardInterrupt:
            yield CompletionEvent("interrupted")
            return
        yield CompletionEvent("done")

    def interrupting_echo(*args: object, **kwargs: object) -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr(click, "echo", interrupting_echo)

    assert render_events(events()) == "interrupted"


def test_interrupt_not_handled_by_the_operation_propagates(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def events() -> Generator[ProgressEvent | CompletionEvent[str]]:
        yield ProgressEvent("checking")
        yield CompletionEvent("done")

    def interrupting_echo(*args: object, **kwargs: object) -> None:
        raise KeyboardInterrupt

    monkeypatch.setattr(click, "echo", interrupting_echo)

    with pytest.raises(KeyboardInterrupt):
        render_events(events())


def test_success_prints_pr_url_to_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    outcome = SubmitSuccess(
        branch="feat/x",
        commit_id="abc123",
        pr_number=7,
        pr_url="https://forge.example.com/owner/repo/pull/7",
        items=(ITEM,),
        dry_run=False,
    )

    assert render_outcome(outcome) == 0
    captured = capsys.readouterr()
    assert captured.out == "https://forge.example.com/owner/repo/pull/7\n"
    assert "Submitted" in captured.err
    assert "Branch: feat/x" in captured.err
    assert "Commit: abc123" in captured.err
    assert "scripts/tools/debug.sh" in captured.err


def test_dry_run_preview_lists_conflicts(capsys: pytest.CaptureFixture[str]) -> None:
    outcome = SubmitSuccess(
        branch="feat/x",
        commit_id=None,
        pr_number=None,
        pr_url=None,
        items=(ITEM,),
        dry_run=True,
        conflicts=("scripts/tools/debug.sh",),
    )

    assert render_outcome(outcome) == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Dry run" in captured.err
    assert "Would create branch feat/x with 1 file(s)" in captured.err
    assert "exists" in captured.err
    assert "--force" in captured.err


def test_aborted_returns_nonzero(capsys: pytest.CaptureFixture[str]) -> None:
    outcome = SubmitAborted(
        reason="Remote path(s) already exist: a.sh", conflicts=("a.sh",)
    )

    assert render_outcome(outcome) == 1
    err = capsys.readouterr().err
    assert "Error: Submit aborted: Remote path(s) already exist: a.sh" in err
    assert "Use --force" in err


def test_failed_names_stage_branch_and_partial_uploads(
    capsys: pytest.CaptureFixture[str],
) -> None:
    outcome = SubmitFailed(
        stage="upload",
        cause="b.sh: connection reset",
        branch="feat/x",
        partial=("a.sh",),
        commit_id="commit-1",
    )

    assert render_outcome(outcome) == 1
    err = capsys.readouterr().err
    assert "Submit failed at upload: b.sh: connection reset" in err
    assert "Branch: feat/x" in err
    assert "Last commit: commit-1" in err
    assert "    a.sh" in err
    assert "left as is" in err


def test_plan_failure_has_no_remediation_hint(capsys: pytest.CaptureFixture[str]) -> None:
    outcome = SubmitFailed(
        stage="plan",
        cause="Directory contains no files",
        branch="feat/x",
        partial=(),
        commit_id=None,
    )

    assert render_outcome(outcome) == 1
    err = capsys.readouterr().err
    assert "Submit failed at plan" in err
    assert "left as is" not in err
