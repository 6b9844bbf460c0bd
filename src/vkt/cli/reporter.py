"""Rendering of operation progress and submit outcomes."""

import sys
from collections.abc import Generator, Sequence
from typing import TypeVar

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from vkt.cli.output import machine_output, user_output
from vkt.core.events import CompletionEvent, ProgressEvent
from vkt.core.path_planner import UploadItem
from vkt.core.submit_pipeline import SubmitAborted, SubmitFailed, SubmitOutcome, SubmitSuccess

T = TypeVar("T")

# Style mapping for progress events
STYLE_MAP: dict[str, dict[str, str | bool]] = {
    "info": {},
    "success": {"fg": "green"},
    "warning": {"fg": "yellow"},
    "error": {"fg": "red", "bold": True},
}


def render_events(
    events: Generator[ProgressEvent | CompletionEvent[T]],
) -> T:
    """Consume event stream, render progress to stderr, return result.

    A KeyboardInterrupt raised while the operation is paused at a yield is
    thrown back into it, so the operation decides how the run ends.

    Raises:
        RuntimeError: If operation ends without a CompletionEvent
    """
    interrupted = False
    while True:
        try:
            event = events.throw(KeyboardInterrupt()) if interrupted else next(events)
        except StopIteration:
            break
        interrupted = False
        try:
            match event:
                case ProgressEvent(message=msg, style=style):
                    click.echo(click.style(f"  {msg}", **STYLE_MAP[style]), err=True)
                    sys.stderr.flush()
                case CompletionEvent(result=result):
                    return result
        except KeyboardInterrupt:
            interrupted = True
    raise RuntimeError("Operation ended without completion")


def _print_items(items: Sequence[UploadItem], conflicts: Sequence[str]) -> None:
    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("remote path", style="cyan", no_wrap=True)
    table.add_column("size", justify="right", no_wrap=True)
    table.add_column("sha256", no_wrap=True)
    table.add_column("", no_wrap=True)
    conflict_set = set(conflicts)
    for item in items:
        note = "[yellow]exists[/yellow]" if item.remote_path in conflict_set else ""
        table.add_row(Text(item.remote_path), str(item.size), item.content_hash[:12], note)

    console = Console(stderr=True, soft_wrap=True)
    console.print(table)


def render_outcome(outcome: SubmitOutcome) -> int:
    """Print a summary of the outcome and return the process exit code.

    The pull request URL is the only thing written to stdout.
    """
    match outcome:
        case SubmitSuccess(dry_run=True):
            user_output(click.style("Dry run: nothing was changed on the remote.", bold=True))
            user_output(f"Would create branch {outcome.branch} with {len(outcome.items)} file(s):")
            _print_items(outcome.items, outcome.conflicts)
            if outcome.conflicts:
                user_output(
                    click.style(
                        f"{len(outcome.conflicts)} path(s) already exist; "
                        "the submit would need --force.",
                        fg="yellow",
                    )
                )
            return 0
        case SubmitSuccess():
            total = sum(item.size for item in outcome.items)
            user_output(click.style("✓ Submitted", fg="green", bold=True))
            _print_items(outcome.items, outcome.conflicts)
            user_output(f"  Files:  {len(outcome.items)} ({total} bytes)")
            user_output(f"  Branch: {outcome.branch}")
            user_output(f"  Commit: {outcome.commit_id}")
            user_output(f"  PR:     #{outcome.pr_number}")
            machine_output(outcome.pr_url)
            return 0
        case SubmitAborted():
            user_output(click.style("Error: ", fg="red") + f"Submit aborted: {outcome.reason}")
            for path in outcome.conflicts:
                user_output(f"  {path}")
            if outcome.conflicts:
                user_output("Nothing was changed. Use --force to overwrite existing files.")
            return 1
        case SubmitFailed():
            user_output(
                click.style("Error: ", fg="red")
                + f"Submit failed at {outcome.stage}: {outcome.cause}"
            )
            user_output(f"  Branch: {outcome.branch}")
            if outcome.commit_id is not None:
                user_output(f"  Last commit: {outcome.commit_id}")
            if outcome.partial:
                user_output(f"  Uploaded before failure ({len(outcome.partial)}):")
                for path in outcome.partial:
                    user_output(f"    {path}")
            if outcome.stage in ("upload", "pr-create") or outcome.partial:
                user_output(
                    "The branch was left as is. Open the pull request manually "
                    "or delete the branch."
                )
            return 1
