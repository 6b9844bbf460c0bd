"""Get command - download a remote file or directory."""

from pathlib import Path

import click

from vkt.cli.ensure import Ensure, fail
from vkt.cli.output import user_output
from vkt.cli.reporter import render_events
from vkt.core.context import VktContext
from vkt.core.download import execute_download, format_bytes
from vkt.core.errors import ForgeError


@click.command("get")
@click.argument("remote_path", metavar="REMOTE_PATH")
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory to save into (default: current directory)",
)
@click.option("-f", "--force", is_flag=True, help="Overwrite existing local files")
@click.pass_obj
def get_cmd(ctx: VktContext, remote_path: str, output: Path | None, force: bool) -> None:
    """Download REMOTE_PATH from the default branch.

    A file is saved as OUTPUT/<name>; a directory is saved below
    OUTPUT/<directory name>, its files fetched concurrently.
    """
    config, forge = Ensure.configured(ctx)
    output_dir = output if output is not None else ctx.cwd

    try:
        summary = render_events(
            execute_download(
                forge,
                remote_path,
                output_dir,
                ref=config.repo.default_branch,
                force=force,
            )
        )
    except ForgeError as e:
        fail(f"Path '{remote_path}' does not exist or cannot be accessed: {e.message}")

    succeeded = len(summary.succeeded)
    failed = summary.failed
    total = format_bytes(summary.total_bytes)
    if not failed:
        user_output(
            click.style("✓", fg="green") + f" Downloaded {succeeded} file(s), total {total}"
        )
        return

    user_output(
        click.style("⚠", fg="yellow")
        + f" Downloaded {succeeded} file(s), {len(failed)} failed, total {total}"
    )
    for result in failed:
        user_output(f"  - {result.remote_path}: {result.error}")
    raise SystemExit(1)
