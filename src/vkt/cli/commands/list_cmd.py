"""List command - show the remote repository tree."""

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

from vkt.cli.ensure import Ensure, fail
from vkt.cli.output import machine_output, user_output
from vkt.core.context import VktContext
from vkt.core.download import format_bytes
from vkt.core.errors import ForgeError, NotFound
from vkt.gateway.forge.abc import ForgeClient
from vkt.gateway.forge.parsing import normalize_remote_path
from vkt.gateway.forge.types import RemoteEntry


def sort_entries(entries: list[RemoteEntry]) -> list[RemoteEntry]:
    """Directories first, then files, each by path."""
    return sorted(entries, key=lambda e: (not e.is_dir, e.path))


def _print_file_or_fail(
    forge: ForgeClient, normalized: str, *, ref: str, not_found: NotFound
) -> None:
    """PATH is not a directory: print its name if it is a file, otherwise fail."""
    try:
        is_file = bool(normalized) and forge.path_exists(normalized, ref=ref)
    except ForgeError as e:
        fail(e.message)
    if not is_file:
        fail(not_found.message)
    machine_output(normalized.rsplit("/", 1)[-1])


@click.command("list")
@click.argument("path", required=False, metavar="[PATH]")
@click.option("-r", "--recursive", is_flag=True, help="List all entries below PATH")
@click.pass_obj
def list_cmd(ctx: VktContext, path: str | None, recursive: bool) -> None:
    """List files and directories in the remote repository.

    PATH defaults to the repository root. A file path prints just its name.

    Examples:

    \b
      vkt list
      vkt list scripts/tools -r
    """
    config, forge = Ensure.configured(ctx)
    ref = config.repo.default_branch
    normalized = normalize_remote_path(path)

    try:
        entries = forge.list_tree(normalized or None, recursive=recursive, ref=ref)
    except NotFound as e:
        _print_file_or_fail(forge, normalized, ref=ref, not_found=e)
        return
    except ForgeError as e:
        fail(e.message)

    if not entries:
        user_output("Directory is empty")
        return

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("name", no_wrap=True)
    table.add_column("type", no_wrap=True)
    table.add_column("size", justify="right", no_wrap=True)
    for entry in sort_entries(entries):
        label = entry.path if recursive else entry.name
        if entry.is_dir:
            table.add_row(Text(f"{label}/", style="cyan"), "dir", "")
        else:
            size = format_bytes(entry.size) if entry.size is not None else ""
            table.add_row(Text(label), "file", size)

    console = Console(soft_wrap=True)
    console.print(table)
