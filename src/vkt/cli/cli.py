import logging

import click

from vkt.cli.commands.config import config_group
from vkt.cli.commands.get_cmd import get_cmd
from vkt.cli.commands.list_cmd import list_cmd
from vkt.cli.commands.submit import submit_cmd
from vkt.core.context import create_context

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="vkt")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Browse a remote forge repository and submit files as pull requests."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s - %(levelname)s - %(message)s")

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        ctx.obj = create_context()
    ctx.call_on_close(ctx.obj.close)


cli.add_command(config_group)
cli.add_command(get_cmd)
cli.add_command(list_cmd)
cli.add_command(submit_cmd)
