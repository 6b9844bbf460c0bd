"""Config command group - inspect and edit the vkt configuration file."""

import click

from vkt.cli.ensure import Ensure, fail
from vkt.cli.output import machine_output, user_output
from vkt.core.config import (
    env_var_name,
    get_config_keys,
    get_config_value,
    render_example_config,
    write_config_value,
)
from vkt.core.context import VktContext
from vkt.core.errors import ConfigError


@click.group("config")
def config_group() -> None:
    """Manage vkt configuration."""


@config_group.command("keys")
def config_keys() -> None:
    """List all available configuration keys with descriptions."""
    formatter = click.HelpFormatter()
    rows = [
        (key, f"{description} [{env_var_name(key)}]")
        for key, description in get_config_keys().items()
    ]
    formatter.write_dl(rows)
    user_output(formatter.getvalue().rstrip())


@config_group.command("list")
@click.pass_obj
def config_list(ctx: VktContext) -> None:
    """Print configuration keys and values. The token is never shown."""
    user_output(click.style("Configuration:", bold=True) + f" {ctx.config_path}")
    if ctx.config is None:
        user_output(f"  (invalid or incomplete: {ctx.config_error})")
        user_output("  Run 'vkt config init' to create an example file.")
        raise SystemExit(1)
    for key in get_config_keys():
        user_output(f"  {key}={get_config_value(ctx.config, key)}")


@config_group.command("get")
@click.argument("key", metavar="KEY")
@click.pass_obj
def config_get(ctx: VktContext, key: str) -> None:
    """Print the value of a given configuration key."""
    Ensure.invariant(key in get_config_keys(), f"Invalid key: {key}")
    config = Ensure.not_none(ctx.config, ctx.config_error or "Configuration not loaded")
    machine_output(get_config_value(config, key))


@config_group.command("set")
@click.argument("key", metavar="KEY")
@click.argument("value", metavar="VALUE")
@click.pass_obj
def config_set(ctx: VktContext, key: str, value: str) -> None:
    """Set a configuration key in the config file, keeping its formatting."""
    Ensure.invariant(key in get_config_keys(), f"Invalid key: {key}")
    try:
        write_config_value(ctx.config_path, key, value)
    except ConfigError as e:
        fail(str(e))
    shown = "********" if key == "remote.token" else value
    user_output(f"Set {key}={shown} in {ctx.config_path}")


@config_group.command("path")
@click.pass_obj
def config_path(ctx: VktContext) -> None:
    """Print the path of the configuration file."""
    machine_output(str(ctx.config_path))


@config_group.command("init")
@click.option("-f", "--force", is_flag=True, help="Overwrite an existing config file")
@click.pass_obj
def config_init(ctx: VktContext, force: bool) -> None:
    """Write an example configuration file to edit."""
    path = ctx.config_path
    Ensure.invariant(
        force or not path.exists(),
        f"Config file already exists at {path} (use --force to overwrite)",
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_example_config(), encoding="utf-8")
    user_output(click.style("✓", fg="green") + f" Wrote example configuration to {path}")
    user_output("Edit it, or set VKT_<SECTION>_<KEY> environment variables.")
