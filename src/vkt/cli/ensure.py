"""CLI precondition checks that exit with a user-friendly error.

Every failed check prints a red "Error: " line to stderr and raises
SystemExit(1).
"""

from typing import NoReturn, TypeVar

import click

from vkt.cli.output import user_output
from vkt.core.config import VktConfig
from vkt.core.context import VktContext
from vkt.gateway.forge.abc import ForgeClient

T = TypeVar("T")


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    user_output(click.style("Error: ", fg="red") + message)
    raise SystemExit(1)


class Ensure:
    """Helper class for asserting CLI preconditions."""

    @staticmethod
    def invariant(condition: bool, message: str) -> None:
        """Exit with an error unless condition holds."""
        if not condition:
            fail(message)

    @staticmethod
    def not_none(value: T | None, message: str) -> T:
        """Ensure value is not None, otherwise exit with error.

        Provides type narrowing from `T | None` to `T`.

        Example:
            >>> forge = Ensure.not_none(ctx.forge, "No forge configured")
        """
        if value is None:
            fail(message)
        return value

    @staticmethod
    def configured(ctx: VktContext) -> tuple[VktConfig, ForgeClient]:
        """Ensure configuration loaded and a forge client exists.

        Returns:
            The validated configuration and forge client
        """
        if ctx.config is None or ctx.forge is None:
            fail(ctx.config_error or f"No usable configuration at {ctx.config_path}")
        return ctx.config, ctx.forge
