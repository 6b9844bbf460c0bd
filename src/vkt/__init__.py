"""vkt CLI entry point.

This package provides a Click-based CLI for browsing a remote Git forge and
submitting local files to it as a branch plus pull request, without a local
clone. See `vkt --help` for details.
"""

from vkt.cli.cli import cli


def main() -> None:
    """CLI entry point used by the `vkt` console script."""
    cli()
