"""CLI command definitions for devstrap."""

import click

from devstrap import __version__
from devstrap.commands.config import config
from devstrap.commands.install import install
from devstrap.commands.status import status


@click.group()
@click.version_option(__version__, prog_name="devstrap")
@click.option("--debug", is_flag=True, help="Enable debug output for troubleshooting")
@click.pass_context
def cli(ctx, debug):
    """Bootstrap a development workstation from a package manifest."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(install)
cli.add_command(status)
cli.add_command(config)

__all__ = ["cli"]


if __name__ == "__main__":
    cli()
