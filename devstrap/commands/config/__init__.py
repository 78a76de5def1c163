"""Manifest management commands."""

import click

from devstrap.commands.config.init import config_init
from devstrap.commands.config.validate import config_validate


@click.group()
def config():
    """Manifest management commands."""
    pass


config.add_command(config_init, name="init")
config.add_command(config_validate, name="validate")
