"""
Main CLI entry point for MultiBound.

This module defines the Click command group and registers all subcommands.
"""

from pathlib import Path
from typing import Optional

import click
from loguru import logger

from multibound.cli.instances import create, launch, list_instances, update
from multibound.cli.settings import config, link, steamcmd_setup
from multibound.models.config import load_config
from multibound.utils.app_info import AppInfo
from multibound.utils.exception import LaunchError
from multibound.utils.launcher import validate_executable


@click.group()
@click.version_option(version=AppInfo().app_version, prog_name="MultiBound")
@click.option(
    "--settings",
    "settings_path",
    type=click.Path(path_type=Path, dir_okay=False),
    envvar="MULTIBOUND_SETTINGS",
    help="Settings file to use instead of settings.json in the app data folder.",
)
@click.pass_context
def cli(ctx: click.Context, settings_path: Optional[Path]) -> None:
    """MultiBound - instance launcher for Starbound

    Manage isolated game instances and keep them in sync with
    Steam Workshop collections.

    Global flags (processed before CLI):
      --debug    Log at DEBUG level (same as a DEBUG file in the app data folder)
    """
    ctx.ensure_object(dict)
    ctx.obj["settings_path"] = settings_path
    ctx.obj["config"] = load_config(settings_path)
    try:
        validate_executable(ctx.obj["config"])
    except LaunchError as e:
        logger.warning(f"{e}. Set it with `multibound config --executable`.")


# Register subcommands
cli.add_command(list_instances)
cli.add_command(launch)
cli.add_command(update)
cli.add_command(create)
cli.add_command(link)
cli.add_command(config)
cli.add_command(steamcmd_setup)


if __name__ == "__main__":
    cli()
