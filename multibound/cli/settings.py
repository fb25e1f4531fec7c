"""
Settings subcommands: config, link and steamcmd-setup.
"""

import sys
from pathlib import Path
from typing import Optional

import click
import msgspec

from multibound.models.config import Config, save_config
from multibound.utils.exception import LaunchError
from multibound.utils.launcher import validate_executable
from multibound.utils.links import workshop_link_from_id
from multibound.utils.steam.steamcmd.wrapper import SteamcmdDownloader


@click.command()
@click.argument("workshop_id")
def link(workshop_id: str) -> None:
    """Print the Steam Workshop link for WORKSHOP_ID."""
    click.echo(workshop_link_from_id(workshop_id))


@click.command()
@click.option(
    "--instance-root",
    type=click.Path(path_type=Path, file_okay=False),
    help="Folder containing the instances.",
)
@click.option(
    "--executable",
    type=click.Path(path_type=Path, dir_okay=True),
    help="Game executable.",
)
@click.option(
    "--steamcmd-prefix",
    type=click.Path(path_type=Path, file_okay=False),
    help="SteamCMD installation prefix.",
)
@click.pass_context
def config(
    ctx: click.Context,
    instance_root: Optional[Path],
    executable: Optional[Path],
    steamcmd_prefix: Optional[Path],
) -> None:
    """Show the settings, or change and save them."""
    current: Config = ctx.obj["config"]
    changes: dict[str, str] = {}
    if instance_root is not None:
        changes["instance_root"] = str(instance_root.resolve())
    if executable is not None:
        changes["executable_path"] = str(executable.resolve())
    if steamcmd_prefix is not None:
        changes["steamcmd_prefix"] = str(steamcmd_prefix.resolve())

    if changes:
        current = msgspec.structs.replace(current, **changes)
        save_config(current, ctx.obj["settings_path"])
        ctx.obj["config"] = current
        click.secho("✓ Settings saved", fg="green")

    for field in msgspec.structs.fields(current):
        click.echo(f"{field.name} = {getattr(current, field.name)}")

    try:
        validate_executable(current)
    except LaunchError as e:
        click.secho(f"Warning: {e}", fg="yellow", err=True)


@click.command("steamcmd-setup")
@click.option("--reinstall", is_flag=True, help="Remove and reinstall SteamCMD.")
@click.pass_context
def steamcmd_setup(ctx: click.Context, reinstall: bool) -> None:
    """Download SteamCMD into the configured prefix."""
    current: Config = ctx.obj["config"]
    downloader = SteamcmdDownloader(
        current.steamcmd_prefix, validate=current.steamcmd_validate_downloads
    )
    try:
        downloader.install(reinstall=reinstall)
    except OSError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"✓ SteamCMD available at {downloader.steamcmd}", fg="green")
