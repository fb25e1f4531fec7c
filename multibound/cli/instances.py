"""
Instance subcommands: list, launch, update and create.
"""

import sys
from pathlib import Path
from typing import Optional

import click

from multibound.controllers.registry_controller import InstanceRegistry
from multibound.models.instance import InstanceRecord
from multibound.utils.exception import MultiBoundError, PartialContentError
from multibound.utils.links import is_workshop_id, workshop_id_from_link


def _load_registry(ctx: click.Context) -> InstanceRegistry:
    registry = InstanceRegistry(ctx.obj["config"])
    registry.refresh()
    return registry


def _find_instance(registry: InstanceRegistry, target: str) -> InstanceRecord:
    record = registry.find_by_path(target) or registry.find_by_name(target)
    if record is None and Path(target).exists():
        wanted = Path(target).resolve()
        record = next(
            (i for i in registry.instances if Path(i.path).resolve() == wanted), None
        )
    if record is None:
        click.secho(f"Error: No instance named or located at {target!r}", fg="red", err=True)
        sys.exit(1)
    return record


def _fail(e: MultiBoundError) -> None:
    if isinstance(e, PartialContentError):
        click.secho(f"Warning: {e}", fg="yellow", err=True)
        for item_id in e.failed_ids:
            click.echo(f"  {item_id}", err=True)
    else:
        click.secho(f"Error: {e}", fg="red", err=True)
    sys.exit(1)


@click.command("list")
@click.pass_context
def list_instances(ctx: click.Context) -> None:
    """List the instances found in the instance root."""
    registry = _load_registry(ctx)
    if not registry.instances:
        click.echo(f"No instances in {ctx.obj['config'].instance_root}")
        return
    for record in sorted(registry.instances, key=lambda i: i.display_name.lower()):
        workshop = f" [workshop {record.workshop_id}]" if record.workshop_id else ""
        click.echo(f"{record.display_name}{workshop}\n    {record.path}")


@click.command()
@click.argument("instance")
@click.pass_context
def launch(ctx: click.Context, instance: str) -> None:
    """Launch INSTANCE (directory name, display name or path)."""
    registry = _load_registry(ctx)
    record = _find_instance(registry, instance)
    try:
        pid = registry.launch(record)
    except MultiBoundError as e:
        _fail(e)
        return
    click.echo(f"Launched {record.display_name} (PID {pid})")


@click.command()
@click.argument("instance")
@click.pass_context
def update(ctx: click.Context, instance: str) -> None:
    """Update INSTANCE from its Workshop collection."""
    registry = _load_registry(ctx)
    record = _find_instance(registry, instance)
    if not record.workshop_id:
        click.secho(
            f"Error: {record.display_name} is not linked to a Workshop collection",
            fg="red",
            err=True,
        )
        sys.exit(1)
    try:
        updated = registry.update_from_workshop(record)
    except MultiBoundError as e:
        _fail(e)
        return
    name = updated.display_name if updated else record.display_name
    click.secho(f"✓ Updated {name}", fg="green")


@click.command()
@click.argument("collection")
@click.option(
    "--name",
    help="Directory name for the new instance. Prompted for if omitted.",
)
@click.pass_context
def create(ctx: click.Context, collection: str, name: Optional[str]) -> None:
    """Create an instance from a Workshop COLLECTION (link or id).

    If an instance for the collection already exists it is updated instead.

    Examples:

    \b
      multibound create https://steamcommunity.com/sharedfiles/filedetails/?id=123456789
      multibound create 123456789 --name "My Modpack"
    """
    collection_id = (
        collection if is_workshop_id(collection) else workshop_id_from_link(collection)
    )
    if not collection_id:
        click.secho(
            f"Error: Not a Workshop collection link or id: {collection}",
            fg="red",
            err=True,
        )
        sys.exit(1)

    def choose_name(display_name: str) -> str:
        if name:
            return name
        return click.prompt("Directory name", default=display_name)

    registry = _load_registry(ctx)
    try:
        record = registry.create_from_workshop(collection_id, choose_name)
    except MultiBoundError as e:
        _fail(e)
        return
    if record is None:
        click.secho(
            f"Error: Could not create an instance from collection {collection_id}",
            fg="red",
            err=True,
        )
        sys.exit(1)
    click.secho(f"✓ {record.display_name} ready at {record.path}", fg="green")
