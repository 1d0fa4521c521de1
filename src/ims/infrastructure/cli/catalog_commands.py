"""CLI commands for catalog entries (product versions)."""

from __future__ import annotations

import click

from ims.application.create_catalog_entry import CreateCatalogEntryHandler
from ims.application.show_catalog_entry import ShowCatalogEntryHandler
from ims.application.show_stock import ShowStockHandler
from ims.application.update_catalog_entry import UpdateCatalogEntryHandler
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import unit_of_work


@click.command("add")
@click.option("--name", required=True, help="Product version name.")
@click.option(
    "--tracking",
    "tracking_mode",
    type=click.Choice(["none", "imei", "serial"]),
    default="none",
    show_default=True,
    help="How units of this product version are tracked.",
)
@click.option("--ean", default=None, help="EAN barcode.")
def catalog_add(name: str, tracking_mode: str, ean: str | None) -> None:
    """Add a product version to the catalog."""
    handler = CreateCatalogEntryHandler(uow=unit_of_work())

    try:
        dto = handler.handle(name=name, tracking_mode=tracking_mode, ean=ean)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product version #{dto.id} '{dto.name}' added (tracking={dto.tracking_mode})")


@click.command("update")
@click.option("--id", "entry_id", required=True, type=int, help="Product version ID.")
@click.option("--name", required=True, help="New name.")
@click.option("--ean", default=None, help="New EAN barcode (omit to clear).")
def catalog_update(entry_id: int, name: str, ean: str | None) -> None:
    """Rename a product version or change its EAN."""
    handler = UpdateCatalogEntryHandler(uow=unit_of_work())

    try:
        dto = handler.handle(catalog_entry_id=entry_id, name=name, ean=ean)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product version #{dto.id} updated: '{dto.name}' ean={dto.ean or '-'}")


@click.command("list")
def catalog_list() -> None:
    """List every product version with its stock count."""
    lines = ShowStockHandler(uow=unit_of_work()).handle()

    if not lines:
        click.echo("No product versions found.")
        return

    click.echo(f"{'ID':<6} {'Name':<30} {'EAN':<15} {'Tracking':<9} {'Units':>6} {'Stock':>6}")
    click.echo("-" * 77)
    for line in lines:
        click.echo(
            f"{line.catalog_entry_id:<6} {line.name:<30} {line.ean or '-':<15} "
            f"{line.tracking_mode:<9} {line.total_identifiers:>6} {line.stock_count:>6}"
        )


@click.command("show")
@click.option("--id", "entry_id", required=True, type=int, help="Product version ID.")
def catalog_show(entry_id: int) -> None:
    """Show a product version with its units or bulk history."""
    handler = ShowCatalogEntryHandler(uow=unit_of_work())

    try:
        detail = handler.handle(entry_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    entry = detail.entry
    click.echo(f"Product version #{entry.id}  '{entry.name}'")
    click.echo(f"EAN:      {entry.ean or '-'}")
    click.echo(f"Tracking: {entry.tracking_mode}")
    click.echo()

    if detail.bulk_quantity is not None:
        click.echo(f"Bulk quantity: {detail.bulk_quantity}")
        if detail.bulk_history:
            click.echo()
            click.echo(f"  {'When':<20} {'Old':>6} {'New':>6} {'Change':>7}  {'By':<10} Note")
            click.echo(f"  {'-'*70}")
            for h in detail.bulk_history:
                click.echo(
                    f"  {h.created_at:%Y-%m-%d %H:%M:%S} {h.old_quantity:>6} {h.new_quantity:>6} "
                    f"{h.change_quantity:>+7}  {h.changed_by:<10} {h.note or ''}"
                )
        return

    if not detail.identifiers:
        click.echo("No units registered.")
        return

    click.echo(f"  {'ID':<6} {'Identifier':<20} {'Status':<22} {'Clearance':<9}")
    click.echo(f"  {'-'*60}")
    for d in detail.identifiers:
        click.echo(
            f"  {d.id:<6} {d.imei or d.serial_number or '-':<20} {d.status:<22} "
            f"{'yes' if d.is_clearance else '':<9}"
        )
