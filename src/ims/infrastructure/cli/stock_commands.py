"""CLI commands for stock levels."""

from __future__ import annotations

import click

from ims.application.adjust_bulk_stock import AdjustBulkStockHandler
from ims.application.show_stock import ShowStockHandler
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import settings, unit_of_work


@click.command("overview")
def stock_overview() -> None:
    """Show the stock count of every product version."""
    lines = ShowStockHandler(uow=unit_of_work()).handle()

    if not lines:
        click.echo("No product versions found.")
        return

    click.echo(f"{'Product version':<30} {'Tracking':<9} {'In stock':>9} {'Bulk':>6}")
    click.echo("-" * 57)
    for line in lines:
        click.echo(
            f"{line.name:<30} {line.tracking_mode:<9} {line.stock_count:>9} {line.bulk_quantity:>6}"
        )


@click.command("adjust")
@click.option("--id", "entry_id", required=True, type=int, help="Product version ID.")
@click.option("--delta", required=True, type=int, help="Signed quantity change (e.g. -5).")
@click.option("--note", default=None, help="Reason for the adjustment.")
@click.option("--actor", default=None, help="Operator name (defaults to IMS_DEFAULT_ACTOR).")
def stock_adjust(entry_id: int, delta: int, note: str | None, actor: str | None) -> None:
    """Manually adjust the bulk quantity of an untracked product version."""
    handler = AdjustBulkStockHandler(uow=unit_of_work())

    try:
        change = handler.handle(
            catalog_entry_id=entry_id,
            delta=delta,
            actor=actor or settings().default_actor,
            note=note,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Bulk stock for product version #{entry_id}: "
        f"{change.old_quantity} -> {change.new_quantity} ({change.change_quantity:+d})"
    )
