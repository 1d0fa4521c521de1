"""CLI commands for the Delivery aggregate and the intake workflow."""

from __future__ import annotations

import click

from ims.application.add_delivery_line import AddDeliveryLineHandler
from ims.application.book_delivery import BookDeliveryHandler
from ims.application.create_delivery import CreateDeliveryHandler
from ims.application.dispose_damaged_units import DisposeDamagedUnitsHandler
from ims.application.dto import DamageDecision, TrackedUnitSeed
from ims.application.list_deliveries import ListDeliveriesHandler
from ims.application.show_delivery import ShowDeliveryHandler
from ims.application.submit_damage_assessment import SubmitDamageAssessmentHandler
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import settings, unit_of_work


def _parse_damaged(raw: tuple[str, ...]) -> list[DamageDecision]:
    """Parse '12:cracked screen' (or just '12') into damage decisions."""
    decisions: list[DamageDecision] = []
    for item in raw:
        id_str, _, description = item.partition(":")
        try:
            identifier_id = int(id_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid unit '{item}'. Expected 'ID' or 'ID:description'."
            )
        decisions.append(
            DamageDecision(identifier_id, damaged=True, description=description.strip() or None)
        )
    return decisions


@click.command("create")
@click.option(
    "--date",
    "delivery_date",
    required=True,
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Delivery date (YYYY-MM-DD).",
)
@click.option("--supplier", default=None, help="Supplier name.")
def delivery_create(delivery_date, supplier: str | None) -> None:
    """Create a concept delivery."""
    handler = CreateDeliveryHandler(uow=unit_of_work())

    try:
        dto = handler.handle(delivery_date=delivery_date.date(), supplier=supplier)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Delivery {dto.delivery_number} created  (id={dto.id}, status={dto.status})")


@click.command("list")
def delivery_list() -> None:
    """List deliveries, newest first."""
    deliveries = ListDeliveriesHandler(uow=unit_of_work()).handle()

    if not deliveries:
        click.echo("No deliveries found.")
        return

    click.echo(f"{'ID':<6} {'Number':<8} {'Date':<11} {'Supplier':<20} {'Status':<10} {'Lines':>5} {'Qty':>6}")
    click.echo("-" * 72)
    for d in deliveries:
        click.echo(
            f"{d.id:<6} {d.delivery_number:<8} {d.delivery_date.isoformat():<11} "
            f"{d.supplier or '-':<20} {d.status:<10} {d.line_count:>5} {d.total_quantity:>6}"
        )


@click.command("show")
@click.option("--id", "delivery_id", required=True, type=int, help="Delivery ID.")
def delivery_show(delivery_id: int) -> None:
    """Show a delivery with its lines and received units."""
    handler = ShowDeliveryHandler(uow=unit_of_work())

    try:
        detail = handler.handle(delivery_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    d = detail.delivery
    click.echo(f"Delivery {d.delivery_number}  (status={d.status})")
    click.echo(f"Date:     {d.delivery_date.isoformat()}")
    click.echo(f"Supplier: {d.supplier or '-'}")
    click.echo()

    if not detail.lines:
        click.echo("No lines.")
        return

    click.echo(f"  {'Product version':<30} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*58}")
    for line in detail.lines:
        click.echo(
            f"  {line.catalog_entry_name:<30} {line.quantity:>5} "
            f"{line.unit_price:>10} {line.line_total:>10}"
        )
        for unit in line.identifiers:
            marks = []
            if unit.identifier_swapped:
                marks.append(f"was {unit.original_imei or unit.original_serial_number}")
            if unit.catalog_entry_swapped:
                marks.append(f"now {unit.catalog_entry_name}")
            suffix = f"  ({'; '.join(marks)})" if marks else ""
            click.echo(
                f"      #{unit.id} {unit.imei or unit.serial_number}  {unit.status}{suffix}"
            )


@click.command("add-line")
@click.option("--id", "delivery_id", required=True, type=int, help="Delivery ID.")
@click.option("--entry", "entry_id", required=True, type=int, help="Product version ID.")
@click.option("--quantity", required=True, type=int, help="Ordered quantity.")
@click.option("--price", required=True, help="Purchase price per unit (e.g. 199.00).")
@click.option("--imei", "imeis", multiple=True, help="IMEI of a received unit (repeatable).")
@click.option("--serial", "serials", multiple=True, help="Serial of a received unit (repeatable).")
def delivery_add_line(
    delivery_id: int,
    entry_id: int,
    quantity: int,
    price: str,
    imeis: tuple[str, ...],
    serials: tuple[str, ...],
) -> None:
    """Add a line to a concept delivery and register its stock."""
    seeds = [TrackedUnitSeed(imei=v) for v in imeis]
    seeds += [TrackedUnitSeed(serial_number=v) for v in serials]

    handler = AddDeliveryLineHandler(uow=unit_of_work())

    try:
        line = handler.handle(
            delivery_id=delivery_id,
            catalog_entry_id=entry_id,
            quantity=quantity,
            unit_price=price,
            seeds=seeds,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Line added: {line.quantity} x {line.catalog_entry_name} at {line.unit_price}"
        f"  (total {line.line_total})"
    )
    for unit in line.identifiers:
        click.echo(f"  registered #{unit.id} {unit.imei or unit.serial_number}")


@click.command("book")
@click.option("--id", "delivery_id", required=True, type=int, help="Delivery ID.")
def delivery_book(delivery_id: int) -> None:
    """Book a delivery (asks for damage assessment if it has tracked units)."""
    handler = BookDeliveryHandler(uow=unit_of_work())

    try:
        result = handler.handle(delivery_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.assessment_required:
        click.echo(f"Delivery {result.delivery_number} booked.")
        return

    click.echo(f"Delivery {result.delivery_number} needs a damage assessment:")
    for unit in result.pending_identifiers:
        click.echo(f"  #{unit.id} {unit.imei or unit.serial_number}  {unit.catalog_entry_name or ''}")
    click.echo(f"Run: ims delivery assess --id {result.delivery_id} --ok ID ... --damaged ID:description ...")


@click.command("assess")
@click.option("--id", "delivery_id", required=True, type=int, help="Delivery ID.")
@click.option("--ok", "ok_ids", multiple=True, type=int, help="Unit received intact (repeatable).")
@click.option("--damaged", multiple=True, help="Damaged unit as 'ID' or 'ID:description' (repeatable).")
def delivery_assess(delivery_id: int, ok_ids: tuple[int, ...], damaged: tuple[str, ...]) -> None:
    """Record the damage assessment and book the delivery."""
    decisions = [DamageDecision(i, damaged=False) for i in ok_ids]
    decisions += _parse_damaged(damaged)

    handler = SubmitDamageAssessmentHandler(uow=unit_of_work())

    try:
        result = handler.handle(delivery_id, decisions)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Delivery {result.delivery_number} booked: {len(result.in_stock_ids)} in stock, "
        f"{len(result.damaged_ids)} defective at delivery."
    )


@click.command("dispose")
@click.option("--id", "identifier_ids", required=True, multiple=True, type=int, help="Unit ID (repeatable).")
@click.option(
    "--action",
    required=True,
    type=click.Choice(["return_to_supplier", "mark_as_clearance", "write_off"]),
    help="What to do with the damaged units.",
)
@click.option("--price", default=None, help="Clearance price (mark_as_clearance only).")
@click.option("--reason", default=None, help="Clearance reason (mark_as_clearance only).")
@click.option("--actor", default=None, help="Operator name (defaults to IMS_DEFAULT_ACTOR).")
def delivery_dispose(
    identifier_ids: tuple[int, ...],
    action: str,
    price: str | None,
    reason: str | None,
    actor: str | None,
) -> None:
    """Resolve units that were defective at delivery."""
    handler = DisposeDamagedUnitsHandler(uow=unit_of_work())

    try:
        outcomes = handler.handle(
            list(identifier_ids),
            action,
            actor=actor or settings().default_actor,
            clearance_price=price,
            clearance_reason=reason,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    for outcome in outcomes:
        flag = "  (clearance)" if outcome.is_clearance else ""
        click.echo(f"Unit #{outcome.identifier_id}: {outcome.old_status} -> {outcome.new_status}{flag}")
