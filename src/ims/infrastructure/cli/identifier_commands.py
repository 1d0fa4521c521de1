"""CLI commands for individually tracked units."""

from __future__ import annotations

import click

from ims.application.change_catalog_entry import ChangeCatalogEntryHandler
from ims.application.change_identifier import ChangeIdentifierHandler
from ims.application.change_status import ChangeStatusHandler
from ims.application.search_identifiers import SearchIdentifiersHandler
from ims.application.show_identifier import ShowIdentifierHandler
from ims.application.toggle_clearance import ToggleClearanceHandler
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import settings, unit_of_work

_actor_option = click.option(
    "--actor", default=None, help="Operator name (defaults to IMS_DEFAULT_ACTOR)."
)


def _actor(value: str | None) -> str:
    return value or settings().default_actor


@click.command("search")
@click.option("--text", "search", default=None, help="Part of an IMEI or serial number.")
@click.option("--entry", "entry_id", default=None, type=int, help="Product version ID.")
@click.option("--status", default=None, help="Only units with this status.")
def identifier_search(search: str | None, entry_id: int | None, status: str | None) -> None:
    """Find units by IMEI or serial number."""
    handler = SearchIdentifiersHandler(uow=unit_of_work())

    try:
        results = handler.handle(search=search, catalog_entry_id=entry_id, status=status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not results:
        click.echo("No units found.")
        return

    click.echo(f"{'ID':<6} {'Identifier':<20} {'Product version':<30} {'Status':<22} Flags")
    click.echo("-" * 90)
    for d in results:
        flags = []
        if d.is_clearance:
            flags.append("clearance")
        if d.identifier_swapped:
            flags.append("retagged")
        if d.catalog_entry_swapped:
            flags.append("moved")
        click.echo(
            f"{d.id:<6} {d.imei or d.serial_number or '-':<20} "
            f"{d.catalog_entry_name or '-':<30} {d.status:<22} {','.join(flags)}"
        )


@click.command("show")
@click.option("--id", "identifier_id", required=True, type=int, help="Unit ID.")
def identifier_show(identifier_id: int) -> None:
    """Show a unit with its full audit trail."""
    handler = ShowIdentifierHandler(uow=unit_of_work())

    try:
        detail = handler.handle(identifier_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    d = detail.identifier
    click.echo(f"Unit #{d.id}  (status={d.status})")
    click.echo(f"Product version: {d.catalog_entry_name or '-'} [{detail.tracking_mode}]")
    if d.imei or d.original_imei:
        click.echo(f"IMEI:     {d.imei or '-'}  (original {d.original_imei or '-'})")
    if d.serial_number or d.original_serial_number:
        click.echo(f"Serial:   {d.serial_number or '-'}  (original {d.original_serial_number or '-'})")
    if detail.delivery_number:
        click.echo(
            f"Delivery: {detail.delivery_number} {detail.delivery_date} {detail.supplier or ''}"
        )
    if d.purchase_price:
        click.echo(f"Purchase price: {d.purchase_price}")
    if d.is_clearance:
        click.echo(f"Clearance: {d.clearance_price or '-'} {d.clearance_reason or ''}")
    if d.received_damaged:
        click.echo(f"Received damaged: {d.damage_description or '-'}")

    click.echo()
    click.echo("Status history:")
    for h in detail.status_history:
        click.echo(
            f"  {h.created_at:%Y-%m-%d %H:%M:%S} {h.old_status or '-'} -> {h.new_status}"
            f"  by {h.changed_by}  {h.note or ''}"
        )
    if detail.identifier_history:
        click.echo("Identifier history:")
    for h in detail.identifier_history:
        click.echo(
            f"  {h.created_at:%Y-%m-%d %H:%M:%S} "
            f"{h.old_imei or h.old_serial_number} -> {h.new_imei or h.new_serial_number}"
            f"  by {h.changed_by}  {h.note or ''}"
        )
    if detail.product_version_history:
        click.echo("Product version history:")
    for h in detail.product_version_history:
        click.echo(
            f"  {h.created_at:%Y-%m-%d %H:%M:%S} {h.old_name} -> {h.new_name}"
            f"  by {h.changed_by}  {h.note or ''}"
        )
    if detail.clearance_history:
        click.echo("Clearance history:")
    for h in detail.clearance_history:
        state = "on" if h.new_is_clearance else "off"
        click.echo(
            f"  {h.created_at:%Y-%m-%d %H:%M:%S} clearance {state} "
            f"{h.new_clearance_price or ''}  by {h.changed_by}  {h.note or ''}"
        )


@click.command("status")
@click.option("--id", "identifier_id", required=True, type=int, help="Unit ID.")
@click.option("--to", "new_status", required=True, help="New status.")
@click.option("--note", default=None, help="Reason for the change.")
@_actor_option
def identifier_status(identifier_id: int, new_status: str, note: str | None, actor: str | None) -> None:
    """Set the status of a unit."""
    handler = ChangeStatusHandler(uow=unit_of_work())

    try:
        change = handler.handle(identifier_id, new_status, actor=_actor(actor), note=note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Unit #{identifier_id}: {change.old_status} -> {change.new_status}")


@click.command("retag")
@click.option("--id", "identifier_id", required=True, type=int, help="Unit ID.")
@click.option("--imei", default=None, help="New IMEI.")
@click.option("--serial", "serial_number", default=None, help="New serial number.")
@click.option("--note", default=None, help="Reason for the change.")
@_actor_option
def identifier_retag(
    identifier_id: int,
    imei: str | None,
    serial_number: str | None,
    note: str | None,
    actor: str | None,
) -> None:
    """Replace the IMEI or serial number of an in-stock unit."""
    handler = ChangeIdentifierHandler(uow=unit_of_work())

    try:
        change = handler.handle(
            identifier_id,
            actor=_actor(actor),
            new_imei=imei,
            new_serial_number=serial_number,
            note=note,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Unit #{identifier_id}: {change.old_imei or change.old_serial_number} -> "
        f"{change.new_imei or change.new_serial_number}"
    )


@click.command("move")
@click.option("--id", "identifier_id", required=True, type=int, help="Unit ID.")
@click.option("--to", "entry_id", required=True, type=int, help="Target product version ID.")
@click.option("--note", default=None, help="Reason for the change.")
@_actor_option
def identifier_move(identifier_id: int, entry_id: int, note: str | None, actor: str | None) -> None:
    """Reassign an in-stock unit to another product version."""
    handler = ChangeCatalogEntryHandler(uow=unit_of_work())

    try:
        change = handler.handle(identifier_id, entry_id, actor=_actor(actor), note=note)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Unit #{identifier_id} moved from product version "
        f"#{change.old_catalog_entry_id} to #{change.new_catalog_entry_id}"
    )


@click.command("clearance")
@click.option("--id", "identifier_id", required=True, type=int, help="Unit ID.")
@click.option("--price", default=None, help="Clearance price (e.g. 49.95).")
@click.option("--reason", default=None, help="Why the unit is on clearance.")
@click.option("--remove", is_flag=True, default=False, help="Always turn clearance off.")
@click.option("--note", default=None, help="Note for the audit trail.")
@_actor_option
def identifier_clearance(
    identifier_id: int,
    price: str | None,
    reason: str | None,
    remove: bool,
    note: str | None,
    actor: str | None,
) -> None:
    """Toggle the clearance flag of an in-stock unit."""
    handler = ToggleClearanceHandler(uow=unit_of_work())

    try:
        change = handler.handle(
            identifier_id,
            actor=_actor(actor),
            clearance_price=price,
            clearance_reason=reason,
            remove=remove,
            note=note,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if change.new_is_clearance:
        click.echo(f"Unit #{identifier_id} is now on clearance.")
    else:
        click.echo(f"Unit #{identifier_id} is no longer on clearance.")
