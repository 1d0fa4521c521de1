import click

from ims.infrastructure.bootstrap import init_logging
from ims.infrastructure.cli.catalog_commands import (
    catalog_add,
    catalog_list,
    catalog_show,
    catalog_update,
)
from ims.infrastructure.cli.delivery_commands import (
    delivery_add_line,
    delivery_assess,
    delivery_book,
    delivery_create,
    delivery_dispose,
    delivery_list,
    delivery_show,
)
from ims.infrastructure.cli.identifier_commands import (
    identifier_clearance,
    identifier_move,
    identifier_retag,
    identifier_search,
    identifier_show,
    identifier_status,
)
from ims.infrastructure.cli.stock_commands import stock_adjust, stock_overview


@click.group()
def cli() -> None:
    """IMS — Inventory Management for phone and accessory stock"""
    init_logging()


@cli.group()
def catalog() -> None:
    """Manage product versions."""


@cli.group()
def stock() -> None:
    """Inspect and adjust stock levels."""


@cli.group()
def identifier() -> None:
    """Manage individually tracked units."""


@cli.group()
def delivery() -> None:
    """Receive supplier deliveries."""


# Register subcommands
catalog.add_command(catalog_add)
catalog.add_command(catalog_list)
catalog.add_command(catalog_show)
catalog.add_command(catalog_update)
stock.add_command(stock_adjust)
stock.add_command(stock_overview)
identifier.add_command(identifier_clearance)
identifier.add_command(identifier_move)
identifier.add_command(identifier_retag)
identifier.add_command(identifier_search)
identifier.add_command(identifier_show)
identifier.add_command(identifier_status)
delivery.add_command(delivery_add_line)
delivery.add_command(delivery_assess)
delivery.add_command(delivery_book)
delivery.add_command(delivery_create)
delivery.add_command(delivery_dispose)
delivery.add_command(delivery_list)
delivery.add_command(delivery_show)
