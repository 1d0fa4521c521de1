"""Application service: Add Delivery Line use case.

Registers what arrived on a delivery.  Untracked product versions go
straight into bulk stock through the BulkStockLedger; tracked ones get
one DeviceIdentifier per physical unit, pending damage assessment until
the delivery is booked.
"""

from __future__ import annotations

from decimal import Decimal

from ims.application.dto import DeliveryLineDTO, TrackedUnitSeed, device_to_dto
from ims.domain.exceptions import DuplicateIdentifierError, EntityNotFoundError
from ims.domain.model.catalog import CatalogEntry
from ims.domain.model.device import DeviceIdentifier
from ims.domain.model.value_objects import Money, Quantity
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.bulk_stock_ledger import BulkStockLedger
from ims.logging_config import get_logger

logger = get_logger("application.add_delivery_line")

SYSTEM_ACTOR = "system"
DELIVERY_NOTE = "Delivery booking"


class AddDeliveryLineHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        delivery_id: int,
        catalog_entry_id: int,
        quantity: int,
        unit_price: str | Decimal,
        seeds: list[TrackedUnitSeed] | None = None,
    ) -> DeliveryLineDTO:
        """Add a line and register its stock.

        Seeds without any imei or serial are skipped; every other seed
        must carry the value the product version is tracked by.
        """
        price = Money.positive(unit_price, "unit_price")
        qty = Quantity(quantity)

        with self._uow:
            delivery = self._uow.deliveries.get_by_id(delivery_id, lock=True)
            if delivery is None:
                raise EntityNotFoundError(
                    f"Delivery #{delivery_id} not found", delivery_id=delivery_id
                )
            entry = self._uow.catalog.get_by_id(catalog_entry_id)
            if entry is None:
                raise EntityNotFoundError(
                    f"Product version #{catalog_entry_id} not found",
                    catalog_entry_id=catalog_entry_id,
                )

            line = delivery.add_line(catalog_entry_id, qty, price)
            devices: list[DeviceIdentifier] = []

            if entry.tracking_mode.is_tracked:
                devices = self._register_units(entry, delivery_id, price, seeds or [])
                for device in devices:
                    self._uow.devices.save(device)
            else:
                BulkStockLedger(self._uow.bulk_stock, self._uow.ledger).adjust(
                    catalog_entry_id, qty.value, actor=SYSTEM_ACTOR, note=DELIVERY_NOTE
                )

            self._uow.deliveries.save(delivery)

        logger.info(
            "delivery_line_added",
            extra={
                "delivery_id": delivery_id,
                "catalog_entry_id": catalog_entry_id,
                "quantity": qty.value,
                "units_registered": len(devices),
            },
        )
        return DeliveryLineDTO(
            id=line.id,  # type: ignore[arg-type]
            catalog_entry_id=entry.id,  # type: ignore[arg-type]
            catalog_entry_name=entry.name,
            tracking_mode=entry.tracking_mode.value,
            quantity=qty.value,
            unit_price=str(price),
            line_total=str(line.line_total),
            identifiers=[device_to_dto(d, entry.name) for d in devices],
        )

    def _register_units(
        self,
        entry: CatalogEntry,
        delivery_id: int,
        price: Money,
        seeds: list[TrackedUnitSeed],
    ) -> list[DeviceIdentifier]:
        """Build one identifier per usable seed, rejecting any duplicate value."""
        devices: list[DeviceIdentifier] = []
        seen: set[str] = set()

        for seed in seeds:
            if seed.is_blank:
                continue
            device = DeviceIdentifier.register(
                entry,
                imei=seed.imei,
                serial_number=seed.serial_number,
                delivery_id=delivery_id,
                purchase_price=price,
            )
            value = device.identifier_value
            if value in seen or self._uow.devices.identifier_in_use(
                device.imei, device.serial_number
            ):
                raise DuplicateIdentifierError(
                    f"Identifier {value} already exists",
                    imei=device.imei,
                    serial_number=device.serial_number,
                )
            seen.add(value)  # type: ignore[arg-type]
            devices.append(device)
        return devices
