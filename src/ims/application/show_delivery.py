"""Application service: Show Delivery use case (query).

Tracked lines list the units received on them: units of this delivery
whose *original* product version is the line's, so a unit moved to
another product version afterwards still shows up, flagged as swapped.
"""

from __future__ import annotations

from dataclasses import dataclass

from ims.application.dto import (
    DeliveryDTO,
    DeliveryLineDTO,
    delivery_to_dto,
    device_to_dto,
)
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.repository.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class DeliveryDetailDTO:
    delivery: DeliveryDTO
    lines: list[DeliveryLineDTO]


class ShowDeliveryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, delivery_id: int) -> DeliveryDetailDTO:
        with self._uow:
            delivery = self._uow.deliveries.get_by_id(delivery_id)
            if delivery is None:
                raise EntityNotFoundError(
                    f"Delivery #{delivery_id} not found", delivery_id=delivery_id
                )
            entries = {e.id: e for e in self._uow.catalog.list_all()}
            devices = self._uow.devices.list_by_delivery(delivery_id)

        lines = []
        for line in delivery.lines:
            entry = entries.get(line.catalog_entry_id)
            tracked = entry is not None and entry.tracking_mode.is_tracked
            received = [
                device_to_dto(
                    d,
                    entries[d.catalog_entry_id].name if d.catalog_entry_id in entries else None,
                )
                for d in devices
                if tracked and d.original_catalog_entry_id == line.catalog_entry_id
            ]
            lines.append(
                DeliveryLineDTO(
                    id=line.id,  # type: ignore[arg-type]
                    catalog_entry_id=line.catalog_entry_id,
                    catalog_entry_name=entry.name if entry else "",
                    tracking_mode=entry.tracking_mode.value if entry else "",
                    quantity=line.quantity.value,
                    unit_price=str(line.unit_price),
                    line_total=str(line.line_total),
                    identifiers=received,
                )
            )
        return DeliveryDetailDTO(delivery=delivery_to_dto(delivery), lines=lines)
