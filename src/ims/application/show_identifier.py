"""Application service: Show Identifier use case (query).

Returns one unit with everything an operator needs to judge it: the
current product version and tracking mode, the delivery it came in on,
and all four audit trails, newest first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from ims.application.dto import DeviceIdentifierDTO, device_to_dto
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.history import ClearanceChange, IdentifierChange, StatusChange
from ims.domain.repository.unit_of_work import UnitOfWork


@dataclass(frozen=True)
class ProductVersionChangeDTO:
    old_catalog_entry_id: int
    old_name: str | None
    new_catalog_entry_id: int
    new_name: str | None
    changed_by: str
    note: str | None
    created_at: datetime


@dataclass(frozen=True)
class IdentifierDetailDTO:
    identifier: DeviceIdentifierDTO
    tracking_mode: str
    delivery_number: str | None
    supplier: str | None
    delivery_date: date | None
    status_history: list[StatusChange]
    identifier_history: list[IdentifierChange]
    product_version_history: list[ProductVersionChangeDTO]
    clearance_history: list[ClearanceChange]


class ShowIdentifierHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, identifier_id: int) -> IdentifierDetailDTO:
        with self._uow:
            device = self._uow.devices.get_by_id(identifier_id)
            if device is None:
                raise EntityNotFoundError(
                    f"Identifier #{identifier_id} not found", identifier_id=identifier_id
                )
            entries = {e.id: e for e in self._uow.catalog.list_all()}
            delivery = (
                self._uow.deliveries.get_by_id(device.delivery_id)
                if device.delivery_id is not None
                else None
            )
            ledger = self._uow.ledger
            status_history = ledger.status_history(identifier_id)
            identifier_history = ledger.identifier_history(identifier_id)
            version_history = ledger.product_version_history(identifier_id)
            clearance_history = ledger.clearance_history(identifier_id)

        entry = entries.get(device.catalog_entry_id)

        def _name(entry_id: int) -> str | None:
            found = entries.get(entry_id)
            return found.name if found is not None else None

        return IdentifierDetailDTO(
            identifier=device_to_dto(device, entry.name if entry else None),
            tracking_mode=entry.tracking_mode.value if entry else "",
            delivery_number=delivery.delivery_number if delivery else None,
            supplier=delivery.supplier if delivery else None,
            delivery_date=delivery.delivery_date if delivery else None,
            status_history=status_history,
            identifier_history=identifier_history,
            product_version_history=[
                ProductVersionChangeDTO(
                    old_catalog_entry_id=c.old_catalog_entry_id,
                    old_name=_name(c.old_catalog_entry_id),
                    new_catalog_entry_id=c.new_catalog_entry_id,
                    new_name=_name(c.new_catalog_entry_id),
                    changed_by=c.changed_by,
                    note=c.note,
                    created_at=c.created_at,
                )
                for c in version_history
            ],
            clearance_history=clearance_history,
        )
