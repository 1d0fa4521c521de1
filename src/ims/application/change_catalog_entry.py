"""Application service: Change Catalog Entry use case.

Moves a unit to another product version with the same tracking mode.
The original product version stays recorded on the unit.
"""

from __future__ import annotations

from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.history import ProductVersionChange
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.logging_config import get_logger

logger = get_logger("application.change_catalog_entry")


class ChangeCatalogEntryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        identifier_id: int,
        new_catalog_entry_id: int,
        actor: str,
        note: str | None = None,
    ) -> ProductVersionChange:
        with self._uow:
            device = self._uow.devices.get_by_id(identifier_id, lock=True)
            if device is None:
                raise EntityNotFoundError(
                    f"Identifier #{identifier_id} not found", identifier_id=identifier_id
                )
            device.ensure_can_move_to(new_catalog_entry_id)

            target = self._uow.catalog.get_by_id(new_catalog_entry_id)
            if target is None:
                raise EntityNotFoundError(
                    f"Product version #{new_catalog_entry_id} does not exist",
                    catalog_entry_id=new_catalog_entry_id,
                )
            current = self._uow.catalog.get_by_id(device.catalog_entry_id)
            if current is None:
                raise EntityNotFoundError(
                    f"Product version #{device.catalog_entry_id} not found",
                    catalog_entry_id=device.catalog_entry_id,
                )

            change = device.change_catalog_entry(current, target, actor=actor, note=note)
            self._uow.devices.save(device)
            recorded = self._uow.ledger.append(change)

        logger.info(
            "device_catalog_entry_changed",
            extra={
                "identifier_id": identifier_id,
                "old_catalog_entry_id": change.old_catalog_entry_id,
                "new_catalog_entry_id": change.new_catalog_entry_id,
                "actor": actor,
            },
        )
        return recorded  # type: ignore[return-value]
