"""Application service: Change Identifier Value use case.

Re-tags a physical unit with a new IMEI or serial number (e.g. after a
warranty swap).  The originals recorded at intake stay untouched.
"""

from __future__ import annotations

from ims.domain.exceptions import DuplicateIdentifierError, EntityNotFoundError
from ims.domain.model.history import IdentifierChange
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.logging_config import get_logger

logger = get_logger("application.change_identifier")


class ChangeIdentifierHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        identifier_id: int,
        actor: str,
        new_imei: str | None = None,
        new_serial_number: str | None = None,
        note: str | None = None,
    ) -> IdentifierChange:
        """Swap the identifier value.

        Steps:
        1. Load the unit and its catalog entry (tracking mode).
        2. Let the aggregate validate status, no-op, required field.
        3. Check the new value against every other identifier.
        4. Apply, persist, and append the IdentifierChange.
        """
        with self._uow:
            device = self._uow.devices.get_by_id(identifier_id, lock=True)
            if device is None:
                raise EntityNotFoundError(
                    f"Identifier #{identifier_id} not found", identifier_id=identifier_id
                )
            entry = self._uow.catalog.get_by_id(device.catalog_entry_id)
            if entry is None:
                raise EntityNotFoundError(
                    f"Product version #{device.catalog_entry_id} not found",
                    catalog_entry_id=device.catalog_entry_id,
                )

            imei, serial_number = device.plan_retag(
                entry.tracking_mode, new_imei, new_serial_number
            )
            if self._uow.devices.identifier_in_use(imei, serial_number, exclude_id=device.id):
                raise DuplicateIdentifierError(
                    "One of the new values already exists on another identifier",
                    imei=imei,
                    serial_number=serial_number,
                    identifier_id=device.id,
                )

            change = device.retag(
                entry.tracking_mode, imei, serial_number, actor=actor, note=note
            )
            self._uow.devices.save(device)
            recorded = self._uow.ledger.append(change)

        logger.info(
            "device_identifier_changed",
            extra={
                "identifier_id": identifier_id,
                "old_imei": change.old_imei,
                "new_imei": change.new_imei,
                "old_serial_number": change.old_serial_number,
                "new_serial_number": change.new_serial_number,
                "actor": actor,
            },
        )
        return recorded  # type: ignore[return-value]
