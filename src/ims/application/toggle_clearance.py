"""Application service: Toggle Clearance use case."""

from __future__ import annotations

from decimal import Decimal

from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.history import ClearanceChange
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.logging_config import get_logger

logger = get_logger("application.toggle_clearance")


class ToggleClearanceHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        identifier_id: int,
        actor: str,
        clearance_price: str | Decimal | None = None,
        clearance_reason: str | None = None,
        remove: bool = False,
        note: str | None = None,
    ) -> ClearanceChange:
        """Flip the clearance flag of an in-stock unit.

        A call without ``remove`` toggles: on when off, off when on.  With
        ``remove`` the flag always ends up off.
        """
        with self._uow:
            device = self._uow.devices.get_by_id(identifier_id, lock=True)
            if device is None:
                raise EntityNotFoundError(
                    f"Identifier #{identifier_id} not found", identifier_id=identifier_id
                )

            change = device.toggle_clearance(
                actor,
                clearance_price=clearance_price,
                clearance_reason=clearance_reason,
                remove=remove,
                note=note,
            )
            self._uow.devices.save(device)
            recorded = self._uow.ledger.append(change)

        logger.info(
            "device_clearance_changed",
            extra={
                "identifier_id": identifier_id,
                "is_clearance": change.new_is_clearance,
                "clearance_price": change.new_clearance_price,
                "actor": actor,
            },
        )
        return recorded  # type: ignore[return-value]
