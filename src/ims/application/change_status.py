"""Application service: Change Status use case.

The generic status-correction path used by operators.  Any status may
move to any status; the only rule is that the move is recorded.
"""

from __future__ import annotations

from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.history import StatusChange
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.logging_config import get_logger

logger = get_logger("application.change_status")


class ChangeStatusHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        identifier_id: int,
        new_status: str,
        actor: str,
        note: str | None = None,
    ) -> StatusChange:
        with self._uow:
            device = self._uow.devices.get_by_id(identifier_id, lock=True)
            if device is None:
                raise EntityNotFoundError(
                    f"Identifier #{identifier_id} not found", identifier_id=identifier_id
                )

            change = device.change_status(new_status, actor=actor, note=note)

            self._uow.devices.save(device)
            recorded = self._uow.ledger.append(change)

        logger.info(
            "device_status_changed",
            extra={
                "identifier_id": identifier_id,
                "old_status": change.old_status,
                "new_status": change.new_status,
                "actor": actor,
            },
        )
        return recorded  # type: ignore[return-value]
