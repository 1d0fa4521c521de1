"""Application service: Disposition of Damaged Units use case.

Resolves units that arrived damaged: back to the supplier, into stock
as clearance, or written off.  The whole batch is validated before any
unit is changed and runs in one unit of work, so it either applies to
every listed unit or to none.
"""

from __future__ import annotations

from decimal import Decimal

from ims.application.dto import DispositionOutcomeDTO
from ims.domain.exceptions import (
    EntityNotFoundError,
    InvalidStateError,
    MissingRequiredFieldError,
)
from ims.domain.model.device import DeviceStatus, DispositionAction
from ims.domain.model.value_objects import Money
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.logging_config import get_logger

logger = get_logger("application.dispose_damaged_units")


class DisposeDamagedUnitsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        identifier_ids: list[int],
        action: str,
        actor: str,
        clearance_price: str | Decimal | None = None,
        clearance_reason: str | None = None,
    ) -> list[DispositionOutcomeDTO]:
        """Apply *action* to every listed unit.

        Steps:
        1. Parse the action and price (nothing loaded yet).
        2. Load every unit; fail listing all missing IDs.
        3. Fail listing every unit not in ``defective_at_delivery``.
        4. Dispose each unit and append its audit records.
        """
        disposition = DispositionAction.parse(action)
        price = None
        if clearance_price is not None and disposition is DispositionAction.MARK_AS_CLEARANCE:
            price = Money.positive(clearance_price, "clearance_price")

        ids = list(dict.fromkeys(identifier_ids))
        if not ids:
            raise MissingRequiredFieldError(
                "Select at least one identifier", field="identifier_ids"
            )

        outcomes: list[DispositionOutcomeDTO] = []
        with self._uow:
            loaded = {i: self._uow.devices.get_by_id(i, lock=True) for i in ids}

            missing = [i for i, d in loaded.items() if d is None]
            if missing:
                raise EntityNotFoundError(
                    f"Identifiers not found: {missing}", identifier_ids=missing
                )
            wrong_state = {
                i: d.status.value
                for i, d in loaded.items()
                if d.status is not DeviceStatus.DEFECTIVE_AT_DELIVERY  # type: ignore[union-attr]
            }
            if wrong_state:
                raise InvalidStateError(
                    f"Identifiers not defective at delivery: {sorted(wrong_state)}",
                    identifier_ids=sorted(wrong_state),
                    statuses=wrong_state,
                )

            for identifier_id, device in loaded.items():
                status_change, clearance_change = device.dispose(  # type: ignore[union-attr]
                    disposition,
                    actor=actor,
                    clearance_price=price,
                    clearance_reason=clearance_reason,
                )
                self._uow.devices.save(device)  # type: ignore[arg-type]
                self._uow.ledger.append(status_change)
                if clearance_change is not None:
                    self._uow.ledger.append(clearance_change)
                outcomes.append(
                    DispositionOutcomeDTO(
                        identifier_id=identifier_id,
                        old_status=status_change.old_status,  # type: ignore[arg-type]
                        new_status=status_change.new_status,
                        is_clearance=device.is_clearance,  # type: ignore[union-attr]
                    )
                )

        logger.info(
            "damaged_units_disposed",
            extra={"action": disposition.value, "count": len(outcomes), "actor": actor},
        )
        return outcomes
