"""Application service: Submit Damage Assessment use case.

Resolves the intake status of every unit on a delivery and books the
delivery, all in one unit of work.

The decision set has to cover the delivery exactly: every unit decided
once, nothing outside the delivery.  Anything else is rejected before a
single unit is touched.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass

from ims.application.dto import DamageDecision
from ims.domain.exceptions import (
    EntityNotFoundError,
    IncompleteAssessmentError,
    ValidationError,
)
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.logging_config import get_logger

logger = get_logger("application.submit_damage_assessment")

SYSTEM_ACTOR = "system"


@dataclass(frozen=True)
class AssessmentResultDTO:
    delivery_id: int
    delivery_number: str
    status: str
    in_stock_ids: list[int]
    damaged_ids: list[int]


class SubmitDamageAssessmentHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        delivery_id: int,
        decisions: list[DamageDecision],
        actor: str = SYSTEM_ACTOR,
    ) -> AssessmentResultDTO:
        with self._uow:
            delivery = self._uow.deliveries.get_by_id(delivery_id, lock=True)
            if delivery is None:
                raise EntityNotFoundError(
                    f"Delivery #{delivery_id} not found", delivery_id=delivery_id
                )
            delivery.ensure_bookable()

            devices = {d.id: d for d in self._uow.devices.list_by_delivery(delivery_id)}
            by_id = self._validate_coverage(delivery_id, devices.keys(), decisions)

            in_stock: list[int] = []
            damaged: list[int] = []
            for identifier_id, device in devices.items():
                decision = by_id[identifier_id]
                change = device.record_assessment(
                    decision.damaged, decision.description, actor=actor
                )
                self._uow.devices.save(device)
                self._uow.ledger.append(change)
                (damaged if decision.damaged else in_stock).append(identifier_id)  # type: ignore[arg-type]

            delivery.book()
            self._uow.deliveries.save(delivery)

        logger.info(
            "damage_assessment_submitted",
            extra={
                "delivery_id": delivery_id,
                "in_stock": len(in_stock),
                "damaged": len(damaged),
            },
        )
        return AssessmentResultDTO(
            delivery_id=delivery_id,
            delivery_number=delivery.delivery_number,
            status=delivery.status.value,
            in_stock_ids=in_stock,
            damaged_ids=damaged,
        )

    @staticmethod
    def _validate_coverage(delivery_id, identifier_ids, decisions) -> dict[int, DamageDecision]:
        counts = Counter(d.identifier_id for d in decisions)
        repeated = sorted(i for i, n in counts.items() if n > 1)
        if repeated:
            raise ValidationError(
                f"Identifiers decided more than once: {repeated}",
                identifier_ids=repeated,
            )

        known = set(identifier_ids)
        unknown = sorted(set(counts) - known)
        if unknown:
            raise EntityNotFoundError(
                f"Identifiers not part of delivery #{delivery_id}: {unknown}",
                delivery_id=delivery_id,
                identifier_ids=unknown,
            )

        missing = sorted(known - set(counts))
        if missing:
            raise IncompleteAssessmentError(
                f"No assessment for identifiers: {missing}",
                delivery_id=delivery_id,
                identifier_ids=missing,
            )
        return {d.identifier_id: d for d in decisions}
