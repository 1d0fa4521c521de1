"""Application service: Book Delivery use case.

A delivery with only untracked lines is booked on the spot.  As soon as
one line is tracked per unit, booking waits for a damage assessment of
every unit on the delivery (see SubmitDamageAssessmentHandler).
"""

from __future__ import annotations

from ims.application.dto import BookingResultDTO, device_to_dto
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.logging_config import get_logger

logger = get_logger("application.book_delivery")


class BookDeliveryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, delivery_id: int) -> BookingResultDTO:
        with self._uow:
            delivery = self._uow.deliveries.get_by_id(delivery_id, lock=True)
            if delivery is None:
                raise EntityNotFoundError(
                    f"Delivery #{delivery_id} not found", delivery_id=delivery_id
                )
            delivery.ensure_bookable()

            entries = {e.id: e for e in self._uow.catalog.list_all()}
            tracked = any(
                entries[line.catalog_entry_id].tracking_mode.is_tracked
                for line in delivery.lines
                if line.catalog_entry_id in entries
            )

            if tracked:
                pending = self._uow.devices.list_by_delivery(delivery_id)
            else:
                delivery.book()
                self._uow.deliveries.save(delivery)

        if tracked:
            logger.info(
                "delivery_awaiting_assessment",
                extra={"delivery_id": delivery_id, "pending_units": len(pending)},
            )
            return BookingResultDTO(
                delivery_id=delivery_id,
                delivery_number=delivery.delivery_number,
                status=delivery.status.value,
                assessment_required=True,
                pending_identifiers=[
                    device_to_dto(
                        d,
                        entries[d.catalog_entry_id].name
                        if d.catalog_entry_id in entries
                        else None,
                    )
                    for d in pending
                ],
            )

        logger.info("delivery_booked", extra={"delivery_id": delivery_id})
        return BookingResultDTO(
            delivery_id=delivery_id,
            delivery_number=delivery.delivery_number,
            status=delivery.status.value,
            assessment_required=False,
        )
