"""Application service: Create Delivery use case."""

from __future__ import annotations

from datetime import date

from ims.application.dto import DeliveryDTO, delivery_to_dto
from ims.domain.model.delivery import Delivery
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.logging_config import get_logger

logger = get_logger("application.create_delivery")


class CreateDeliveryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, delivery_date: date, supplier: str | None = None) -> DeliveryDTO:
        """Register a new concept delivery.

        The ``WS####`` number is allocated inside the same unit of work
        that inserts the delivery, so a failed insert gives it back.
        """
        with self._uow:
            number = self._uow.deliveries.next_delivery_number()
            delivery = Delivery.create(number, delivery_date, supplier)
            self._uow.deliveries.save(delivery)

        logger.info(
            "delivery_created",
            extra={"delivery_id": delivery.id, "delivery_number": delivery.delivery_number},
        )
        return delivery_to_dto(delivery)
