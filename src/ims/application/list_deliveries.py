"""Application service: List Deliveries use case (query)."""

from __future__ import annotations

from ims.application.dto import DeliveryDTO, delivery_to_dto
from ims.domain.repository.unit_of_work import UnitOfWork


class ListDeliveriesHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[DeliveryDTO]:
        with self._uow:
            deliveries = self._uow.deliveries.list_all()
        return [delivery_to_dto(d) for d in deliveries]
