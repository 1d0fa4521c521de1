"""Abstract repository for the Delivery aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.delivery import Delivery


class DeliveryRepository(ABC):

    @abstractmethod
    def next_delivery_number(self) -> str:
        """Allocate the next ``WS####`` number.

        The allocation belongs to the current unit of work: it is only
        consumed if that unit of work commits.
        """

    @abstractmethod
    def get_by_id(self, delivery_id: int, lock: bool = False) -> Delivery | None:
        """Return a delivery with its lines, or None.

        With ``lock`` the delivery row stays locked until the unit of work
        ends, so status checks and the writes that depend on them see the
        same delivery state.
        """

    @abstractmethod
    def list_all(self) -> list[Delivery]:
        """Every delivery, newest delivery date first."""

    @abstractmethod
    def save(self, delivery: Delivery) -> None:
        """Persist the delivery and any lines added since it was loaded."""
