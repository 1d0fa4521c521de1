"""Abstract repository for the DeviceIdentifier aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.device import DeviceIdentifier, DeviceStatus


class DeviceRepository(ABC):

    @abstractmethod
    def get_by_id(self, identifier_id: int, lock: bool = False) -> DeviceIdentifier | None:
        """Return an identifier, or None.

        With ``lock`` the row stays locked until the unit of work ends, so a
        concurrent mutation of the same unit waits instead of racing.
        """

    @abstractmethod
    def list_by_delivery(self, delivery_id: int) -> list[DeviceIdentifier]:
        """Every identifier received on a delivery, oldest first."""

    @abstractmethod
    def list_by_catalog_entry(self, entry_id: int) -> list[DeviceIdentifier]:
        """Identifiers currently assigned to a catalog entry, newest first."""

    @abstractmethod
    def search(
        self,
        text: str | None = None,
        catalog_entry_id: int | None = None,
        status: DeviceStatus | None = None,
    ) -> list[DeviceIdentifier]:
        """Substring match on imei/serial plus optional filters, newest ID first."""

    @abstractmethod
    def count_by_catalog_entry(self) -> dict[int, tuple[int, int]]:
        """Map catalog entry ID -> (total identifiers, identifiers in stock)."""

    @abstractmethod
    def identifier_in_use(
        self,
        imei: str | None,
        serial_number: str | None,
        exclude_id: int | None = None,
    ) -> bool:
        """True if another identifier already carries this imei or serial number."""

    @abstractmethod
    def save(self, device: DeviceIdentifier) -> None:
        """Persist a new or updated identifier.  New ones get their ID assigned."""
