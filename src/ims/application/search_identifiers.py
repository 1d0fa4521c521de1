"""Application service: Search Identifiers use case (query)."""

from __future__ import annotations

from ims.application.dto import DeviceIdentifierDTO, device_to_dto
from ims.domain.model.device import DeviceStatus
from ims.domain.repository.unit_of_work import UnitOfWork


class SearchIdentifiersHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        search: str | None = None,
        catalog_entry_id: int | None = None,
        status: str | None = None,
    ) -> list[DeviceIdentifierDTO]:
        """Substring search on IMEI/serial, optionally filtered, newest first."""
        wanted = DeviceStatus.parse(status) if status else None
        text = (search or "").strip() or None

        with self._uow:
            names = {e.id: e.name for e in self._uow.catalog.list_all()}
            devices = self._uow.devices.search(
                text=text, catalog_entry_id=catalog_entry_id, status=wanted
            )
        return [device_to_dto(d, names.get(d.catalog_entry_id)) for d in devices]
