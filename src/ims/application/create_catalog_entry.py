"""Application service: Create Catalog Entry use case."""

from __future__ import annotations

from ims.application.dto import CatalogEntryDTO, catalog_entry_to_dto
from ims.domain.model.catalog import CatalogEntry
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.logging_config import get_logger

logger = get_logger("application.create_catalog_entry")


class CreateCatalogEntryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, name: str, tracking_mode: str, ean: str | None = None) -> CatalogEntryDTO:
        entry = CatalogEntry.create(name=name, tracking_mode=tracking_mode, ean=ean)
        with self._uow:
            self._uow.catalog.save(entry)

        logger.info(
            "catalog_entry_created",
            extra={"catalog_entry_id": entry.id, "tracking_mode": entry.tracking_mode.value},
        )
        return catalog_entry_to_dto(entry)
