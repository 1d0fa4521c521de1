"""Application service: Update Catalog Entry use case.

Only the display fields can change.  The tracking mode is fixed at
creation; there is deliberately no parameter for it.
"""

from __future__ import annotations

from ims.application.dto import CatalogEntryDTO, catalog_entry_to_dto
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.repository.unit_of_work import UnitOfWork


class UpdateCatalogEntryHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, catalog_entry_id: int, name: str, ean: str | None = None) -> CatalogEntryDTO:
        with self._uow:
            entry = self._uow.catalog.get_by_id(catalog_entry_id)
            if entry is None:
                raise EntityNotFoundError(
                    f"Product version #{catalog_entry_id} not found",
                    catalog_entry_id=catalog_entry_id,
                )
            entry.update_details(name=name, ean=ean)
            self._uow.catalog.save(entry)
        return catalog_entry_to_dto(entry)
