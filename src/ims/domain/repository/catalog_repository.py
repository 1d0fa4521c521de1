"""Abstract repository for the CatalogEntry aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Concrete implementations (SQL, in-memory) live in the
infrastructure layer and the test suite.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.catalog import CatalogEntry


class CatalogRepository(ABC):

    @abstractmethod
    def get_by_id(self, entry_id: int) -> CatalogEntry | None:
        """Return a catalog entry by its ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[CatalogEntry]:
        """Return every catalog entry, ordered by name."""

    @abstractmethod
    def save(self, entry: CatalogEntry) -> None:
        """Persist a new or updated entry.  New entries get their ID assigned."""
