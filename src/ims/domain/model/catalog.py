"""CatalogEntry aggregate (a "product version").

One sellable SKU definition.  Its tracking mode is chosen at creation
and decides which stock mechanism applies: bulk counting for ``none``,
one DeviceIdentifier per physical unit for ``imei`` and ``serial``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from ims.domain.exceptions import MissingRequiredFieldError, ValidationError


class TrackingMode(Enum):
    NONE = "none"
    IMEI = "imei"
    SERIAL = "serial"

    @property
    def is_tracked(self) -> bool:
        return self is not TrackingMode.NONE

    @property
    def identifier_field(self) -> str | None:
        """Name of the DeviceIdentifier field this mode populates."""
        if self is TrackingMode.IMEI:
            return "imei"
        if self is TrackingMode.SERIAL:
            return "serial_number"
        return None

    @staticmethod
    def parse(value: str | TrackingMode) -> TrackingMode:
        if isinstance(value, TrackingMode):
            return value
        try:
            return TrackingMode(value)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown tracking mode: {value!r}", field="tracking_mode", value=value
            ) from exc


@dataclass
class CatalogEntry:
    """A product version in the catalog.

    ``tracking_mode`` is fixed for the lifetime of the entry: changing it
    would orphan existing identifiers or bulk records, so no method here
    touches it.
    """

    id: int | None
    name: str
    tracking_mode: TrackingMode
    ean: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def create(
        name: str,
        tracking_mode: str | TrackingMode,
        ean: str | None = None,
    ) -> CatalogEntry:
        if not name or not name.strip():
            raise MissingRequiredFieldError("Product version name is required", field="name")
        return CatalogEntry(
            id=None,
            name=name.strip(),
            tracking_mode=TrackingMode.parse(tracking_mode),
            ean=(ean or "").strip() or None,
        )

    def update_details(self, name: str, ean: str | None) -> None:
        """Change the display fields.  The tracking mode stays as it is."""
        if not name or not name.strip():
            raise MissingRequiredFieldError("Product version name is required", field="name")
        self.name = name.strip()
        self.ean = (ean or "").strip() or None
