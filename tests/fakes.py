"""In-memory fakes for testing.

These implement the same abstract interfaces as the SQL repositories
but keep everything in dicts. No database, no side effects.

Reads and writes hand out copies, so an aggregate changed without
``save()`` is not changed in the store, just like with a real database.
``FakeUnitOfWork`` snapshots the whole store on entry and puts the
snapshot back on rollback.
"""

from __future__ import annotations

import copy
import dataclasses
from dataclasses import dataclass, field

from ims.domain.model.bulk_stock import BulkStockRecord
from ims.domain.model.catalog import CatalogEntry, TrackingMode
from ims.domain.model.delivery import Delivery, format_delivery_number
from ims.domain.model.device import DeviceIdentifier, DeviceStatus
from ims.domain.model.history import (
    AuditRecord,
    BulkStockChange,
    ClearanceChange,
    IdentifierChange,
    ProductVersionChange,
    StatusChange,
)
from ims.domain.repository.audit_ledger import AuditLedger
from ims.domain.repository.bulk_stock_repository import BulkStockRepository
from ims.domain.repository.catalog_repository import CatalogRepository
from ims.domain.repository.delivery_repository import DeliveryRepository
from ims.domain.repository.device_repository import DeviceRepository
from ims.domain.repository.unit_of_work import UnitOfWork


@dataclass
class InMemoryStore:
    catalog: dict[int, CatalogEntry] = field(default_factory=dict)
    devices: dict[int, DeviceIdentifier] = field(default_factory=dict)
    bulk_stock: dict[int, BulkStockRecord] = field(default_factory=dict)
    deliveries: dict[int, Delivery] = field(default_factory=dict)
    audit: list[AuditRecord] = field(default_factory=list)
    sequences: dict[str, int] = field(default_factory=dict)
    next_ids: dict[str, int] = field(default_factory=dict)

    def next_id(self, kind: str) -> int:
        value = self.next_ids.get(kind, 0) + 1
        self.next_ids[kind] = value
        return value


class FakeCatalogRepository(CatalogRepository):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get_by_id(self, entry_id: int) -> CatalogEntry | None:
        return copy.deepcopy(self._store.catalog.get(entry_id))

    def list_all(self) -> list[CatalogEntry]:
        entries = sorted(self._store.catalog.values(), key=lambda e: (e.name, e.id))
        return copy.deepcopy(entries)

    def save(self, entry: CatalogEntry) -> None:
        if entry.id is None:
            entry.id = self._store.next_id("catalog")
        self._store.catalog[entry.id] = copy.deepcopy(entry)


class FakeDeviceRepository(DeviceRepository):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get_by_id(self, identifier_id: int, lock: bool = False) -> DeviceIdentifier | None:
        return copy.deepcopy(self._store.devices.get(identifier_id))

    def list_by_delivery(self, delivery_id: int) -> list[DeviceIdentifier]:
        found = [d for d in self._store.devices.values() if d.delivery_id == delivery_id]
        return copy.deepcopy(sorted(found, key=lambda d: d.id))

    def list_by_catalog_entry(self, entry_id: int) -> list[DeviceIdentifier]:
        found = [d for d in self._store.devices.values() if d.catalog_entry_id == entry_id]
        return copy.deepcopy(sorted(found, key=lambda d: d.id, reverse=True))

    def search(
        self,
        text: str | None = None,
        catalog_entry_id: int | None = None,
        status: DeviceStatus | None = None,
    ) -> list[DeviceIdentifier]:
        found = []
        for d in self._store.devices.values():
            if text and text not in (d.imei or "") and text not in (d.serial_number or ""):
                continue
            if catalog_entry_id is not None and d.catalog_entry_id != catalog_entry_id:
                continue
            if status is not None and d.status is not status:
                continue
            found.append(d)
        return copy.deepcopy(sorted(found, key=lambda d: d.id, reverse=True))

    def count_by_catalog_entry(self) -> dict[int, tuple[int, int]]:
        counts: dict[int, tuple[int, int]] = {}
        for d in self._store.devices.values():
            total, in_stock = counts.get(d.catalog_entry_id, (0, 0))
            counts[d.catalog_entry_id] = (
                total + 1,
                in_stock + (1 if d.status is DeviceStatus.IN_STOCK else 0),
            )
        return counts

    def identifier_in_use(
        self,
        imei: str | None,
        serial_number: str | None,
        exclude_id: int | None = None,
    ) -> bool:
        for d in self._store.devices.values():
            if d.id == exclude_id:
                continue
            if imei is not None and d.imei == imei:
                return True
            if serial_number is not None and d.serial_number == serial_number:
                return True
        return False

    def save(self, device: DeviceIdentifier) -> None:
        if device.id is None:
            device.id = self._store.next_id("device")
        self._store.devices[device.id] = copy.deepcopy(device)


class FakeBulkStockRepository(BulkStockRepository):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get(self, catalog_entry_id: int, lock: bool = False) -> BulkStockRecord | None:
        return copy.deepcopy(self._store.bulk_stock.get(catalog_entry_id))

    def list_all(self) -> list[BulkStockRecord]:
        return copy.deepcopy(list(self._store.bulk_stock.values()))

    def save(self, record: BulkStockRecord) -> None:
        self._store.bulk_stock[record.catalog_entry_id] = copy.deepcopy(record)


class FakeDeliveryRepository(DeliveryRepository):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self.locked: list[int] = []

    def next_delivery_number(self) -> str:
        value = self._store.sequences.get("delivery_number", 0) + 1
        self._store.sequences["delivery_number"] = value
        return format_delivery_number(value)

    def get_by_id(self, delivery_id: int, lock: bool = False) -> Delivery | None:
        if lock:
            self.locked.append(delivery_id)
        return copy.deepcopy(self._store.deliveries.get(delivery_id))

    def list_all(self) -> list[Delivery]:
        found = sorted(
            self._store.deliveries.values(),
            key=lambda d: (d.delivery_date, d.id),
            reverse=True,
        )
        return copy.deepcopy(found)

    def save(self, delivery: Delivery) -> None:
        if delivery.id is None:
            delivery.id = self._store.next_id("delivery")
        for line in delivery.lines:
            if line.id is None:
                line.id = self._store.next_id("delivery_line")
        self._store.deliveries[delivery.id] = copy.deepcopy(delivery)


class FakeAuditLedger(AuditLedger):

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def append(self, record: AuditRecord) -> AuditRecord:
        stored = dataclasses.replace(record, id=self._store.next_id("audit"))
        self._store.audit.append(stored)
        return stored

    def status_history(self, identifier_id: int) -> list[StatusChange]:
        return self._trail(StatusChange, identifier_id)

    def identifier_history(self, identifier_id: int) -> list[IdentifierChange]:
        return self._trail(IdentifierChange, identifier_id)

    def product_version_history(self, identifier_id: int) -> list[ProductVersionChange]:
        return self._trail(ProductVersionChange, identifier_id)

    def clearance_history(self, identifier_id: int) -> list[ClearanceChange]:
        return self._trail(ClearanceChange, identifier_id)

    def bulk_stock_history(
        self, catalog_entry_id: int, limit: int | None = None
    ) -> list[BulkStockChange]:
        found = [
            r
            for r in reversed(self._store.audit)
            if isinstance(r, BulkStockChange) and r.catalog_entry_id == catalog_entry_id
        ]
        return found[:limit] if limit is not None else found

    def _trail(self, kind: type, identifier_id: int) -> list:
        return [
            r
            for r in reversed(self._store.audit)
            if isinstance(r, kind) and r.device_identifier_id == identifier_id
        ]


class FakeUnitOfWork(UnitOfWork):

    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()
        self.catalog = FakeCatalogRepository(self.store)
        self.devices = FakeDeviceRepository(self.store)
        self.bulk_stock = FakeBulkStockRepository(self.store)
        self.deliveries = FakeDeliveryRepository(self.store)
        self.ledger = FakeAuditLedger(self.store)
        self.commits = 0
        self.rollbacks = 0
        self._snapshot: InMemoryStore | None = None

    def __enter__(self) -> FakeUnitOfWork:
        self._snapshot = copy.deepcopy(self.store)
        return self

    def commit(self) -> None:
        self._snapshot = None
        self.commits += 1

    def rollback(self) -> None:
        if self._snapshot is not None:
            # Restore in place; the repositories hold a reference to self.store.
            for f in dataclasses.fields(self.store):
                setattr(self.store, f.name, getattr(self._snapshot, f.name))
        self._snapshot = None
        self.rollbacks += 1

    # --- Seeding helpers --------------------------------------------------------

    def add_entry(self, name: str, tracking_mode: str = "none", ean: str | None = None) -> CatalogEntry:
        entry = CatalogEntry.create(name, TrackingMode.parse(tracking_mode), ean)
        self.catalog.save(entry)
        return entry

    def audit_records(self, kind: type | None = None) -> list[AuditRecord]:
        return [r for r in self.store.audit if kind is None or isinstance(r, kind)]
