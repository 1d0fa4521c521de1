"""SQLAlchemy implementations of the domain repositories.

Every repository works on the session of the unit of work that created
it and never commits; the unit of work decides.  Rows are translated to
domain objects on the way out (``_to_domain``) and copied back on save,
so no ORM instance escapes this module.
"""

from __future__ import annotations

import dataclasses
from decimal import Decimal

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from ims.domain.model.bulk_stock import BulkStockRecord
from ims.domain.model.catalog import CatalogEntry, TrackingMode
from ims.domain.model.delivery import (
    Delivery,
    DeliveryLine,
    DeliveryStatus,
    format_delivery_number,
)
from ims.domain.model.device import DeviceIdentifier, DeviceStatus
from ims.domain.model.history import (
    AuditRecord,
    BulkStockChange,
    ClearanceChange,
    IdentifierChange,
    ProductVersionChange,
    StatusChange,
)
from ims.domain.model.value_objects import Money, Quantity
from ims.domain.repository.audit_ledger import AuditLedger
from ims.domain.repository.bulk_stock_repository import BulkStockRepository
from ims.domain.repository.catalog_repository import CatalogRepository
from ims.domain.repository.delivery_repository import DeliveryRepository
from ims.domain.repository.device_repository import DeviceRepository
from ims.infrastructure.persistence.orm import (
    BulkStockHistoryRow,
    BulkStockRow,
    ClearanceHistoryRow,
    DeliveryLineRow,
    DeliveryRow,
    DeviceIdentifierRow,
    IdentifierHistoryRow,
    ProductVersionHistoryRow,
    ProductVersionRow,
    SequenceCounterRow,
    StatusHistoryRow,
)
from ims.logging_config import get_logger

logger = get_logger("persistence.repositories")

DELIVERY_NUMBER_SEQUENCE = "delivery_number"


def _money(amount: Decimal | None) -> Money | None:
    return Money(Decimal(amount)) if amount is not None else None


def _amount(money: Money | None) -> Decimal | None:
    return money.amount if money is not None else None


# --- Catalog ------------------------------------------------------------------


class SqlCatalogRepository(CatalogRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, entry_id: int) -> CatalogEntry | None:
        row = self._session.get(ProductVersionRow, entry_id)
        return self._to_domain(row) if row is not None else None

    def list_all(self) -> list[CatalogEntry]:
        rows = self._session.scalars(
            select(ProductVersionRow).order_by(ProductVersionRow.name, ProductVersionRow.id)
        )
        return [self._to_domain(row) for row in rows]

    def save(self, entry: CatalogEntry) -> None:
        if entry.id is None:
            row = ProductVersionRow(
                name=entry.name,
                ean=entry.ean,
                tracking_mode=entry.tracking_mode.value,
                created_at=entry.created_at,
            )
            self._session.add(row)
            self._session.flush()
            entry.id = row.id
            return

        row = self._session.get(ProductVersionRow, entry.id)
        row.name = entry.name
        row.ean = entry.ean
        self._session.flush()

    @staticmethod
    def _to_domain(row: ProductVersionRow) -> CatalogEntry:
        return CatalogEntry(
            id=row.id,
            name=row.name,
            tracking_mode=TrackingMode(row.tracking_mode),
            ean=row.ean,
            created_at=row.created_at,
        )


# --- Device identifiers -----------------------------------------------------


class SqlDeviceRepository(DeviceRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, identifier_id: int, lock: bool = False) -> DeviceIdentifier | None:
        stmt = select(DeviceIdentifierRow).where(DeviceIdentifierRow.id == identifier_id)
        if lock:
            stmt = stmt.with_for_update()
        row = self._session.scalars(stmt).one_or_none()
        return self._to_domain(row) if row is not None else None

    def list_by_delivery(self, delivery_id: int) -> list[DeviceIdentifier]:
        rows = self._session.scalars(
            select(DeviceIdentifierRow)
            .where(DeviceIdentifierRow.delivery_id == delivery_id)
            .order_by(DeviceIdentifierRow.id)
        )
        return [self._to_domain(row) for row in rows]

    def list_by_catalog_entry(self, entry_id: int) -> list[DeviceIdentifier]:
        rows = self._session.scalars(
            select(DeviceIdentifierRow)
            .where(DeviceIdentifierRow.product_version_id == entry_id)
            .order_by(DeviceIdentifierRow.id.desc())
        )
        return [self._to_domain(row) for row in rows]

    def search(
        self,
        text: str | None = None,
        catalog_entry_id: int | None = None,
        status: DeviceStatus | None = None,
    ) -> list[DeviceIdentifier]:
        stmt = select(DeviceIdentifierRow)
        if text:
            pattern = f"%{text}%"
            stmt = stmt.where(
                or_(
                    DeviceIdentifierRow.imei.like(pattern),
                    DeviceIdentifierRow.serial_number.like(pattern),
                )
            )
        if catalog_entry_id is not None:
            stmt = stmt.where(DeviceIdentifierRow.product_version_id == catalog_entry_id)
        if status is not None:
            stmt = stmt.where(DeviceIdentifierRow.status == status.value)
        rows = self._session.scalars(stmt.order_by(DeviceIdentifierRow.id.desc()))
        return [self._to_domain(row) for row in rows]

    def count_by_catalog_entry(self) -> dict[int, tuple[int, int]]:
        in_stock = func.sum(
            case((DeviceIdentifierRow.status == DeviceStatus.IN_STOCK.value, 1), else_=0)
        )
        stmt = select(
            DeviceIdentifierRow.product_version_id,
            func.count(DeviceIdentifierRow.id),
            in_stock,
        ).group_by(DeviceIdentifierRow.product_version_id)
        return {
            entry_id: (int(total), int(stocked or 0))
            for entry_id, total, stocked in self._session.execute(stmt)
        }

    def identifier_in_use(
        self,
        imei: str | None,
        serial_number: str | None,
        exclude_id: int | None = None,
    ) -> bool:
        conditions = []
        if imei is not None:
            conditions.append(DeviceIdentifierRow.imei == imei)
        if serial_number is not None:
            conditions.append(DeviceIdentifierRow.serial_number == serial_number)
        if not conditions:
            return False
        stmt = select(DeviceIdentifierRow.id).where(or_(*conditions))
        if exclude_id is not None:
            stmt = stmt.where(DeviceIdentifierRow.id != exclude_id)
        return self._session.scalars(stmt.limit(1)).first() is not None

    def save(self, device: DeviceIdentifier) -> None:
        if device.id is None:
            row = DeviceIdentifierRow(
                original_product_version_id=device.original_catalog_entry_id,
                original_imei=device.original_imei,
                original_serial_number=device.original_serial_number,
                delivery_id=device.delivery_id,
                created_at=device.created_at,
            )
            self._copy_mutable(device, row)
            self._session.add(row)
            self._session.flush()
            device.id = row.id
            return

        row = self._session.get(DeviceIdentifierRow, device.id)
        self._copy_mutable(device, row)
        self._session.flush()

    @staticmethod
    def _copy_mutable(device: DeviceIdentifier, row: DeviceIdentifierRow) -> None:
        # original_* columns are written on insert only
        row.product_version_id = device.catalog_entry_id
        row.imei = device.imei
        row.serial_number = device.serial_number
        row.status = device.status.value
        row.purchase_price = _amount(device.purchase_price)
        row.is_clearance = device.is_clearance
        row.clearance_price = _amount(device.clearance_price)
        row.clearance_reason = device.clearance_reason
        row.received_damaged = device.received_damaged
        row.damage_description = device.damage_description

    @staticmethod
    def _to_domain(row: DeviceIdentifierRow) -> DeviceIdentifier:
        return DeviceIdentifier(
            id=row.id,
            catalog_entry_id=row.product_version_id,
            original_catalog_entry_id=row.original_product_version_id,
            imei=row.imei,
            serial_number=row.serial_number,
            original_imei=row.original_imei,
            original_serial_number=row.original_serial_number,
            status=DeviceStatus(row.status),
            delivery_id=row.delivery_id,
            purchase_price=_money(row.purchase_price),
            is_clearance=bool(row.is_clearance),
            clearance_price=_money(row.clearance_price),
            clearance_reason=row.clearance_reason,
            received_damaged=bool(row.received_damaged),
            damage_description=row.damage_description,
            created_at=row.created_at,
        )


# --- Bulk stock -----------------------------------------------------------------


class SqlBulkStockRepository(BulkStockRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, catalog_entry_id: int, lock: bool = False) -> BulkStockRecord | None:
        row = self._get_row(catalog_entry_id, lock)
        if row is None:
            return None
        return BulkStockRecord(catalog_entry_id=row.product_version_id, quantity=row.quantity)

    def list_all(self) -> list[BulkStockRecord]:
        rows = self._session.scalars(select(BulkStockRow).order_by(BulkStockRow.product_version_id))
        return [
            BulkStockRecord(catalog_entry_id=row.product_version_id, quantity=row.quantity)
            for row in rows
        ]

    def save(self, record: BulkStockRecord) -> None:
        row = self._get_row(record.catalog_entry_id, lock=False)
        if row is None:
            row = BulkStockRow(product_version_id=record.catalog_entry_id)
            self._session.add(row)
        row.quantity = record.quantity
        self._session.flush()

    def _get_row(self, catalog_entry_id: int, lock: bool) -> BulkStockRow | None:
        stmt = select(BulkStockRow).where(BulkStockRow.product_version_id == catalog_entry_id)
        if lock:
            stmt = stmt.with_for_update()
        return self._session.scalars(stmt).one_or_none()


# --- Deliveries -----------------------------------------------------------------


class SqlDeliveryRepository(DeliveryRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def next_delivery_number(self) -> str:
        """Increment the locked ``delivery_number`` counter.

        The increment is part of the caller's transaction: a rollback
        returns the number to the pool.
        """
        counter = self._session.scalars(
            select(SequenceCounterRow)
            .where(SequenceCounterRow.name == DELIVERY_NUMBER_SEQUENCE)
            .with_for_update()
        ).one_or_none()
        if counter is None:
            counter = SequenceCounterRow(name=DELIVERY_NUMBER_SEQUENCE, current_value=0)
            self._session.add(counter)
        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence": DELIVERY_NUMBER_SEQUENCE, "value": counter.current_value},
        )
        return format_delivery_number(counter.current_value)

    def get_by_id(self, delivery_id: int, lock: bool = False) -> Delivery | None:
        stmt = select(DeliveryRow).where(DeliveryRow.id == delivery_id)
        if lock:
            stmt = stmt.with_for_update()
        row = self._session.scalars(stmt).one_or_none()
        if row is None:
            return None
        return self._to_domain(row, self._lines_of(row.id))

    def list_all(self) -> list[Delivery]:
        rows = list(
            self._session.scalars(
                select(DeliveryRow).order_by(
                    DeliveryRow.delivery_date.desc(), DeliveryRow.id.desc()
                )
            )
        )
        lines: dict[int, list[DeliveryLineRow]] = {row.id: [] for row in rows}
        if rows:
            for line in self._session.scalars(
                select(DeliveryLineRow)
                .where(DeliveryLineRow.delivery_id.in_(lines.keys()))
                .order_by(DeliveryLineRow.id)
            ):
                lines[line.delivery_id].append(line)
        return [self._to_domain(row, lines[row.id]) for row in rows]

    def save(self, delivery: Delivery) -> None:
        if delivery.id is None:
            row = DeliveryRow(
                delivery_number=delivery.delivery_number,
                delivery_date=delivery.delivery_date,
                supplier=delivery.supplier,
                status=delivery.status.value,
                created_at=delivery.created_at,
            )
            self._session.add(row)
            self._session.flush()
            delivery.id = row.id
        else:
            row = self._session.get(DeliveryRow, delivery.id)
            row.supplier = delivery.supplier
            row.status = delivery.status.value

        # Lines are immutable; only the ones added since loading are written.
        for line in delivery.lines:
            if line.id is not None:
                continue
            line_row = DeliveryLineRow(
                delivery_id=delivery.id,
                product_version_id=line.catalog_entry_id,
                quantity=line.quantity.value,
                purchase_price_per_unit=line.unit_price.amount,
                created_at=line.created_at,
            )
            self._session.add(line_row)
            self._session.flush()
            line.id = line_row.id
        self._session.flush()

    def _lines_of(self, delivery_id: int) -> list[DeliveryLineRow]:
        return list(
            self._session.scalars(
                select(DeliveryLineRow)
                .where(DeliveryLineRow.delivery_id == delivery_id)
                .order_by(DeliveryLineRow.id)
            )
        )

    @staticmethod
    def _to_domain(row: DeliveryRow, line_rows: list[DeliveryLineRow]) -> Delivery:
        return Delivery(
            id=row.id,
            delivery_number=row.delivery_number,
            delivery_date=row.delivery_date,
            supplier=row.supplier,
            status=DeliveryStatus(row.status),
            lines=[
                DeliveryLine(
                    id=line.id,
                    catalog_entry_id=line.product_version_id,
                    quantity=Quantity(line.quantity),
                    unit_price=Money(Decimal(line.purchase_price_per_unit)),
                    created_at=line.created_at,
                )
                for line in line_rows
            ],
            created_at=row.created_at,
        )


# --- Audit ledger ---------------------------------------------------------------


class SqlAuditLedger(AuditLedger):
    """Insert-only access to the five history tables."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def append(self, record: AuditRecord) -> AuditRecord:
        row = self._to_row(record)
        self._session.add(row)
        self._session.flush()
        return dataclasses.replace(record, id=row.id)

    def status_history(self, identifier_id: int) -> list[StatusChange]:
        rows = self._newest_first(StatusHistoryRow, StatusHistoryRow.device_identifier_id, identifier_id)
        return [
            StatusChange(
                id=r.id,
                device_identifier_id=r.device_identifier_id,
                old_status=r.old_status,
                new_status=r.new_status,
                changed_by=r.changed_by,
                note=r.note,
                created_at=r.created_at,
            )
            for r in rows
        ]

    def identifier_history(self, identifier_id: int) -> list[IdentifierChange]:
        rows = self._newest_first(
            IdentifierHistoryRow, IdentifierHistoryRow.device_identifier_id, identifier_id
        )
        return [
            IdentifierChange(
                id=r.id,
                device_identifier_id=r.device_identifier_id,
                old_imei=r.old_imei,
                new_imei=r.new_imei,
                old_serial_number=r.old_serial_number,
                new_serial_number=r.new_serial_number,
                changed_by=r.changed_by,
                note=r.note,
                created_at=r.created_at,
            )
            for r in rows
        ]

    def product_version_history(self, identifier_id: int) -> list[ProductVersionChange]:
        rows = self._newest_first(
            ProductVersionHistoryRow, ProductVersionHistoryRow.device_identifier_id, identifier_id
        )
        return [
            ProductVersionChange(
                id=r.id,
                device_identifier_id=r.device_identifier_id,
                old_catalog_entry_id=r.old_product_version_id,
                new_catalog_entry_id=r.new_product_version_id,
                changed_by=r.changed_by,
                note=r.note,
                created_at=r.created_at,
            )
            for r in rows
        ]

    def clearance_history(self, identifier_id: int) -> list[ClearanceChange]:
        rows = self._newest_first(
            ClearanceHistoryRow, ClearanceHistoryRow.device_identifier_id, identifier_id
        )
        return [
            ClearanceChange(
                id=r.id,
                device_identifier_id=r.device_identifier_id,
                old_is_clearance=bool(r.old_is_clearance),
                new_is_clearance=bool(r.new_is_clearance),
                old_clearance_price=r.old_clearance_price,
                new_clearance_price=r.new_clearance_price,
                old_clearance_reason=r.old_clearance_reason,
                new_clearance_reason=r.new_clearance_reason,
                changed_by=r.changed_by,
                note=r.note,
                created_at=r.created_at,
            )
            for r in rows
        ]

    def bulk_stock_history(
        self, catalog_entry_id: int, limit: int | None = None
    ) -> list[BulkStockChange]:
        rows = self._newest_first(
            BulkStockHistoryRow, BulkStockHistoryRow.product_version_id, catalog_entry_id, limit
        )
        return [
            BulkStockChange(
                id=r.id,
                catalog_entry_id=r.product_version_id,
                old_quantity=r.old_quantity,
                new_quantity=r.new_quantity,
                change_quantity=r.change_quantity,
                changed_by=r.changed_by,
                note=r.note,
                created_at=r.created_at,
            )
            for r in rows
        ]

    def _newest_first(self, row_cls, key_column, key: int, limit: int | None = None) -> list:
        stmt = select(row_cls).where(key_column == key).order_by(row_cls.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self._session.scalars(stmt))

    @staticmethod
    def _to_row(record: AuditRecord):
        common = {
            "changed_by": record.changed_by,
            "note": record.note,
            "created_at": record.created_at,
        }
        if isinstance(record, StatusChange):
            return StatusHistoryRow(
                device_identifier_id=record.device_identifier_id,
                old_status=record.old_status,
                new_status=record.new_status,
                **common,
            )
        if isinstance(record, IdentifierChange):
            return IdentifierHistoryRow(
                device_identifier_id=record.device_identifier_id,
                old_imei=record.old_imei,
                new_imei=record.new_imei,
                old_serial_number=record.old_serial_number,
                new_serial_number=record.new_serial_number,
                **common,
            )
        if isinstance(record, ProductVersionChange):
            return ProductVersionHistoryRow(
                device_identifier_id=record.device_identifier_id,
                old_product_version_id=record.old_catalog_entry_id,
                new_product_version_id=record.new_catalog_entry_id,
                **common,
            )
        if isinstance(record, ClearanceChange):
            return ClearanceHistoryRow(
                device_identifier_id=record.device_identifier_id,
                old_is_clearance=record.old_is_clearance,
                new_is_clearance=record.new_is_clearance,
                old_clearance_price=record.old_clearance_price,
                new_clearance_price=record.new_clearance_price,
                old_clearance_reason=record.old_clearance_reason,
                new_clearance_reason=record.new_clearance_reason,
                **common,
            )
        if isinstance(record, BulkStockChange):
            return BulkStockHistoryRow(
                product_version_id=record.catalog_entry_id,
                old_quantity=record.old_quantity,
                new_quantity=record.new_quantity,
                change_quantity=record.change_quantity,
                **common,
            )
        raise TypeError(f"Not an audit record: {type(record).__name__}")
