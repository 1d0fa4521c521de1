"""SQLAlchemy table definitions.

Row classes are persistence shapes only; the repositories translate them
to and from the domain aggregates.  Table and column names follow the
store's established schema (``product_versions`` for catalog entries).

History tables are append-only: mapper listeners refuse any UPDATE or
DELETE of an audit row.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ims.domain.exceptions import ImmutabilityViolationError
from ims.logging_config import get_logger

logger = get_logger("persistence.orm")

_TRACKING_MODES = "'none', 'imei', 'serial'"
_DEVICE_STATUSES = (
    "'in_stock', 'sold', 'defective', 'missing', 'reserved', "
    "'defective_at_delivery', 'returned_to_supplier', 'written_off'"
)
_DELIVERY_STATUSES = "'concept', 'booked', 'partially_booked'"


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(10, 2),
        datetime: DateTime(timezone=True),
        str: String(255),
    }


class ProductVersionRow(Base):
    __tablename__ = "product_versions"
    __table_args__ = (
        CheckConstraint(f"tracking_mode IN ({_TRACKING_MODES})", name="ck_tracking_mode"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str]
    ean: Mapped[str | None]
    tracking_mode: Mapped[str] = mapped_column(String(10), default="none")
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())


class DeliveryRow(Base):
    __tablename__ = "deliveries"
    __table_args__ = (
        CheckConstraint(f"status IN ({_DELIVERY_STATUSES})", name="ck_delivery_status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    delivery_number: Mapped[str] = mapped_column(String(20), unique=True)
    delivery_date: Mapped[date] = mapped_column(Date)
    supplier: Mapped[str | None]
    status: Mapped[str] = mapped_column(String(20), default="concept")
    created_at: Mapped[datetime]
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())


class DeliveryLineRow(Base):
    __tablename__ = "delivery_lines"
    __table_args__ = (
        UniqueConstraint("delivery_id", "product_version_id", name="uq_delivery_line_entry"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    delivery_id: Mapped[int] = mapped_column(ForeignKey("deliveries.id"), index=True)
    product_version_id: Mapped[int] = mapped_column(ForeignKey("product_versions.id"))
    quantity: Mapped[int]
    purchase_price_per_unit: Mapped[Decimal]
    created_at: Mapped[datetime]


class DeviceIdentifierRow(Base):
    __tablename__ = "device_identifiers"
    __table_args__ = (
        CheckConstraint(f"status IN ({_DEVICE_STATUSES})", name="ck_device_status"),
        Index("idx_device_delivery", "delivery_id"),
        Index("idx_device_product_version", "product_version_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_version_id: Mapped[int] = mapped_column(ForeignKey("product_versions.id"))
    original_product_version_id: Mapped[int] = mapped_column(ForeignKey("product_versions.id"))
    delivery_id: Mapped[int | None] = mapped_column(ForeignKey("deliveries.id"))
    imei: Mapped[str | None] = mapped_column(String(32), unique=True)
    serial_number: Mapped[str | None] = mapped_column(String(64), unique=True)
    original_imei: Mapped[str | None] = mapped_column(String(32))
    original_serial_number: Mapped[str | None] = mapped_column(String(64))
    status: Mapped[str] = mapped_column(String(30), default="in_stock")
    is_clearance: Mapped[bool] = mapped_column(Boolean, default=False)
    clearance_price: Mapped[Decimal | None]
    clearance_reason: Mapped[str | None] = mapped_column(Text)
    received_damaged: Mapped[bool] = mapped_column(Boolean, default=False)
    damage_description: Mapped[str | None] = mapped_column(Text)
    purchase_price: Mapped[Decimal | None]
    created_at: Mapped[datetime]
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())


class BulkStockRow(Base):
    __tablename__ = "bulk_stock"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_bulk_quantity"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_version_id: Mapped[int] = mapped_column(
        ForeignKey("product_versions.id"), unique=True
    )
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())


class SequenceCounterRow(Base):
    __tablename__ = "sequence_counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), unique=True)
    current_value: Mapped[int] = mapped_column(Integer, default=0)


# --- Audit ledger ---------------------------------------------------------------


class AuditRow(Base):
    """Common columns of every history table."""

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    changed_by: Mapped[str] = mapped_column(String(100), default="system")
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime]


class StatusHistoryRow(AuditRow):
    __tablename__ = "status_history"

    device_identifier_id: Mapped[int] = mapped_column(
        ForeignKey("device_identifiers.id"), index=True
    )
    old_status: Mapped[str | None] = mapped_column(String(30))
    new_status: Mapped[str] = mapped_column(String(30))


class IdentifierHistoryRow(AuditRow):
    __tablename__ = "identifier_history"

    device_identifier_id: Mapped[int] = mapped_column(
        ForeignKey("device_identifiers.id"), index=True
    )
    old_imei: Mapped[str | None] = mapped_column(String(32))
    new_imei: Mapped[str | None] = mapped_column(String(32))
    old_serial_number: Mapped[str | None] = mapped_column(String(64))
    new_serial_number: Mapped[str | None] = mapped_column(String(64))


class ProductVersionHistoryRow(AuditRow):
    __tablename__ = "product_version_history"

    device_identifier_id: Mapped[int] = mapped_column(
        ForeignKey("device_identifiers.id"), index=True
    )
    old_product_version_id: Mapped[int] = mapped_column(ForeignKey("product_versions.id"))
    new_product_version_id: Mapped[int] = mapped_column(ForeignKey("product_versions.id"))


class ClearanceHistoryRow(AuditRow):
    __tablename__ = "clearance_history"

    device_identifier_id: Mapped[int] = mapped_column(
        ForeignKey("device_identifiers.id"), index=True
    )
    old_is_clearance: Mapped[bool] = mapped_column(Boolean)
    new_is_clearance: Mapped[bool] = mapped_column(Boolean)
    old_clearance_price: Mapped[Decimal | None]
    new_clearance_price: Mapped[Decimal | None]
    old_clearance_reason: Mapped[str | None] = mapped_column(Text)
    new_clearance_reason: Mapped[str | None] = mapped_column(Text)


class BulkStockHistoryRow(AuditRow):
    __tablename__ = "bulk_stock_history"

    product_version_id: Mapped[int] = mapped_column(
        ForeignKey("product_versions.id"), index=True
    )
    old_quantity: Mapped[int]
    new_quantity: Mapped[int]
    change_quantity: Mapped[int]


@event.listens_for(AuditRow, "before_update", propagate=True)
def _block_audit_update(mapper, connection, target) -> None:
    _refuse(target, "UPDATE")


@event.listens_for(AuditRow, "before_delete", propagate=True)
def _block_audit_delete(mapper, connection, target) -> None:
    _refuse(target, "DELETE")


def _refuse(target: AuditRow, operation: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={"table": target.__tablename__, "row_id": target.id, "operation": operation},
    )
    raise ImmutabilityViolationError(
        f"Audit records are append-only ({operation} on {target.__tablename__})",
        table=target.__tablename__,
        row_id=target.id,
        operation=operation,
    )
