from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from stockdb.database import Base
from stockdb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.utcnow()


class MovementType(str, enum.Enum):
    IN = "in"
    OUT = "out"
    TRANSFER = "transfer"


class Warehouse(Base):
    __tablename__ = "warehouses"
    __table_args__ = (
        Index("ix_warehouses_org_active", "org_id", "active"),
        # At most one primary warehouse per organization.
        Index(
            "uq_warehouses_org_primary",
            "org_id",
            unique=True,
            sqlite_where=text("is_primary = 1"),
            postgresql_where=text("is_primary"),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(128), nullable=False)
    code = Column(String(32), nullable=True)
    location = Column(String(255), nullable=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class InventoryMovement(Base):
    """
    One row of the stock ledger. Rows are only ever appended; stock is the
    signed sum of quantities per product (and warehouse).
    """

    __tablename__ = "inventory_movements"
    __table_args__ = (
        Index("ix_inventory_movements_org_date", "org_id", "created_at"),
        Index("ix_inventory_movements_product", "product_id", "created_at"),
        CheckConstraint("quantity > 0", name="ck_inventory_movements_quantity_positive"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    warehouse_id = Column(String(36), ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False, index=True)
    to_warehouse_id = Column(String(36), ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=True)

    type = Column(
        SAEnum(MovementType, name="movement_type_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    quantity = Column(Float, nullable=False)

    reference = Column(String(128), nullable=True)
    reason = Column(String(128), nullable=True)
    notes = Column(Text, nullable=True)
    lot_number = Column(String(64), nullable=True)
    expiration_date = Column(Date, nullable=True)
    purchase_order_id = Column(
        String(36),
        ForeignKey("purchase_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    product = relationship("Product", lazy="joined")
    warehouse = relationship("Warehouse", foreign_keys=[warehouse_id], lazy="joined")
    to_warehouse = relationship("Warehouse", foreign_keys=[to_warehouse_id], lazy="joined")
