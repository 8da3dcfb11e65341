from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from stockdb.database import Base
from stockdb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.utcnow()


class PurchaseOrderStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class Supplier(Base):
    __tablename__ = "suppliers"
    __table_args__ = (Index("ix_suppliers_org_active", "org_id", "active"),)

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"
    __table_args__ = (Index("ix_purchase_orders_org_status", "org_id", "status"),)

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(String(36), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(String(36), ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(
        SAEnum(PurchaseOrderStatus, name="purchase_order_status_enum", native_enum=False),
        nullable=False,
        default=PurchaseOrderStatus.DRAFT,
        index=True,
    )
    reference = Column(String(128), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
    received_at = Column(DateTime(timezone=True), nullable=True)

    supplier = relationship("Supplier", lazy="joined")
    lines = relationship(
        "PurchaseOrderLine",
        back_populates="purchase_order",
        lazy="selectin",
        order_by="PurchaseOrderLine.created_at",
    )

    @property
    def supplier_name(self):
        return self.supplier.name if self.supplier else None

    @property
    def total(self) -> float:
        return round(sum(line.quantity * line.unit_cost for line in self.lines), 2)


class PurchaseOrderLine(Base):
    __tablename__ = "purchase_order_lines"

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    purchase_order_id = Column(
        String(36),
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id = Column(String(36), ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Float, nullable=False)
    unit_cost = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    purchase_order = relationship("PurchaseOrder", back_populates="lines")
    product = relationship("Product", lazy="joined")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def line_total(self) -> float:
        return round(self.quantity * self.unit_cost, 2)
