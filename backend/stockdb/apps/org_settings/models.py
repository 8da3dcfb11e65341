from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, String

from stockdb.database import Base
from stockdb.utils.identifiers import generate_uuid7

DEFAULT_BUSINESS_NAME = "Inventario"
DEFAULT_CURRENCY = "DOP"
DEFAULT_TIME_ZONE = "America/Santo_Domingo"
DEFAULT_DATE_FORMAT = "YYYY-MM-DD"


def _utcnow() -> datetime:
    return datetime.utcnow()


class OrgSettings(Base):
    __tablename__ = "org_settings"

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    org_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    business_name = Column(String(255), nullable=False, default=DEFAULT_BUSINESS_NAME)
    currency = Column(String(8), nullable=False, default=DEFAULT_CURRENCY)
    low_stock_threshold = Column(Float, nullable=False, default=0.0)
    enable_alerts = Column(Boolean, nullable=False, default=True)
    time_zone = Column(String(64), nullable=False, default=DEFAULT_TIME_ZONE)
    date_format = Column(String(32), nullable=False, default=DEFAULT_DATE_FORMAT)
    require_reference_on_movements = Column(Boolean, nullable=False, default=False)
    default_warehouse_id = Column(
        String(36),
        ForeignKey("warehouses.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
