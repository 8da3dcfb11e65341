from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from stockdb.apps.inventory.models import MovementType


class StockRow(BaseModel):
    product_id: str
    sku: str
    name: str
    category_name: Optional[str] = None
    stock: float
    min_stock: float
    max_stock: Optional[float] = None
    cost: float = 0.0
    active: bool = True


class LowStockRow(BaseModel):
    product_id: str
    sku: str
    name: str
    stock: float
    min_stock: float
    threshold: float
    tone: str
    severity: str


class ExpiringRow(BaseModel):
    product_id: str
    sku: str
    name: str
    stock: float
    lot_number: Optional[str] = None
    expiration_date: date
    days_left: int
    tone: str
    severity: str


class OverstockRow(BaseModel):
    product_id: str
    sku: str
    name: str
    stock: float
    max_stock: float
    extra: float
    tone: str


class AlertsOverview(BaseModel):
    enabled: bool = True
    low_stock: List[LowStockRow] = Field(default_factory=list)
    expiring: List[ExpiringRow] = Field(default_factory=list)
    overstock: List[OverstockRow] = Field(default_factory=list)


class DashboardKpis(BaseModel):
    stock_total: float = 0.0
    low_stock_count: int = 0
    inventory_value: float = 0.0
    movements_today: int = 0
    currency: Optional[str] = None


class TopProductRow(BaseModel):
    product_id: str
    sku: str
    name: str
    qty: float


class SupplyBucket(BaseModel):
    label: str
    month: str
    warehouse: float = 0.0
    in_transport: float = 0.0
    retail: float = 0.0
    warehouse_pct: int = 0
    in_transport_pct: int = 0
    retail_pct: int = 0


class SupplySummary(BaseModel):
    total: float = 0.0
    bars: List[SupplyBucket] = Field(default_factory=list)


class HealthSummary(BaseModel):
    overall: float = 100.0
    over: float = 0.0
    under: float = 0.0


class DashboardOverview(BaseModel):
    kpis: DashboardKpis = Field(default_factory=DashboardKpis)
    top_products: List[TopProductRow] = Field(default_factory=list)
    supply: SupplySummary = Field(default_factory=SupplySummary)
    health: HealthSummary = Field(default_factory=HealthSummary)


class KardexRow(BaseModel):
    movement_id: str
    code: str
    created_at: datetime
    type: MovementType
    warehouse_name: Optional[str] = None
    to_warehouse_name: Optional[str] = None
    reference: Optional[str] = None
    reason: Optional[str] = None
    quantity: float
    signed_quantity: float
    balance: float


class KardexReport(BaseModel):
    product_id: str
    sku: str
    name: str
    warehouse_id: Optional[str] = None
    start: Optional[date] = None
    end: Optional[date] = None
    opening_balance: float = 0.0
    closing_balance: float = 0.0
    rows: List[KardexRow] = Field(default_factory=list)


class ValuationRow(BaseModel):
    product_id: str
    sku: str
    name: str
    stock: float
    cost: float
    value: float


class ValuationReport(BaseModel):
    currency: str
    total_value: float
    rows: List[ValuationRow] = Field(default_factory=list)


class RotationRow(BaseModel):
    product_id: str
    sku: str
    name: str
    inbound: float
    outbound: float
    movements: int


class ReportTable(BaseModel):
    """Title, headers and rows of a report, the shape CSV export consumes."""

    title: str
    columns: List[str]
    rows: List[List[Any]] = Field(default_factory=list)
