from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from . import models


class SupplierCreate(BaseModel):
    name: str
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    active: bool = True


class SupplierUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    active: Optional[bool] = None


class SupplierRead(BaseModel):
    id: str
    org_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderLineCreate(BaseModel):
    product_id: str
    quantity: float = Field(..., gt=0)
    unit_cost: float = Field(0.0, ge=0)


class PurchaseOrderLineRead(PurchaseOrderLineCreate):
    id: str
    product_name: Optional[str] = None
    line_total: float

    class Config:
        from_attributes = True


class PurchaseOrderCreate(BaseModel):
    supplier_id: str
    status: models.PurchaseOrderStatus = models.PurchaseOrderStatus.DRAFT
    reference: Optional[str] = None
    notes: Optional[str] = None
    lines: List[PurchaseOrderLineCreate] = Field(default_factory=list)


class PurchaseOrderUpdate(BaseModel):
    reference: Optional[str] = None
    notes: Optional[str] = None


class PurchaseOrderStatusUpdate(BaseModel):
    status: models.PurchaseOrderStatus
    warehouse_id: Optional[str] = None
    lot_number: Optional[str] = None
    expiration_date: Optional[date] = None


class PurchaseOrderRead(BaseModel):
    id: str
    org_id: str
    supplier_id: str
    supplier_name: Optional[str] = None
    status: models.PurchaseOrderStatus
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    received_at: Optional[datetime] = None
    lines: List[PurchaseOrderLineRead] = Field(default_factory=list)
    total: float = 0.0

    class Config:
        from_attributes = True
