from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from stockdb.utils.identifiers import movement_display_code

from . import models


class WarehouseCreate(BaseModel):
    name: str
    code: Optional[str] = None
    location: Optional[str] = None
    is_primary: bool = False
    active: bool = True


class WarehouseUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    location: Optional[str] = None
    is_primary: Optional[bool] = None
    active: Optional[bool] = None


class WarehouseRead(WarehouseCreate):
    id: str
    org_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class MovementBase(BaseModel):
    product_id: str
    quantity: float = Field(..., gt=0)
    reference: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None


class InboundRequest(MovementBase):
    warehouse_id: Optional[str] = None
    lot_number: Optional[str] = None
    expiration_date: Optional[date] = None


class OutboundRequest(MovementBase):
    warehouse_id: Optional[str] = None


class TransferRequest(MovementBase):
    from_warehouse_id: Optional[str] = None
    to_warehouse_id: str


class MovementRead(BaseModel):
    id: str
    org_id: str
    product_id: str
    warehouse_id: str
    to_warehouse_id: Optional[str] = None
    type: models.MovementType
    quantity: float
    reference: Optional[str] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    lot_number: Optional[str] = None
    expiration_date: Optional[date] = None
    purchase_order_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MovementListItem(MovementRead):
    code: str
    product_sku: Optional[str] = None
    product_name: Optional[str] = None
    warehouse_name: Optional[str] = None
    to_warehouse_name: Optional[str] = None

    @classmethod
    def from_movement(cls, movement: models.InventoryMovement) -> "MovementListItem":
        base = MovementRead.model_validate(movement).model_dump()
        return cls(
            **base,
            code=movement_display_code(models.MovementType(movement.type).value, movement.id, movement.created_at),
            product_sku=movement.product.sku if movement.product else None,
            product_name=movement.product.name if movement.product else None,
            warehouse_name=movement.warehouse.name if movement.warehouse else None,
            to_warehouse_name=movement.to_warehouse.name if movement.to_warehouse else None,
        )
