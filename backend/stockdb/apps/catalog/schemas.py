from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None
    active: bool = True


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    active: Optional[bool] = None


class CategoryRead(CategoryCreate):
    id: str
    org_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class ProductBase(BaseModel):
    sku: str
    name: str
    category_id: Optional[str] = None
    unit: str = "unit"
    cost: float = Field(0.0, ge=0)
    price: float = Field(0.0, ge=0)
    discount_percent: float = Field(0.0, ge=0, le=100)
    tax_percent: float = Field(0.0, ge=0, le=100)
    min_stock: float = Field(0.0, ge=0)
    max_stock: Optional[float] = Field(None, ge=0)
    barcode: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    active: bool = True


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    sku: Optional[str] = None
    name: Optional[str] = None
    category_id: Optional[str] = None
    unit: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    discount_percent: Optional[float] = Field(None, ge=0, le=100)
    tax_percent: Optional[float] = Field(None, ge=0, le=100)
    min_stock: Optional[float] = Field(None, ge=0)
    max_stock: Optional[float] = Field(None, ge=0)
    barcode: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    active: Optional[bool] = None


class ProductRead(ProductBase):
    id: str
    org_id: str
    category_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
