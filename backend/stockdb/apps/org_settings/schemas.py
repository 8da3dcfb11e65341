from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SettingsRead(BaseModel):
    org_id: str
    business_name: str
    currency: str
    low_stock_threshold: float
    enable_alerts: bool
    time_zone: str
    date_format: str
    require_reference_on_movements: bool
    default_warehouse_id: Optional[str] = None
    updated_at: datetime

    class Config:
        from_attributes = True


class SettingsUpdate(BaseModel):
    business_name: Optional[str] = None
    currency: Optional[str] = Field(None, min_length=3, max_length=8)
    low_stock_threshold: Optional[float] = Field(None, ge=0)
    enable_alerts: Optional[bool] = None
    time_zone: Optional[str] = None
    date_format: Optional[str] = None
    require_reference_on_movements: Optional[bool] = None
    default_warehouse_id: Optional[str] = None
