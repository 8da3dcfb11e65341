from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from stockdb.apps.inventory import models as inventory_models
from . import models, schemas

logger = logging.getLogger(__name__)


def get_settings(db: Session, *, org_id: str) -> models.OrgSettings:
    """Return the org's settings row, inserting the defaults on first read."""
    settings = db.query(models.OrgSettings).filter(models.OrgSettings.org_id == org_id).first()
    if settings is None:
        settings = models.OrgSettings(org_id=org_id)
        db.add(settings)
        db.flush()
        logger.info("Settings created with defaults", extra={"org_id": org_id})
    return settings


def _validate_time_zone(name: str) -> str:
    name = (name or "").strip()
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown time zone '{name}'.",
        )
    return name


def update_settings(db: Session, *, org_id: str, payload: schemas.SettingsUpdate) -> models.OrgSettings:
    settings = get_settings(db, org_id=org_id)
    data = payload.model_dump(exclude_unset=True)

    if "business_name" in data:
        name = (data.pop("business_name") or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="business_name is required.")
        settings.business_name = name
    if "currency" in data:
        currency = data.pop("currency")
        if currency:
            settings.currency = currency.strip().upper()
    if "time_zone" in data:
        tz_name = data.pop("time_zone")
        if tz_name is not None:
            settings.time_zone = _validate_time_zone(tz_name)
    if "default_warehouse_id" in data:
        warehouse_id = (data.pop("default_warehouse_id") or "").strip() or None
        if warehouse_id:
            warehouse = (
                db.query(inventory_models.Warehouse)
                .filter(
                    inventory_models.Warehouse.org_id == org_id,
                    inventory_models.Warehouse.id == warehouse_id,
                )
                .first()
            )
            if not warehouse:
                raise HTTPException(status_code=404, detail="Warehouse not found.")
            if not warehouse.active:
                raise HTTPException(status_code=400, detail="An inactive warehouse cannot be the default.")
        settings.default_warehouse_id = warehouse_id
    for field, value in data.items():
        if value is not None:
            setattr(settings, field, value)

    db.add(settings)
    db.flush()
    return settings


def org_zone(settings: models.OrgSettings) -> ZoneInfo:
    try:
        return ZoneInfo(settings.time_zone or models.DEFAULT_TIME_ZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "Invalid stored time zone, using UTC",
            extra={"org_id": settings.org_id, "time_zone": settings.time_zone},
        )
        return ZoneInfo("UTC")


def org_today(settings: models.OrgSettings, *, now: Optional[datetime] = None) -> date:
    """Current calendar date in the organization's time zone."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(org_zone(settings)).date()
