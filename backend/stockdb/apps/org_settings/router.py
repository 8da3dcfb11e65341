from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stockdb.database import get_db
from stockdb.tenancy import OrgContext, get_org_context, require_org_roles
from stockdb.apps.accounts.models import MembershipRole

from . import schemas, services

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=schemas.SettingsRead)
def read_settings(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    settings = services.get_settings(db, org_id=ctx.org_id)
    db.commit()
    return settings


@router.put("", response_model=schemas.SettingsRead)
def update_settings(
    payload: schemas.SettingsUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(MembershipRole.ADMIN)),
):
    settings = services.update_settings(db, org_id=ctx.org_id, payload=payload)
    db.commit()
    db.refresh(settings)
    return settings
