# backend/stockdb/apps/accounts/router_onboarding.py

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from stockdb.database import get_db
from stockdb.security import get_current_active_user
from stockdb.tenancy import OrgContext, get_org_context
from . import models, schemas, services

router = APIRouter(prefix="/orgs", tags=["organizations"])


@router.post(
    "/bootstrap",
    response_model=schemas.BootstrapResult,
    summary="Provision an organization for the current user if they have none",
)
def bootstrap_org(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
) -> schemas.BootstrapResult:
    membership, created = services.bootstrap_org_if_needed(db, user=current_user)
    db.commit()
    return schemas.BootstrapResult(org_id=membership.org_id, role=membership.role, created=created)


@router.get("/current", response_model=schemas.OrganizationRead)
def read_current_org(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    org = db.query(models.Organization).filter(models.Organization.id == ctx.org_id).first()
    if not org:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found.")
    return org


@router.get("/memberships", response_model=List[schemas.MembershipRead])
def list_my_memberships(
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_active_user),
):
    return services.list_memberships(db, user_id=current_user.id)
