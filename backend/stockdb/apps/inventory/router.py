from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from stockdb.database import get_db
from stockdb.tenancy import OrgContext, get_org_context, require_org_roles
from stockdb.apps.accounts.models import MembershipRole

from . import models, schemas, services

router = APIRouter(prefix="/inventory", tags=["inventory"])

WAREHOUSE_WRITE_ROLES = (MembershipRole.ADMIN,)


# ---------------------------------------------------------------------------
# Warehouses
# ---------------------------------------------------------------------------


@router.get("/warehouses", response_model=List[schemas.WarehouseRead])
def list_warehouses(
    q: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.list_warehouses(db, org_id=ctx.org_id, active=active, q=q)


@router.post("/warehouses", response_model=schemas.WarehouseRead, status_code=status.HTTP_201_CREATED)
def create_warehouse(
    payload: schemas.WarehouseCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*WAREHOUSE_WRITE_ROLES)),
):
    warehouse = services.create_warehouse(db, org_id=ctx.org_id, payload=payload)
    db.commit()
    db.refresh(warehouse)
    return warehouse


@router.patch("/warehouses/{warehouse_id}", response_model=schemas.WarehouseRead)
def update_warehouse(
    warehouse_id: str,
    payload: schemas.WarehouseUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*WAREHOUSE_WRITE_ROLES)),
):
    warehouse = services.update_warehouse(db, org_id=ctx.org_id, warehouse_id=warehouse_id, payload=payload)
    db.commit()
    db.refresh(warehouse)
    return warehouse


# ---------------------------------------------------------------------------
# Movements
# ---------------------------------------------------------------------------


@router.post(
    "/movements/inbound",
    response_model=schemas.MovementRead,
    status_code=status.HTTP_201_CREATED,
)
def record_inbound(
    payload: schemas.InboundRequest,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    movement = services.record_inbound(db, org_id=ctx.org_id, payload=payload, actor_user_id=ctx.user_id)
    db.commit()
    db.refresh(movement)
    return movement


@router.post(
    "/movements/outbound",
    response_model=schemas.MovementRead,
    status_code=status.HTTP_201_CREATED,
)
def record_outbound(
    payload: schemas.OutboundRequest,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    movement = services.record_outbound(db, org_id=ctx.org_id, payload=payload, actor_user_id=ctx.user_id)
    db.commit()
    db.refresh(movement)
    return movement


@router.post(
    "/movements/transfer",
    response_model=schemas.MovementRead,
    status_code=status.HTTP_201_CREATED,
)
def record_transfer(
    payload: schemas.TransferRequest,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    movement = services.record_transfer(db, org_id=ctx.org_id, payload=payload, actor_user_id=ctx.user_id)
    db.commit()
    db.refresh(movement)
    return movement


@router.get("/movements", response_model=List[schemas.MovementListItem])
def list_movements(
    type: Optional[models.MovementType] = Query(None),
    product_id: Optional[str] = Query(None),
    warehouse_id: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.list_movements(
        db,
        org_id=ctx.org_id,
        movement_type=type,
        product_id=product_id,
        warehouse_id=warehouse_id,
        q=q,
        limit=limit,
    )
