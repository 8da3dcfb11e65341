from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from stockdb.database import get_db
from stockdb.tenancy import OrgContext, get_org_context, require_org_roles
from stockdb.apps.accounts.models import MembershipRole

from . import models, schemas, services

router = APIRouter(prefix="/purchasing", tags=["purchasing"])

PURCHASING_ROLES = (MembershipRole.ADMIN,)


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


@router.get("/suppliers", response_model=List[schemas.SupplierRead])
def list_suppliers(
    q: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.list_suppliers(db, org_id=ctx.org_id, active=active, q=q)


@router.post("/suppliers", response_model=schemas.SupplierRead, status_code=status.HTTP_201_CREATED)
def create_supplier(
    payload: schemas.SupplierCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*PURCHASING_ROLES)),
):
    supplier = services.create_supplier(db, org_id=ctx.org_id, payload=payload)
    db.commit()
    db.refresh(supplier)
    return supplier


@router.patch("/suppliers/{supplier_id}", response_model=schemas.SupplierRead)
def update_supplier(
    supplier_id: str,
    payload: schemas.SupplierUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*PURCHASING_ROLES)),
):
    supplier = services.update_supplier(db, org_id=ctx.org_id, supplier_id=supplier_id, payload=payload)
    db.commit()
    db.refresh(supplier)
    return supplier


# ---------------------------------------------------------------------------
# Purchase orders
# ---------------------------------------------------------------------------


@router.get("/purchase-orders", response_model=List[schemas.PurchaseOrderRead])
def list_purchase_orders(
    status_filter: Optional[models.PurchaseOrderStatus] = Query(None, alias="status"),
    supplier_id: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.list_purchase_orders(
        db,
        org_id=ctx.org_id,
        status_filter=status_filter,
        supplier_id=supplier_id,
        q=q,
    )


@router.get("/purchase-orders/{purchase_order_id}", response_model=schemas.PurchaseOrderRead)
def get_purchase_order(
    purchase_order_id: str,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.get_purchase_order(db, org_id=ctx.org_id, purchase_order_id=purchase_order_id)


@router.post(
    "/purchase-orders",
    response_model=schemas.PurchaseOrderRead,
    status_code=status.HTTP_201_CREATED,
)
def create_purchase_order(
    payload: schemas.PurchaseOrderCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*PURCHASING_ROLES)),
):
    po = services.create_purchase_order(db, org_id=ctx.org_id, payload=payload, actor_user_id=ctx.user_id)
    db.commit()
    db.refresh(po)
    return po


@router.patch("/purchase-orders/{purchase_order_id}", response_model=schemas.PurchaseOrderRead)
def update_purchase_order(
    purchase_order_id: str,
    payload: schemas.PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*PURCHASING_ROLES)),
):
    po = services.update_purchase_order(
        db,
        org_id=ctx.org_id,
        purchase_order_id=purchase_order_id,
        payload=payload,
    )
    db.commit()
    db.refresh(po)
    return po


@router.post("/purchase-orders/{purchase_order_id}/status", response_model=schemas.PurchaseOrderRead)
def change_purchase_order_status(
    purchase_order_id: str,
    payload: schemas.PurchaseOrderStatusUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*PURCHASING_ROLES)),
):
    po = services.change_status(
        db,
        org_id=ctx.org_id,
        purchase_order_id=purchase_order_id,
        payload=payload,
        actor_user_id=ctx.user_id,
    )
    db.commit()
    db.refresh(po)
    return po
