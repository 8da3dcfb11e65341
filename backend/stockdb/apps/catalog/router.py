from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from stockdb.database import get_db
from stockdb.tenancy import OrgContext, get_org_context, require_org_roles
from stockdb.apps.accounts.models import MembershipRole

from . import schemas, services

router = APIRouter(prefix="/catalog", tags=["catalog"])

CATALOG_WRITE_ROLES = (MembershipRole.ADMIN,)


@router.get("/categories", response_model=List[schemas.CategoryRead])
def list_categories(
    q: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.list_categories(db, org_id=ctx.org_id, active=active, q=q)


@router.post("/categories", response_model=schemas.CategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*CATALOG_WRITE_ROLES)),
):
    category = services.create_category(db, org_id=ctx.org_id, payload=payload)
    db.commit()
    db.refresh(category)
    return category


@router.patch("/categories/{category_id}", response_model=schemas.CategoryRead)
def update_category(
    category_id: str,
    payload: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*CATALOG_WRITE_ROLES)),
):
    category = services.update_category(db, org_id=ctx.org_id, category_id=category_id, payload=payload)
    db.commit()
    db.refresh(category)
    return category


@router.get("/products", response_model=List[schemas.ProductRead])
def list_products(
    q: Optional[str] = Query(None, description="Matches SKU, name or barcode."),
    active: Optional[bool] = Query(None),
    category_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.list_products(db, org_id=ctx.org_id, active=active, category_id=category_id, q=q)


@router.get("/products/{product_id}", response_model=schemas.ProductRead)
def get_product(
    product_id: str,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.get_product(db, org_id=ctx.org_id, product_id=product_id)


@router.post("/products", response_model=schemas.ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: schemas.ProductCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*CATALOG_WRITE_ROLES)),
):
    product = services.create_product(db, org_id=ctx.org_id, payload=payload)
    db.commit()
    db.refresh(product)
    return product


@router.patch("/products/{product_id}", response_model=schemas.ProductRead)
def update_product(
    product_id: str,
    payload: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(require_org_roles(*CATALOG_WRITE_ROLES)),
):
    product = services.update_product(db, org_id=ctx.org_id, product_id=product_id, payload=payload)
    db.commit()
    db.refresh(product)
    return product
