from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from . import models, schemas

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _require(value: Optional[str], field: str) -> str:
    cleaned = _clean(value)
    if not cleaned:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} is required.",
        )
    return cleaned


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def list_categories(
    db: Session,
    *,
    org_id: str,
    active: Optional[bool] = None,
    q: Optional[str] = None,
) -> List[models.Category]:
    query = db.query(models.Category).filter(models.Category.org_id == org_id)
    if active is not None:
        query = query.filter(models.Category.active.is_(active))
    if q:
        query = query.filter(models.Category.name.ilike(f"%{q.strip()}%"))
    return query.order_by(models.Category.created_at.desc()).all()


def get_category(db: Session, *, org_id: str, category_id: str) -> models.Category:
    category = (
        db.query(models.Category)
        .filter(models.Category.org_id == org_id, models.Category.id == category_id)
        .first()
    )
    if not category:
        raise HTTPException(status_code=404, detail="Category not found.")
    return category


def create_category(db: Session, *, org_id: str, payload: schemas.CategoryCreate) -> models.Category:
    category = models.Category(
        org_id=org_id,
        name=_require(payload.name, "name"),
        description=_clean(payload.description),
        active=payload.active,
    )
    db.add(category)
    db.flush()
    return category


def update_category(
    db: Session,
    *,
    org_id: str,
    category_id: str,
    payload: schemas.CategoryUpdate,
) -> models.Category:
    category = get_category(db, org_id=org_id, category_id=category_id)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        category.name = _require(data["name"], "name")
    if "description" in data:
        category.description = _clean(data["description"])
    if data.get("active") is not None:
        category.active = data["active"]
    db.add(category)
    db.flush()
    return category


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def list_products(
    db: Session,
    *,
    org_id: str,
    active: Optional[bool] = None,
    category_id: Optional[str] = None,
    q: Optional[str] = None,
) -> List[models.Product]:
    query = db.query(models.Product).filter(models.Product.org_id == org_id)
    if active is not None:
        query = query.filter(models.Product.active.is_(active))
    if category_id:
        query = query.filter(models.Product.category_id == category_id)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(
            or_(
                models.Product.sku.ilike(like),
                models.Product.name.ilike(like),
                models.Product.barcode.ilike(like),
            )
        )
    return query.order_by(models.Product.created_at.desc()).all()


def get_product(db: Session, *, org_id: str, product_id: str) -> models.Product:
    product = (
        db.query(models.Product)
        .filter(models.Product.org_id == org_id, models.Product.id == product_id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found.")
    return product


def _ensure_sku_free(db: Session, *, org_id: str, sku: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(models.Product).filter(models.Product.org_id == org_id, models.Product.sku == sku)
    if exclude_id:
        query = query.filter(models.Product.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f"SKU '{sku}' already exists.")


def _check_category(db: Session, *, org_id: str, category_id: Optional[str]) -> Optional[str]:
    category_id = _clean(category_id)
    if category_id:
        get_category(db, org_id=org_id, category_id=category_id)
    return category_id


def _check_stock_bounds(min_stock: float, max_stock: Optional[float]) -> None:
    if max_stock is not None and max_stock < min_stock:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="max_stock cannot be lower than min_stock.",
        )


def create_product(db: Session, *, org_id: str, payload: schemas.ProductCreate) -> models.Product:
    sku = _require(payload.sku, "sku")
    name = _require(payload.name, "name")
    _ensure_sku_free(db, org_id=org_id, sku=sku)
    _check_stock_bounds(payload.min_stock, payload.max_stock)

    product = models.Product(
        org_id=org_id,
        sku=sku,
        name=name,
        category_id=_check_category(db, org_id=org_id, category_id=payload.category_id),
        unit=_clean(payload.unit) or "unit",
        cost=payload.cost,
        price=payload.price,
        discount_percent=payload.discount_percent,
        tax_percent=payload.tax_percent,
        min_stock=payload.min_stock,
        max_stock=payload.max_stock,
        barcode=_clean(payload.barcode),
        description=_clean(payload.description),
        image_url=_clean(payload.image_url),
        active=payload.active,
    )
    db.add(product)
    db.flush()
    logger.info("Product created", extra={"org_id": org_id, "product_id": product.id, "sku": sku})
    return product


def update_product(
    db: Session,
    *,
    org_id: str,
    product_id: str,
    payload: schemas.ProductUpdate,
) -> models.Product:
    product = get_product(db, org_id=org_id, product_id=product_id)
    data = payload.model_dump(exclude_unset=True)

    if "sku" in data:
        sku = _require(data.pop("sku"), "sku")
        _ensure_sku_free(db, org_id=org_id, sku=sku, exclude_id=product.id)
        product.sku = sku
    if "name" in data:
        product.name = _require(data.pop("name"), "name")
    if "category_id" in data:
        product.category_id = _check_category(db, org_id=org_id, category_id=data.pop("category_id"))
    if "unit" in data:
        product.unit = _clean(data.pop("unit")) or "unit"
    for field in ("barcode", "description", "image_url"):
        if field in data:
            setattr(product, field, _clean(data.pop(field)))
    if "max_stock" in data:
        product.max_stock = data.pop("max_stock")
    for field, value in data.items():
        if value is not None:
            setattr(product, field, value)

    _check_stock_bounds(product.min_stock, product.max_stock)
    db.add(product)
    db.flush()
    return product
