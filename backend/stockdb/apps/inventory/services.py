from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from stockdb.apps.catalog import models as catalog_models
from stockdb.apps.org_settings import services as settings_services
from . import models, schemas

logger = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ---------------------------------------------------------------------------
# Warehouses
# ---------------------------------------------------------------------------


def list_warehouses(
    db: Session,
    *,
    org_id: str,
    active: Optional[bool] = None,
    q: Optional[str] = None,
) -> List[models.Warehouse]:
    query = db.query(models.Warehouse).filter(models.Warehouse.org_id == org_id)
    if active is not None:
        query = query.filter(models.Warehouse.active.is_(active))
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(
            or_(
                models.Warehouse.name.ilike(like),
                models.Warehouse.code.ilike(like),
                models.Warehouse.location.ilike(like),
            )
        )
    return query.order_by(models.Warehouse.is_primary.desc(), models.Warehouse.name.asc()).all()


def get_warehouse(db: Session, *, org_id: str, warehouse_id: str) -> models.Warehouse:
    warehouse = (
        db.query(models.Warehouse)
        .filter(models.Warehouse.org_id == org_id, models.Warehouse.id == warehouse_id)
        .first()
    )
    if not warehouse:
        raise HTTPException(status_code=404, detail="Warehouse not found.")
    return warehouse


def get_active_warehouse(db: Session, *, org_id: str, warehouse_id: str) -> models.Warehouse:
    """Like get_warehouse, but a deactivated warehouse is a 400."""
    warehouse = get_warehouse(db, org_id=org_id, warehouse_id=warehouse_id)
    if not warehouse.active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Warehouse '{warehouse.name}' is inactive.",
        )
    return warehouse


def get_primary_warehouse(db: Session, *, org_id: str) -> Optional[models.Warehouse]:
    """The org's active primary warehouse, if any."""
    return (
        db.query(models.Warehouse)
        .filter(
            models.Warehouse.org_id == org_id,
            models.Warehouse.is_primary.is_(True),
            models.Warehouse.active.is_(True),
        )
        .first()
    )


def _make_primary(db: Session, *, warehouse: models.Warehouse) -> None:
    """
    Move the primary flag to `warehouse`.

    The clear runs and is flushed before the set so the partial unique
    index on (org_id) never sees two primaries; both statements share the
    caller's transaction.
    """
    if not warehouse.active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="An inactive warehouse cannot be the primary warehouse.",
        )
    (
        db.query(models.Warehouse)
        .filter(
            models.Warehouse.org_id == warehouse.org_id,
            models.Warehouse.is_primary.is_(True),
            models.Warehouse.id != warehouse.id,
        )
        .update({models.Warehouse.is_primary: False}, synchronize_session="fetch")
    )
    db.flush()
    warehouse.is_primary = True
    db.add(warehouse)
    db.flush()


def create_warehouse(db: Session, *, org_id: str, payload: schemas.WarehouseCreate) -> models.Warehouse:
    name = _clean(payload.name)
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required.")
    warehouse = models.Warehouse(
        org_id=org_id,
        name=name,
        code=_clean(payload.code),
        location=_clean(payload.location),
        is_primary=False,
        active=payload.active,
    )
    db.add(warehouse)
    db.flush()
    if payload.is_primary:
        _make_primary(db, warehouse=warehouse)
    return warehouse


def update_warehouse(
    db: Session,
    *,
    org_id: str,
    warehouse_id: str,
    payload: schemas.WarehouseUpdate,
) -> models.Warehouse:
    warehouse = get_warehouse(db, org_id=org_id, warehouse_id=warehouse_id)
    data = payload.model_dump(exclude_unset=True)

    if "name" in data:
        name = _clean(data["name"])
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required.")
        warehouse.name = name
    if "code" in data:
        warehouse.code = _clean(data["code"])
    if "location" in data:
        warehouse.location = _clean(data["location"])
    if data.get("active") is not None:
        warehouse.active = data["active"]

    primary = data.get("is_primary")
    if primary is True:
        _make_primary(db, warehouse=warehouse)
    elif primary is False:
        warehouse.is_primary = False

    db.add(warehouse)
    db.flush()
    return warehouse


# ---------------------------------------------------------------------------
# Movements
# ---------------------------------------------------------------------------


def _get_product(db: Session, *, org_id: str, product_id: str) -> catalog_models.Product:
    product = (
        db.query(catalog_models.Product)
        .filter(catalog_models.Product.org_id == org_id, catalog_models.Product.id == product_id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found.")
    if not product.active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Product '{product.sku}' is inactive.",
        )
    return product


def default_warehouse(db: Session, *, org_id: str) -> Optional[models.Warehouse]:
    """The org's default warehouse setting, else its primary warehouse. Inactive rows are skipped."""
    settings = settings_services.get_settings(db, org_id=org_id)
    if settings.default_warehouse_id:
        warehouse = (
            db.query(models.Warehouse)
            .filter(
                models.Warehouse.org_id == org_id,
                models.Warehouse.id == settings.default_warehouse_id,
                models.Warehouse.active.is_(True),
            )
            .first()
        )
        if warehouse:
            return warehouse
    return get_primary_warehouse(db, org_id=org_id)


def resolve_warehouse(db: Session, *, org_id: str, warehouse_id: Optional[str]) -> models.Warehouse:
    """
    Pick the warehouse a movement posts to: the explicit one, then the
    org's default warehouse setting, then its primary warehouse.
    """
    warehouse_id = _clean(warehouse_id)
    if warehouse_id:
        return get_active_warehouse(db, org_id=org_id, warehouse_id=warehouse_id)

    warehouse = default_warehouse(db, org_id=org_id)
    if warehouse:
        return warehouse
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="No warehouse given and the organization has no default or primary warehouse.",
    )


def _check_reference(db: Session, *, org_id: str, reference: Optional[str]) -> Optional[str]:
    reference = _clean(reference)
    if not reference:
        settings = settings_services.get_settings(db, org_id=org_id)
        if settings.require_reference_on_movements:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A reference is required for stock movements.",
            )
    return reference


def _create_movement(
    db: Session,
    *,
    org_id: str,
    product: catalog_models.Product,
    warehouse: models.Warehouse,
    movement_type: models.MovementType,
    payload: schemas.MovementBase,
    reference: Optional[str],
    actor_user_id: Optional[str],
    to_warehouse: Optional[models.Warehouse] = None,
    lot_number: Optional[str] = None,
    expiration_date: Optional[date] = None,
    purchase_order_id: Optional[str] = None,
) -> models.InventoryMovement:
    movement = models.InventoryMovement(
        org_id=org_id,
        product_id=product.id,
        warehouse_id=warehouse.id,
        to_warehouse_id=to_warehouse.id if to_warehouse else None,
        type=movement_type,
        quantity=payload.quantity,
        reference=reference,
        reason=_clean(payload.reason),
        notes=_clean(payload.notes),
        lot_number=_clean(lot_number),
        expiration_date=expiration_date,
        purchase_order_id=purchase_order_id,
        created_by=actor_user_id,
        created_at=datetime.utcnow(),
    )
    db.add(movement)
    db.flush()
    logger.info(
        "Stock movement recorded",
        extra={
            "org_id": org_id,
            "movement_id": movement.id,
            "movement_type": movement_type.value,
            "product_id": product.id,
            "quantity": payload.quantity,
        },
    )
    return movement


def record_inbound(
    db: Session,
    *,
    org_id: str,
    payload: schemas.InboundRequest,
    actor_user_id: Optional[str],
    purchase_order_id: Optional[str] = None,
) -> models.InventoryMovement:
    product = _get_product(db, org_id=org_id, product_id=payload.product_id)
    warehouse = resolve_warehouse(db, org_id=org_id, warehouse_id=payload.warehouse_id)
    reference = _check_reference(db, org_id=org_id, reference=payload.reference)
    return _create_movement(
        db,
        org_id=org_id,
        product=product,
        warehouse=warehouse,
        movement_type=models.MovementType.IN,
        payload=payload,
        reference=reference,
        actor_user_id=actor_user_id,
        lot_number=payload.lot_number,
        expiration_date=payload.expiration_date,
        purchase_order_id=purchase_order_id,
    )


def record_outbound(
    db: Session,
    *,
    org_id: str,
    payload: schemas.OutboundRequest,
    actor_user_id: Optional[str],
) -> models.InventoryMovement:
    """Outbound movements are not checked against stock; negative stock is allowed."""
    product = _get_product(db, org_id=org_id, product_id=payload.product_id)
    warehouse = resolve_warehouse(db, org_id=org_id, warehouse_id=payload.warehouse_id)
    reference = _check_reference(db, org_id=org_id, reference=payload.reference)
    return _create_movement(
        db,
        org_id=org_id,
        product=product,
        warehouse=warehouse,
        movement_type=models.MovementType.OUT,
        payload=payload,
        reference=reference,
        actor_user_id=actor_user_id,
    )


def record_transfer(
    db: Session,
    *,
    org_id: str,
    payload: schemas.TransferRequest,
    actor_user_id: Optional[str],
) -> models.InventoryMovement:
    product = _get_product(db, org_id=org_id, product_id=payload.product_id)
    source = resolve_warehouse(db, org_id=org_id, warehouse_id=payload.from_warehouse_id)
    destination = get_active_warehouse(db, org_id=org_id, warehouse_id=payload.to_warehouse_id)
    if source.id == destination.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Source and destination warehouses must differ.",
        )
    reference = _check_reference(db, org_id=org_id, reference=payload.reference)
    return _create_movement(
        db,
        org_id=org_id,
        product=product,
        warehouse=source,
        movement_type=models.MovementType.TRANSFER,
        payload=payload,
        reference=reference,
        actor_user_id=actor_user_id,
        to_warehouse=destination,
    )


def list_movements(
    db: Session,
    *,
    org_id: str,
    movement_type: Optional[models.MovementType] = None,
    product_id: Optional[str] = None,
    warehouse_id: Optional[str] = None,
    q: Optional[str] = None,
    limit: int = 50,
) -> List[schemas.MovementListItem]:
    query = db.query(models.InventoryMovement).filter(models.InventoryMovement.org_id == org_id)
    if movement_type is not None:
        query = query.filter(models.InventoryMovement.type == movement_type)
    if product_id:
        query = query.filter(models.InventoryMovement.product_id == product_id)
    if warehouse_id:
        query = query.filter(
            (models.InventoryMovement.warehouse_id == warehouse_id)
            | (models.InventoryMovement.to_warehouse_id == warehouse_id)
        )
    rows = (
        query.order_by(models.InventoryMovement.created_at.desc(), models.InventoryMovement.id.desc())
        .limit(limit)
        .all()
    )
    items = [schemas.MovementListItem.from_movement(row) for row in rows]

    needle = (q or "").strip().lower()
    if not needle:
        return items
    return [
        item
        for item in items
        if any(
            needle in (value or "").lower()
            for value in (
                item.code,
                item.product_sku,
                item.product_name,
                item.reference,
                item.warehouse_name,
                item.notes,
                item.reason,
            )
        )
    ]
