from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from stockdb.apps.catalog import models as catalog_models
from stockdb.apps.inventory import schemas as inventory_schemas
from stockdb.apps.inventory import services as inventory_services
from stockdb.apps.workflow import TransitionError, apply_transition
from . import models, schemas

logger = logging.getLogger(__name__)

WORKFLOW_ENTITY = "purchase_order"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


def list_suppliers(
    db: Session,
    *,
    org_id: str,
    active: Optional[bool] = None,
    q: Optional[str] = None,
) -> List[models.Supplier]:
    query = db.query(models.Supplier).filter(models.Supplier.org_id == org_id)
    if active is not None:
        query = query.filter(models.Supplier.active.is_(active))
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(
            or_(
                models.Supplier.name.ilike(like),
                models.Supplier.email.ilike(like),
                models.Supplier.phone.ilike(like),
            )
        )
    return query.order_by(models.Supplier.created_at.desc()).all()


def get_supplier(db: Session, *, org_id: str, supplier_id: str) -> models.Supplier:
    supplier = (
        db.query(models.Supplier)
        .filter(models.Supplier.org_id == org_id, models.Supplier.id == supplier_id)
        .first()
    )
    if not supplier:
        raise HTTPException(status_code=404, detail="Supplier not found.")
    return supplier


def create_supplier(db: Session, *, org_id: str, payload: schemas.SupplierCreate) -> models.Supplier:
    name = _clean(payload.name)
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required.")
    supplier = models.Supplier(
        org_id=org_id,
        name=name,
        email=str(payload.email).lower() if payload.email else None,
        phone=_clean(payload.phone),
        active=payload.active,
    )
    db.add(supplier)
    db.flush()
    return supplier


def update_supplier(
    db: Session,
    *,
    org_id: str,
    supplier_id: str,
    payload: schemas.SupplierUpdate,
) -> models.Supplier:
    supplier = get_supplier(db, org_id=org_id, supplier_id=supplier_id)
    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        name = _clean(data["name"])
        if not name:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="name is required.")
        supplier.name = name
    if "email" in data:
        supplier.email = str(data["email"]).lower() if data["email"] else None
    if "phone" in data:
        supplier.phone = _clean(data["phone"])
    if data.get("active") is not None:
        supplier.active = data["active"]
    db.add(supplier)
    db.flush()
    return supplier


# ---------------------------------------------------------------------------
# Purchase orders
# ---------------------------------------------------------------------------


def list_purchase_orders(
    db: Session,
    *,
    org_id: str,
    status_filter: Optional[models.PurchaseOrderStatus] = None,
    supplier_id: Optional[str] = None,
    q: Optional[str] = None,
) -> List[models.PurchaseOrder]:
    query = db.query(models.PurchaseOrder).filter(models.PurchaseOrder.org_id == org_id)
    if status_filter is not None:
        query = query.filter(models.PurchaseOrder.status == status_filter)
    if supplier_id:
        query = query.filter(models.PurchaseOrder.supplier_id == supplier_id)
    if q:
        like = f"%{q.strip()}%"
        query = query.join(models.Supplier, models.Supplier.id == models.PurchaseOrder.supplier_id).filter(
            or_(
                models.PurchaseOrder.reference.ilike(like),
                models.Supplier.name.ilike(like),
            )
        )
    return query.order_by(models.PurchaseOrder.created_at.desc()).all()


def get_purchase_order(db: Session, *, org_id: str, purchase_order_id: str) -> models.PurchaseOrder:
    po = (
        db.query(models.PurchaseOrder)
        .filter(models.PurchaseOrder.org_id == org_id, models.PurchaseOrder.id == purchase_order_id)
        .first()
    )
    if not po:
        raise HTTPException(status_code=404, detail="Purchase order not found.")
    return po


def create_purchase_order(
    db: Session,
    *,
    org_id: str,
    payload: schemas.PurchaseOrderCreate,
    actor_user_id: Optional[str],
) -> models.PurchaseOrder:
    supplier = get_supplier(db, org_id=org_id, supplier_id=payload.supplier_id)
    if not supplier.active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Supplier is inactive.")

    po = models.PurchaseOrder(
        org_id=org_id,
        supplier_id=supplier.id,
        status=models.PurchaseOrderStatus.DRAFT,
        reference=_clean(payload.reference),
        notes=_clean(payload.notes),
        created_by=actor_user_id,
    )
    db.add(po)
    db.flush()

    for line in payload.lines:
        product = (
            db.query(catalog_models.Product)
            .filter(catalog_models.Product.org_id == org_id, catalog_models.Product.id == line.product_id)
            .first()
        )
        if not product:
            raise HTTPException(status_code=404, detail="Product not found for purchase order line.")
        db.add(
            models.PurchaseOrderLine(
                purchase_order_id=po.id,
                product_id=product.id,
                quantity=line.quantity,
                unit_cost=line.unit_cost,
            )
        )
    db.flush()
    db.refresh(po)

    if payload.status != models.PurchaseOrderStatus.DRAFT:
        po = change_status(
            db,
            org_id=org_id,
            purchase_order_id=po.id,
            payload=schemas.PurchaseOrderStatusUpdate(status=payload.status),
            actor_user_id=actor_user_id,
        )
    logger.info(
        "Purchase order created",
        extra={"org_id": org_id, "purchase_order_id": po.id, "user_id": actor_user_id},
    )
    return po


def update_purchase_order(
    db: Session,
    *,
    org_id: str,
    purchase_order_id: str,
    payload: schemas.PurchaseOrderUpdate,
) -> models.PurchaseOrder:
    po = get_purchase_order(db, org_id=org_id, purchase_order_id=purchase_order_id)
    data = payload.model_dump(exclude_unset=True)
    if "reference" in data:
        po.reference = _clean(data["reference"])
    if "notes" in data:
        po.notes = _clean(data["notes"])
    db.add(po)
    db.flush()
    return po


def _post_receipt(
    db: Session,
    *,
    po: models.PurchaseOrder,
    warehouse_id: str,
    payload: schemas.PurchaseOrderStatusUpdate,
    actor_user_id: Optional[str],
) -> None:
    for line in po.lines:
        inventory_services.record_inbound(
            db,
            org_id=po.org_id,
            payload=inventory_schemas.InboundRequest(
                product_id=line.product_id,
                quantity=line.quantity,
                warehouse_id=warehouse_id,
                reference=po.reference or f"PO-{po.id[-8:].upper()}",
                reason="Compra",
                lot_number=payload.lot_number,
                expiration_date=payload.expiration_date,
            ),
            actor_user_id=actor_user_id,
            purchase_order_id=po.id,
        )


def change_status(
    db: Session,
    *,
    org_id: str,
    purchase_order_id: str,
    payload: schemas.PurchaseOrderStatusUpdate,
    actor_user_id: Optional[str],
) -> models.PurchaseOrder:
    """
    Move a purchase order along draft -> sent -> received (or cancelled).

    Re-applying the current status is a no-op. Receiving an order with
    line items posts one inbound movement per line.
    """
    po = get_purchase_order(db, org_id=org_id, purchase_order_id=purchase_order_id)
    current = models.PurchaseOrderStatus(po.status)
    target = payload.status
    if current == target:
        return po

    receipt_warehouse_id = None
    if target == models.PurchaseOrderStatus.RECEIVED and po.lines:
        if _clean(payload.warehouse_id):
            receipt_warehouse_id = inventory_services.get_active_warehouse(
                db, org_id=org_id, warehouse_id=payload.warehouse_id.strip()
            ).id
        else:
            warehouse = inventory_services.default_warehouse(db, org_id=org_id)
            receipt_warehouse_id = warehouse.id if warehouse else None

    try:
        apply_transition(
            db,
            actor_user_id=actor_user_id,
            entity_type=WORKFLOW_ENTITY,
            entity_id=po.id,
            from_state=current.value,
            to_state=target.value,
            before_obj=po,
            after_obj={
                "status": target.value,
                "supplier": po.supplier,
                "lines": po.lines,
                "receipt_warehouse_id": receipt_warehouse_id,
            },
            org_id=org_id,
        )
    except TransitionError as exc:
        code = status.HTTP_409_CONFLICT if exc.code == "invalid_transition" else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail={"code": exc.code, "errors": exc.detail})

    if target == models.PurchaseOrderStatus.RECEIVED:
        if receipt_warehouse_id:
            _post_receipt(
                db,
                po=po,
                warehouse_id=receipt_warehouse_id,
                payload=payload,
                actor_user_id=actor_user_id,
            )
        po.received_at = datetime.utcnow()

    po.status = target
    db.add(po)
    db.flush()
    return po
