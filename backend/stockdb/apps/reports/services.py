from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional, TypeVar

from fastapi import HTTPException
from sqlalchemy.orm import Session

from stockdb.apps.catalog import models as catalog_models
from stockdb.apps.inventory import models as inventory_models
from stockdb.apps.org_settings import services as settings_services
from stockdb.utils.identifiers import movement_display_code

from . import ledger, schemas

logger = logging.getLogger(__name__)

T = TypeVar("T")

MovementType = inventory_models.MovementType


# ---------------------------------------------------------------------------
# Loading helpers
# ---------------------------------------------------------------------------


def _products(db: Session, *, org_id: str, active_only: bool = False) -> List[catalog_models.Product]:
    query = db.query(catalog_models.Product).filter(catalog_models.Product.org_id == org_id)
    if active_only:
        query = query.filter(catalog_models.Product.active.is_(True))
    return query.order_by(catalog_models.Product.sku.asc()).all()


def _movements(
    db: Session,
    *,
    org_id: str,
    product_id: Optional[str] = None,
) -> List[inventory_models.InventoryMovement]:
    query = db.query(inventory_models.InventoryMovement).filter(
        inventory_models.InventoryMovement.org_id == org_id
    )
    if product_id:
        query = query.filter(inventory_models.InventoryMovement.product_id == product_id)
    return query.order_by(
        inventory_models.InventoryMovement.created_at.asc(),
        inventory_models.InventoryMovement.id.asc(),
    ).all()


def _local_date(value: datetime, settings) -> date:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(settings_services.org_zone(settings)).date()


def _best_effort(label: str, org_id: str, fn: Callable[[], T], default: T, db: Session) -> T:
    """Run one sub-query of a composite read; a failure is logged and yields `default`."""
    try:
        return fn()
    except Exception:
        logger.warning(
            "Aggregate sub-query failed",
            extra={"org_id": org_id, "operation": label},
            exc_info=True,
        )
        db.rollback()
        return default


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------


def stock_by_product(
    db: Session,
    *,
    org_id: str,
    warehouse_id: Optional[str] = None,
    active_only: bool = False,
) -> List[schemas.StockRow]:
    """Current stock per product: inbound minus outbound over the whole ledger."""
    totals = ledger.stock_totals(_movements(db, org_id=org_id), warehouse_id)
    return [
        schemas.StockRow(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            category_name=product.category_name,
            stock=totals.get(product.id, 0.0),
            min_stock=product.min_stock or 0.0,
            max_stock=product.max_stock,
            cost=product.cost or 0.0,
            active=bool(product.active),
        )
        for product in _products(db, org_id=org_id, active_only=active_only)
    ]


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


def low_stock(db: Session, *, org_id: str) -> List[schemas.LowStockRow]:
    settings = settings_services.get_settings(db, org_id=org_id)
    rows: List[schemas.LowStockRow] = []
    for row in stock_by_product(db, org_id=org_id, active_only=True):
        threshold = ledger.effective_threshold(row.min_stock, settings.low_stock_threshold)
        if not ledger.is_low_stock(row.stock, threshold):
            continue
        rows.append(
            schemas.LowStockRow(
                product_id=row.product_id,
                sku=row.sku,
                name=row.name,
                stock=row.stock,
                min_stock=row.min_stock,
                threshold=threshold,
                tone=ledger.low_stock_tone(row.stock, threshold),
                severity=ledger.low_stock_severity(row.stock, threshold),
            )
        )
    rows.sort(key=lambda r: (r.stock - r.threshold, r.sku))
    return rows


def expiring_soon(
    db: Session,
    *,
    org_id: str,
    horizon_days: int = 30,
    now: Optional[datetime] = None,
) -> List[schemas.ExpiringRow]:
    """
    Per product still in stock, its earliest inbound lot expiring within
    `horizon_days` of the org's local today (already expired lots included).
    """
    settings = settings_services.get_settings(db, org_id=org_id)
    today = settings_services.org_today(settings, now=now)
    movements = _movements(db, org_id=org_id)
    totals = ledger.stock_totals(movements)

    earliest: Dict[str, inventory_models.InventoryMovement] = {}
    for movement in movements:
        if MovementType(movement.type) != MovementType.IN or movement.expiration_date is None:
            continue
        if ledger.days_until(movement.expiration_date, today) > horizon_days:
            continue
        current = earliest.get(movement.product_id)
        if current is None or movement.expiration_date < current.expiration_date:
            earliest[movement.product_id] = movement

    rows: List[schemas.ExpiringRow] = []
    for product in _products(db, org_id=org_id, active_only=True):
        lot = earliest.get(product.id)
        stock = totals.get(product.id, 0.0)
        if lot is None or stock <= 0:
            continue
        days_left = ledger.days_until(lot.expiration_date, today)
        rows.append(
            schemas.ExpiringRow(
                product_id=product.id,
                sku=product.sku,
                name=product.name,
                stock=stock,
                lot_number=lot.lot_number,
                expiration_date=lot.expiration_date,
                days_left=days_left,
                tone=ledger.expiring_tone(days_left),
                severity=ledger.expiring_severity(days_left),
            )
        )
    rows.sort(key=lambda r: (r.days_left, r.sku))
    return rows


def overstock(db: Session, *, org_id: str) -> List[schemas.OverstockRow]:
    rows: List[schemas.OverstockRow] = []
    for row in stock_by_product(db, org_id=org_id, active_only=True):
        extra = ledger.overstock_extra(row.stock, row.max_stock)
        if extra is None:
            continue
        rows.append(
            schemas.OverstockRow(
                product_id=row.product_id,
                sku=row.sku,
                name=row.name,
                stock=row.stock,
                max_stock=row.max_stock,
                extra=extra,
                tone=ledger.overstock_tone(extra),
            )
        )
    rows.sort(key=lambda r: (-r.extra, r.sku))
    return rows


def alerts_overview(db: Session, *, org_id: str, horizon_days: int = 30) -> schemas.AlertsOverview:
    settings = settings_services.get_settings(db, org_id=org_id)
    if not settings.enable_alerts:
        return schemas.AlertsOverview(enabled=False)
    return schemas.AlertsOverview(
        enabled=True,
        low_stock=_best_effort("low_stock", org_id, lambda: low_stock(db, org_id=org_id), [], db),
        expiring=_best_effort(
            "expiring_soon",
            org_id,
            lambda: expiring_soon(db, org_id=org_id, horizon_days=horizon_days),
            [],
            db,
        ),
        overstock=_best_effort("overstock", org_id, lambda: overstock(db, org_id=org_id), [], db),
    )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def dashboard_kpis(db: Session, *, org_id: str, now: Optional[datetime] = None) -> schemas.DashboardKpis:
    settings = settings_services.get_settings(db, org_id=org_id)
    today = settings_services.org_today(settings, now=now)
    stock = stock_by_product(db, org_id=org_id, active_only=True)

    movements_today = sum(
        1
        for movement in _movements(db, org_id=org_id)
        if MovementType(movement.type) in (MovementType.IN, MovementType.OUT)
        and _local_date(movement.created_at, settings) == today
    )
    return schemas.DashboardKpis(
        stock_total=sum(row.stock for row in stock),
        low_stock_count=len(low_stock(db, org_id=org_id)),
        inventory_value=round(sum(max(row.stock, 0.0) * row.cost for row in stock), 2),
        movements_today=movements_today,
        currency=settings.currency,
    )


def rotation(
    db: Session,
    *,
    org_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[schemas.RotationRow]:
    """Inbound and outbound quantities per product, most moved first."""
    settings = settings_services.get_settings(db, org_id=org_id)
    inbound: Dict[str, float] = defaultdict(float)
    outbound: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for movement in _movements(db, org_id=org_id):
        day = _local_date(movement.created_at, settings)
        if (start and day < start) or (end and day > end):
            continue
        kind = MovementType(movement.type)
        if kind == MovementType.IN:
            inbound[movement.product_id] += movement.quantity
        elif kind == MovementType.OUT:
            outbound[movement.product_id] += movement.quantity
        counts[movement.product_id] += 1

    rows = [
        schemas.RotationRow(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            inbound=inbound.get(product.id, 0.0),
            outbound=outbound.get(product.id, 0.0),
            movements=counts.get(product.id, 0),
        )
        for product in _products(db, org_id=org_id)
    ]
    rows.sort(key=lambda r: (-r.outbound, -r.movements, r.sku))
    return rows


def dashboard_top_products(db: Session, *, org_id: str, limit: int = 5) -> List[schemas.TopProductRow]:
    return [
        schemas.TopProductRow(product_id=row.product_id, sku=row.sku, name=row.name, qty=row.outbound)
        for row in rotation(db, org_id=org_id)
        if row.outbound > 0
    ][:limit]


def dashboard_supply(
    db: Session,
    *,
    org_id: str,
    months: int = 6,
    now: Optional[datetime] = None,
) -> schemas.SupplySummary:
    """
    Monthly quantities for the last `months` months: inbound as warehouse,
    transfers as in_transport, outbound as retail.
    """
    settings = settings_services.get_settings(db, org_id=org_id)
    today = settings_services.org_today(settings, now=now)
    keys = ledger.month_buckets(today, months)
    sums = {key: {MovementType.IN: 0.0, MovementType.TRANSFER: 0.0, MovementType.OUT: 0.0} for key in keys}

    for movement in _movements(db, org_id=org_id):
        day = _local_date(movement.created_at, settings)
        bucket = sums.get((day.year, day.month))
        if bucket is not None:
            bucket[MovementType(movement.type)] += movement.quantity

    bars: List[schemas.SupplyBucket] = []
    for year, month in keys:
        amounts = sums[(year, month)]
        w, t, r = ledger.to_pct3(amounts[MovementType.IN], amounts[MovementType.TRANSFER], amounts[MovementType.OUT])
        bars.append(
            schemas.SupplyBucket(
                label=ledger.month_label(year, month),
                month=f"{year:04d}-{month:02d}",
                warehouse=amounts[MovementType.IN],
                in_transport=amounts[MovementType.TRANSFER],
                retail=amounts[MovementType.OUT],
                warehouse_pct=w,
                in_transport_pct=t,
                retail_pct=r,
            )
        )
    total = sum(row.stock for row in stock_by_product(db, org_id=org_id, active_only=True))
    return schemas.SupplySummary(total=total, bars=bars)


def dashboard_health(db: Session, *, org_id: str) -> schemas.HealthSummary:
    """A product both under its threshold and over its maximum counts once, as under."""
    active = stock_by_product(db, org_id=org_id, active_only=True)
    under_ids = {row.product_id for row in low_stock(db, org_id=org_id)}
    over_ids = {row.product_id for row in overstock(db, org_id=org_id)} - under_ids
    return schemas.HealthSummary(**ledger.health_summary(len(active), len(under_ids), len(over_ids)))


def dashboard_overview(db: Session, *, org_id: str, now: Optional[datetime] = None) -> schemas.DashboardOverview:
    return schemas.DashboardOverview(
        kpis=_best_effort(
            "dashboard_kpis", org_id, lambda: dashboard_kpis(db, org_id=org_id, now=now), schemas.DashboardKpis(), db
        ),
        top_products=_best_effort(
            "dashboard_top_products", org_id, lambda: dashboard_top_products(db, org_id=org_id), [], db
        ),
        supply=_best_effort(
            "dashboard_supply", org_id, lambda: dashboard_supply(db, org_id=org_id, now=now), schemas.SupplySummary(), db
        ),
        health=_best_effort(
            "dashboard_health", org_id, lambda: dashboard_health(db, org_id=org_id), schemas.HealthSummary(), db
        ),
    )


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def kardex(
    db: Session,
    *,
    org_id: str,
    product_id: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    warehouse_id: Optional[str] = None,
) -> schemas.KardexReport:
    """
    Chronological movements of one product with a running balance.

    Movements before `start` fold into the opening balance; dates are
    compared in the org's time zone.
    """
    product = (
        db.query(catalog_models.Product)
        .filter(catalog_models.Product.org_id == org_id, catalog_models.Product.id == product_id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found.")
    if start and end and start > end:
        raise HTTPException(status_code=400, detail="start must not be after end.")

    settings = settings_services.get_settings(db, org_id=org_id)
    opening = 0.0
    in_range: List[inventory_models.InventoryMovement] = []
    for movement in _movements(db, org_id=org_id, product_id=product.id):
        day = _local_date(movement.created_at, settings)
        if start and day < start:
            opening += ledger.signed_quantity(movement, warehouse_id)
            continue
        if end and day > end:
            continue
        if warehouse_id and warehouse_id not in (movement.warehouse_id, movement.to_warehouse_id):
            continue
        in_range.append(movement)

    balances = ledger.running_balance(in_range, opening, warehouse_id)
    rows = [
        schemas.KardexRow(
            movement_id=movement.id,
            code=movement_display_code(MovementType(movement.type).value, movement.id, movement.created_at),
            created_at=movement.created_at,
            type=MovementType(movement.type),
            warehouse_name=movement.warehouse.name if movement.warehouse else None,
            to_warehouse_name=movement.to_warehouse.name if movement.to_warehouse else None,
            reference=movement.reference,
            reason=movement.reason,
            quantity=movement.quantity,
            signed_quantity=ledger.signed_quantity(movement, warehouse_id),
            balance=balance,
        )
        for movement, balance in zip(in_range, balances)
    ]
    return schemas.KardexReport(
        product_id=product.id,
        sku=product.sku,
        name=product.name,
        warehouse_id=warehouse_id,
        start=start,
        end=end,
        opening_balance=opening,
        closing_balance=balances[-1] if balances else opening,
        rows=rows,
    )


def valuation(db: Session, *, org_id: str) -> schemas.ValuationReport:
    settings = settings_services.get_settings(db, org_id=org_id)
    rows = [
        schemas.ValuationRow(
            product_id=row.product_id,
            sku=row.sku,
            name=row.name,
            stock=row.stock,
            cost=row.cost,
            value=round(max(row.stock, 0.0) * row.cost, 2),
        )
        for row in stock_by_product(db, org_id=org_id, active_only=True)
    ]
    rows.sort(key=lambda r: (-r.value, r.sku))
    return schemas.ValuationReport(
        currency=settings.currency,
        total_value=round(sum(r.value for r in rows), 2),
        rows=rows,
    )


REPORT_NAMES = ("stock", "low-stock", "valuation", "rotation", "kardex")


def report_table(
    db: Session,
    *,
    org_id: str,
    name: str,
    product_id: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    warehouse_id: Optional[str] = None,
) -> schemas.ReportTable:
    """Flatten a named report into title, headers and rows."""
    if name == "stock":
        return schemas.ReportTable(
            title="Stock por producto",
            columns=["SKU", "Producto", "Categoría", "Stock", "Mínimo", "Máximo"],
            rows=[
                [r.sku, r.name, r.category_name or "", r.stock, r.min_stock, r.max_stock if r.max_stock is not None else ""]
                for r in stock_by_product(db, org_id=org_id, warehouse_id=warehouse_id)
            ],
        )
    if name == "low-stock":
        return schemas.ReportTable(
            title="Bajo stock",
            columns=["SKU", "Producto", "Stock", "Mínimo", "Severidad"],
            rows=[[r.sku, r.name, r.stock, r.threshold, r.severity] for r in low_stock(db, org_id=org_id)],
        )
    if name == "valuation":
        report = valuation(db, org_id=org_id)
        return schemas.ReportTable(
            title=f"Valorización ({report.currency})",
            columns=["SKU", "Producto", "Stock", "Costo", "Valor"],
            rows=[[r.sku, r.name, r.stock, r.cost, r.value] for r in report.rows],
        )
    if name == "rotation":
        return schemas.ReportTable(
            title="Rotación",
            columns=["SKU", "Producto", "Entradas", "Salidas", "Movimientos"],
            rows=[
                [r.sku, r.name, r.inbound, r.outbound, r.movements]
                for r in rotation(db, org_id=org_id, start=start, end=end)
            ],
        )
    if name == "kardex":
        if not product_id:
            raise HTTPException(status_code=400, detail="product_id is required for the kardex report.")
        report = kardex(db, org_id=org_id, product_id=product_id, start=start, end=end, warehouse_id=warehouse_id)
        return schemas.ReportTable(
            title=f"Kardex {report.sku}",
            columns=["Código", "Fecha", "Tipo", "Almacén", "Referencia", "Cantidad", "Saldo"],
            rows=[
                [
                    r.code,
                    r.created_at.isoformat(),
                    r.type.value,
                    r.warehouse_name or "",
                    r.reference or "",
                    r.signed_quantity,
                    r.balance,
                ]
                for r in report.rows
            ],
        )
    raise HTTPException(status_code=404, detail=f"Unknown report '{name}'.")
