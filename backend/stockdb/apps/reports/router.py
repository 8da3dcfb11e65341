from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from stockdb.database import get_db
from stockdb.tenancy import OrgContext, get_org_context
from stockdb.apps.org_settings import services as settings_services

from . import exports, schemas, services

alerts_router = APIRouter(prefix="/alerts", tags=["alerts"])
dashboard_router = APIRouter(prefix="/dashboard", tags=["dashboard"])
reports_router = APIRouter(prefix="/reports", tags=["reports"])


def _alerts_enabled(db: Session, org_id: str) -> bool:
    return bool(settings_services.get_settings(db, org_id=org_id).enable_alerts)


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


@alerts_router.get("", response_model=schemas.AlertsOverview)
def alerts_overview(
    horizon_days: int = Query(30, ge=0, le=365),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.alerts_overview(db, org_id=ctx.org_id, horizon_days=horizon_days)


@alerts_router.get("/low-stock", response_model=List[schemas.LowStockRow])
def alerts_low_stock(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    if not _alerts_enabled(db, ctx.org_id):
        return []
    return services.low_stock(db, org_id=ctx.org_id)


@alerts_router.get("/expiring", response_model=List[schemas.ExpiringRow])
def alerts_expiring(
    horizon_days: int = Query(30, ge=0, le=365),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    if not _alerts_enabled(db, ctx.org_id):
        return []
    return services.expiring_soon(db, org_id=ctx.org_id, horizon_days=horizon_days)


@alerts_router.get("/overstock", response_model=List[schemas.OverstockRow])
def alerts_overstock(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    if not _alerts_enabled(db, ctx.org_id):
        return []
    return services.overstock(db, org_id=ctx.org_id)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@dashboard_router.get("", response_model=schemas.DashboardOverview)
def dashboard_overview(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.dashboard_overview(db, org_id=ctx.org_id)


@dashboard_router.get("/kpis", response_model=schemas.DashboardKpis)
def dashboard_kpis(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.dashboard_kpis(db, org_id=ctx.org_id)


@dashboard_router.get("/top-products", response_model=List[schemas.TopProductRow])
def dashboard_top_products(
    limit: int = Query(5, ge=1, le=50),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.dashboard_top_products(db, org_id=ctx.org_id, limit=limit)


@dashboard_router.get("/supply", response_model=schemas.SupplySummary)
def dashboard_supply(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.dashboard_supply(db, org_id=ctx.org_id)


@dashboard_router.get("/health", response_model=schemas.HealthSummary)
def dashboard_health(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.dashboard_health(db, org_id=ctx.org_id)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


@reports_router.get("/stock-by-product", response_model=List[schemas.StockRow])
def report_stock_by_product(
    warehouse_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.stock_by_product(db, org_id=ctx.org_id, warehouse_id=warehouse_id)


@reports_router.get("/low-stock", response_model=List[schemas.LowStockRow])
def report_low_stock(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.low_stock(db, org_id=ctx.org_id)


@reports_router.get("/valuation", response_model=schemas.ValuationReport)
def report_valuation(
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.valuation(db, org_id=ctx.org_id)


@reports_router.get("/rotation", response_model=List[schemas.RotationRow])
def report_rotation(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.rotation(db, org_id=ctx.org_id, start=start, end=end)


@reports_router.get("/kardex/{product_id}", response_model=schemas.KardexReport)
def report_kardex(
    product_id: str,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    warehouse_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    return services.kardex(
        db,
        org_id=ctx.org_id,
        product_id=product_id,
        start=start,
        end=end,
        warehouse_id=warehouse_id,
    )


@reports_router.get("/{name}.csv", response_class=Response)
def export_report_csv(
    name: str,
    product_id: Optional[str] = Query(None),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    warehouse_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
):
    table = services.report_table(
        db,
        org_id=ctx.org_id,
        name=name,
        product_id=product_id,
        start=start,
        end=end,
        warehouse_id=warehouse_id,
    )
    return Response(
        content=exports.table_to_csv(table),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{exports.report_filename(table)}"'},
    )
