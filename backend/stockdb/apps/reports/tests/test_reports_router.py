from __future__ import annotations

from stockdb.apps.accounts import models as account_models
from stockdb.apps.catalog import models as catalog_models
from stockdb.apps.org_settings import schemas as settings_schemas
from stockdb.apps.org_settings import services as settings_services
from stockdb.apps.reports import router
from stockdb.tenancy import OrgContext


def _ctx(db, membership) -> OrgContext:
    user = db.query(account_models.User).filter(account_models.User.id == membership.user_id).one()
    return OrgContext(user=user, org_id=membership.org_id, role=membership.role)


def test_csv_export_sets_download_headers(db_session, owner):
    db_session.add(catalog_models.Product(org_id=owner.org_id, sku="ARROZ-5", name="Arroz"))
    db_session.flush()

    response = router.export_report_csv(
        name="stock",
        product_id=None,
        start=None,
        end=None,
        warehouse_id=None,
        db=db_session,
        ctx=_ctx(db_session, owner),
    )

    assert response.media_type == "text/csv; charset=utf-8"
    assert response.headers["content-disposition"] == 'attachment; filename="stock-por-producto.csv"'
    assert response.body.decode("utf-8").splitlines()[2] == "ARROZ-5,Arroz,,0,0,"


def test_alert_endpoints_return_nothing_when_disabled(db_session, owner):
    product = catalog_models.Product(org_id=owner.org_id, sku="LECHE-1", name="Leche", min_stock=30)
    db_session.add(product)
    db_session.flush()
    ctx = _ctx(db_session, owner)

    assert [row.sku for row in router.alerts_low_stock(db=db_session, ctx=ctx)] == ["LECHE-1"]

    settings_services.update_settings(
        db_session,
        org_id=owner.org_id,
        payload=settings_schemas.SettingsUpdate(enable_alerts=False),
    )

    assert router.alerts_low_stock(db=db_session, ctx=ctx) == []
    assert router.alerts_overstock(db=db_session, ctx=ctx) == []
    assert router.alerts_expiring(horizon_days=30, db=db_session, ctx=ctx) == []
