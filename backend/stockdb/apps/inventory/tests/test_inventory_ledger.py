from __future__ import annotations

from datetime import date, datetime

import pytest
from fastapi import HTTPException

from stockdb.apps.accounts import services as account_services
from stockdb.apps.catalog import models as catalog_models
from stockdb.apps.inventory import models as inventory_models
from stockdb.apps.inventory import schemas as inventory_schemas
from stockdb.apps.inventory import services as inventory_services
from stockdb.apps.org_settings import schemas as settings_schemas
from stockdb.apps.org_settings import services as settings_services
from stockdb.apps.reports import services as report_services
from stockdb.utils.identifiers import movement_display_code


def _warehouse(db, org_id: str, name: str = "Principal", *, primary: bool = False):
    return inventory_services.create_warehouse(
        db,
        org_id=org_id,
        payload=inventory_schemas.WarehouseCreate(name=name, is_primary=primary),
    )


def _product(db, org_id: str, sku: str = "ARROZ-5") -> catalog_models.Product:
    product = catalog_models.Product(org_id=org_id, sku=sku, name=f"Producto {sku}", min_stock=0)
    db.add(product)
    db.flush()
    return product


def _stock(db, org_id: str, product_id: str, warehouse_id=None) -> float:
    rows = report_services.stock_by_product(db, org_id=org_id, warehouse_id=warehouse_id)
    return next(row.stock for row in rows if row.product_id == product_id)


def test_inbound_then_outbound_leaves_the_difference(db_session, org_id, owner):
    warehouse = _warehouse(db_session, org_id, primary=True)
    product = _product(db_session, org_id)

    inbound = inventory_services.record_inbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.InboundRequest(product_id=product.id, quantity=60, reference="FAC-001"),
        actor_user_id=owner.user_id,
    )
    inventory_services.record_outbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.OutboundRequest(product_id=product.id, quantity=10, reference="VENTA-9"),
        actor_user_id=owner.user_id,
    )

    assert inbound.warehouse_id == warehouse.id
    assert inbound.created_by == owner.user_id
    assert _stock(db_session, org_id, product.id) == 50


def test_outbound_may_drive_stock_negative(db_session, org_id, owner):
    _warehouse(db_session, org_id, primary=True)
    product = _product(db_session, org_id)

    inventory_services.record_outbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.OutboundRequest(product_id=product.id, quantity=4),
        actor_user_id=owner.user_id,
    )

    assert _stock(db_session, org_id, product.id) == -4


def test_movement_without_any_warehouse_is_rejected(db_session, org_id, owner):
    product = _product(db_session, org_id)

    with pytest.raises(HTTPException) as excinfo:
        inventory_services.record_inbound(
            db_session,
            org_id=org_id,
            payload=inventory_schemas.InboundRequest(product_id=product.id, quantity=1),
            actor_user_id=owner.user_id,
        )

    assert excinfo.value.status_code == 400


def test_default_warehouse_setting_wins_over_primary(db_session, org_id, owner):
    _warehouse(db_session, org_id, "Principal", primary=True)
    backroom = _warehouse(db_session, org_id, "Trastienda")
    settings_services.update_settings(
        db_session,
        org_id=org_id,
        payload=settings_schemas.SettingsUpdate(default_warehouse_id=backroom.id),
    )
    product = _product(db_session, org_id)

    movement = inventory_services.record_inbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.InboundRequest(product_id=product.id, quantity=3),
        actor_user_id=owner.user_id,
    )

    assert movement.warehouse_id == backroom.id


def test_required_reference_is_enforced(db_session, org_id, owner):
    _warehouse(db_session, org_id, primary=True)
    product = _product(db_session, org_id)
    settings_services.update_settings(
        db_session,
        org_id=org_id,
        payload=settings_schemas.SettingsUpdate(require_reference_on_movements=True),
    )

    with pytest.raises(HTTPException) as excinfo:
        inventory_services.record_outbound(
            db_session,
            org_id=org_id,
            payload=inventory_schemas.OutboundRequest(product_id=product.id, quantity=1, reference="  "),
            actor_user_id=owner.user_id,
        )
    assert excinfo.value.status_code == 400

    movement = inventory_services.record_outbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.OutboundRequest(product_id=product.id, quantity=1, reference=" R-1 "),
        actor_user_id=owner.user_id,
    )
    assert movement.reference == "R-1"


def test_product_from_another_org_is_not_found(db_session, org_id, owner):
    other = account_services.create_user(db_session, email="other@example.com", password="other-password")
    other_membership, _ = account_services.bootstrap_org_if_needed(db_session, user=other)
    _warehouse(db_session, org_id, primary=True)
    foreign_product = _product(db_session, other_membership.org_id, sku="AJENO")

    with pytest.raises(HTTPException) as excinfo:
        inventory_services.record_inbound(
            db_session,
            org_id=org_id,
            payload=inventory_schemas.InboundRequest(product_id=foreign_product.id, quantity=5),
            actor_user_id=owner.user_id,
        )

    assert excinfo.value.status_code == 404


def test_transfer_keeps_product_total_and_moves_warehouse_stock(db_session, org_id, owner):
    main = _warehouse(db_session, org_id, "Principal", primary=True)
    store = _warehouse(db_session, org_id, "Tienda")
    product = _product(db_session, org_id)
    inventory_services.record_inbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.InboundRequest(product_id=product.id, quantity=20),
        actor_user_id=owner.user_id,
    )

    inventory_services.record_transfer(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.TransferRequest(product_id=product.id, quantity=8, to_warehouse_id=store.id),
        actor_user_id=owner.user_id,
    )

    assert _stock(db_session, org_id, product.id) == 20
    assert _stock(db_session, org_id, product.id, warehouse_id=main.id) == 12
    assert _stock(db_session, org_id, product.id, warehouse_id=store.id) == 8


def test_transfer_to_same_warehouse_is_rejected(db_session, org_id, owner):
    main = _warehouse(db_session, org_id, primary=True)
    product = _product(db_session, org_id)

    with pytest.raises(HTTPException) as excinfo:
        inventory_services.record_transfer(
            db_session,
            org_id=org_id,
            payload=inventory_schemas.TransferRequest(product_id=product.id, quantity=1, to_warehouse_id=main.id),
            actor_user_id=owner.user_id,
        )

    assert excinfo.value.status_code == 400


def test_inactive_product_cannot_move(db_session, org_id, owner):
    _warehouse(db_session, org_id, primary=True)
    product = _product(db_session, org_id)
    product.active = False
    db_session.flush()

    with pytest.raises(HTTPException) as excinfo:
        inventory_services.record_outbound(
            db_session,
            org_id=org_id,
            payload=inventory_schemas.OutboundRequest(product_id=product.id, quantity=5),
            actor_user_id=owner.user_id,
        )

    assert excinfo.value.status_code == 400


def test_deactivated_primary_is_not_used_as_default(db_session, org_id, owner):
    main = _warehouse(db_session, org_id, primary=True)
    product = _product(db_session, org_id)
    inventory_services.update_warehouse(
        db_session,
        org_id=org_id,
        warehouse_id=main.id,
        payload=inventory_schemas.WarehouseUpdate(active=False),
    )

    assert inventory_services.get_primary_warehouse(db_session, org_id=org_id) is None
    with pytest.raises(HTTPException) as excinfo:
        inventory_services.record_outbound(
            db_session,
            org_id=org_id,
            payload=inventory_schemas.OutboundRequest(product_id=product.id, quantity=5),
            actor_user_id=owner.user_id,
        )

    assert excinfo.value.status_code == 400
    assert db_session.query(inventory_models.InventoryMovement).count() == 0


def test_deactivated_default_setting_falls_back_to_primary(db_session, org_id, owner):
    main = _warehouse(db_session, org_id, "Principal", primary=True)
    store = _warehouse(db_session, org_id, "Tienda")
    product = _product(db_session, org_id)
    settings_services.update_settings(
        db_session,
        org_id=org_id,
        payload=settings_schemas.SettingsUpdate(default_warehouse_id=store.id),
    )
    store.active = False
    db_session.flush()

    movement = inventory_services.record_inbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.InboundRequest(product_id=product.id, quantity=3),
        actor_user_id=owner.user_id,
    )

    assert movement.warehouse_id == main.id


def test_explicit_inactive_warehouse_is_rejected(db_session, org_id, owner):
    _warehouse(db_session, org_id, "Principal", primary=True)
    closed = _warehouse(db_session, org_id, "Cerrado")
    closed.active = False
    db_session.flush()
    product = _product(db_session, org_id)

    with pytest.raises(HTTPException) as inbound_exc:
        inventory_services.record_inbound(
            db_session,
            org_id=org_id,
            payload=inventory_schemas.InboundRequest(product_id=product.id, quantity=2, warehouse_id=closed.id),
            actor_user_id=owner.user_id,
        )
    with pytest.raises(HTTPException) as transfer_exc:
        inventory_services.record_transfer(
            db_session,
            org_id=org_id,
            payload=inventory_schemas.TransferRequest(product_id=product.id, quantity=1, to_warehouse_id=closed.id),
            actor_user_id=owner.user_id,
        )

    assert inbound_exc.value.status_code == 400
    assert transfer_exc.value.status_code == 400


def test_list_movements_newest_first_with_codes_and_search(db_session, org_id, owner):
    _warehouse(db_session, org_id, "Principal", primary=True)
    rice = _product(db_session, org_id, "ARROZ-5")
    beans = _product(db_session, org_id, "HABICHUELA-1")
    first = inventory_services.record_inbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.InboundRequest(product_id=rice.id, quantity=10, reference="FAC-100"),
        actor_user_id=owner.user_id,
    )
    first.created_at = datetime(2026, 3, 14, 12, 0)
    second = inventory_services.record_outbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.OutboundRequest(product_id=beans.id, quantity=2, reason="Venta"),
        actor_user_id=owner.user_id,
    )
    second.created_at = datetime(2026, 3, 15, 12, 0)
    db_session.flush()

    items = inventory_services.list_movements(db_session, org_id=org_id)
    assert [item.id for item in items] == [second.id, first.id]
    assert items[1].code == f"IN-0314-{first.id.replace('-', '')[-4:].upper()}"
    assert items[0].code.startswith("OUT-0315-")
    assert items[0].product_sku == "HABICHUELA-1"
    assert items[0].warehouse_name == "Principal"

    assert [i.id for i in inventory_services.list_movements(db_session, org_id=org_id, q="fac-100")] == [first.id]
    assert [i.id for i in inventory_services.list_movements(db_session, org_id=org_id, q="venta")] == [second.id]
    only_out = inventory_services.list_movements(
        db_session, org_id=org_id, movement_type=inventory_models.MovementType.OUT
    )
    assert [i.id for i in only_out] == [second.id]


def test_inbound_records_lot_and_expiration(db_session, org_id, owner):
    _warehouse(db_session, org_id, primary=True)
    product = _product(db_session, org_id)

    movement = inventory_services.record_inbound(
        db_session,
        org_id=org_id,
        payload=inventory_schemas.InboundRequest(
            product_id=product.id,
            quantity=12,
            lot_number=" L-77 ",
            expiration_date=date(2026, 11, 1),
        ),
        actor_user_id=owner.user_id,
    )

    assert movement.lot_number == "L-77"
    assert movement.expiration_date == date(2026, 11, 1)


def test_display_code_falls_back_to_mov_for_transfers():
    code = movement_display_code("transfer", "0190aaaa-bbbb-7ccc-8ddd-0000000abc12", datetime(2026, 1, 2))
    assert code == "MOV-0102-BC12"
