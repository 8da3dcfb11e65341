from __future__ import annotations

import pytest
from fastapi import HTTPException

from stockdb.apps.inventory import schemas, services


def _create(db, org_id, name, **kwargs):
    return services.create_warehouse(db, org_id=org_id, payload=schemas.WarehouseCreate(name=name, **kwargs))


def test_new_primary_replaces_the_previous_one(db_session, org_id):
    first = _create(db_session, org_id, "Principal", is_primary=True)
    second = _create(db_session, org_id, "Norte", is_primary=True)

    db_session.refresh(first)
    primaries = [w for w in services.list_warehouses(db_session, org_id=org_id) if w.is_primary]

    assert [w.id for w in primaries] == [second.id]
    assert first.is_primary is False
    assert services.get_primary_warehouse(db_session, org_id=org_id).id == second.id


def test_update_can_move_primary_flag(db_session, org_id):
    first = _create(db_session, org_id, "Principal", is_primary=True)
    second = _create(db_session, org_id, "Sur")

    services.update_warehouse(
        db_session,
        org_id=org_id,
        warehouse_id=second.id,
        payload=schemas.WarehouseUpdate(is_primary=True),
    )
    db_session.refresh(first)

    assert second.is_primary is True
    assert first.is_primary is False


def test_list_puts_primary_first_then_by_name(db_session, org_id):
    _create(db_session, org_id, "Bodega B")
    _create(db_session, org_id, "Zeta", is_primary=True)
    _create(db_session, org_id, "Almacén A", code="ALM-A")

    names = [w.name for w in services.list_warehouses(db_session, org_id=org_id)]

    assert names == ["Zeta", "Almacén A", "Bodega B"]
    assert [w.name for w in services.list_warehouses(db_session, org_id=org_id, q="alm-a")] == ["Almacén A"]


def test_blank_name_is_rejected(db_session, org_id):
    with pytest.raises(HTTPException) as excinfo:
        _create(db_session, org_id, "   ")

    assert excinfo.value.status_code == 400


def test_unknown_warehouse_is_not_found(db_session, org_id):
    with pytest.raises(HTTPException) as excinfo:
        services.get_warehouse(db_session, org_id=org_id, warehouse_id="missing")

    assert excinfo.value.status_code == 404


def test_inactive_warehouse_cannot_be_primary(db_session, org_id):
    closed = _create(db_session, org_id, "Cerrado", active=False)

    with pytest.raises(HTTPException) as create_exc:
        _create(db_session, org_id, "Nuevo", is_primary=True, active=False)
    with pytest.raises(HTTPException) as update_exc:
        services.update_warehouse(
            db_session,
            org_id=org_id,
            warehouse_id=closed.id,
            payload=schemas.WarehouseUpdate(is_primary=True),
        )

    assert create_exc.value.status_code == 400
    assert update_exc.value.status_code == 400
    assert closed.is_primary is False
