from __future__ import annotations

import pytest
from fastapi import HTTPException

from stockdb.apps.accounts import services as account_services
from stockdb.apps.catalog import schemas, services


def _second_org(db) -> str:
    user = account_services.create_user(db, email="other@example.com", password="other-password")
    membership, _ = account_services.bootstrap_org_if_needed(db, user=user)
    return membership.org_id


def _product(db, org_id: str, sku: str = "SKU-1", **kwargs):
    payload = schemas.ProductCreate(sku=sku, name=kwargs.pop("name", f"Product {sku}"), **kwargs)
    return services.create_product(db, org_id=org_id, payload=payload)


def test_create_product_strips_fields_and_links_category(db_session, org_id):
    category = services.create_category(
        db_session, org_id=org_id, payload=schemas.CategoryCreate(name="  Bebidas ")
    )
    product = _product(
        db_session,
        org_id,
        sku="  AGUA-01 ",
        name="Agua 1L",
        category_id=category.id,
        barcode="  ",
        min_stock=5,
    )

    assert product.sku == "AGUA-01"
    assert product.barcode is None
    assert product.category_name == "Bebidas"
    assert category.name == "Bebidas"


def test_duplicate_sku_in_same_org_is_conflict(db_session, org_id):
    _product(db_session, org_id, sku="DUP")

    with pytest.raises(HTTPException) as excinfo:
        _product(db_session, org_id, sku="DUP")

    assert excinfo.value.status_code == 409


def test_same_sku_is_allowed_in_another_org(db_session, org_id):
    other_org = _second_org(db_session)
    _product(db_session, org_id, sku="SHARED")

    product = _product(db_session, other_org, sku="SHARED")

    assert product.org_id == other_org


def test_blank_sku_is_rejected(db_session, org_id):
    with pytest.raises(HTTPException) as excinfo:
        _product(db_session, org_id, sku="   ")

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail == "sku is required."


def test_max_stock_below_min_stock_is_rejected(db_session, org_id):
    with pytest.raises(HTTPException) as excinfo:
        _product(db_session, org_id, sku="BOUNDS", min_stock=10, max_stock=5)

    assert excinfo.value.status_code == 400


def test_products_are_not_visible_across_orgs(db_session, org_id):
    other_org = _second_org(db_session)
    product = _product(db_session, org_id, sku="PRIVATE")

    with pytest.raises(HTTPException) as excinfo:
        services.get_product(db_session, org_id=other_org, product_id=product.id)

    assert excinfo.value.status_code == 404
    assert services.list_products(db_session, org_id=other_org) == []


def test_category_from_another_org_is_not_found(db_session, org_id):
    other_org = _second_org(db_session)
    foreign = services.create_category(
        db_session, org_id=other_org, payload=schemas.CategoryCreate(name="Ajena")
    )

    with pytest.raises(HTTPException) as excinfo:
        _product(db_session, org_id, sku="CAT-X", category_id=foreign.id)

    assert excinfo.value.status_code == 404


def test_list_products_searches_sku_name_and_barcode(db_session, org_id):
    _product(db_session, org_id, sku="CAFE-250", name="Café molido", barcode="7460001")
    _product(db_session, org_id, sku="ARROZ-5", name="Arroz selecto")

    assert [p.sku for p in services.list_products(db_session, org_id=org_id, q="cafe")] == ["CAFE-250"]
    assert [p.sku for p in services.list_products(db_session, org_id=org_id, q="7460001")] == ["CAFE-250"]
    assert [p.sku for p in services.list_products(db_session, org_id=org_id, q="selecto")] == ["ARROZ-5"]


def test_update_product_keeps_sku_uniqueness(db_session, org_id):
    _product(db_session, org_id, sku="A")
    second = _product(db_session, org_id, sku="B")

    with pytest.raises(HTTPException) as excinfo:
        services.update_product(
            db_session,
            org_id=org_id,
            product_id=second.id,
            payload=schemas.ProductUpdate(sku="A"),
        )
    assert excinfo.value.status_code == 409

    updated = services.update_product(
        db_session,
        org_id=org_id,
        product_id=second.id,
        payload=schemas.ProductUpdate(name="Renamed", active=False),
    )
    assert updated.sku == "B"
    assert updated.name == "Renamed"
    assert updated.active is False
