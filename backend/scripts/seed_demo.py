from __future__ import annotations

from datetime import date, timedelta

from stockdb.database import WriteSessionLocal
from stockdb.apps.accounts import models as account_models
from stockdb.apps.accounts import services as account_services
from stockdb.apps.catalog import models as catalog_models
from stockdb.apps.catalog import schemas as catalog_schemas
from stockdb.apps.catalog import services as catalog_services
from stockdb.apps.inventory import models as inventory_models
from stockdb.apps.inventory import schemas as inventory_schemas
from stockdb.apps.inventory import services as inventory_services

DEMO_EMAIL = "demo@inventario-demo.com"
DEMO_PASSWORD = "ChangeMe123!"

PRODUCTS = [
    {"sku": "CC-355", "name": "Coca-Cola 355ml", "category": "Bebidas", "cost": 18, "price": 35, "min_stock": 60, "max_stock": 400},
    {"sku": "AG-500", "name": "Agua 500ml", "category": "Bebidas", "cost": 8, "price": 20, "min_stock": 80, "max_stock": 500},
    {"sku": "LY-100", "name": "Papas Lays", "category": "Snacks", "cost": 22, "price": 45, "min_stock": 40, "max_stock": None},
    {"sku": "PB-001", "name": "Pan Bimbo", "category": "Panadería", "cost": 95, "price": 150, "min_stock": 20, "max_stock": 80},
    {"sku": "LE-1L", "name": "Leche Entera 1L", "category": "Lácteos", "cost": 55, "price": 85, "min_stock": 30, "max_stock": 120},
]


def _get_or_create_user(db) -> account_models.User:
    user = account_services.get_user_by_email(db, email=DEMO_EMAIL)
    if user:
        return user
    return account_services.create_user(db, email=DEMO_EMAIL, password=DEMO_PASSWORD, full_name="Usuario Demo")


def _get_or_create_warehouse(db, org_id: str) -> inventory_models.Warehouse:
    warehouse = inventory_services.get_primary_warehouse(db, org_id=org_id)
    if warehouse:
        return warehouse
    return inventory_services.create_warehouse(
        db,
        org_id=org_id,
        payload=inventory_schemas.WarehouseCreate(name="Almacén Principal", code="MAIN", is_primary=True),
    )


def _get_or_create_category(db, org_id: str, name: str) -> catalog_models.Category:
    category = (
        db.query(catalog_models.Category)
        .filter(catalog_models.Category.org_id == org_id, catalog_models.Category.name == name)
        .first()
    )
    if category:
        return category
    return catalog_services.create_category(db, org_id=org_id, payload=catalog_schemas.CategoryCreate(name=name))


def main() -> None:
    db = WriteSessionLocal()
    try:
        user = _get_or_create_user(db)
        membership, _ = account_services.bootstrap_org_if_needed(db, user=user)
        org_id = membership.org_id
        warehouse = _get_or_create_warehouse(db, org_id)

        for item in PRODUCTS:
            existing = (
                db.query(catalog_models.Product)
                .filter(catalog_models.Product.org_id == org_id, catalog_models.Product.sku == item["sku"])
                .first()
            )
            if existing:
                continue
            category = _get_or_create_category(db, org_id, item["category"])
            product = catalog_services.create_product(
                db,
                org_id=org_id,
                payload=catalog_schemas.ProductCreate(
                    sku=item["sku"],
                    name=item["name"],
                    category_id=category.id,
                    cost=item["cost"],
                    price=item["price"],
                    min_stock=item["min_stock"],
                    max_stock=item["max_stock"],
                ),
            )
            inventory_services.record_inbound(
                db,
                org_id=org_id,
                payload=inventory_schemas.InboundRequest(
                    product_id=product.id,
                    warehouse_id=warehouse.id,
                    quantity=item["min_stock"] * 2,
                    reference="SEED",
                    reason="Inventario inicial",
                    lot_number=f"L-{item['sku']}",
                    expiration_date=date.today() + timedelta(days=20),
                ),
                actor_user_id=user.id,
            )
            inventory_services.record_outbound(
                db,
                org_id=org_id,
                payload=inventory_schemas.OutboundRequest(
                    product_id=product.id,
                    warehouse_id=warehouse.id,
                    quantity=item["min_stock"],
                    reference="VENTA",
                    reason="Venta",
                ),
                actor_user_id=user.id,
            )

        db.commit()
        print("OK:", user.email, "org =", org_id, "password =", DEMO_PASSWORD)
    finally:
        db.close()


if __name__ == "__main__":
    main()
