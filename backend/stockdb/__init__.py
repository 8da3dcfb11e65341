# backend/stockdb/__init__.py
"""
Import ORM models from each app so that:

- Alembic and Base.metadata.create_all() see all tables.
- Relationship targets referenced by name resolve at mapper configuration.

The actual model classes are kept in stockdb/apps/*/models.py.
"""

from .apps.accounts import models as accounts_models          # users / organizations / memberships
from .apps.catalog import models as catalog_models            # categories + products
from .apps.inventory import models as inventory_models        # warehouses + movement ledger
from .apps.purchasing import models as purchasing_models      # suppliers + purchase orders
from .apps.org_settings import models as org_settings_models  # per-org preferences

__all__ = [
    "accounts_models",
    "catalog_models",
    "inventory_models",
    "purchasing_models",
    "org_settings_models",
]
