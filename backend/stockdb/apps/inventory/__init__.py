"""
Inventory module.

Warehouses and the append-only stock movement ledger.
"""

from . import models  # noqa: F401
