"""
Purchasing module.

Suppliers and purchase orders; receiving an order posts stock to the ledger.
"""

from . import models  # noqa: F401
