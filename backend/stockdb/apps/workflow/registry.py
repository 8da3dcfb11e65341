from __future__ import annotations

from .guards import guard_receipt_warehouse, guard_supplier_active

WORKFLOWS = {
    "purchase_order": {
        "transitions": {
            "draft": {
                "sent": [guard_supplier_active],
                "cancelled": [],
            },
            "sent": {
                "received": [guard_receipt_warehouse],
                "cancelled": [],
            },
            "received": {},
            "cancelled": {},
        }
    },
}
