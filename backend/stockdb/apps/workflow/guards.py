from __future__ import annotations

from typing import Any, Dict, List

from sqlalchemy.orm import Session

GuardResult = List[Dict[str, str]]


def _get_value(obj: Any, key: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def guard_supplier_active(
    db: Session,
    *,
    before_obj: Any,
    after_obj: Any,
    from_state: str,
    to_state: str,
) -> GuardResult:
    supplier = _get_value(after_obj, "supplier")
    if supplier is None:
        return [{"field": "supplier_id", "reason": "supplier required"}]
    if not _get_value(supplier, "active"):
        return [{"field": "supplier_id", "reason": "supplier is inactive"}]
    return []


def guard_receipt_warehouse(
    db: Session,
    *,
    before_obj: Any,
    after_obj: Any,
    from_state: str,
    to_state: str,
) -> GuardResult:
    lines = _get_value(after_obj, "lines") or []
    if lines and not _get_value(after_obj, "receipt_warehouse_id"):
        return [{"field": "warehouse_id", "reason": "warehouse required to receive line items"}]
    return []
