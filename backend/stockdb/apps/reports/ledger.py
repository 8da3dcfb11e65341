"""
Pure aggregation rules over ledger rows.

Nothing here touches the database; `services` feeds these functions the
rows it loads. Movement-like objects need `type`, `quantity`,
`product_id`, `warehouse_id` and `to_warehouse_id` attributes.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from stockdb.apps.inventory.models import MovementType

LOW_CRITICAL = "Crítico"
LOW_ATTENTION = "Atención"
LOW_MINOR = "Bajo"

EXPIRED = "Vencido"
EXPIRING_URGENT = "Urgente"
EXPIRING_SOON = "Pronto"
EXPIRING_PENDING = "Pendiente"

TONE_DANGER = "danger"
TONE_WARN = "warn"
TONE_MUTED = "muted"

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _movement_type(movement: Any) -> MovementType:
    return MovementType(movement.type)


def signed_quantity(movement: Any, warehouse_id: Optional[str] = None) -> float:
    """
    Stock effect of one movement.

    At product level a transfer moves nothing. Seen from a warehouse it is
    an outflow at its source and an inflow at its destination.
    """
    kind = _movement_type(movement)
    qty = float(movement.quantity or 0)
    if kind == MovementType.IN:
        if warehouse_id is not None and movement.warehouse_id != warehouse_id:
            return 0.0
        return qty
    if kind == MovementType.OUT:
        if warehouse_id is not None and movement.warehouse_id != warehouse_id:
            return 0.0
        return -qty
    if warehouse_id is None:
        return 0.0
    if movement.warehouse_id == warehouse_id:
        return -qty
    if movement.to_warehouse_id == warehouse_id:
        return qty
    return 0.0


def stock_totals(movements: Iterable[Any], warehouse_id: Optional[str] = None) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for movement in movements:
        totals[movement.product_id] += signed_quantity(movement, warehouse_id)
    return dict(totals)


def effective_threshold(min_stock: Optional[float], org_threshold: Optional[float]) -> float:
    """A product's own minimum, or the org-wide threshold when the minimum is 0."""
    if min_stock:
        return float(min_stock)
    return float(org_threshold or 0)


def is_low_stock(stock: float, threshold: float) -> bool:
    return stock <= threshold


def low_stock_tone(stock: float, minimum: float) -> str:
    diff = minimum - stock
    if diff >= 20:
        return TONE_DANGER
    if diff >= 5:
        return TONE_WARN
    return TONE_MUTED


def low_stock_severity(stock: float, minimum: float) -> str:
    return {
        TONE_DANGER: LOW_CRITICAL,
        TONE_WARN: LOW_ATTENTION,
    }.get(low_stock_tone(stock, minimum), LOW_MINOR)


def days_until(expiration: date, today: date) -> int:
    return (expiration - today).days


def expiring_tone(days_left: int) -> str:
    if days_left <= 3:
        return TONE_DANGER
    if days_left <= 10:
        return TONE_WARN
    return TONE_MUTED


def expiring_severity(days_left: int) -> str:
    if days_left <= 0:
        return EXPIRED
    if days_left <= 3:
        return EXPIRING_URGENT
    if days_left <= 10:
        return EXPIRING_SOON
    return EXPIRING_PENDING


def overstock_extra(stock: float, max_stock: Optional[float]) -> Optional[float]:
    if max_stock is None or stock <= max_stock:
        return None
    return stock - max_stock


def overstock_tone(extra: float) -> str:
    return TONE_WARN if extra >= 20 else TONE_MUTED


def _js_round(value: float) -> int:
    return int(math.floor(value + 0.5))


def to_pct3(a: float, b: float, c: float) -> Tuple[int, int, int]:
    """
    Split three non-negative amounts into whole percentages.

    The third share takes the rounding remainder so the three always sum
    to 100 when anything is non-zero; all zeros give (0, 0, 0).
    """
    total = (a or 0) + (b or 0) + (c or 0)
    if total <= 0:
        return (0, 0, 0)
    w = _js_round(100 * (a or 0) / total)
    t = _js_round(100 * (b or 0) / total)
    return (w, t, 100 - w - t)


def clamp_pct(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def health_summary(active_count: int, under_count: int, over_count: int) -> Dict[str, float]:
    if active_count <= 0:
        return {"overall": 100.0, "over": 0.0, "under": 0.0}
    under = clamp_pct(round(100.0 * under_count / active_count, 1))
    over = clamp_pct(round(100.0 * over_count / active_count, 1))
    return {
        "overall": clamp_pct(round(100.0 - over - under, 1)),
        "over": over,
        "under": under,
    }


def month_buckets(today: date, count: int = 6) -> List[Tuple[int, int]]:
    """The `count` calendar months ending with today's, oldest first."""
    year, month = today.year, today.month
    buckets: List[Tuple[int, int]] = []
    for _ in range(count):
        buckets.append((year, month))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(buckets))


def month_label(year: int, month: int) -> str:
    return f"{MONTH_LABELS[month - 1]} {year}"


def running_balance(movements: Iterable[Any], opening: float = 0.0, warehouse_id: Optional[str] = None) -> List[float]:
    balance = opening
    balances: List[float] = []
    for movement in movements:
        balance += signed_quantity(movement, warehouse_id)
        balances.append(balance)
    return balances
