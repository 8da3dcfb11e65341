from __future__ import annotations

from datetime import date
from types import SimpleNamespace

import pytest

from stockdb.apps.reports import ledger


def _mv(kind, qty, *, product="p1", warehouse="w1", to_warehouse=None):
    return SimpleNamespace(
        type=kind,
        quantity=qty,
        product_id=product,
        warehouse_id=warehouse,
        to_warehouse_id=to_warehouse,
    )


@pytest.mark.parametrize(
    "amounts,expected",
    [
        ((30, 10, 0), (75, 25, 0)),
        ((0, 0, 0), (0, 0, 0)),
        ((1, 1, 1), (33, 33, 34)),
        ((0, 0, 5), (0, 0, 100)),
        ((1, 1, 0), (50, 50, 0)),
    ],
)
def test_to_pct3_sums_to_hundred(amounts, expected):
    result = ledger.to_pct3(*amounts)

    assert result == expected
    if any(amounts):
        assert sum(result) == 100


def test_to_pct3_remainder_absorbs_half_up_rounding():
    # 12.5 and 87.5 both round up, so the remainder goes negative.
    assert ledger.to_pct3(1, 7, 0) == (13, 88, -1)


@pytest.mark.parametrize(
    "stock,minimum,severity,tone",
    [
        (0, 20, "Crítico", "danger"),
        (0, 19, "Atención", "warn"),
        (5, 12, "Atención", "warn"),
        (7, 12, "Atención", "warn"),
        # diff 4 is the first value below the warn tier.
        (8, 12, "Bajo", "muted"),
        (12, 12, "Bajo", "muted"),
        (40, 12, "Bajo", "muted"),
    ],
)
def test_low_stock_tiers(stock, minimum, severity, tone):
    assert ledger.low_stock_severity(stock, minimum) == severity
    assert ledger.low_stock_tone(stock, minimum) == tone


def test_effective_threshold_prefers_product_minimum():
    assert ledger.effective_threshold(10, 3) == 10
    assert ledger.effective_threshold(0, 3) == 3
    assert ledger.effective_threshold(None, None) == 0


@pytest.mark.parametrize(
    "days,severity",
    [
        (-2, "Vencido"),
        (0, "Vencido"),
        (1, "Urgente"),
        (3, "Urgente"),
        (4, "Pronto"),
        (10, "Pronto"),
        (11, "Pendiente"),
    ],
)
def test_expiring_severity(days, severity):
    assert ledger.expiring_severity(days) == severity


def test_overstock_extra_only_above_max():
    assert ledger.overstock_extra(10, None) is None
    assert ledger.overstock_extra(10, 10) is None
    assert ledger.overstock_extra(35, 10) == 25
    assert ledger.overstock_tone(25) == "warn"
    assert ledger.overstock_tone(5) == "muted"


def test_stock_totals_do_not_depend_on_order():
    movements = [
        _mv("in", 60),
        _mv("out", 10),
        _mv("transfer", 5, to_warehouse="w2"),
        _mv("in", 4, product="p2"),
    ]

    forward = ledger.stock_totals(movements)
    backward = ledger.stock_totals(list(reversed(movements)))

    assert forward == backward == {"p1": 50.0, "p2": 4.0}


def test_transfer_moves_stock_between_warehouses():
    movements = [_mv("in", 20), _mv("transfer", 8, to_warehouse="w2")]

    assert ledger.stock_totals(movements, "w1") == {"p1": 12.0}
    assert ledger.stock_totals(movements, "w2") == {"p1": 8.0}


def test_health_summary():
    assert ledger.health_summary(0, 0, 0) == {"overall": 100.0, "over": 0.0, "under": 0.0}
    assert ledger.health_summary(4, 1, 1) == {"overall": 50.0, "over": 25.0, "under": 25.0}


def test_month_buckets_cross_year_boundary():
    assert ledger.month_buckets(date(2026, 2, 10), 4) == [(2025, 11), (2025, 12), (2026, 1), (2026, 2)]
    assert ledger.month_label(2026, 10) == "Oct 2026"


def test_running_balance_starts_from_opening():
    movements = [_mv("in", 10), _mv("out", 3), _mv("out", 9)]

    assert ledger.running_balance(movements, opening=5) == [15.0, 12.0, 3.0]
