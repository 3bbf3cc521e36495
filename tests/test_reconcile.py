import random

import pytest

from jewelcore.errors import DuplicateCode
from jewelcore.services.reconcile import AVAILABLE, LOW, OUT_OF_STOCK, reconcile, stock_status

from conftest import fixed_unit, sale, weight_unit


def _naive_available(units, sales):
    out = []
    for u in units:
        sold = 0.0
        for s in sales:
            if s.code is not None and s.code == u.code:
                sold += s.qty
        out.append((u.code, u.quantity - sold))
    return out


def test_available_equals_quantity_minus_matching_sales():
    units = [weight_unit("A", qty=5), fixed_unit("B", qty=1), fixed_unit("C", qty=3)]
    sales = [sale("A", 2), sale("B", 1), sale("A", 1), sale(None, 4)]

    report = reconcile(units, sales)
    by_code = {r.unit.code: r for r in report.units}

    assert by_code["A"].sold_quantity == 3
    assert by_code["A"].available_quantity == 2
    assert by_code["A"].status == LOW
    assert by_code["B"].status == OUT_OF_STOCK
    assert by_code["C"].sold_quantity == 0
    assert by_code["C"].status == AVAILABLE
    assert report.manual_sales == 1


def test_indexed_join_matches_naive_double_loop():
    rng = random.Random(11)
    codes = [str(10_000_000_000_000 + i) for i in range(40)]
    units = [fixed_unit(c, qty=rng.randint(0, 6)) for c in codes]
    sales = [
        sale(rng.choice(codes + [None, "99999999999999"]), qty=rng.randint(1, 3))
        for _ in range(300)
    ]

    report = reconcile(units, sales)

    assert [(r.unit.code, r.available_quantity) for r in report.units] == _naive_available(units, sales)


def test_unit_order_is_preserved():
    units = [fixed_unit(c) for c in ["3", "1", "2"]]
    assert [r.unit.code for r in reconcile(units, []).units] == ["3", "1", "2"]


def test_status_thresholds():
    assert stock_status(-1) == OUT_OF_STOCK
    assert stock_status(0) == OUT_OF_STOCK
    assert stock_status(1) == LOW
    assert stock_status(2) == LOW
    assert stock_status(3) == AVAILABLE


def test_sales_without_code_never_count():
    report = reconcile([fixed_unit("", qty=1)], [sale(None, 1), sale("", 1)])
    assert report.units[0].sold_quantity == 0


def test_orphaned_sales_are_tolerated_and_counted():
    report = reconcile([fixed_unit("A", qty=2)], [sale("GONE", 1), sale("GONE", 1), sale("A", 1)])

    assert report.orphaned_sales == 2
    assert report.units[0].available_quantity == 1


def test_duplicate_codes_raise_in_strict_mode():
    units = [fixed_unit("A"), fixed_unit("A", key="other"), fixed_unit("B")]

    with pytest.raises(DuplicateCode) as exc:
        reconcile(units, [sale("A", 1)])
    assert exc.value.codes == ["A"]


def test_duplicate_codes_reported_not_merged():
    units = [fixed_unit("A", qty=5), fixed_unit("A", qty=5, key="other"), fixed_unit("B", qty=4)]

    report = reconcile(units, [sale("A", 1), sale("B", 1)], strict=False)

    assert report.duplicate_codes == ["A"]
    assert [r.unit.code for r in report.units] == ["B"]
    assert report.units[0].available_quantity == 3
    assert report.by_status(AVAILABLE)[0].unit.code == "B"
