import math

from jewelcore.services.pricing import price_units
from jewelcore.services.rates import RateBook, RateEntry
from jewelcore.services.reconcile import LOW, OUT_OF_STOCK, reconcile
from jewelcore.services.reports import (
    STOCK_COLUMNS,
    filter_stock,
    format_weight,
    stock_report,
    stock_stats,
)

from conftest import fixed_unit, sale, weight_unit


def _report():
    units = [
        weight_unit("A", qty=5, weight=5.5),
        fixed_unit("B", qty=2),
        fixed_unit("C", qty=1),
        weight_unit("D", qty=1, touch="18K"),
    ]
    sales = [sale("A", 2), sale("C", 1)]
    return units, reconcile(units, sales)


def test_stock_stats_counts_only_units_on_hand():
    _, rep = _report()

    stats = stock_stats(rep.units)

    # A: 3 left, B: 2, D: 1; C is sold out
    assert stats.available_products == 6
    assert stats.total_weight_grams == 22.0


def test_format_weight():
    assert format_weight(850) == "850.0g"
    assert format_weight(1250) == "1.25kg"


def test_stock_report_columns_and_values():
    units, rep = _report()
    priced = price_units(units, RateBook([RateEntry("22K", 5200)]))

    df = stock_report(rep.units, priced)

    assert list(df.columns) == STOCK_COLUMNS
    assert list(df["code"]) == ["A", "B", "C", "D"]
    row = df.set_index("code").loc["A"]
    assert row["available_qty"] == 3
    assert row["unit_value"] == 29458.0
    # D has no 18K rate
    assert math.isnan(df.set_index("code").loc["D", "unit_value"])


def test_filter_by_search_and_status():
    _, rep = _report()
    df = stock_report(rep.units)

    assert list(filter_stock(df, "item c")["code"]) == ["C"]
    assert list(filter_stock(df, status=OUT_OF_STOCK)["code"]) == ["C"]
    assert list(filter_stock(df, status=LOW)["code"]) == ["B", "D"]
    assert len(filter_stock(df, "")) == 4


def test_empty_report():
    df = stock_report([])
    assert df.empty
    assert list(df.columns) == STOCK_COLUMNS
