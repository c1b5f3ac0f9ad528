from datetime import datetime, timedelta
from pathlib import Path

import pytest

from conftest import add_screen, build_test_container, make_sale
from screenstock.domain.models import ScreenQuality, StockItem
from screenstock.services.reporting_service import (
    cumulative_profit_series,
    inventory_value,
    is_low_stock,
    is_out_of_stock,
    monthly_sales_totals,
    recent_sales_total,
    top_sold_by_count,
    total_profit,
    total_revenue,
)


def _item(qty, price, threshold=None, item_id="scr-1"):
    return StockItem(item_id, "Motorola", "G20", ScreenQuality.AAA_PLUS, qty, price, "", datetime(2024, 1, 1),
                     min_stock_threshold=threshold)


def test_inventory_value_is_sum_of_quantity_times_cost():
    items = [_item(3, 10.0, item_id="a"), _item(2, 7.5, item_id="b"), _item(0, 99.0, item_id="c")]

    assert inventory_value(items) == pytest.approx(45.0)
    assert inventory_value([]) == 0


def test_inventory_value_is_linear_over_disjoint_sets():
    a = [_item(3, 10.0, item_id="a1"), _item(1, 12.25, item_id="a2")]
    b = [_item(5, 4.4, item_id="b1"), _item(0, 80.0, item_id="b2"), _item(7, 0.0, item_id="b3")]

    assert inventory_value(a + b) == pytest.approx(inventory_value(a) + inventory_value(b))
    assert inventory_value(b + a) == pytest.approx(inventory_value(a + b))


def test_totals_are_additive_over_concatenation():
    a = [make_sale(qty=2, unit_price=50.0), make_sale(model="A32", qty=1, unit_price=80.0)]
    b = [make_sale(model="A52", qty=3, unit_cost=10.0, unit_price=12.0)]

    assert total_revenue(a + b) == pytest.approx(total_revenue(a) + total_revenue(b))
    assert total_profit(a + b) == pytest.approx(total_profit(a) + total_profit(b))
    assert total_revenue(a) == pytest.approx(180.0)


def test_top_sold_counts_transactions_not_units():
    sales = [make_sale(model="X", qty=50, sale_id="s1")]
    sales += [make_sale(model="Y", qty=1, sale_id=f"y{i}") for i in range(3)]

    top = top_sold_by_count(sales)

    assert [(t.model, t.count) for t in top] == [("Y", 3), ("X", 1)]
    assert top[0].label == "Samsung Y (OEM)"


def test_top_sold_distinguishes_quality_and_limits_results():
    sales = [make_sale(model="A12", quality=ScreenQuality.OEM, sale_id="a"),
             make_sale(model="A12", quality=ScreenQuality.INCELL, sale_id="b")]
    sales += [make_sale(model=f"M{i}", sale_id=f"m{i}") for i in range(10)]

    top = top_sold_by_count(sales, n=5)

    assert len(top) == 5
    assert {(t.model, t.quality) for t in top[:2]} == {("A12", ScreenQuality.OEM), ("A12", ScreenQuality.INCELL)}
    assert top_sold_by_count([], 5) == []


def test_top_sold_ties_keep_first_seen_order():
    tied = [make_sale(model=f"M{i}", sale_id=f"m{i}") for i in range(10)]

    assert [t.model for t in top_sold_by_count(tied, 3)] == ["M0", "M1", "M2"]


def test_top_sold_later_group_with_more_sales_ranks_first():
    sales = [
        make_sale(model="Early", sale_id="e1"),
        make_sale(model="Late", sale_id="l1"),
        make_sale(model="Mid", sale_id="m1"),
        make_sale(model="Late", sale_id="l2"),
    ]

    assert [(t.model, t.count) for t in top_sold_by_count(sales)] == [("Late", 2), ("Early", 1), ("Mid", 1)]


def test_recent_sales_total_uses_window_and_product_key():
    now = datetime(2024, 6, 30, 12, 0)
    sales = [
        make_sale(qty=2, sale_date=now - timedelta(days=1)),
        make_sale(qty=4, sale_date=now - timedelta(days=29)),
        make_sale(qty=7, sale_date=now - timedelta(days=30)),
        make_sale(qty=9, sale_date=now - timedelta(days=45)),
        make_sale(qty=5, quality=ScreenQuality.INCELL, sale_date=now - timedelta(days=2)),
        make_sale(model="A13", qty=3, sale_date=now - timedelta(days=2)),
    ]

    assert recent_sales_total(sales, "Samsung", "A12", ScreenQuality.OEM, 30, now=now) == 6
    assert recent_sales_total(sales, "Samsung", "A12", ScreenQuality.INCELL, 30, now=now) == 5
    assert recent_sales_total(sales, "Samsung", "A12", ScreenQuality.OEM, 60, now=now) == 22


def test_low_and_out_of_stock_flags():
    assert is_low_stock(_item(1, 5.0, threshold=2))
    assert is_low_stock(_item(2, 5.0, threshold=2))
    assert not is_low_stock(_item(3, 5.0, threshold=2))
    assert not is_low_stock(_item(0, 5.0, threshold=None))
    assert is_out_of_stock(_item(0, 5.0))
    assert not is_out_of_stock(_item(1, 5.0))


def test_monthly_totals_and_cumulative_profit():
    sales = [
        make_sale(qty=1, unit_cost=10.0, unit_price=30.0, sale_date=datetime(2024, 1, 5), sale_id="a"),
        make_sale(qty=2, unit_cost=10.0, unit_price=30.0, sale_date=datetime(2024, 1, 20), sale_id="b"),
        make_sale(qty=1, unit_cost=10.0, unit_price=5.0, sale_date=datetime(2024, 3, 1), sale_id="c"),
    ]

    assert monthly_sales_totals(sales) == [("2024-01", 90.0), ("2024-03", 5.0)]
    assert monthly_sales_totals(sales, months=1) == [("2024-03", 5.0)]
    assert cumulative_profit_series(sales) == [
        ("2024-01-05", 20.0),
        ("2024-01-20", 60.0),
        ("2024-03-01", 55.0),
    ]


def test_reporting_service_summaries(tmp_path: Path):
    c = build_test_container(tmp_path)
    a = add_screen(c.inventory, model="A12", quantity=3, price=10.0, min_stock_threshold=2)
    add_screen(c.inventory, model="A32", quantity=5, price=20.0, min_stock_threshold=1)
    c.sales.sell(a.id, 25.0, 3)

    inv = c.reporting.inventory_summary()
    assert inv.items_count == 2
    assert inv.total_units == 5
    assert inv.inventory_value == pytest.approx(100.0)
    assert inv.low_stock_count == 1
    assert inv.out_of_stock_count == 1
    assert [it.id for it in c.reporting.low_stock_items()] == [a.id]

    sales = c.reporting.sales_summary()
    assert sales.sales_count == 1
    assert sales.total_revenue == pytest.approx(75.0)
    assert sales.total_profit == pytest.approx(45.0)
    assert sales.total_units_sold == 3
    assert [t.model for t in c.reporting.top_sold()] == ["A12"]
