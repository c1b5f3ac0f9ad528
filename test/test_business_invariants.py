from dataclasses import replace
from datetime import datetime
from pathlib import Path

import pytest

from conftest import add_screen, build_test_container
from screenstock.domain.errors import DuplicateIdError, NotFoundError, ValidationError
from screenstock.domain.ledgers import InventoryLedger
from screenstock.domain.models import ScreenQuality, StockItem


def test_sale_records_totals_and_decrements_stock(tmp_path: Path):
    c = build_test_container(tmp_path)
    item = add_screen(c.inventory, brand="Samsung", model="A12", quantity=10, price=20.0)

    sale = c.sales.sell(item.id, 35.0, 3)

    assert c.inventory.get_item(item.id).quantity == 7
    assert sale.sale_price == pytest.approx(105.0)
    assert sale.profit == pytest.approx(45.0)
    assert sale.quantity_sold == 3
    assert sale.purchase_price == 20.0
    assert sale.original_screen_id == item.id
    assert sale.unit_sale_price == pytest.approx(35.0)
    assert sale.unit_profit == pytest.approx(15.0)
    assert sale.id.startswith("sale-")
    assert [s.id for s in c.sales.list_sales()] == [sale.id]


def test_sale_keeps_purchase_price_snapshot_after_item_edit(tmp_path: Path):
    c = build_test_container(tmp_path)
    item = add_screen(c.inventory, quantity=10, price=20.0)
    sale = c.sales.sell(item.id, 35.0, 2)

    edited = c.inventory.get_item(item.id)
    c.inventory.update_item(replace(edited, purchase_price=99.0, model="A12s"))

    stored = c.sales.list_sales()[0]
    assert stored.purchase_price == 20.0
    assert stored.model == "A12"
    assert stored.profit == pytest.approx(30.0)


def test_sale_survives_item_deletion(tmp_path: Path):
    c = build_test_container(tmp_path)
    item = add_screen(c.inventory, quantity=4)
    sale = c.sales.sell(item.id, 50.0, 1)

    c.inventory.delete_item(item.id)

    assert [s.id for s in c.sales.list_sales()] == [sale.id]
    assert c.sales.list_sales()[0].original_screen_id == item.id


def test_decrement_clamps_at_zero():
    ledger = InventoryLedger()
    ledger.add(StockItem("scr-1", "Apple", "iPhone 11", ScreenQuality.INCELL, 2, 40.0, "", datetime(2024, 1, 1)))

    updated = ledger.decrement_quantity("scr-1", 5)

    assert updated.quantity == 0
    assert ledger.decrement_quantity("missing", 1) is None


def test_add_item_generates_prefixed_unique_ids(tmp_path: Path):
    c = build_test_container(tmp_path)
    a = add_screen(c.inventory)
    b = add_screen(c.inventory)

    assert a.id.startswith("scr-") and b.id.startswith("scr-")
    assert a.id != b.id


def test_add_item_requires_brand_and_model(tmp_path: Path):
    c = build_test_container(tmp_path)

    with pytest.raises(ValidationError, match="Brand and Model are required"):
        add_screen(c.inventory, brand="  ", model="A12")
    assert c.inventory.list_items() == []


def test_add_item_rejects_negative_values(tmp_path: Path):
    c = build_test_container(tmp_path)

    with pytest.raises(ValidationError):
        add_screen(c.inventory, quantity=-1)
    with pytest.raises(ValidationError):
        add_screen(c.inventory, price=-0.5)


@pytest.mark.parametrize("price", [float("nan"), float("inf")])
def test_add_item_rejects_non_finite_price(tmp_path: Path, price: float):
    c = build_test_container(tmp_path)

    with pytest.raises(ValidationError, match="Purchase price"):
        add_screen(c.inventory, price=price)
    assert c.inventory.list_items() == []
    assert c.reporting.inventory_summary().inventory_value == 0


def test_insert_with_existing_id_is_rejected(tmp_path: Path):
    c = build_test_container(tmp_path)
    item = add_screen(c.inventory)

    with pytest.raises(DuplicateIdError):
        c.inventory.insert_item(item)
    assert len(c.inventory.list_items()) == 1


def test_update_and_delete_unknown_id_raise_not_found(tmp_path: Path):
    c = build_test_container(tmp_path)
    item = add_screen(c.inventory)
    c.inventory.delete_item(item.id)

    with pytest.raises(NotFoundError):
        c.inventory.update_item(item)
    with pytest.raises(NotFoundError):
        c.inventory.delete_item(item.id)


def test_ledger_update_and_remove_unknown_id_are_no_ops():
    ledger = InventoryLedger()
    ghost = StockItem("scr-x", "LG", "K40", ScreenQuality.OTHER, 1, 10.0, "", datetime(2024, 1, 1))
    assert ledger.update(ghost) is False
    assert ledger.remove("scr-x") is False
    assert len(ledger) == 0


def test_list_items_search_filter_and_order(tmp_path: Path):
    c = build_test_container(tmp_path)
    old = add_screen(c.inventory, brand="Samsung", model="A12", supplier="Acme", entry_date=datetime(2024, 1, 1))
    new = add_screen(c.inventory, brand="Apple", model="iPhone 12", quality=ScreenQuality.OLED_GENERIC,
                     supplier="Pantallas SRL", entry_date=datetime(2024, 2, 1))

    assert [it.id for it in c.inventory.list_items()] == [new.id, old.id]
    assert [it.id for it in c.inventory.list_items("iphone")] == [new.id]
    assert [it.id for it in c.inventory.list_items("pantallas")] == [new.id]
    assert [it.id for it in c.inventory.list_items(old.id)] == [old.id]
    assert [it.id for it in c.inventory.list_items(quality=ScreenQuality.OEM)] == [old.id]
    assert c.inventory.list_items("iphone", ScreenQuality.OEM) == []
