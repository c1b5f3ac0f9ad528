import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from conftest import add_screen, build_test_container
from screenstock.domain.models import ScreenQuality
from screenstock.repositories.sqlite_store import SqliteKeyValueStore
from screenstock.repositories.state_repo import INVENTORY_KEY, SALES_KEY, StateRepository, parse_timestamp


def test_collections_round_trip_through_store(tmp_path: Path):
    c = build_test_container(tmp_path)
    item = add_screen(c.inventory, brand="Apple", model="iPhone 12", quality=ScreenQuality.OLED_GENERIC,
                      quantity=4, price=55.5, notes="Ships with frame", min_stock_threshold=None)
    c.sales.sell(item.id, 90.0, 1, customer_info="Walk-in")

    reopened = build_test_container(tmp_path)

    assert reopened.inventory.list_items() == c.inventory.list_items()
    assert reopened.sales.list_sales() == c.sales.list_sales()
    stored = reopened.inventory.get_item(item.id)
    assert stored.min_stock_threshold is None
    assert stored.notes == "Ships with frame"


def test_state_is_stored_in_versioned_envelope_with_camel_case_keys(tmp_path: Path):
    c = build_test_container(tmp_path)
    add_screen(c.inventory, entry_date=datetime(2024, 4, 2, 8, 15))

    raw = json.loads(c.repo.store.get(INVENTORY_KEY))

    assert raw["schema_version"] == 1
    row = raw["data"][0]
    assert row["purchasePrice"] == 30.0
    assert row["entryDate"] == "2024-04-02T08:15:00"
    assert row["minStockThreshold"] == 1


def test_bare_legacy_payload_is_read(tmp_path: Path):
    store = SqliteKeyValueStore(tmp_path / "legacy.db")
    store.init_db()
    store.set(SALES_KEY, json.dumps([{
        "id": "sale-1", "originalScreenId": "scr-1", "brand": "LG", "model": "K40",
        "quality": "Other", "purchasePrice": 10, "salePrice": 30, "profit": 20,
        "quantitySold": 2, "saleDate": "2024-02-10T10:00:00",
    }]))

    sales = StateRepository(store).load_sales()

    assert len(sales) == 1
    assert sales[0].unit_sale_price == 15.0
    assert sales[0].customer_info is None


def test_utc_z_timestamps_load_as_naive_local_time(tmp_path: Path):
    store = SqliteKeyValueStore(tmp_path / "legacy.db")
    store.init_db()
    row = {
        "id": "sale-1", "originalScreenId": "scr-1", "brand": "LG", "model": "K40",
        "quality": "Other", "purchasePrice": 10, "salePrice": 30, "profit": 20,
        "quantitySold": 2, "saleDate": "2024-02-10T10:00:00.000Z",
    }
    store.set(SALES_KEY, json.dumps([row, dict(row, id="sale-2", saleDate="2024-02-11T09:30:00")]))

    sales = StateRepository(store).load_sales()

    expected = datetime(2024, 2, 10, 10, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    assert sales[0].sale_date == expected
    assert all(s.sale_date.tzinfo is None for s in sales)
    assert [s.id for s in sorted(sales, key=lambda s: s.sale_date, reverse=True)] == ["sale-2", "sale-1"]


def test_parse_timestamp_accepts_offsets_and_plain_values():
    assert parse_timestamp("2024-04-02T08:15:00") == datetime(2024, 4, 2, 8, 15)
    offset = parse_timestamp("2024-04-02T08:15:00+02:00")
    assert offset.tzinfo is None
    assert offset == datetime(2024, 4, 2, 6, 15, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    with pytest.raises(ValueError):
        parse_timestamp("yesterday")


def test_newer_schema_version_is_refused(tmp_path: Path):
    store = SqliteKeyValueStore(tmp_path / "future.db")
    store.init_db()
    store.set(INVENTORY_KEY, json.dumps({"schema_version": 99, "data": []}))

    with pytest.raises(RuntimeError, match="unsupported schema version"):
        StateRepository(store).load_inventory()


def test_empty_store_loads_empty_state(tmp_path: Path):
    c = build_test_container(tmp_path)

    assert c.inventory.list_items() == []
    assert c.sales.list_sales() == []
    assert c.ai_connection.enabled is False


def test_migrations_are_idempotent(tmp_path: Path):
    store = SqliteKeyValueStore(tmp_path / "m.db")
    store.init_db()
    store.set("k", "v")
    store.init_db()

    assert store.get("k") == "v"
    assert store.get("missing") is None
