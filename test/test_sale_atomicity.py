from pathlib import Path

import pytest

from conftest import add_screen
from screenstock.application.state import load_state
from screenstock.repositories.sqlite_store import SqliteKeyValueStore
from screenstock.repositories.state_repo import StateRepository
from screenstock.services.inventory_service import InventoryService
from screenstock.services.sales_service import SalesService


class FailingSalesRepo(StateRepository):
    fail = False

    def save_sales(self, sales):
        if self.fail:
            raise RuntimeError("boom")
        super().save_sales(sales)


def _setup(tmp_path: Path):
    store = SqliteKeyValueStore(tmp_path / "t.db")
    store.init_db()
    repo = FailingSalesRepo(store)
    state = load_state(repo)
    return repo, state, InventoryService(state, repo), SalesService(state, repo)


def test_sale_rolls_back_when_persistence_fails(tmp_path: Path):
    repo, state, inventory, sales = _setup(tmp_path)
    item = add_screen(inventory, quantity=5, price=10.0)

    repo.fail = True
    with pytest.raises(RuntimeError, match="boom"):
        sales.sell(item.id, 20.0, 2)

    assert inventory.get_item(item.id).quantity == 5
    assert sales.list_sales() == []

    repo.fail = False
    sales.sell(item.id, 20.0, 2)
    assert inventory.get_item(item.id).quantity == 3
    assert len(sales.list_sales()) == 1


def test_failed_unit_of_work_body_restores_both_ledgers(tmp_path: Path):
    repo, state, inventory, sales = _setup(tmp_path)
    item = add_screen(inventory, quantity=5)
    before_items = state.inventory.snapshot()

    with pytest.raises(ValueError):
        with inventory.uow_factory():
            state.inventory.clear()
            raise ValueError("abort")

    assert state.inventory.snapshot() == before_items
    assert [it.id for it in repo.load_inventory()] == [item.id]
