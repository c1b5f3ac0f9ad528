from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Optional

from screenstock.domain.errors import DuplicateIdError
from screenstock.domain.models import SaleTransaction, StockItem


class InventoryLedger:
    """Stock items keyed by id. Iteration follows insertion order, which is
    not a contract; views sort as they need."""

    def __init__(self, items: Iterable[StockItem] = ()):
        self._items: dict[str, StockItem] = {}
        for it in items:
            self.add(it)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def get(self, item_id: Optional[str]) -> Optional[StockItem]:
        if item_id is None:
            return None
        return self._items.get(item_id)

    def items(self) -> list[StockItem]:
        return list(self._items.values())

    def add(self, item: StockItem) -> None:
        if item.id in self._items:
            raise DuplicateIdError(f"Stock item {item.id} already exists.")
        self._items[item.id] = item

    def update(self, item: StockItem) -> bool:
        if item.id not in self._items:
            return False
        self._items[item.id] = item
        return True

    def remove(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None

    def clear(self) -> None:
        self._items.clear()

    def decrement_quantity(self, item_id: str, amount: int) -> Optional[StockItem]:
        current = self._items.get(item_id)
        if current is None:
            return None
        updated = replace(current, quantity=max(0, int(current.quantity) - int(amount)))
        self._items[item_id] = updated
        return updated

    def snapshot(self) -> list[StockItem]:
        return self.items()

    def restore(self, items: Iterable[StockItem]) -> None:
        self._items = {it.id: it for it in items}


class SalesLedger:
    def __init__(self, sales: Iterable[SaleTransaction] = ()):
        self._sales: list[SaleTransaction] = list(sales)

    def __len__(self) -> int:
        return len(self._sales)

    def items(self) -> list[SaleTransaction]:
        return list(self._sales)

    def add(self, sale: SaleTransaction) -> None:
        self._sales.append(sale)

    def clear(self) -> None:
        self._sales.clear()

    def snapshot(self) -> list[SaleTransaction]:
        return self.items()

    def restore(self, sales: Iterable[SaleTransaction]) -> None:
        self._sales = list(sales)
