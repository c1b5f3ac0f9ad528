from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from screenstock.domain.models import SaleTransaction, StockItem


class UnitOfWork(Protocol):
    def __enter__(self) -> "UnitOfWork": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...
    def record_sale(self, sale: SaleTransaction, quantity: int) -> StockItem: ...


@dataclass
class StateUnitOfWork:
    """Unit of Work over the in-memory ledgers.

    Snapshots both ledgers on enter. On a clean exit the whole collections
    are persisted; if the body or the persistence write fails, both ledgers
    are restored so no reader ever sees half of a mutation.
    """

    state: object
    repo: object
    _inventory_snapshot: list = field(default_factory=list, init=False, repr=False)
    _sales_snapshot: list = field(default_factory=list, init=False, repr=False)

    def __enter__(self) -> "StateUnitOfWork":
        self._inventory_snapshot = self.state.inventory.snapshot()
        self._sales_snapshot = self.state.sales.snapshot()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self._rollback()
            return None
        try:
            self.repo.save_inventory(self.state.inventory.items())
            self.repo.save_sales(self.state.sales.items())
        except Exception:
            self._rollback()
            raise
        return None

    def _rollback(self) -> None:
        self.state.inventory.restore(self._inventory_snapshot)
        self.state.sales.restore(self._sales_snapshot)

    def record_sale(self, sale: SaleTransaction, quantity: int) -> StockItem:
        self.state.sales.add(sale)
        return self.state.inventory.decrement_quantity(sale.original_screen_id, quantity)
