from __future__ import annotations

from typing import Callable, Optional

import logging
import math
import uuid
from datetime import datetime

from screenstock.domain.errors import (
    ConfirmationError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from screenstock.domain.models import SaleTransaction
from screenstock.repositories.unit_of_work import StateUnitOfWork, UnitOfWork

log = logging.getLogger("screenstock.sales")

CLEAR_SALES_PHRASE = "DELETE ALL SALES"


def new_sale_id() -> str:
    return f"sale-{uuid.uuid4().hex[:12]}"


def _whole_quantity(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f) or not f.is_integer():
        return None
    return int(f)


class SalesService:
    def __init__(
        self,
        state,
        repo,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.state = state
        self.repo = repo
        self.uow_factory = uow_factory or (lambda: StateUnitOfWork(state, repo))
        self.clock = clock or (lambda: datetime.now().replace(microsecond=0))

    def sell(
        self,
        item_id: Optional[str],
        unit_sale_price: float,
        quantity_to_sell: int,
        customer_info: Optional[str] = None,
    ) -> SaleTransaction:
        """Sell ``quantity_to_sell`` units of a stock item at ``unit_sale_price``.

        Records the sale and decrements the item in one unit of work; on any
        validation failure nothing is mutated.
        """
        item = self.state.inventory.get(item_id)
        if not item:
            raise NotFoundError("No item selected.")

        qty = _whole_quantity(quantity_to_sell)
        if qty is None or qty <= 0:
            raise ValidationError("Invalid quantity. Enter a quantity greater than 0.")
        if qty > int(item.quantity):
            raise InsufficientStockError(
                f"Not enough stock. Only {item.quantity} units left of {item.brand} {item.model}."
            )

        unit_price = float(unit_sale_price)
        if not math.isfinite(unit_price) or unit_price <= 0:
            raise ValidationError("Invalid price. Enter a unit sale price greater than 0.")

        sale = SaleTransaction(
            id=new_sale_id(),
            original_screen_id=item.id,
            brand=item.brand,
            model=item.model,
            quality=item.quality,
            purchase_price=float(item.purchase_price),
            sale_price=unit_price * qty,
            profit=(unit_price - float(item.purchase_price)) * qty,
            quantity_sold=qty,
            sale_date=self.clock(),
            customer_info=(customer_info or "").strip() or None,
        )

        with self.uow_factory() as uow:
            remaining = uow.record_sale(sale, qty)
        log.info(
            "sale_created sale_id=%s item_id=%s qty=%s total=%.2f profit=%.2f remaining=%s",
            sale.id, item.id, qty, sale.sale_price, sale.profit, remaining.quantity if remaining else None,
        )
        return sale

    def list_sales(self) -> list[SaleTransaction]:
        return sorted(self.state.sales.items(), key=lambda s: s.sale_date, reverse=True)

    def clear_all(self, confirmation: str) -> None:
        if confirmation != CLEAR_SALES_PHRASE:
            raise ConfirmationError(f'Incorrect confirmation. Type "{CLEAR_SALES_PHRASE}" to confirm.')
        with self.uow_factory():
            count = len(self.state.sales)
            self.state.sales.clear()
        log.warning("sales_cleared removed=%s", count)
