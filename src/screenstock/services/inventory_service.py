from __future__ import annotations

import logging
import math
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from screenstock.domain.errors import ConfirmationError, NotFoundError, ValidationError
from screenstock.domain.models import ScreenQuality, StockItem
from screenstock.repositories.unit_of_work import StateUnitOfWork, UnitOfWork

log = logging.getLogger(__name__)

CLEAR_INVENTORY_PHRASE = "DELETE ALL INVENTORY"


def new_item_id() -> str:
    return f"scr-{uuid.uuid4().hex[:12]}"


def validate_item(item: StockItem) -> StockItem:
    brand = (item.brand or "").strip()
    model = (item.model or "").strip()
    if not brand or not model:
        raise ValidationError("Brand and Model are required.")
    if not isinstance(item.quality, ScreenQuality):
        raise ValidationError(f"Unknown quality: {item.quality}")
    if int(item.quantity) < 0:
        raise ValidationError("Quantity must be >= 0.")
    if not math.isfinite(float(item.purchase_price)) or float(item.purchase_price) < 0:
        raise ValidationError("Purchase price must be a number >= 0.")
    if item.min_stock_threshold is not None and int(item.min_stock_threshold) < 0:
        raise ValidationError("Min stock threshold must be >= 0.")
    notes = (item.notes or "").strip() or None
    return replace(
        item,
        brand=brand,
        model=model,
        quantity=int(item.quantity),
        purchase_price=float(item.purchase_price),
        supplier=(item.supplier or "").strip(),
        notes=notes,
    )


class InventoryService:
    def __init__(self, state, repo, uow_factory: Callable[[], UnitOfWork] | None = None):
        self.state = state
        self.repo = repo
        self.uow_factory = uow_factory or (lambda: StateUnitOfWork(state, repo))

    def list_items(self, search: str = "", quality: Optional[ScreenQuality] = None) -> list[StockItem]:
        """Items matching ``search`` (id, brand, model or supplier) and
        ``quality``, newest entry first."""
        term = search.strip().lower()
        rows = []
        for it in self.state.inventory.items():
            if quality is not None and it.quality != quality:
                continue
            if term and not any(term in field.lower() for field in (it.id, it.brand, it.model, it.supplier)):
                continue
            rows.append(it)
        return sorted(rows, key=lambda it: it.entry_date, reverse=True)

    def get_item(self, item_id: str) -> StockItem:
        item = self.state.inventory.get(item_id)
        if not item:
            raise NotFoundError("Stock item not found.")
        return item

    def add_item(
        self,
        brand: str,
        model: str,
        quality: ScreenQuality,
        quantity: int,
        purchase_price: float,
        supplier: str = "",
        entry_date: Optional[datetime] = None,
        notes: Optional[str] = None,
        min_stock_threshold: Optional[int] = 1,
    ) -> StockItem:
        item = StockItem(
            id=new_item_id(),
            brand=brand,
            model=model,
            quality=quality,
            quantity=quantity,
            purchase_price=purchase_price,
            supplier=supplier,
            entry_date=entry_date or datetime.now().replace(microsecond=0),
            notes=notes,
            min_stock_threshold=min_stock_threshold,
        )
        return self.insert_item(item)

    def insert_item(self, item: StockItem) -> StockItem:
        item = validate_item(item)
        if not item.id:
            item = replace(item, id=new_item_id())
        with self.uow_factory():
            self.state.inventory.add(item)
        log.info("item_added id=%s brand=%s model=%s qty=%s", item.id, item.brand, item.model, item.quantity)
        return item

    def insert_many(self, items: list[StockItem]) -> list[StockItem]:
        checked = [validate_item(it) for it in items]
        checked = [it if it.id else replace(it, id=new_item_id()) for it in checked]
        with self.uow_factory():
            for it in checked:
                self.state.inventory.add(it)
        log.info("items_added count=%s", len(checked))
        return checked

    def update_item(self, item: StockItem) -> StockItem:
        item = validate_item(item)
        with self.uow_factory():
            updated = self.state.inventory.update(item)
        if not updated:
            raise NotFoundError("Stock item not found.")
        log.info("item_updated id=%s", item.id)
        return item

    def delete_item(self, item_id: str) -> None:
        with self.uow_factory():
            removed = self.state.inventory.remove(item_id)
        if not removed:
            raise NotFoundError("Stock item not found.")
        log.info("item_deleted id=%s", item_id)

    def clear_all(self, confirmation: str) -> None:
        if confirmation != CLEAR_INVENTORY_PHRASE:
            raise ConfirmationError(f'Incorrect confirmation. Type "{CLEAR_INVENTORY_PHRASE}" to confirm.')
        with self.uow_factory():
            count = len(self.state.inventory)
            self.state.inventory.clear()
        log.warning("inventory_cleared removed=%s", count)
