from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from screenstock.domain.models import SaleTransaction, ScreenQuality, StockItem

INVENTORY_KEY = "screenStockProInventory"
SALES_KEY = "screenStockProSales"
AI_CONNECTION_KEY = "screenStockProGeminiConnection"

SCHEMA_VERSION = 1


def parse_timestamp(raw: str) -> datetime:
    """ISO-8601 to a naive local datetime. Accepts a trailing ``Z`` as written
    by JavaScript's ``toISOString()``."""
    text = str(raw).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def item_to_dict(item: StockItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "brand": item.brand,
        "model": item.model,
        "quality": item.quality.value,
        "quantity": int(item.quantity),
        "purchasePrice": float(item.purchase_price),
        "supplier": item.supplier,
        "entryDate": item.entry_date.isoformat(),
        "notes": item.notes,
        "minStockThreshold": item.min_stock_threshold,
    }


def item_from_dict(row: dict[str, Any]) -> StockItem:
    threshold = row.get("minStockThreshold")
    return StockItem(
        id=str(row["id"]),
        brand=str(row["brand"]),
        model=str(row["model"]),
        quality=ScreenQuality(row["quality"]),
        quantity=int(row["quantity"]),
        purchase_price=float(row["purchasePrice"]),
        supplier=str(row.get("supplier") or ""),
        entry_date=parse_timestamp(row["entryDate"]),
        notes=row.get("notes"),
        min_stock_threshold=int(threshold) if threshold is not None else None,
    )


def sale_to_dict(sale: SaleTransaction) -> dict[str, Any]:
    return {
        "id": sale.id,
        "originalScreenId": sale.original_screen_id,
        "brand": sale.brand,
        "model": sale.model,
        "quality": sale.quality.value,
        "purchasePrice": float(sale.purchase_price),
        "salePrice": float(sale.sale_price),
        "profit": float(sale.profit),
        "quantitySold": int(sale.quantity_sold),
        "saleDate": sale.sale_date.isoformat(),
        "customerInfo": sale.customer_info,
    }


def sale_from_dict(row: dict[str, Any]) -> SaleTransaction:
    return SaleTransaction(
        id=str(row["id"]),
        original_screen_id=str(row["originalScreenId"]),
        brand=str(row["brand"]),
        model=str(row["model"]),
        quality=ScreenQuality(row["quality"]),
        purchase_price=float(row["purchasePrice"]),
        sale_price=float(row["salePrice"]),
        profit=float(row["profit"]),
        quantity_sold=int(row["quantitySold"]),
        sale_date=parse_timestamp(row["saleDate"]),
        customer_info=row.get("customerInfo"),
    )


class StateRepository:
    """Reads and writes whole collections through a key/value store.

    Every slot holds ``{"schema_version": N, "data": ...}``. A bare JSON value
    without the envelope is read as version 0 data.
    """

    def __init__(self, store):
        self.store = store

    def _read(self, key: str) -> Optional[Any]:
        raw = self.store.get(key)
        if raw is None:
            return None
        payload = json.loads(raw)
        if isinstance(payload, dict) and "schema_version" in payload:
            version = int(payload["schema_version"])
            if version > SCHEMA_VERSION:
                raise RuntimeError(f"Stored state for {key} uses unsupported schema version {version}.")
            return payload.get("data")
        return payload

    def _write(self, key: str, data: Any) -> None:
        payload = {"schema_version": SCHEMA_VERSION, "data": data}
        self.store.set(key, json.dumps(payload, ensure_ascii=False))

    def load_inventory(self) -> list[StockItem]:
        rows = self._read(INVENTORY_KEY) or []
        return [item_from_dict(r) for r in rows]

    def save_inventory(self, items: list[StockItem]) -> None:
        self._write(INVENTORY_KEY, [item_to_dict(it) for it in items])

    def load_sales(self) -> list[SaleTransaction]:
        rows = self._read(SALES_KEY) or []
        return [sale_from_dict(r) for r in rows]

    def save_sales(self, sales: list[SaleTransaction]) -> None:
        self._write(SALES_KEY, [sale_to_dict(s) for s in sales])

    def load_ai_enabled(self) -> bool:
        return bool(self._read(AI_CONNECTION_KEY) or False)

    def save_ai_enabled(self, enabled: bool) -> None:
        self._write(AI_CONNECTION_KEY, bool(enabled))
