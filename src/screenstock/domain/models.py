from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ScreenQuality(str, Enum):
    ORIGINAL = "Original"
    OEM = "OEM"
    AAA_PLUS = "AAA+"
    INCELL = "Incell"
    OLED_GENERIC = "OLED-Generic"
    OTHER = "Other"


@dataclass(frozen=True)
class StockItem:
    id: str
    brand: str
    model: str
    quality: ScreenQuality
    quantity: int
    purchase_price: float
    supplier: str
    entry_date: datetime
    notes: Optional[str] = None
    min_stock_threshold: Optional[int] = None

    @property
    def label(self) -> str:
        return f"{self.brand} {self.model} ({self.quality.value})"


@dataclass(frozen=True)
class SaleTransaction:
    id: str
    original_screen_id: str
    brand: str
    model: str
    quality: ScreenQuality
    purchase_price: float
    sale_price: float
    profit: float
    quantity_sold: int
    sale_date: datetime
    customer_info: Optional[str] = None

    @property
    def unit_sale_price(self) -> float:
        return self.sale_price / self.quantity_sold if self.quantity_sold > 0 else 0.0

    @property
    def unit_profit(self) -> float:
        return self.profit / self.quantity_sold if self.quantity_sold > 0 else 0.0

    @property
    def product_key(self) -> tuple[str, str, ScreenQuality]:
        return (self.brand, self.model, self.quality)


@dataclass(frozen=True)
class PdfExtractedRecord:
    brand: Optional[str] = None
    model: Optional[str] = None
    product_description: Optional[str] = None
    quality: Optional[str] = None
    color: Optional[str] = None
    purchase_price: Optional[float] = None
    quantity: Optional[int] = None
    notes: Optional[str] = None
