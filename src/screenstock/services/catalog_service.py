from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from screenstock.domain.errors import NotFoundError, ValidationError
from screenstock.domain.models import PdfExtractedRecord, ScreenQuality, StockItem
from screenstock.services.inventory_service import new_item_id

log = logging.getLogger(__name__)

IMPORTED_SUPPLIER = "Imported from catalog"
PLACEHOLDER = "N/A"


def resolve_quality(raw: Optional[str]) -> tuple[ScreenQuality, Optional[str]]:
    """Map a catalog quality string onto the enumeration.

    Returns the quality and, when the string matched nothing and fell back to
    ``Other``, the original string so it can be kept in the notes.
    """
    if not raw:
        return ScreenQuality.OTHER, None
    for q in ScreenQuality:
        if raw == q.value:
            return q, None
    lowered = raw.lower()
    for q in ScreenQuality:
        if lowered == q.value.lower():
            return q, None
    return ScreenQuality.OTHER, raw


def compose_notes(record: PdfExtractedRecord, unmapped_quality: Optional[str]) -> Optional[str]:
    parts: list[str] = []
    if record.product_description:
        parts.append(f"Catalog description: {record.product_description}")
    if record.color:
        parts.append(f"Catalog color: {record.color}")
    if unmapped_quality:
        parts.append(f'Catalog quality: "{unmapped_quality}" (mapped to {ScreenQuality.OTHER.value})')
    if record.notes:
        parts.append(f"Catalog notes: {record.notes}")
    return ". ".join(parts).strip() or None


def normalize_record(
    record: PdfExtractedRecord,
    generate_id: bool = True,
    now: Optional[datetime] = None,
) -> StockItem:
    quality, unmapped = resolve_quality(record.quality)
    quantity = record.quantity if record.quantity is not None and record.quantity > 0 else 1
    price = record.purchase_price if record.purchase_price is not None else 0.0
    return StockItem(
        id=new_item_id() if generate_id else "",
        brand=record.brand or PLACEHOLDER,
        model=record.model or PLACEHOLDER,
        quality=quality,
        quantity=int(quantity),
        purchase_price=float(price),
        supplier=IMPORTED_SUPPLIER,
        entry_date=now or datetime.now().replace(microsecond=0),
        notes=compose_notes(record, unmapped),
        min_stock_threshold=1,
    )


class CatalogImportSession:
    """Extracted catalog rows waiting for the user to review or bulk-add them."""

    def __init__(self, inventory_service, records: list[PdfExtractedRecord]):
        self.inventory = inventory_service
        self.records = list(records)
        self.added: set[int] = set()

    def _check_index(self, index: int) -> PdfExtractedRecord:
        if index < 0 or index >= len(self.records):
            raise NotFoundError("Catalog row not found.")
        return self.records[index]

    @property
    def pending_count(self) -> int:
        return sum(1 for i in range(len(self.records)) if i not in self.added)

    def is_added(self, index: int) -> bool:
        return index in self.added

    def preview(self, index: int) -> StockItem:
        return normalize_record(self._check_index(index), generate_id=False)

    def commit(self, index: int, item: StockItem) -> StockItem:
        self._check_index(index)
        if index in self.added:
            raise ValidationError("Catalog row was already added to inventory.")
        if not item.id:
            item = replace(item, id=new_item_id())
        stored = self.inventory.insert_item(item)
        self.added.add(index)
        return stored

    def add_all_pending(self) -> int:
        pending = [i for i in range(len(self.records)) if i not in self.added]
        if not pending:
            return 0
        items = [normalize_record(self.records[i]) for i in pending]
        self.inventory.insert_many(items)
        self.added.update(pending)
        log.info("catalog_rows_added count=%s", len(pending))
        return len(pending)
