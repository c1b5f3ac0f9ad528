from dataclasses import replace
from datetime import datetime
from pathlib import Path

import pytest

from conftest import build_test_container
from screenstock.domain.errors import NotFoundError, ValidationError
from screenstock.domain.models import PdfExtractedRecord, ScreenQuality
from screenstock.services.ai_service import parse_catalog_reply
from screenstock.services.catalog_service import (
    IMPORTED_SUPPLIER,
    CatalogImportSession,
    normalize_record,
    resolve_quality,
)


def test_quality_matches_case_insensitively():
    assert resolve_quality("original") == (ScreenQuality.ORIGINAL, None)
    assert resolve_quality("INCELL") == (ScreenQuality.INCELL, None)
    assert resolve_quality("AAA+") == (ScreenQuality.AAA_PLUS, None)
    assert resolve_quality(None) == (ScreenQuality.OTHER, None)


def test_unknown_quality_maps_to_other_and_is_kept_in_notes():
    item = normalize_record(PdfExtractedRecord(brand="Xiaomi", model="Redmi 9A", quality="Refurbished"))

    assert item.quality is ScreenQuality.OTHER
    assert 'Catalog quality: "Refurbished"' in item.notes


def test_missing_fields_get_defaults():
    now = datetime(2024, 5, 1, 9, 30)
    item = normalize_record(PdfExtractedRecord(), now=now)

    assert item.brand == "N/A"
    assert item.model == "N/A"
    assert item.quantity == 1
    assert item.purchase_price == 0.0
    assert item.supplier == IMPORTED_SUPPLIER
    assert item.min_stock_threshold == 1
    assert item.entry_date == now
    assert item.notes is None
    assert item.id.startswith("scr-")


def test_zero_quantity_defaults_to_one_and_notes_are_composed():
    record = PdfExtractedRecord(
        brand="Samsung",
        model="A15 4G/A155",
        product_description="LCD+touch with frame",
        quality="Incell",
        color="Black",
        purchase_price=80.9,
        quantity=0,
        notes="Reference: A15 5G/A156",
    )

    item = normalize_record(record, generate_id=False)

    assert item.id == ""
    assert item.quantity == 1
    assert item.purchase_price == 80.9
    assert item.quality is ScreenQuality.INCELL
    assert item.notes == (
        "Catalog description: LCD+touch with frame. Catalog color: Black. Catalog notes: Reference: A15 5G/A156"
    )


def _records():
    return [
        PdfExtractedRecord(brand="Samsung", model="A12", quality="OEM", purchase_price=30.0, quantity=2),
        PdfExtractedRecord(brand="Apple", model="iPhone 11", quality="Incell", purchase_price=45.0),
        PdfExtractedRecord(brand="Motorola", model="G20", quality="Genuine", quantity=4),
    ]


def test_add_all_pending_adds_every_row_once(tmp_path: Path):
    c = build_test_container(tmp_path)
    session = CatalogImportSession(c.inventory, _records())

    assert session.pending_count == 3
    assert session.add_all_pending() == 3
    assert session.pending_count == 0
    assert session.add_all_pending() == 0

    items = c.inventory.list_items()
    assert sorted(it.model for it in items) == ["A12", "G20", "iPhone 11"]
    assert all(it.supplier == IMPORTED_SUPPLIER for it in items)
    assert len({it.id for it in items}) == 3


def test_review_then_add_remaining(tmp_path: Path):
    c = build_test_container(tmp_path)
    session = CatalogImportSession(c.inventory, _records())

    preview = session.preview(1)
    assert preview.id == ""
    assert c.inventory.list_items() == []

    stored = session.commit(1, replace(preview, quantity=6, supplier="Pantallas SRL"))
    assert stored.id.startswith("scr-")
    assert session.is_added(1)
    assert not session.is_added(0)

    with pytest.raises(ValidationError, match="already added"):
        session.commit(1, preview)

    assert session.add_all_pending() == 2
    items = {it.model: it for it in c.inventory.list_items()}
    assert items["iPhone 11"].quantity == 6
    assert items["iPhone 11"].supplier == "Pantallas SRL"
    assert len(items) == 3


def test_session_rejects_unknown_row(tmp_path: Path):
    c = build_test_container(tmp_path)
    session = CatalogImportSession(c.inventory, _records())

    with pytest.raises(NotFoundError):
        session.preview(7)
    with pytest.raises(NotFoundError):
        session.commit(-1, session.preview(0))


def test_overflowing_catalog_price_is_stored_as_zero(tmp_path: Path):
    c = build_test_container(tmp_path)
    records = parse_catalog_reply('[{"brand": "X", "model": "Y", "purchasePrice": 1e999, "quantity": 2}]')

    CatalogImportSession(c.inventory, records).add_all_pending()

    stored = c.inventory.list_items()[0]
    assert stored.purchase_price == 0.0
    assert stored.quantity == 2
    assert c.reporting.inventory_summary().inventory_value == 0.0
