from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from conftest import add_screen, build_test_container
from screenstock.domain.errors import ValidationError
from screenstock.services.excel_service import ExcelService


def test_export_report_writes_summary_inventory_and_sales(tmp_path: Path):
    c = build_test_container(tmp_path)
    a = add_screen(c.inventory, model="A12", quantity=4, price=10.0)
    add_screen(c.inventory, model="A32", quantity=2, price=25.0)
    c.sales.sell(a.id, 18.0, 2, customer_info="Walk-in")

    out = tmp_path / "report.xlsx"
    c.reporting.export_report_excel(str(out))

    wb = load_workbook(out)
    assert wb.sheetnames == ["Summary", "Inventory", "Sales Detail"]

    summary = {row[0]: row[1] for row in wb["Summary"].iter_rows(min_row=5, max_row=12, values_only=True)}
    assert summary["Stock items"] == 2
    assert summary["Inventory value"] == pytest.approx(70.0)
    assert summary["Revenue"] == pytest.approx(36.0)
    assert summary["Profit"] == pytest.approx(16.0)

    assert wb["Inventory"].max_row == 3
    sales_rows = list(wb["Sales Detail"].iter_rows(min_row=2, values_only=True))
    assert len(sales_rows) == 1
    assert "Walk-in" in sales_rows[0]


def test_export_with_empty_state_still_creates_workbook(tmp_path: Path):
    c = build_test_container(tmp_path)
    out = tmp_path / "empty.xlsx"

    c.reporting.export_report_excel(str(out))

    wb = load_workbook(out)
    assert wb["Inventory"].max_row == 1
    assert wb["Sales Detail"].max_row == 1


def test_import_catalog_reads_rows_and_skips_blank_or_broken(tmp_path: Path):
    path = tmp_path / "catalog.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.append(["Brand", "Model", "Quality", "Purchase Price", "Quantity", "Color"])
    ws.append(["Samsung", "A12", "OEM", 30.5, 3, "Black"])
    ws.append(["Apple", "iPhone 11", "Refurbished", None, None, None])
    ws.append([None, None, "OEM", 10, 1, None])
    ws.append(["LG", "K40", "Other", "cheap", 1, None])
    wb.save(path)

    records, skipped = ExcelService().import_catalog_excel(str(path))

    assert [r.model for r in records] == ["A12", "iPhone 11"]
    assert records[0].purchase_price == 30.5
    assert records[0].quantity == 3
    assert records[0].color == "Black"
    assert records[1].purchase_price is None
    assert records[1].quality == "Refurbished"
    assert skipped == 2


def test_import_catalog_requires_brand_or_model_header(tmp_path: Path):
    path = tmp_path / "bad.xlsx"
    wb = Workbook()
    wb.active.append(["sku", "price"])
    wb.active.append(["X-1", 10])
    wb.save(path)

    with pytest.raises(ValidationError, match="Missing column header"):
        ExcelService().import_catalog_excel(str(path))
