from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from screenstock.domain.models import SaleTransaction, ScreenQuality, StockItem


@dataclass(frozen=True)
class TopSeller:
    brand: str
    model: str
    quality: ScreenQuality
    count: int

    @property
    def label(self) -> str:
        return f"{self.brand} {self.model} ({self.quality.value})"


@dataclass(frozen=True)
class InventorySummary:
    items_count: int
    total_units: int
    inventory_value: float
    low_stock_count: int
    out_of_stock_count: int


@dataclass(frozen=True)
class SalesSummary:
    sales_count: int
    total_revenue: float
    total_profit: float
    total_units_sold: int


def inventory_value(items: Iterable[StockItem]) -> float:
    return sum(int(it.quantity) * float(it.purchase_price) for it in items)


def total_units(items: Iterable[StockItem]) -> int:
    return sum(int(it.quantity) for it in items)


def is_low_stock(item: StockItem) -> bool:
    return item.min_stock_threshold is not None and int(item.quantity) <= int(item.min_stock_threshold)


def is_out_of_stock(item: StockItem) -> bool:
    return int(item.quantity) <= 0


def total_revenue(sales: Iterable[SaleTransaction]) -> float:
    return sum(float(s.sale_price) for s in sales)


def total_profit(sales: Iterable[SaleTransaction]) -> float:
    return sum(float(s.profit) for s in sales)


def total_units_sold(sales: Iterable[SaleTransaction]) -> int:
    return sum(int(s.quantity_sold) for s in sales)


def top_sold_by_count(sales: Iterable[SaleTransaction], n: int = 5) -> list[TopSeller]:
    """Products ranked by number of sale transactions (not units).

    A 50-unit sale counts once. Ties keep the order in which the product
    first appears in ``sales``.
    """
    counts: dict[tuple[str, str, ScreenQuality], int] = {}
    for s in sales:
        counts[s.product_key] = counts.get(s.product_key, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [TopSeller(brand=b, model=m, quality=q, count=c) for (b, m, q), c in ranked[: max(n, 0)]]


def recent_sales_total(
    sales: Iterable[SaleTransaction],
    brand: str,
    model: str,
    quality: ScreenQuality,
    window_days: int = 30,
    now: Optional[datetime] = None,
) -> int:
    cutoff = (now or datetime.now()) - timedelta(days=window_days)
    return sum(
        int(s.quantity_sold)
        for s in sales
        if s.brand == brand and s.model == model and s.quality == quality and s.sale_date > cutoff
    )


def monthly_sales_totals(sales: Iterable[SaleTransaction], months: int = 6) -> list[tuple[str, float]]:
    totals: dict[str, float] = {}
    for s in sales:
        ym = s.sale_date.strftime("%Y-%m")
        totals[ym] = totals.get(ym, 0.0) + float(s.sale_price)
    keys = sorted(totals)[-months:] if months > 0 else []
    return [(k, totals[k]) for k in keys]


def cumulative_profit_series(sales: Iterable[SaleTransaction]) -> list[tuple[str, float]]:
    per_day: dict[str, float] = {}
    for s in sales:
        d = s.sale_date.strftime("%Y-%m-%d")
        per_day[d] = per_day.get(d, 0.0) + float(s.profit)
    out: list[tuple[str, float]] = []
    acc = 0.0
    for d in sorted(per_day):
        acc += per_day[d]
        out.append((d, acc))
    return out


class ReportingService:
    def __init__(self, state):
        self.state = state

    def inventory_summary(self, items: Optional[list[StockItem]] = None) -> InventorySummary:
        rows = self.state.inventory.items() if items is None else items
        return InventorySummary(
            items_count=len(rows),
            total_units=total_units(rows),
            inventory_value=inventory_value(rows),
            low_stock_count=sum(1 for it in rows if is_low_stock(it)),
            out_of_stock_count=sum(1 for it in rows if is_out_of_stock(it)),
        )

    def sales_summary(self) -> SalesSummary:
        sales = self.state.sales.items()
        return SalesSummary(
            sales_count=len(sales),
            total_revenue=total_revenue(sales),
            total_profit=total_profit(sales),
            total_units_sold=total_units_sold(sales),
        )

    def low_stock_items(self) -> list[StockItem]:
        return [it for it in self.state.inventory.items() if is_low_stock(it)]

    def top_sold(self, n: int = 5) -> list[TopSeller]:
        return top_sold_by_count(self.state.sales.items(), n)

    def monthly_sales_totals(self, months: int = 6) -> list[tuple[str, float]]:
        return monthly_sales_totals(self.state.sales.items(), months)

    def cumulative_profit_series(self) -> list[tuple[str, float]]:
        return cumulative_profit_series(self.state.sales.items())

    def export_report_excel(self, path: str) -> None:
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        inv = self.inventory_summary()
        sales = self.sales_summary()

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Generated"
        ws["B3"] = datetime.now().replace(microsecond=0).isoformat(sep=" ")

        rows = [
            ("Stock items", inv.items_count, "int"),
            ("Units in stock", inv.total_units, "int"),
            ("Inventory value", inv.inventory_value, "money"),
            ("Low stock items", inv.low_stock_count, "int"),
            ("Sales count", sales.sales_count, "int"),
            ("Units sold", sales.total_units_sold, "int"),
            ("Revenue", sales.total_revenue, "money"),
            ("Profit", sales.total_profit, "money"),
        ]

        start_row = 5
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])

        r = start_row + len(rows) + 1
        ws[f"A{r}"] = "Top sold (transactions)"
        ws[f"A{r}"].font = Font(bold=True)
        for top in self.top_sold(5):
            r += 1
            ws[f"A{r}"] = top.label
            ws[f"B{r}"] = top.count

        set_widths(ws, {"A": 34, "B": 24})

        # -------- 2) Inventory --------
        ws2 = wb.create_sheet("Inventory")
        ws2.append([
            "ID", "Brand", "Model", "Quality", "Qty", "Unit Cost", "Stock Value",
            "Supplier", "Entry Date", "Min Stock", "Low Stock", "Notes",
        ])
        bold_row(ws2, 1)

        out_row = 2
        for it in sorted(self.state.inventory.items(), key=lambda x: x.entry_date, reverse=True):
            ws2.append([
                it.id, it.brand, it.model, it.quality.value, int(it.quantity),
                float(it.purchase_price), int(it.quantity) * float(it.purchase_price),
                it.supplier, it.entry_date.isoformat(sep=" "),
                it.min_stock_threshold, "yes" if is_low_stock(it) else "", it.notes or "",
            ])
            money(ws2[f"F{out_row}"])
            money(ws2[f"G{out_row}"])
            out_row += 1

        ws2.freeze_panes = "A2"
        set_widths(ws2, {
            "A": 18, "B": 14, "C": 20, "D": 14, "E": 6, "F": 12,
            "G": 14, "H": 22, "I": 20, "J": 10, "K": 10, "L": 40,
        })
        if ws2.max_row >= 2:
            add_table(ws2, "InventoryDetail", 1, 1, ws2.max_row, 12)

        # -------- 3) Sales Detail --------
        ws3 = wb.create_sheet("Sales Detail")
        ws3.append([
            "Sale ID", "Datetime", "Brand", "Model", "Quality", "Qty",
            "Unit Price", "Unit Cost", "Total", "Profit", "Margin %", "Customer",
        ])
        bold_row(ws3, 1)

        out_row = 2
        for s in sorted(self.state.sales.items(), key=lambda x: x.sale_date, reverse=True):
            margin_pct = (s.profit / s.sale_price) if s.sale_price else 0.0
            ws3.append([
                s.id, s.sale_date.isoformat(sep=" "), s.brand, s.model, s.quality.value,
                int(s.quantity_sold), float(s.unit_sale_price), float(s.purchase_price),
                float(s.sale_price), float(s.profit), float(margin_pct), s.customer_info or "",
            ])
            for col in "GHIJ":
                money(ws3[f"{col}{out_row}"])
            ws3[f"K{out_row}"].number_format = "0.00%"
            out_row += 1

        ws3.freeze_panes = "A2"
        set_widths(ws3, {
            "A": 18, "B": 20, "C": 14, "D": 20, "E": 14, "F": 6,
            "G": 12, "H": 12, "I": 12, "J": 12, "K": 10, "L": 30,
        })
        if ws3.max_row >= 2:
            add_table(ws3, "SalesDetail", 1, 1, ws3.max_row, 12)

        wb.save(path)
