from __future__ import annotations

import math
import tkinter as tk
from tkinter import ttk
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from screenstock.domain.models import ScreenQuality, StockItem


def parse_int(s: str, field: str, default: Optional[int] = 0) -> Optional[int]:
    s = (s or "").strip()
    if s == "":
        return default
    try:
        value = float(s)
    except ValueError:
        raise ValueError(f"{field} must be an integer.")
    if not math.isfinite(value) or not value.is_integer():
        raise ValueError(f"{field} must be an integer.")
    return int(value)


def parse_float(s: str, field: str, default: float = 0.0) -> float:
    s = (s or "").strip()
    if s == "":
        return default
    try:
        value = float(s.replace(",", "."))
    except ValueError:
        raise ValueError(f"{field} must be a number.")
    if not math.isfinite(value):
        raise ValueError(f"{field} must be a number.")
    return value


class ItemDialog:
    """Add/edit form for a stock item. ``on_submit`` gets the edited item and
    may raise; the dialog stays open and reports the error in that case."""

    def __init__(self, app, title: str, on_submit: Callable[[StockItem], None], initial: Optional[StockItem] = None):
        self.app = app
        self.on_submit = on_submit
        self.initial = initial

        self.win = tk.Toplevel(app)
        self.win.title(title)
        self.win.transient(app)
        self.win.resizable(False, False)

        frm = ttk.Frame(self.win)
        frm.pack(fill="both", expand=True, padx=12, pady=12)
        frm.columnconfigure(1, weight=1)

        self.brand = self._entry(frm, "Brand", 0)
        self.model = self._entry(frm, "Model", 1)

        ttk.Label(frm, text="Quality").grid(row=2, column=0, sticky="w", padx=8, pady=4)
        self.quality = tk.StringVar(value=ScreenQuality.OEM.value)
        ttk.Combobox(frm, textvariable=self.quality, values=[q.value for q in ScreenQuality], state="readonly", width=24)\
            .grid(row=2, column=1, sticky="ew", padx=8, pady=4)

        self.quantity = self._entry(frm, "Quantity", 3)
        self.price = self._entry(frm, "Unit purchase price", 4)
        self.supplier = self._entry(frm, "Supplier", 5)
        self.entry_date = self._entry(frm, "Entry date (YYYY-MM-DD)", 6)
        self.min_stock = self._entry(frm, "Min stock threshold", 7)

        ttk.Label(frm, text="Notes").grid(row=8, column=0, sticky="nw", padx=8, pady=4)
        self.notes = tk.Text(frm, width=36, height=4)
        self.notes.grid(row=8, column=1, sticky="ew", padx=8, pady=4)

        btns = ttk.Frame(frm)
        btns.grid(row=9, column=0, columnspan=2, sticky="e", pady=(8, 0))
        ttk.Button(btns, text="Cancel", command=self.win.destroy).pack(side="right")
        ttk.Button(btns, text="Save", style="Big.TButton", command=self.submit).pack(side="right", padx=8)

        self._fill(initial)
        self.win.grab_set()
        self.brand.focus_set()

    def _entry(self, parent, label, row):
        ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w", padx=8, pady=4)
        e = ttk.Entry(parent, width=28)
        e.grid(row=row, column=1, sticky="ew", padx=8, pady=4)
        return e

    def _fill(self, item: Optional[StockItem]):
        today = datetime.now().date().isoformat()
        if item is None:
            self.quantity.insert(0, "0")
            self.price.insert(0, "0")
            self.entry_date.insert(0, today)
            self.min_stock.insert(0, "1")
            return
        self.brand.insert(0, item.brand)
        self.model.insert(0, item.model)
        self.quality.set(item.quality.value)
        self.quantity.insert(0, str(item.quantity))
        self.price.insert(0, f"{item.purchase_price:.2f}")
        self.supplier.insert(0, item.supplier)
        self.entry_date.insert(0, item.entry_date.date().isoformat())
        if item.min_stock_threshold is not None:
            self.min_stock.insert(0, str(item.min_stock_threshold))
        if item.notes:
            self.notes.insert("1.0", item.notes)

    def _read(self) -> StockItem:
        raw_date = self.entry_date.get().strip()
        try:
            entry_date = datetime.strptime(raw_date, "%Y-%m-%d") if raw_date else datetime.now().replace(microsecond=0)
        except ValueError:
            raise ValueError("Entry date must use the YYYY-MM-DD format.")

        values = dict(
            brand=self.brand.get().strip(),
            model=self.model.get().strip(),
            quality=ScreenQuality(self.quality.get()),
            quantity=parse_int(self.quantity.get(), "Quantity", 0),
            purchase_price=parse_float(self.price.get(), "Unit purchase price", 0.0),
            supplier=self.supplier.get().strip(),
            entry_date=entry_date,
            notes=self.notes.get("1.0", "end").strip() or None,
            min_stock_threshold=parse_int(self.min_stock.get(), "Min stock threshold", None),
        )
        if self.initial is not None:
            return replace(self.initial, **values)
        return StockItem(id="", **values)

    def submit(self):
        try:
            self.on_submit(self._read())
        except Exception as e:
            self.app.handle_error("Validation", e, "Could not save the item.", parent=self.win)
            return
        self.win.destroy()


class SellDialog:
    def __init__(self, app, item: StockItem, on_sold: Callable[[], None]):
        self.app = app
        self.item = item
        self.on_sold = on_sold

        self.win = tk.Toplevel(app)
        self.win.title(f"Sell {item.brand} {item.model}")
        self.win.transient(app)
        self.win.resizable(False, False)

        frm = ttk.Frame(self.win)
        frm.pack(fill="both", expand=True, padx=12, pady=12)
        frm.columnconfigure(1, weight=1)

        ttk.Label(frm, text=f"{item.label} | in stock: {item.quantity} | unit cost: {item.purchase_price:.2f}")\
            .grid(row=0, column=0, columnspan=2, sticky="w", padx=8, pady=(0, 8))

        ttk.Label(frm, text="Unit sale price").grid(row=1, column=0, sticky="w", padx=8, pady=4)
        self.price = ttk.Entry(frm, width=16)
        self.price.grid(row=1, column=1, sticky="ew", padx=8, pady=4)
        self.price.insert(0, f"{item.purchase_price * 1.5:.2f}")

        ttk.Label(frm, text="Quantity").grid(row=2, column=0, sticky="w", padx=8, pady=4)
        self.qty = ttk.Entry(frm, width=16)
        self.qty.grid(row=2, column=1, sticky="ew", padx=8, pady=4)
        self.qty.insert(0, "1")

        ttk.Label(frm, text="Customer (optional)").grid(row=3, column=0, sticky="w", padx=8, pady=4)
        self.customer = ttk.Entry(frm, width=32)
        self.customer.grid(row=3, column=1, sticky="ew", padx=8, pady=4)

        self.total_var = tk.StringVar(value="")
        ttk.Label(frm, textvariable=self.total_var, style="KPIValue.TLabel")\
            .grid(row=4, column=0, columnspan=2, sticky="w", padx=8, pady=8)
        for e in (self.price, self.qty):
            e.bind("<KeyRelease>", lambda _e: self._update_total())
        self._update_total()

        btns = ttk.Frame(frm)
        btns.grid(row=5, column=0, columnspan=2, sticky="e")
        ttk.Button(btns, text="Cancel", command=self.win.destroy).pack(side="right")
        ttk.Button(btns, text="Confirm sale", style="Big.TButton", command=self.confirm).pack(side="right", padx=8)

        self.win.grab_set()
        self.price.focus_set()

    def _update_total(self):
        try:
            price = parse_float(self.price.get(), "Unit sale price")
            qty = parse_int(self.qty.get(), "Quantity")
        except ValueError:
            self.total_var.set("Total: -")
            return
        total = price * qty
        profit = (price - self.item.purchase_price) * qty
        self.total_var.set(f"Total: {total:.2f} | Profit: {profit:.2f}")

    def confirm(self):
        try:
            sale = self.app.sales.sell(
                self.item.id,
                parse_float(self.price.get(), "Unit sale price"),
                parse_int(self.qty.get(), "Quantity"),
                self.customer.get(),
            )
        except Exception as e:
            self.app.handle_error("Sale failed", e, "Sale failed.", parent=self.win)
            return
        self.win.destroy()
        self.app.toast(f"Sale saved: {sale.quantity_sold} x {sale.brand} {sale.model} = {sale.sale_price:.2f}", kind="success")
        self.on_sold()
