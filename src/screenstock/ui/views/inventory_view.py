from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox
import logging

from screenstock.domain.models import ScreenQuality
from screenstock.services.confirmation import ClearConfirmation
from screenstock.services.inventory_service import CLEAR_INVENTORY_PHRASE
from screenstock.services.reporting_service import is_low_stock, is_out_of_stock
from screenstock.ui.dialogs import ItemDialog, SellDialog


log = logging.getLogger(__name__)

ALL_QUALITIES = "All qualities"


class InventoryView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Inventory")

        self.search_var = tk.StringVar(value="")
        self.quality_var = tk.StringVar(value=ALL_QUALITIES)
        self.totals_var = tk.StringVar(value="")

        self.clear_flow = ClearConfirmation(CLEAR_INVENTORY_PHRASE, self.app.inventory.clear_all)

        tab = self.frame
        style = ttk.Style(self.frame)
        style.configure("Inventory.Treeview", rowheight=24, font=("Segoe UI", 9))
        style.configure("Inventory.Treeview.Heading", font=("Segoe UI", 9, "bold"))

        bar = ttk.Frame(tab)
        bar.pack(fill="x", pady=(8, 4))

        ttk.Label(bar, text="Search").pack(side="left")
        search = ttk.Entry(bar, textvariable=self.search_var, width=32)
        search.pack(side="left", padx=(6, 12))
        search.bind("<KeyRelease>", lambda _e: self.refresh())

        ttk.Combobox(
            bar, textvariable=self.quality_var, state="readonly", width=16,
            values=[ALL_QUALITIES] + [q.value for q in ScreenQuality],
        ).pack(side="left")
        self.quality_var.trace_add("write", lambda *_: self.refresh())

        ttk.Button(bar, text="Clear all", command=self.on_clear_all).pack(side="right")
        ttk.Button(bar, text="Delete", command=self.on_delete).pack(side="right", padx=6)
        ttk.Button(bar, text="Sell", command=self.on_sell).pack(side="right")
        ttk.Button(bar, text="Edit", command=self.on_edit).pack(side="right", padx=6)
        ttk.Button(bar, text="Add item", style="Big.TButton", command=self.on_add).pack(side="right")

        tree_wrap = ttk.Frame(tab)
        tree_wrap.pack(fill="both", expand=True, pady=4)

        cols = ("brand", "model", "quality", "qty", "price", "value", "supplier", "date", "min")
        self.tree = ttk.Treeview(tree_wrap, columns=cols, show="headings", height=20, style="Inventory.Treeview")
        heads = {
            "brand": "Brand", "model": "Model", "quality": "Quality", "qty": "Qty",
            "price": "Unit cost", "value": "Stock value", "supplier": "Supplier",
            "date": "Entry date", "min": "Min",
        }
        widths = {"brand": 110, "model": 200, "quality": 100, "qty": 60, "price": 90,
                  "value": 100, "supplier": 170, "date": 100, "min": 60}
        for c in cols:
            self.tree.heading(c, text=heads[c])
            self.tree.column(c, width=widths[c], anchor="w")

        self.tree.tag_configure("low", background="#fff4d6")
        self.tree.tag_configure("out", background="#ffdddd")
        self.tree.bind("<Double-1>", lambda _e: self.on_edit())

        vsb = ttk.Scrollbar(tree_wrap, orient="vertical", command=self.tree.yview)
        hsb = ttk.Scrollbar(tree_wrap, orient="horizontal", command=self.tree.xview)
        self.tree.configure(yscrollcommand=vsb.set, xscrollcommand=hsb.set)
        self.tree.grid(row=0, column=0, sticky="nsew")
        vsb.grid(row=0, column=1, sticky="ns")
        hsb.grid(row=1, column=0, sticky="ew")

        tree_wrap.columnconfigure(0, weight=1)
        tree_wrap.rowconfigure(0, weight=1)

        ttk.Label(tab, textvariable=self.totals_var, style="KPIValue.TLabel").pack(anchor="w", pady=(4, 8))

        # App calls refresh_all() once every view exists.

    def _selected_id(self) -> str:
        selected = self.tree.selection()
        if not selected:
            raise ValueError("Select an item.")
        return selected[0]

    def _quality_filter(self):
        raw = self.quality_var.get()
        return None if raw == ALL_QUALITIES else ScreenQuality(raw)

    def on_add(self):
        def save(item):
            saved = self.app.inventory.insert_item(item)
            self.app.toast(f"Item added: {saved.brand} {saved.model}.", kind="success")
            self.app.refresh_all(show_toast=False)

        ItemDialog(self.app, "Add screen", save)

    def on_edit(self):
        try:
            item = self.app.inventory.get_item(self._selected_id())
        except Exception as e:
            self.app.handle_error("Edit item", e, "Failed to open the item.")
            return

        def save(edited):
            self.app.inventory.update_item(edited)
            self.app.toast("Item updated.", kind="success")
            self.app.refresh_all(show_toast=False)

        ItemDialog(self.app, f"Edit {item.brand} {item.model}", save, initial=item)

    def on_sell(self):
        try:
            item = self.app.inventory.get_item(self._selected_id())
            if is_out_of_stock(item):
                raise ValueError(f"{item.brand} {item.model} is out of stock.")
        except Exception as e:
            self.app.handle_error("Sell", e, "Cannot sell the selected item.")
            return
        SellDialog(self.app, item, on_sold=lambda: self.app.refresh_all(show_toast=False))

    def on_delete(self):
        try:
            item = self.app.inventory.get_item(self._selected_id())
            confirmed = messagebox.askyesno(
                "Confirm delete",
                f"Delete {item.brand} {item.model} ({item.quality.value})?\n\nThis action cannot be undone.",
                parent=self.frame,
            )
            if not confirmed:
                return
            self.app.inventory.delete_item(item.id)
            self.app.toast("Item deleted.", kind="success")
            self.app.refresh_all(show_toast=False)
        except Exception as e:
            self.app.handle_error("Delete item", e, "Failed to delete item.")

    def on_clear_all(self):
        if not self.app.inventory.list_items():
            self.app.toast("Inventory is already empty.", kind="info")
            return
        try:
            if not self.app.confirm_clear(self.clear_flow, "Clear inventory", "ALL inventory items"):
                return
        except Exception as e:
            self.app.handle_error("Clear inventory", e, "Failed to clear inventory.")
            return
        self.app.toast("Inventory cleared.", kind="success")
        self.app.refresh_all(show_toast=False)

    def refresh(self):
        for iid in self.tree.get_children():
            self.tree.delete(iid)

        rows = self.app.inventory.list_items(self.search_var.get(), self._quality_filter())
        for it in rows:
            tag = "out" if is_out_of_stock(it) else ("low" if is_low_stock(it) else "")
            self.tree.insert(
                "", "end", iid=it.id,
                values=(
                    it.brand, it.model, it.quality.value, it.quantity,
                    f"{it.purchase_price:.2f}", f"{it.quantity * it.purchase_price:.2f}",
                    it.supplier, it.entry_date.date().isoformat(),
                    "" if it.min_stock_threshold is None else it.min_stock_threshold,
                ),
                tags=(tag,) if tag else (),
            )

        summary = self.app.reporting.inventory_summary(rows)
        self.totals_var.set(
            f"Showing {summary.items_count} items | {summary.total_units} units | "
            f"stock value {summary.inventory_value:.2f}"
        )

    def select_item_in_tree(self, item_id: str):
        if not self.tree.exists(item_id):
            self.search_var.set("")
            self.quality_var.set(ALL_QUALITIES)
            self.refresh()
        if self.tree.exists(item_id):
            self.tree.selection_set(item_id)
            self.tree.focus(item_id)
            self.tree.see(item_id)
