from __future__ import annotations

import tkinter as tk
from tkinter import ttk
import logging

from screenstock.services.confirmation import ClearConfirmation
from screenstock.services.sales_service import CLEAR_SALES_PHRASE


log = logging.getLogger(__name__)


class SalesView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Sales")

        self.totals_var = tk.StringVar(value="")
        self.clear_flow = ClearConfirmation(CLEAR_SALES_PHRASE, self.app.sales.clear_all)

        self._build()

    def _build(self):
        tab = self.frame

        top = ttk.LabelFrame(tab, text="Totals")
        top.pack(fill="x", padx=10, pady=10)
        ttk.Label(top, textvariable=self.totals_var, style="KPIValue.TLabel").pack(side="left", padx=10, pady=10)
        ttk.Button(top, text="Clear sales history", command=self.on_clear_all).pack(side="right", padx=10, pady=10)

        box = ttk.LabelFrame(tab, text="Sales history")
        box.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        cols = ("date", "product", "quality", "qty", "unit", "total", "profit", "customer")
        self.tree = ttk.Treeview(box, columns=cols, show="headings", height=18)
        heads = {
            "date": "Date", "product": "Product", "quality": "Quality", "qty": "Qty",
            "unit": "Unit price", "total": "Total", "profit": "Profit", "customer": "Customer",
        }
        widths = {"date": 140, "product": 240, "quality": 100, "qty": 60, "unit": 90,
                  "total": 90, "profit": 90, "customer": 200}
        for c in cols:
            self.tree.heading(c, text=heads[c])
            self.tree.column(c, width=widths[c], anchor="w")
        self.tree.tag_configure("loss", foreground="#b91c1c")

        vsb = ttk.Scrollbar(box, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vsb.set)
        self.tree.pack(side="left", fill="both", expand=True, padx=(10, 0), pady=10)
        vsb.pack(side="right", fill="y", padx=(0, 10), pady=10)

    def refresh(self):
        for iid in self.tree.get_children():
            self.tree.delete(iid)

        for s in self.app.sales.list_sales():
            self.tree.insert(
                "", "end", iid=s.id,
                values=(
                    s.sale_date.isoformat(sep=" ", timespec="minutes"),
                    f"{s.brand} {s.model}", s.quality.value, s.quantity_sold,
                    f"{s.unit_sale_price:.2f}", f"{s.sale_price:.2f}", f"{s.profit:.2f}",
                    s.customer_info or "",
                ),
                tags=("loss",) if s.profit < 0 else (),
            )

        summary = self.app.reporting.sales_summary()
        self.totals_var.set(
            f"{summary.sales_count} sales | {summary.total_units_sold} units | "
            f"revenue {summary.total_revenue:.2f} | profit {summary.total_profit:.2f}"
        )

    def on_clear_all(self):
        if not self.app.sales.list_sales():
            self.app.toast("Sales history is already empty.", kind="info")
            return
        try:
            if not self.app.confirm_clear(self.clear_flow, "Clear sales", "the ENTIRE sales history"):
                return
        except Exception as e:
            self.app.handle_error("Clear sales", e, "Failed to clear sales history.")
            return
        self.app.toast("Sales history cleared.", kind="success")
        self.app.refresh_all(show_toast=False)
