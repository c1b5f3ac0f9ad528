from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox, simpledialog
from concurrent.futures import Future, ThreadPoolExecutor
import logging
from pathlib import Path
from typing import Callable

from screenstock.domain.errors import AppError, ConfirmationError
from screenstock.services.confirmation import ClearConfirmation
from screenstock.services.reporting_service import is_low_stock
from screenstock.ui.views.inventory_view import InventoryView
from screenstock.ui.views.sales_view import SalesView
from screenstock.ui.views.reports_view import ReportsView

log = logging.getLogger(__name__)


class App(tk.Tk):
    def __init__(
        self,
        inventory_service,
        sales_service,
        reporting_service,
        excel_service,
        ai_gateway,
        ai_connection,
        db_path: str,
        logs_dir: str,
    ):
        super().__init__()
        self.title("ScreenStock Pro")
        self.geometry("1280x720")
        self.minsize(1120, 640)

        self.inventory = inventory_service
        self.sales = sales_service
        self.reporting = reporting_service
        self.excel = excel_service
        self.ai = ai_gateway
        self.ai_connection = ai_connection

        self.db_path = db_path
        self.logs_dir = logs_dir

        # one AI request at a time; the views disable their triggers while busy
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ai")

        # UI state
        self.ai_var = tk.StringVar(value="")
        self.status_var = tk.StringVar(value="")
        self._toast_after_id = None

        self._build_styles()
        self._build_topbar()

        main = ttk.Frame(self)
        main.pack(fill="both", expand=True, padx=12, pady=(0, 8))

        self.sidebar = ttk.Frame(main)
        self.sidebar.pack(side="left", fill="y", padx=(0, 10))

        self.content = ttk.Frame(main)
        self.content.pack(side="right", fill="both", expand=True)

        self.nb = ttk.Notebook(self.content, style="Side.TNotebook")
        self.nb.pack(fill="both", expand=True)

        # Views (tabs hidden)
        self.inventory_view = InventoryView(self.nb, self)
        self.sales_view = SalesView(self.nb, self)
        self.reports_view = ReportsView(self.nb, self)

        self._build_sidebar()
        self._build_status_bar()

        self.protocol("WM_DELETE_WINDOW", self.on_close)

        self.refresh_all(show_toast=False)
        if not self.ai.is_available():
            self.toast("Gemini API key not configured. AI features are disabled.", kind="warn", ms=4000)
        else:
            self.toast("Ready.", kind="info", ms=1200)

    def _build_styles(self):
        style = ttk.Style(self)
        style.layout("Side.TNotebook.Tab", [])
        style.configure("Side.TNotebook", tabmargins=0)

        try:
            style.configure("Big.TButton", padding=(14, 10))
            style.configure("Title.TLabel", font=("Segoe UI", 12, "bold"))
            style.configure("KPI.TLabel", font=("Segoe UI", 10))
            style.configure("KPIValue.TLabel", font=("Segoe UI", 11, "bold"))
        except tk.TclError as e:
            log.exception("UI style setup failed: %s", e)

    def _build_topbar(self):
        top = ttk.Frame(self)
        top.pack(fill="x", padx=12, pady=10)

        ttk.Label(top, text="📱 ScreenStock Pro", style="Title.TLabel").pack(side="left")
        ttk.Label(top, textvariable=self.ai_var).pack(side="left", padx=(24, 6))
        self.ai_btn = ttk.Button(top, text="Connect AI", command=self.toggle_ai)
        self.ai_btn.pack(side="left")

        ttk.Label(top, text=f"DB: {Path(self.db_path).name}").pack(side="right")

    def _build_sidebar(self):
        box = ttk.LabelFrame(self.sidebar, text="Quick Actions")
        box.pack(fill="x", pady=(0, 10))

        ttk.Button(
            box, text="📦 Inventory", style="Big.TButton",
            command=lambda: self.nb.select(self.inventory_view.frame)
        ).pack(fill="x", padx=10, pady=(10, 6))

        ttk.Button(
            box, text="🧾 Sales", style="Big.TButton",
            command=lambda: self.nb.select(self.sales_view.frame)
        ).pack(fill="x", padx=10, pady=6)

        ttk.Button(
            box, text="📊 Reports + AI", style="Big.TButton",
            command=lambda: self.nb.select(self.reports_view.frame)
        ).pack(fill="x", padx=10, pady=6)

        ttk.Button(box, text="🔄 Refresh", style="Big.TButton",
                   command=self.refresh_all).pack(fill="x", padx=10, pady=(6, 10))

        kpi = ttk.LabelFrame(self.sidebar, text="KPIs")
        kpi.pack(fill="x")

        self.k_items = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
        self.k_units = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
        self.k_value = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
        self.k_low = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
        self.k_revenue = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
        self.k_profit = ttk.Label(kpi, text="-", style="KPIValue.TLabel")

        labels = ["Items", "Units", "Stock value", "Low stock", "Revenue", "Profit"]
        widgets = [self.k_items, self.k_units, self.k_value, self.k_low, self.k_revenue, self.k_profit]
        for i, (lab, w) in enumerate(zip(labels, widgets)):
            ttk.Label(kpi, text=lab, style="KPI.TLabel").grid(
                row=i, column=0, sticky="w", padx=10, pady=(8 if i == 0 else 2, 2)
            )
            w.grid(row=i, column=1, sticky="e", padx=10, pady=(8 if i == 0 else 2, 2))

        kpi.columnconfigure(0, weight=1)
        kpi.columnconfigure(1, weight=1)

        lowbox = ttk.LabelFrame(self.sidebar, text="Low Stock (double click)")
        lowbox.pack(fill="both", expand=True, pady=(10, 0))

        self.low_list = tk.Listbox(lowbox, height=10)
        self.low_list.pack(fill="both", expand=True, padx=10, pady=10)
        self.low_list.bind("<Double-1>", self.on_low_stock_open)
        self._low_items: list[str] = []

    def _build_status_bar(self):
        bar = ttk.Frame(self)
        bar.pack(fill="x", padx=12, pady=(0, 10))
        ttk.Label(bar, textvariable=self.status_var).pack(side="left")
        ttk.Label(bar, text=f"Logs: {self.logs_dir}").pack(side="right")

    def toast(self, msg: str, kind: str = "info", ms: int = 2500):
        prefix = {"info": "ℹ ", "success": "✅ ", "warn": "⚠ ", "error": "❌ "}.get(kind, "")
        self.status_var.set(prefix + msg)
        if self._toast_after_id is not None:
            self.after_cancel(self._toast_after_id)
        self._toast_after_id = self.after(ms, lambda: self.status_var.set(""))

    def handle_error(self, title: str, exc: Exception, fallback: str, parent=None):
        if isinstance(exc, (AppError, ValueError)):
            messagebox.showwarning(title, str(exc), parent=parent or self)
        else:
            log.exception("%s: %s", fallback, exc)
            messagebox.showerror(title, f"{fallback}\n\n{exc}", parent=parent or self)
        self.toast(fallback, kind="error")

    def confirm_clear(self, flow: ClearConfirmation, title: str, what: str) -> bool:
        """Runs both confirmation steps for a destructive bulk action."""
        flow.request()
        ok = messagebox.askyesno(
            title,
            f"This will permanently delete {what}.\n\nThis action cannot be undone. Continue?",
            icon="warning",
            parent=self,
        )
        if not ok:
            flow.cancel()
            return False
        flow.confirm_first()
        typed = simpledialog.askstring(title, f'To confirm, type exactly:\n\n{flow.phrase}', parent=self)
        if typed is None:
            flow.cancel()
            return False
        try:
            flow.confirm_typed(typed)
        except ConfirmationError as e:
            flow.cancel()
            messagebox.showwarning(title, str(e), parent=self)
            return False
        return True

    # ---------- AI ----------
    def run_async(self, fn: Callable, on_done: Callable):
        future = self._executor.submit(fn)
        self._poll_future(future, on_done)

    def _poll_future(self, future: Future, on_done: Callable):
        if not future.done():
            self.after(150, lambda: self._poll_future(future, on_done))
            return
        exc = future.exception()
        if exc is not None:
            log.error("AI task failed: %s", exc, exc_info=exc)
            on_done(f"Unexpected error during the analysis: {exc}")
            return
        on_done(future.result())

    def toggle_ai(self):
        try:
            self.ai_connection.toggle()
        except AppError as e:
            messagebox.showwarning("Gemini AI", str(e), parent=self)
        self.refresh_ai_state()

    def refresh_ai_state(self):
        if not self.ai.is_available():
            self.ai_var.set("AI: API key not configured")
            self.ai_btn.state(["disabled"])
        elif self.ai_connection.enabled:
            self.ai_var.set("AI: connected")
            self.ai_btn.config(text="Disconnect AI")
        else:
            self.ai_var.set("AI: disconnected")
            self.ai_btn.config(text="Connect AI")
        self.reports_view.refresh_ai_controls()

    # ---------- Refresh ----------
    def refresh_all(self, show_toast: bool = True):
        self.inventory_view.refresh()
        self.sales_view.refresh()
        self.reports_view.refresh()

        self.refresh_kpis()
        self.refresh_low_stock_panel()
        self.refresh_ai_state()

        if show_toast:
            self.toast("Refreshed.", kind="info", ms=1200)

    def refresh_kpis(self):
        inv = self.reporting.inventory_summary()
        sales = self.reporting.sales_summary()

        self.k_items.config(text=str(inv.items_count))
        self.k_units.config(text=str(inv.total_units))
        self.k_value.config(text=f"{inv.inventory_value:.2f}")
        self.k_low.config(text=str(inv.low_stock_count))
        self.k_revenue.config(text=f"{sales.total_revenue:.2f}")
        self.k_profit.config(text=f"{sales.total_profit:.2f}")

    def refresh_low_stock_panel(self):
        self.low_list.delete(0, tk.END)
        self._low_items = []
        for it in self.inventory.list_items():
            if not is_low_stock(it):
                continue
            self.low_list.insert(tk.END, f"{it.brand} {it.model} ({it.quantity}/{it.min_stock_threshold})")
            self._low_items.append(it.id)

    def on_low_stock_open(self, _evt=None):
        sel = self.low_list.curselection()
        if not sel:
            return
        item_id = self._low_items[sel[0]]
        self.nb.select(self.inventory_view.frame)
        self.inventory_view.select_item_in_tree(item_id)
        self.toast(f"Selected low stock: {item_id}", kind="warn", ms=2000)

    def on_close(self):
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.destroy()
