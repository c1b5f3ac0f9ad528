from __future__ import annotations

import tkinter as tk
from tkinter import ttk, filedialog
from datetime import date
from pathlib import Path
import logging
import mimetypes

from screenstock.services.ai_service import PDF_MIME_TYPE
from screenstock.services.catalog_service import CatalogImportSession
from screenstock.ui.dialogs import ItemDialog


log = logging.getLogger(__name__)


class ReportsView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Reports + AI")

        self.valuation_var = tk.StringVar(value="")
        self.query_var = tk.StringVar(value="")
        self.pdf_var = tk.StringVar(value="No file selected.")
        self.pending_var = tk.StringVar(value="")

        self._busy = False
        self._pdf_path: Path | None = None
        self.session: CatalogImportSession | None = None
        self._ai_buttons: list[ttk.Button] = []

        self._build()

    def _build(self):
        inner = ttk.Notebook(self.frame)
        inner.pack(fill="both", expand=True, padx=6, pady=6)

        dash = ttk.Frame(inner)
        ai = ttk.Frame(inner)
        catalog = ttk.Frame(inner)
        inner.add(dash, text="Dashboard")
        inner.add(ai, text="AI assistant")
        inner.add(catalog, text="Catalog import")

        self._build_dashboard(dash)
        self._build_ai(ai)
        self._build_catalog(catalog)

    def _build_dashboard(self, tab):
        top = ttk.Frame(tab)
        top.pack(fill="x", padx=10, pady=10)

        val = ttk.LabelFrame(top, text="Stock valuation")
        val.pack(side="left", fill="both", expand=True, padx=(0, 10))
        ttk.Label(val, textvariable=self.valuation_var, justify="left").pack(anchor="w", padx=10, pady=10)
        ttk.Button(val, text="Export report to Excel", style="Big.TButton", command=self.export_report)\
            .pack(anchor="w", padx=10, pady=(0, 10))

        top_box = ttk.LabelFrame(top, text="Top 5 by number of sales")
        top_box.pack(side="right", fill="both", expand=True)
        self.top_list = tk.Listbox(top_box, height=6)
        self.top_list.pack(fill="both", expand=True, padx=10, pady=10)

        charts = ttk.LabelFrame(tab, text="Dashboard")
        charts.pack(fill="both", expand=True, padx=10, pady=(0, 10))
        charts.columnconfigure(0, weight=1)
        charts.columnconfigure(1, weight=1)

        self.sales_canvas = tk.Canvas(charts, height=200, bg="#f8fafc", highlightthickness=1, highlightbackground="#cbd5e1")
        self.sales_canvas.grid(row=0, column=0, sticky="nsew", padx=6, pady=6)

        self.profit_canvas = tk.Canvas(charts, height=200, bg="#f8fafc", highlightthickness=1, highlightbackground="#cbd5e1")
        self.profit_canvas.grid(row=0, column=1, sticky="nsew", padx=6, pady=6)

    def _build_ai(self, tab):
        btns = ttk.LabelFrame(tab, text="Analyses")
        btns.pack(fill="x", padx=10, pady=10)

        actions = [
            ("Profitability", self.on_profitability),
            ("Inventory optimization", self.on_optimization),
            ("Trends", self.on_trends),
            ("Proactive suggestion", self.on_proactive),
        ]
        for i, (text, cmd) in enumerate(actions):
            b = ttk.Button(btns, text=text, style="Big.TButton", command=cmd)
            b.grid(row=0, column=i, sticky="ew", padx=6, pady=8)
            btns.columnconfigure(i, weight=1)
            self._ai_buttons.append(b)

        q = ttk.LabelFrame(tab, text="Ask about your data")
        q.pack(fill="x", padx=10, pady=(0, 10))
        entry = ttk.Entry(q, textvariable=self.query_var)
        entry.pack(side="left", fill="x", expand=True, padx=10, pady=8)
        entry.bind("<Return>", lambda _e: self.on_query())
        ask = ttk.Button(q, text="Ask", command=self.on_query)
        ask.pack(side="right", padx=10, pady=8)
        self._ai_buttons.append(ask)

        out = ttk.LabelFrame(tab, text="Answer")
        out.pack(fill="both", expand=True, padx=10, pady=(0, 10))
        self.output = tk.Text(out, wrap="word", height=16, state="disabled")
        vsb = ttk.Scrollbar(out, orient="vertical", command=self.output.yview)
        self.output.configure(yscrollcommand=vsb.set)
        self.output.pack(side="left", fill="both", expand=True, padx=(10, 0), pady=10)
        vsb.pack(side="right", fill="y", padx=(0, 10), pady=10)

    def _build_catalog(self, tab):
        src = ttk.LabelFrame(tab, text="Supplier catalog")
        src.pack(fill="x", padx=10, pady=10)

        ttk.Button(src, text="Choose PDF", command=self.choose_pdf).grid(row=0, column=0, padx=10, pady=8, sticky="w")
        ttk.Label(src, textvariable=self.pdf_var).grid(row=0, column=1, padx=10, pady=8, sticky="w")
        analyze = ttk.Button(src, text="Analyze PDF with AI", style="Big.TButton", command=self.analyze_pdf)
        analyze.grid(row=0, column=2, padx=10, pady=8, sticky="e")
        self._ai_buttons.append(analyze)

        ttk.Label(src, text="Or import a spreadsheet with headers: brand | model | quality | color | purchasePrice | quantity | notes")\
            .grid(row=1, column=0, columnspan=2, padx=10, pady=(0, 8), sticky="w")
        ttk.Button(src, text="Import Excel", command=self.import_excel).grid(row=1, column=2, padx=10, pady=(0, 8), sticky="e")
        src.columnconfigure(1, weight=1)

        box = ttk.LabelFrame(tab, text="Extracted products")
        box.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        cols = ("status", "brand", "model", "quality", "color", "price", "qty")
        self.catalog_tree = ttk.Treeview(box, columns=cols, show="headings", height=14)
        heads = {"status": "Status", "brand": "Brand", "model": "Model", "quality": "Quality",
                 "color": "Color", "price": "Price", "qty": "Qty"}
        widths = {"status": 80, "brand": 120, "model": 260, "quality": 110, "color": 90, "price": 80, "qty": 60}
        for c in cols:
            self.catalog_tree.heading(c, text=heads[c])
            self.catalog_tree.column(c, width=widths[c], anchor="w")
        self.catalog_tree.tag_configure("added", foreground="#16a34a")
        self.catalog_tree.bind("<Double-1>", lambda _e: self.review_selected())
        self.catalog_tree.pack(fill="both", expand=True, padx=10, pady=10)

        row = ttk.Frame(box)
        row.pack(fill="x", padx=10, pady=(0, 10))
        ttk.Label(row, textvariable=self.pending_var).pack(side="left")
        ttk.Button(row, text="Add all pending", style="Big.TButton", command=self.add_all_pending).pack(side="right")
        ttk.Button(row, text="Review and add", command=self.review_selected).pack(side="right", padx=10)

    # ---------- dashboard ----------
    def refresh(self):
        inv = self.app.reporting.inventory_summary()
        sales = self.app.reporting.sales_summary()
        self.valuation_var.set(
            f"Items: {inv.items_count}\n"
            f"Units in stock: {inv.total_units}\n"
            f"Stock value (cost): {inv.inventory_value:.2f}\n"
            f"Low stock: {inv.low_stock_count} | Out of stock: {inv.out_of_stock_count}\n"
            f"Revenue: {sales.total_revenue:.2f} | Profit: {sales.total_profit:.2f}"
        )

        self.top_list.delete(0, tk.END)
        for i, t in enumerate(self.app.reporting.top_sold(5), start=1):
            self.top_list.insert(tk.END, f"{i}. {t.label} - {t.count} sales")

        self._draw_bar_chart(self.sales_canvas, "Monthly sales", self.app.reporting.monthly_sales_totals(6), color="#2563eb")
        self._draw_line_chart(self.profit_canvas, "Cumulative profit", self.app.reporting.cumulative_profit_series())

    def _draw_bar_chart(self, canvas: tk.Canvas, title: str, data: list[tuple[str, float]], color: str = "#2b78c2"):
        canvas.delete("all")
        w, h = int(canvas.winfo_width() or 560), int(canvas.winfo_height() or 200)
        canvas.create_text(12, 16, text=title, anchor="w", font=("Segoe UI", 10, "bold"), fill="#0f172a")
        if not data or not any(v for _, v in data):
            canvas.create_text(w // 2, h // 2, text="No data", fill="#64748b")
            return
        maxv = max(v for _, v in data) or 1
        bw = max(24, (w - 40) // len(data))
        for i, (label, val) in enumerate(data):
            x0 = 24 + i * bw
            x1 = x0 + bw - 8
            y1 = h - 30
            y0 = y1 - int((max(val, 0) / maxv) * (h - 70))
            canvas.create_rectangle(x0, y0, x1, y1, fill=color, outline="")
            canvas.create_text((x0 + x1) // 2, y1 + 12, text=label, font=("Segoe UI", 8), fill="#475569")
            canvas.create_text((x0 + x1) // 2, y0 - 8, text=f"{val:.0f}", font=("Segoe UI", 8), fill="#0f172a")

    def _draw_line_chart(self, canvas: tk.Canvas, title: str, data: list[tuple[str, float]]):
        canvas.delete("all")
        w, h = int(canvas.winfo_width() or 560), int(canvas.winfo_height() or 200)
        canvas.create_text(12, 16, text=title, anchor="w", font=("Segoe UI", 10, "bold"), fill="#0f172a")
        if len(data) < 2:
            canvas.create_text(w // 2, h // 2, text="No data", fill="#64748b")
            return
        vals = [v for _, v in data]
        minv, maxv = min(vals), max(vals)
        span = (maxv - minv) or 1
        points = []
        for i, (d, v) in enumerate(data):
            x = 40 + int(i * (w - 80) / (len(data) - 1))
            y = h - 30 - int((v - minv) * (h - 70) / span)
            points.extend([x, y])
            if i % max(len(data) // 6, 1) == 0:
                canvas.create_text(x, h - 14, text=d[5:], font=("Segoe UI", 8), fill="#475569")
        canvas.create_line(*points, fill="#16a34a", width=3, smooth=True)
        canvas.create_text(w - 12, 16, text=f"{vals[-1]:.2f}", anchor="e", font=("Segoe UI", 9, "bold"), fill="#0f172a")

    def export_report(self):
        path = filedialog.asksaveasfilename(
            title="Save report as",
            defaultextension=".xlsx",
            filetypes=[("Excel files", "*.xlsx")],
            initialfile=f"screenstock_report_{date.today().isoformat()}.xlsx",
        )
        if not path:
            return
        try:
            self.app.reporting.export_report_excel(path)
            self.app.toast("Excel report exported.", kind="success")
        except Exception as e:
            self.app.handle_error("Export error", e, "Excel export failed.")

    # ---------- AI ----------
    def refresh_ai_controls(self):
        enabled = self.app.ai_connection.enabled and not self._busy
        for b in self._ai_buttons:
            b.state(["!disabled"] if enabled else ["disabled"])

    def _context(self):
        inventory = self.app.inventory.list_items()
        sales = sorted(self.app.sales.list_sales(), key=lambda s: s.sale_date)
        return inventory, sales

    def _show(self, text: str):
        self.output.configure(state="normal")
        self.output.delete("1.0", tk.END)
        self.output.insert("1.0", text)
        self.output.configure(state="disabled")

    def _start(self, label: str, fn, on_done=None):
        if self._busy:
            return
        if not self.app.ai_connection.enabled:
            self.app.toast("Connect the AI first.", kind="warn")
            return
        self._busy = True
        self.refresh_ai_controls()
        self._show(f"{label}...")

        def done(result):
            self._busy = False
            self.refresh_ai_controls()
            (on_done or self._show)(result)

        self.app.run_async(fn, done)

    def on_profitability(self):
        _, sales = self._context()
        self._start("Analyzing profitability", lambda: self.app.ai.analyze_profitability(sales))

    def on_optimization(self):
        inventory, sales = self._context()
        self._start("Analyzing inventory", lambda: self.app.ai.suggest_inventory_optimization(inventory, sales))

    def on_trends(self):
        _, sales = self._context()
        self._start("Looking for trends", lambda: self.app.ai.identify_trends(sales))

    def on_proactive(self):
        inventory, sales = self._context()
        self._start("Thinking", lambda: self.app.ai.proactive_suggestion(inventory, sales))

    def on_query(self):
        query = self.query_var.get().strip()
        if not query:
            self.app.toast("Type a question first.", kind="warn")
            return
        inventory, sales = self._context()
        self._start("Asking Gemini", lambda: self.app.ai.query_natural_language(query, inventory, sales))

    # ---------- catalog import ----------
    def choose_pdf(self):
        path = filedialog.askopenfilename(title="Select supplier catalog", filetypes=[("PDF files", "*.pdf")])
        if not path:
            return
        self._pdf_path = Path(path)
        self.pdf_var.set(self._pdf_path.name)

    def analyze_pdf(self):
        if self._pdf_path is None:
            self.app.toast("Choose a PDF file first.", kind="warn")
            return
        try:
            content = self._pdf_path.read_bytes()
        except OSError as e:
            self.app.handle_error("Catalog", e, "Could not read the PDF file.")
            return
        mime_type = mimetypes.guess_type(self._pdf_path.name)[0] or PDF_MIME_TYPE
        self._start(
            "Extracting products from the PDF",
            lambda: self.app.ai.analyze_catalog_pdf(content, mime_type),
            on_done=self._on_catalog_result,
        )

    def _on_catalog_result(self, result):
        if isinstance(result, str):
            self._show(result)
            self.app.toast("PDF analysis failed.", kind="error")
            return
        self._show(f"{len(result)} products extracted. Review them in the Catalog import tab.")
        self._load_session(result)
        self.app.toast(f"{len(result)} products extracted.", kind="success")

    def import_excel(self):
        path = filedialog.askopenfilename(title="Select Excel file", filetypes=[("Excel files", "*.xlsx")])
        if not path:
            return
        try:
            records, skipped = self.app.excel.import_catalog_excel(path)
        except Exception as e:
            self.app.handle_error("Import error", e, "Excel import failed.")
            return
        self._load_session(records)
        self.app.toast(f"Excel import: {len(records)} rows, {skipped} skipped.", kind="success")

    def _load_session(self, records):
        self.session = CatalogImportSession(self.app.inventory, records)
        self.refresh_catalog()

    def refresh_catalog(self):
        for iid in self.catalog_tree.get_children():
            self.catalog_tree.delete(iid)
        if self.session is None:
            self.pending_var.set("")
            return
        for i, r in enumerate(self.session.records):
            added = self.session.is_added(i)
            self.catalog_tree.insert(
                "", "end", iid=str(i),
                values=(
                    "Added" if added else "Pending",
                    r.brand or "", r.model or r.product_description or "", r.quality or "", r.color or "",
                    "" if r.purchase_price is None else f"{r.purchase_price:.2f}",
                    "" if r.quantity is None else r.quantity,
                ),
                tags=("added",) if added else (),
            )
        self.pending_var.set(f"{self.session.pending_count} pending of {len(self.session.records)}")

    def review_selected(self):
        if self.session is None:
            return
        selected = self.catalog_tree.selection()
        if not selected:
            self.app.toast("Select a catalog row.", kind="warn")
            return
        index = int(selected[0])
        if self.session.is_added(index):
            self.app.toast("This row was already added.", kind="info")
            return
        try:
            preview = self.session.preview(index)
        except Exception as e:
            self.app.handle_error("Catalog", e, "Could not prepare the catalog row.")
            return

        def save(item):
            self.session.commit(index, item)
            self.app.toast(f"Added {item.brand} {item.model}.", kind="success")
            self.refresh_catalog()
            self.app.refresh_all(show_toast=False)

        ItemDialog(self.app, "Review catalog product", save, initial=preview)

    def add_all_pending(self):
        if self.session is None or self.session.pending_count == 0:
            self.app.toast("Nothing pending to add.", kind="info")
            return
        try:
            count = self.session.add_all_pending()
        except Exception as e:
            self.app.handle_error("Catalog", e, "Failed to add catalog products.")
            return
        self.app.toast(f"{count} products added to inventory.", kind="success")
        self.refresh_catalog()
        self.app.refresh_all(show_toast=False)
