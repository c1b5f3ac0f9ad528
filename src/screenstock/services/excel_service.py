from __future__ import annotations

from openpyxl import load_workbook

from screenstock.domain.errors import ValidationError
from screenstock.domain.models import PdfExtractedRecord
import logging

log = logging.getLogger(__name__)

# header (lowercased, no spaces or underscores) -> PdfExtractedRecord field
COLUMNS = {
    "productdescription": "product_description",
    "brand": "brand",
    "model": "model",
    "quality": "quality",
    "color": "color",
    "purchaseprice": "purchase_price",
    "quantity": "quantity",
    "notes": "notes",
}


def _cell_text(v) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _header_key(v) -> str | None:
    if not isinstance(v, str):
        return None
    return v.strip().lower().replace("_", "").replace(" ", "")


class ExcelService:
    def import_catalog_excel(self, path: str) -> tuple[list[PdfExtractedRecord], int]:
        """
        Reads supplier catalog rows into records for the catalog review session.
        Headers (any subset, case-insensitive):
          productDescription | brand | model | quality | color | purchasePrice | quantity | notes
        """
        wb = load_workbook(path, read_only=True, data_only=True)
        try:
            ws = wb.active

            rows = ws.iter_rows(values_only=True)
            header_row = next(rows, None) or ()

            headers: dict[str, int] = {}
            for idx, v in enumerate(header_row):
                key = _header_key(v)
                if key in COLUMNS:
                    headers[COLUMNS[key]] = idx

            if "brand" not in headers and "model" not in headers:
                raise ValidationError("Missing column header: brand or model")

            records: list[PdfExtractedRecord] = []
            skipped = 0

            for row_no, row in enumerate(rows, start=2):
                def get(field):
                    i = headers.get(field)
                    return row[i] if i is not None and i < len(row) else None

                brand = _cell_text(get("brand"))
                model = _cell_text(get("model"))
                if not brand and not model:
                    skipped += 1
                    continue

                try:
                    price = get("purchase_price")
                    qty = get("quantity")
                    records.append(
                        PdfExtractedRecord(
                            brand=brand,
                            model=model,
                            product_description=_cell_text(get("product_description")),
                            quality=_cell_text(get("quality")),
                            color=_cell_text(get("color")),
                            purchase_price=float(price) if price not in (None, "") else None,
                            quantity=int(float(qty)) if qty not in (None, "") else None,
                            notes=_cell_text(get("notes")),
                        )
                    )
                except (TypeError, ValueError) as e:
                    log.warning("Catalog import skipped row %s: %s", row_no, e)
                    skipped += 1
        finally:
            wb.close()

        return records, skipped
