from __future__ import annotations

import base64
import json
import logging
import math
import re
from enum import Enum
from typing import Any, Optional, Union

import requests

from screenstock.config import AiSettings
from screenstock.domain.errors import AiUnavailableError, CatalogParseError
from screenstock.domain.models import PdfExtractedRecord, SaleTransaction, StockItem
from screenstock.services.reporting_service import recent_sales_total

log = logging.getLogger("screenstock.ai")

MAX_PDF_BYTES = 20 * 1024 * 1024
PDF_MIME_TYPE = "application/pdf"

NOT_CONFIGURED_MESSAGE = "Gemini AI service is not configured. The API key might be missing."
INVALID_FILE_MESSAGE = "Invalid file type. Please upload a PDF document."
FILE_TOO_LARGE_MESSAGE = "File is too large. Maximum 20MB for direct analysis."
NOT_A_LIST_MESSAGE = "Error: the AI did not return a valid product list from the PDF."

_FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)

CATALOG_PROMPT = """
Analyze this phone screen catalog in PDF format. Extract the information of every listed product.
For each product, try to identify and extract the following fields when they are present in the catalog:
- "Product" (general description of the item): map to the key "productDescription".
- "Brand": map to the key "brand".
- "Model": map to the key "model".
- "Quality" (e.g. Original, OEM, AAA+, Incell, Other): map to the key "quality".
- "Color": map to the key "color".
- "Price" (usually the purchase price for the technician): map to the key "purchasePrice". This value must be numeric.
- "Quantity" (stock available according to the catalog): map to the key "quantity". This value must be numeric.
- Any other relevant information or details go in the key "notes".

Return the results as a JSON array of objects. Each object represents one product.
If a field is not found for a product, omit the key or use null for that field.
The result must be valid JSON containing only the array of objects. Do not add any explanatory text before or after the JSON array.

Expected output example:
[
  { "productDescription": "LCD+touch with frame", "brand": "Xiaomi", "model": "Redmi 9A", "quality": "Original A", "color": "Black", "purchasePrice": 72.10, "quantity": 3, "notes": "Item number: 1" },
  { "productDescription": "LCD+touch", "brand": "Samsung", "model": "A03s/A02s", "quality": "Original A", "color": "Black", "purchasePrice": 67.70, "quantity": 10, "notes": null },
  { "productDescription": "LCD+touch with frame", "brand": "Samsung", "model": "A15 4G/A155", "quality": "INCELL", "color": "Black", "purchasePrice": 80.90, "quantity": 2, "notes": "Reference: A15 5G/A156" }
]

If the document does not look like a product catalog or nothing can be extracted in a structured way, return an empty JSON array [].
"""


class AnalysisType(str, Enum):
    PROFITABILITY = "Profitability Analysis"
    INVENTORY_OPTIMIZATION = "Inventory Optimization"
    TREND_IDENTIFICATION = "Trend Identification"
    NATURAL_LANGUAGE_QUERY = "Natural Language Query"
    PROACTIVE_SUGGESTIONS = "Proactive Suggestions"
    PDF_CATALOG_ANALYSIS = "PDF Product Catalog Analysis"


def _dump(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2, default=str)


def strip_code_fence(text: str) -> str:
    cleaned = text.strip()
    match = _FENCE_RE.match(cleaned)
    if match and match.group(2):
        return match.group(2).strip()
    return cleaned


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    s = str(value).strip()
    return s or None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _count(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_catalog_reply(raw_text: str) -> list[PdfExtractedRecord]:
    """Validate an AI catalog reply and build the extracted records.

    Raises CatalogParseError when the reply is not JSON, not an array, or
    contains anything other than objects. Non-numeric prices and quantities
    are dropped rather than guessed.
    """
    try:
        parsed = json.loads(strip_code_fence(raw_text))
    except ValueError as e:
        raise CatalogParseError(
            f"Error processing the AI reply for the PDF. Received content: {raw_text[:200]}..."
        ) from e

    if not isinstance(parsed, list):
        raise CatalogParseError(NOT_A_LIST_MESSAGE)

    records: list[PdfExtractedRecord] = []
    for idx, row in enumerate(parsed):
        if not isinstance(row, dict):
            raise CatalogParseError(f"Error: catalog entry {idx + 1} is not a product object.")
        records.append(
            PdfExtractedRecord(
                product_description=_text(row.get("productDescription")),
                brand=_text(row.get("brand")),
                model=_text(row.get("model")),
                quality=_text(row.get("quality")),
                color=_text(row.get("color")),
                purchase_price=_number(row.get("purchasePrice")),
                quantity=_count(row.get("quantity")),
                notes=_text(row.get("notes")),
            )
        )
    return records


class AiAdvisoryGateway:
    """Read-only analyses backed by the Gemini ``generateContent`` endpoint.

    Public methods never raise: every failure comes back as a message string
    the UI can show as is.
    """

    def __init__(self, settings: AiSettings):
        self.settings = settings

    def is_available(self) -> bool:
        return self.settings.available

    def _post_json(self, url: str, payload: dict) -> dict:
        r = requests.post(
            url,
            json=payload,
            headers={"x-goog-api-key": str(self.settings.api_key)},
            timeout=self.settings.timeout_seconds,
        )
        r.raise_for_status()
        return r.json()

    def _extract_text(self, data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason")
            raise ValueError(f"Gemini returned no candidates (blockReason={reason})")
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))

    def _generate(self, parts: list[dict], generation_config: Optional[dict] = None) -> str:
        url = f"{self.settings.base_url}/models/{self.settings.model}:generateContent"
        payload: dict[str, Any] = {"contents": [{"parts": parts}]}
        if generation_config:
            payload["generationConfig"] = generation_config
        return self._extract_text(self._post_json(url, payload))

    def _ask(self, kind: AnalysisType, prompt: str) -> str:
        if not self.is_available():
            return NOT_CONFIGURED_MESSAGE
        try:
            text = self._generate([{"text": prompt}])
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
            log.warning("ai_request_failed kind=%s error=%s", kind.value, e)
            return f"Error from Gemini: {e}"
        log.info("ai_request_ok kind=%s chars=%s", kind.value, len(text))
        return text

    def analyze_profitability(self, sales: list[SaleTransaction]) -> str:
        data = [
            {
                "sale_id": s.id,
                "brand": s.brand,
                "model": s.model,
                "quality": s.quality.value,
                "unit_purchase_price": s.purchase_price,
                "transaction_total_sale_price": s.sale_price,
                "quantity_sold": s.quantity_sold,
                "transaction_total_profit": s.profit,
                "date": s.sale_date.isoformat(),
                "unit_sale_price": s.unit_sale_price,
                "unit_profit": s.unit_profit,
            }
            for s in sales
        ]
        prompt = f"""
Analyze the following phone screen sales data:
{_dump(data)}

Based on this data, identify:
1. The 5 best-selling screen models by total quantity (summing quantity_sold over all transactions of each model).
2. The 5 screen models generating the highest total revenue (summing transaction_total_sale_price).
3. The 5 screen models with the highest average unit profit margin (using unit_profit).
4. The 5 screen models with the highest total profitability (summing transaction_total_profit).
5. Any interesting pattern or trend in the sales (e.g. which qualities sell best for certain brands, seasonality if there is enough data, relation between quantity per transaction and profitability).
6. Suggestions to optimize the sales approach and maximize profitability.
Present the information clearly and concisely."""
        return self._ask(AnalysisType.PROFITABILITY, prompt)

    def suggest_inventory_optimization(self, inventory: list[StockItem], sales: list[SaleTransaction]) -> str:
        inventory_data = [
            {
                "model": it.model,
                "brand": it.brand,
                "quality": it.quality.value,
                "current_stock": it.quantity,
                "desired_min_stock": it.min_stock_threshold or 0,
                "units_sold_last_30_days": recent_sales_total(sales, it.brand, it.model, it.quality, 30),
            }
            for it in inventory
        ]
        history = [
            {
                "brand": s.brand,
                "model": s.model,
                "quality": s.quality.value,
                "quantity_sold": s.quantity_sold,
                "transaction_total_sale_price": s.sale_price,
                "date": s.sale_date.isoformat(),
            }
            for s in sales[-50:]
        ]
        prompt = f"""
Analyze the following inventory and sales history:
Inventory: {_dump(inventory_data)}
Sales history (latest relevant): {_dump(history)}

Based on this:
1. Identify screens at risk of running out soon (high recent demand by quantity_sold and low current stock relative to the desired minimum when defined).
2. Identify screens with "dead stock" or low turnover (high stock and few or no recent sales).
3. Suggest restock quantities for the most demanded screens, considering recent sales (quantity_sold).
4. Give advice to manage inventory more efficiently (e.g. promotions for slow stock).
Present the information clearly and concisely."""
        return self._ask(AnalysisType.INVENTORY_OPTIMIZATION, prompt)

    def identify_trends(self, sales: list[SaleTransaction]) -> str:
        history = [
            {
                "brand": s.brand,
                "model": s.model,
                "quality": s.quality.value,
                "quantity_sold": s.quantity_sold,
                "date": s.sale_date.isoformat(),
            }
            for s in sales
        ]
        prompt = f"""
Analyze the sales history {_dump(history)} and highlight any screen model, brand or quality whose demand (considering quantity_sold) has significantly increased or decreased in recent weeks/months compared to earlier periods. Also identify consistently popular products.
Present the information clearly and concisely."""
        return self._ask(AnalysisType.TREND_IDENTIFICATION, prompt)

    def query_natural_language(self, query: str, inventory: list[StockItem], sales: list[SaleTransaction]) -> str:
        if not query.strip():
            return "Empty query."
        inventory_data = [
            {
                "model": it.model,
                "brand": it.brand,
                "current_stock": it.quantity,
                "purchase_price": it.purchase_price,
                "quality": it.quality.value,
            }
            for it in inventory[:30]
        ]
        sales_data = [
            {
                "model": s.model,
                "brand": s.brand,
                "quantity_sold": s.quantity_sold,
                "transaction_total_sale_price": s.sale_price,
                "transaction_total_profit": s.profit,
                "date": s.sale_date.isoformat(),
                "quality": s.quality.value,
            }
            for s in sales[-30:]
        ]
        prompt = f"""
You are an AI assistant for a phone screen inventory and sales management application.
Answer the user's question STRICTLY and ONLY based on the data context below.
Do not make up information or use outside knowledge. If the information is not in the context, say so clearly.
Be concise and direct.

Data context (limited summary):
Current inventory (up to 30 items): {_dump(inventory_data)}
Recent sales (up to 30 transactions): {_dump(sales_data)}

User question: "{query.strip()}"

Answer based on the context:"""
        return self._ask(AnalysisType.NATURAL_LANGUAGE_QUERY, prompt)

    def proactive_suggestion(self, inventory: list[StockItem], sales: list[SaleTransaction]) -> str:
        inventory_data = [
            {
                "model": it.model,
                "stock": it.quantity,
                "min_stock": it.min_stock_threshold,
                "unit_purchase_price": it.purchase_price,
            }
            for it in inventory[:15]
        ]
        sales_data = [
            {
                "model": s.model,
                "quantity_sold": s.quantity_sold,
                "total_sale_price": s.sale_price,
                "total_profit": s.profit,
                "date": s.sale_date.isoformat(),
            }
            for s in sales[-30:]
        ]
        prompt = f"""
This is a summary of the current state of the screen business:
Key inventory: {_dump(inventory_data)}
Recent sales (last 30): {_dump(sales_data)}

Identify the single most important finding or the most urgent suggestion the owner should know right now. Be brief and direct (1-2 sentences). For example: "Alert! Low stock of iPhone 13 Pro and it sells a lot (by quantity)." or "Opportunity: Xiaomi Redmi Note 11 screens have high unit profit and growing demand."
"""
        return self._ask(AnalysisType.PROACTIVE_SUGGESTIONS, prompt)

    def analyze_catalog_pdf(self, content: bytes, mime_type: str = PDF_MIME_TYPE) -> Union[list[PdfExtractedRecord], str]:
        if not self.is_available():
            return NOT_CONFIGURED_MESSAGE
        if mime_type != PDF_MIME_TYPE:
            return INVALID_FILE_MESSAGE
        if len(content) > MAX_PDF_BYTES:
            return FILE_TOO_LARGE_MESSAGE

        parts = [
            {"text": CATALOG_PROMPT},
            {"inlineData": {"mimeType": PDF_MIME_TYPE, "data": base64.b64encode(content).decode("ascii")}},
        ]
        try:
            raw = self._generate(parts, {"responseMimeType": "application/json"})
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
            log.warning(
                "ai_request_failed kind=%s bytes=%s error=%s", AnalysisType.PDF_CATALOG_ANALYSIS.value, len(content), e
            )
            return f"Error from Gemini (PDF): {e}"

        try:
            records = parse_catalog_reply(raw)
        except CatalogParseError as e:
            log.warning("ai_reply_rejected kind=%s error=%s", AnalysisType.PDF_CATALOG_ANALYSIS.value, e)
            return str(e)
        log.info("ai_request_ok kind=%s records=%s", AnalysisType.PDF_CATALOG_ANALYSIS.value, len(records))
        return records


class AiConnectionService:
    """Persisted on/off switch for AI features, forced off without credentials."""

    def __init__(self, state, repo, gateway: AiAdvisoryGateway):
        self.state = state
        self.repo = repo
        self.gateway = gateway

    @property
    def enabled(self) -> bool:
        return bool(self.state.ai_enabled) and self.gateway.is_available()

    def sync_with_credentials(self) -> None:
        if self.state.ai_enabled and not self.gateway.is_available():
            log.warning("ai_disabled_missing_key")
            self.set_enabled(False)

    def set_enabled(self, enabled: bool) -> None:
        if enabled and not self.gateway.is_available():
            raise AiUnavailableError("The Gemini API key is not configured. Cannot connect.")
        self.repo.save_ai_enabled(enabled)
        self.state.ai_enabled = bool(enabled)
        log.info("ai_connection enabled=%s", bool(enabled))

    def toggle(self) -> bool:
        self.set_enabled(not self.enabled)
        return self.enabled
