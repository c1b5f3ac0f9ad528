from .models import ScreenQuality, StockItem, SaleTransaction, PdfExtractedRecord
from .errors import (
    ValidationError,
    NotFoundError,
    InsufficientStockError,
    DuplicateIdError,
    ConfirmationError,
    AiUnavailableError,
    CatalogParseError,
)

__all__ = [
    "ScreenQuality",
    "StockItem",
    "SaleTransaction",
    "PdfExtractedRecord",
    "ValidationError",
    "NotFoundError",
    "InsufficientStockError",
    "DuplicateIdError",
    "ConfirmationError",
    "AiUnavailableError",
    "CatalogParseError",
]
