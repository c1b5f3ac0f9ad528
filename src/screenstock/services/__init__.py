from .inventory_service import InventoryService
from .sales_service import SalesService
from .reporting_service import ReportingService
from .catalog_service import CatalogImportSession
from .ai_service import AiAdvisoryGateway, AiConnectionService
from .excel_service import ExcelService
from .confirmation import ClearConfirmation

__all__ = [
    "InventoryService",
    "SalesService",
    "ReportingService",
    "CatalogImportSession",
    "AiAdvisoryGateway",
    "AiConnectionService",
    "ExcelService",
    "ClearConfirmation",
]
