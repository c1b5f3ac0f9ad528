from .inventory_view import InventoryView
from .sales_view import SalesView
from .reports_view import ReportsView

__all__ = ["InventoryView", "SalesView", "ReportsView"]
