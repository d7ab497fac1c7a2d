from .auth import ApiToken
from .catalog import CatalogEntry
from .inventory import InventoryItem, StockMovement
from .vendors import Vendor, VendorItem, PurchaseOrder
from .scanning import ScanningSession, ScanSessionItem

__all__ = [
    'ApiToken',
    'CatalogEntry',
    'InventoryItem', 'StockMovement',
    'Vendor', 'VendorItem', 'PurchaseOrder',
    'ScanningSession', 'ScanSessionItem',
]
