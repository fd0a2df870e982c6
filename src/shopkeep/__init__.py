"""shopkeep - product catalog, billing and stock toolkit for a single shop"""

__version__ = "0.1.0"

from shopkeep.billing import BillingError, Cart
from shopkeep.bulk_import import BulkImportClient, BulkImportError, ImportResult
from shopkeep.store import (
    Bill,
    BillItem,
    MemoryKeyValue,
    Product,
    ShopStore,
    SQLiteKeyValue,
)

__all__ = [
    "Bill",
    "BillItem",
    "BillingError",
    "BulkImportClient",
    "BulkImportError",
    "Cart",
    "ImportResult",
    "MemoryKeyValue",
    "Product",
    "SQLiteKeyValue",
    "ShopStore",
]
