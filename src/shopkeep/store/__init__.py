"""Catalog & ledger store"""

from .backends import KeyValueBackend, MemoryKeyValue, SQLiteKeyValue
from .db import (
    LOW_STOCK_THRESHOLD,
    CorruptCollectionError,
    ShopStore,
    ShopStoreError,
)
from .models import Bill, BillItem, Product, TodayStats, TotalStats

__all__ = [
    "Bill",
    "BillItem",
    "CorruptCollectionError",
    "KeyValueBackend",
    "LOW_STOCK_THRESHOLD",
    "MemoryKeyValue",
    "Product",
    "SQLiteKeyValue",
    "ShopStore",
    "ShopStoreError",
    "TodayStats",
    "TotalStats",
]
