"""Catalog & ledger data models"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Product:
    """Catalog entry, keyed by barcode"""
    barcode: str
    name: str
    category: str = ""
    purchase_price: float = 0.0
    selling_price: float = 0.0
    quantity: int = 0
    image: Optional[str] = None   # path or URL
    created_at: str = ""          # ISO format datetime (UTC)

    def to_record(self) -> dict:
        record = {
            "barcode": self.barcode,
            "name": self.name,
            "category": self.category,
            "purchasePrice": self.purchase_price,
            "sellingPrice": self.selling_price,
            "quantity": self.quantity,
        }
        if self.image is not None:
            record["image"] = self.image
        record["createdAt"] = self.created_at
        return record

    @classmethod
    def from_record(cls, record: dict) -> "Product":
        return cls(
            barcode=record["barcode"],
            name=record.get("name", ""),
            category=record.get("category", ""),
            purchase_price=record.get("purchasePrice", 0),
            selling_price=record.get("sellingPrice", 0),
            quantity=record.get("quantity", 0),
            image=record.get("image"),
            created_at=record.get("createdAt", ""),
        )


@dataclass(frozen=True)
class BillItem:
    """Line item snapshot taken at sale time"""
    barcode: str
    name: str
    price: float
    quantity: int

    @property
    def amount(self) -> float:
        return self.price * self.quantity

    def to_record(self) -> dict:
        return {
            "barcode": self.barcode,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
        }

    @classmethod
    def from_record(cls, record: dict) -> "BillItem":
        return cls(
            barcode=record["barcode"],
            name=record.get("name", ""),
            price=record.get("price", 0),
            quantity=record.get("quantity", 0),
        )


@dataclass(frozen=True)
class Bill:
    """Completed sale. Never modified after creation."""
    id: str
    items: list[BillItem] = field(default_factory=list)
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    date: str = ""                # ISO format datetime (UTC)
    customer_name: Optional[str] = None
    customer_mobile: Optional[str] = None

    @property
    def customer_key(self) -> Optional[str]:
        """Mobile if present, else name. None for walk-in bills."""
        return self.customer_mobile or self.customer_name or None

    def to_record(self) -> dict:
        record = {"id": self.id}
        if self.customer_name is not None:
            record["customerName"] = self.customer_name
        if self.customer_mobile is not None:
            record["customerMobile"] = self.customer_mobile
        record.update({
            "items": [item.to_record() for item in self.items],
            "subtotal": self.subtotal,
            "tax": self.tax,
            "total": self.total,
            "date": self.date,
        })
        return record

    @classmethod
    def from_record(cls, record: dict) -> "Bill":
        return cls(
            id=record["id"],
            items=[BillItem.from_record(r) for r in record.get("items", [])],
            subtotal=record.get("subtotal", 0),
            tax=record.get("tax", 0),
            total=record.get("total", 0),
            date=record.get("date", ""),
            customer_name=record.get("customerName"),
            customer_mobile=record.get("customerMobile"),
        )


@dataclass(frozen=True)
class TodayStats:
    total_sales: float
    bills_count: int


@dataclass(frozen=True)
class TotalStats:
    total_products: int
    total_customers: int
    total_revenue: float
