"""Catalog & ledger store"""

import dataclasses
import json
import logging
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional

from .backends import KeyValueBackend
from .models import Bill, BillItem, Product, TodayStats, TotalStats

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "products"
BILLS_KEY = "bills"

# stock view highlights anything below this
LOW_STOCK_THRESHOLD = 5

_PATCHABLE_FIELDS = {f.name for f in dataclasses.fields(Product)}


class ShopStoreError(Exception):
    """Store error"""


class CorruptCollectionError(ShopStoreError):
    """A stored collection could not be decoded"""
    def __init__(self, key: str, detail: str = ""):
        self.key = key
        super().__init__(f"Corrupt collection {key!r}: {detail}")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO 8601 in UTC with milliseconds, e.g. 2026-10-18T09:30:00.000Z"""
    text = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(text: str) -> datetime:
    """Parse a stored timestamp. Naive values are taken as local time."""
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def local_day(text: str) -> date:
    return parse_timestamp(text).astimezone().date()


class ShopStore:
    """Products and bills over a key-value backend.

    Every operation reads the whole collection, changes it in memory and
    writes it back. Lookups that find nothing return None (or do nothing);
    backend faults propagate to the caller.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.backend = backend
        self._clock = clock or _utc_now

    def close(self):
        self.backend.close()

    # ── persistence ──

    def _load(self, key: str) -> list[dict]:
        raw = self.backend.get(key)
        if raw is None:
            return []
        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptCollectionError(key, str(e)) from e
        if not isinstance(records, list):
            raise CorruptCollectionError(key, f"expected a list, got {type(records).__name__}")
        return records

    @staticmethod
    def _dump(records: list[dict]) -> str:
        return json.dumps(records, ensure_ascii=False)

    def _load_products(self) -> list[Product]:
        return [Product.from_record(r) for r in self._load(PRODUCTS_KEY)]

    def _save_products(self, products: list[Product]):
        self.backend.set(PRODUCTS_KEY, self._dump([p.to_record() for p in products]))

    def _load_bills(self) -> list[Bill]:
        return [Bill.from_record(r) for r in self._load(BILLS_KEY)]

    @staticmethod
    def _index_of(products: list[Product], barcode: str) -> int:
        for i, product in enumerate(products):
            if product.barcode == barcode:
                return i
        return -1

    # ── products ──

    def upsert_product(self, product: Product) -> Product:
        """Add a product, or restock it if the barcode already exists.

        On an existing barcode the incoming fields replace the stored ones,
        but the quantity is added to the stored quantity and the original
        creation time is kept. New products get the current time.
        """
        products = self._load_products()
        index = self._index_of(products, product.barcode)

        if index >= 0:
            existing = products[index]
            merged = dataclasses.replace(
                product,
                quantity=existing.quantity + product.quantity,
                image=product.image if product.image is not None else existing.image,
                created_at=existing.created_at,
            )
            products[index] = merged
            logger.debug("restocked %s: %s -> %s", product.barcode, existing.quantity, merged.quantity)
        else:
            merged = dataclasses.replace(product, created_at=format_timestamp(self._clock()))
            products.append(merged)
            logger.debug("added product %s", product.barcode)

        self._save_products(products)
        return merged

    def list_products(self) -> list[Product]:
        return self._load_products()

    def get_product(self, barcode: str) -> Optional[Product]:
        for product in self._load_products():
            if product.barcode == barcode:
                return product
        return None

    def set_stock(self, barcode: str, quantity: int):
        """Overwrite the quantity on hand. Unknown barcodes are ignored."""
        products = self._load_products()
        index = self._index_of(products, barcode)
        if index < 0:
            return
        products[index] = dataclasses.replace(products[index], quantity=quantity)
        self._save_products(products)
        logger.debug("stock of %s set to %s", barcode, quantity)

    def patch_product(self, barcode: str, **fields):
        """Merge the given fields into a product. Unknown barcodes are ignored."""
        unknown = set(fields) - _PATCHABLE_FIELDS
        if unknown:
            logger.warning("ignoring unknown product fields: %s", ", ".join(sorted(unknown)))
            fields = {k: v for k, v in fields.items() if k in _PATCHABLE_FIELDS}

        products = self._load_products()
        index = self._index_of(products, barcode)
        if index < 0:
            return
        products[index] = dataclasses.replace(products[index], **fields)
        self._save_products(products)
        logger.debug("patched %s: %s", barcode, ", ".join(sorted(fields)))

    def remove_product(self, barcode: str):
        """Drop a product from the catalog. Past bills keep their line items."""
        products = self._load_products()
        kept = [p for p in products if p.barcode != barcode]
        self._save_products(kept)
        if len(kept) != len(products):
            logger.debug("removed product %s", barcode)

    def search_products(self, term: str) -> list[Product]:
        """Case-insensitive substring match on name, barcode or category."""
        needle = term.lower()
        return [
            p for p in self._load_products()
            if needle in p.name.lower()
            or needle in p.barcode.lower()
            or needle in p.category.lower()
        ]

    def low_stock_products(self, threshold: int = LOW_STOCK_THRESHOLD) -> list[Product]:
        return [p for p in self._load_products() if p.quantity < threshold]

    # ── bills ──

    def _next_bill_id(self, bills: list[Bill]) -> str:
        taken = {b.id for b in bills}
        millis = int(self._clock().timestamp() * 1000)
        while f"BILL-{millis}" in taken:
            millis += 1
        return f"BILL-{millis}"

    def create_bill(
        self,
        items: Iterable[BillItem],
        subtotal: float,
        tax: float,
        total: float,
        customer_name: Optional[str] = None,
        customer_mobile: Optional[str] = None,
    ) -> Bill:
        """Record a sale and take the sold quantities out of stock.

        The bill and the stock changes are written together; if the backend
        fails neither is stored. Line items whose barcode is no longer in
        the catalog are billed but have no stock to decrement.
        """
        products = self._load_products()
        bills = self._load_bills()
        items = list(items)

        bill = Bill(
            id=self._next_bill_id(bills),
            items=items,
            subtotal=subtotal,
            tax=tax,
            total=total,
            date=format_timestamp(self._clock()),
            customer_name=customer_name or None,
            customer_mobile=customer_mobile or None,
        )
        bills.append(bill)

        for item in items:
            index = self._index_of(products, item.barcode)
            if index < 0:
                continue
            product = products[index]
            products[index] = dataclasses.replace(product, quantity=product.quantity - item.quantity)

        self.backend.write_many({
            BILLS_KEY: self._dump([b.to_record() for b in bills]),
            PRODUCTS_KEY: self._dump([p.to_record() for p in products]),
        })
        logger.info("created %s: %d items, total %s", bill.id, len(items), total)
        return bill

    def list_bills(self, latest_first: bool = False) -> list[Bill]:
        bills = self._load_bills()
        if latest_first:
            bills.reverse()
        return bills

    def find_bills_by_customer(self, name_or_mobile: str) -> list[Bill]:
        """Bills whose customer name or mobile equals the argument exactly."""
        return [
            b for b in self._load_bills()
            if b.customer_name == name_or_mobile or b.customer_mobile == name_or_mobile
        ]

    def search_bills(self, term: str) -> list[Bill]:
        """Customer history search, latest first.

        Name and bill id match case-insensitively, mobile as a plain substring.
        """
        needle = term.lower()
        return [
            b for b in self.list_bills(latest_first=True)
            if (b.customer_name is not None and needle in b.customer_name.lower())
            or (b.customer_mobile is not None and term in b.customer_mobile)
            or needle in b.id.lower()
        ]

    def get_bill(self, bill_id: str) -> Optional[Bill]:
        for bill in self._load_bills():
            if bill.id == bill_id:
                return bill
        return None

    # ── statistics ──

    def today_stats(self) -> TodayStats:
        """Sales of the current local calendar day"""
        today = self._clock().astimezone().date()
        todays = [b for b in self._load_bills() if local_day(b.date) == today]
        return TodayStats(
            total_sales=sum(b.total for b in todays),
            bills_count=len(todays),
        )

    def total_stats(self) -> TotalStats:
        bills = self._load_bills()
        customers = {b.customer_key for b in bills if b.customer_key}
        return TotalStats(
            total_products=len(self._load_products()),
            total_customers=len(customers),
            total_revenue=sum(b.total for b in bills),
        )
