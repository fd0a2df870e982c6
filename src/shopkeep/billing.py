"""
Point-of-sale cart

Scanned barcodes are collected into a cart of line items, checked against
the stock on hand, and turned into a bill on checkout.

Flow:
1. scan(barcode)            one unit per scan, snapshot of the selling price
2. set_quantity / remove    adjust lines
3. checkout()               store.create_bill(...) and reset the cart
"""

import logging
from typing import Optional

from shopkeep.store import Bill, BillItem, ShopStore

logger = logging.getLogger(__name__)


class BillingError(Exception):
    """Cart rule violation"""
    def __init__(self, code: str, message: str = ""):
        self.code = code
        super().__init__(f"Billing Error [{code}]: {message}")


class Cart:
    """Items waiting to be billed"""

    def __init__(self, store: ShopStore, tax_rate: float = 0.0):
        """
        Args:
            store: catalog used for lookups and checkout
            tax_rate: fraction of the subtotal charged as tax (0 = no tax)
        """
        self.store = store
        self.tax_rate = tax_rate
        self.items: list[BillItem] = []
        self.customer_name = ""
        self.customer_mobile = ""

    def _line_index(self, barcode: str) -> int:
        for i, item in enumerate(self.items):
            if item.barcode == barcode:
                return i
        return -1

    def scan(self, barcode: str) -> Optional[BillItem]:
        """Add one unit of the scanned product.

        Returns:
            The updated line, or None for blank input.

        Raises:
            BillingError: NOT_FOUND, OUT_OF_STOCK or INSUFFICIENT_STOCK
        """
        barcode = barcode.strip()
        if not barcode:
            return None

        product = self.store.get_product(barcode)
        if product is None:
            raise BillingError("NOT_FOUND", f"No product with barcode {barcode}")
        if product.quantity <= 0:
            raise BillingError("OUT_OF_STOCK", f"{product.name} is currently out of stock")

        index = self._line_index(barcode)
        if index >= 0:
            line = self.items[index]
            if line.quantity >= product.quantity:
                raise BillingError("INSUFFICIENT_STOCK", f"Only {product.quantity} units available")
            self.items[index] = BillItem(line.barcode, line.name, line.price, line.quantity + 1)
            return self.items[index]

        line = BillItem(
            barcode=product.barcode,
            name=product.name,
            price=product.selling_price,
            quantity=1,
        )
        self.items.append(line)
        return line

    def set_quantity(self, barcode: str, quantity: int):
        """Set a line's quantity; zero or less removes the line."""
        product = self.store.get_product(barcode)
        if product is not None and quantity > product.quantity:
            raise BillingError("INSUFFICIENT_STOCK", f"Only {product.quantity} units available")

        if quantity <= 0:
            self.remove(barcode)
            return

        index = self._line_index(barcode)
        if index >= 0:
            line = self.items[index]
            self.items[index] = BillItem(line.barcode, line.name, line.price, quantity)

    def remove(self, barcode: str):
        self.items = [item for item in self.items if item.barcode != barcode]

    def clear(self):
        self.items = []
        self.customer_name = ""
        self.customer_mobile = ""

    @property
    def subtotal(self) -> float:
        return sum(item.amount for item in self.items)

    @property
    def tax(self) -> float:
        if not self.tax_rate:
            return 0
        return round(self.subtotal * self.tax_rate, 2)

    @property
    def total(self) -> float:
        return self.subtotal + self.tax

    def checkout(self) -> Bill:
        """Create the bill and empty the cart.

        Raises:
            BillingError: EMPTY_CART
        """
        if not self.items:
            raise BillingError("EMPTY_CART", "Please add items to the cart")

        bill = self.store.create_bill(
            items=list(self.items),
            subtotal=self.subtotal,
            tax=self.tax,
            total=self.total,
            customer_name=self.customer_name or None,
            customer_mobile=self.customer_mobile or None,
        )
        logger.debug("checked out %s", bill.id)
        self.clear()
        return bill
