#!/usr/bin/env python3
"""
Shop management CLI

Usage:
    shopkeep add BARCODE NAME --category C [--purchase-price P] [--selling-price S] [--quantity Q]
    shopkeep products [--search TERM]
    shopkeep stock [--threshold 5]
    shopkeep set-stock BARCODE QUANTITY
    shopkeep edit BARCODE [--name N] [--category C] [--purchase-price P] [--selling-price S]
    shopkeep delete BARCODE [--yes]
    shopkeep bill BARCODE[:QTY] ... [--customer-name N] [--customer-mobile M] [--image-dir DIR]
    shopkeep bills [--customer NAME_OR_MOBILE | --search TERM]
    shopkeep show-bill BILL_ID [--image-dir DIR]
    shopkeep stats [--reveal]
    shopkeep import FILE
"""

import argparse
import getpass
import logging
import sys
from datetime import datetime

from shopkeep.bulk_import import BulkImportClient, BulkImportError
from shopkeep.billing import BillingError, Cart
from shopkeep.config import Settings
from shopkeep.receipt import render_receipt_lines, save_receipt_image
from shopkeep.receipt.render import format_amount
from shopkeep.store import (
    LOW_STOCK_THRESHOLD,
    Bill,
    Product,
    ShopStore,
    ShopStoreError,
    SQLiteKeyValue,
)
from shopkeep.store.db import parse_timestamp

logger = logging.getLogger("shopkeep.cli")

# suggestions offered by the add form
CATEGORIES = [
    "Ground Crackers",
    "Sparklers",
    "Rockets",
    "Fancy Crackers",
    "Flower Pots",
    "Chakkar",
    "Bombs",
    "Gift Boxes",
]


def _print_products(products: list[Product], threshold: int = LOW_STOCK_THRESHOLD):
    by_category: dict[str, list[Product]] = {}
    for product in products:
        by_category.setdefault(product.category or "Uncategorized", []).append(product)

    for category, category_products in sorted(by_category.items()):
        print(f"[{category}]")
        for p in category_products:
            low = "  (low stock)" if p.quantity < threshold else ""
            print(f"  {p.barcode}  {p.name} x{p.quantity}{low}")
            print(f"    buy: {format_amount(p.purchase_price)}  sell: {format_amount(p.selling_price)}")
        print()


def _print_receipt(bill: Bill, settings: Settings):
    for line in render_receipt_lines(bill, shop_name=settings.shop_name, footer=settings.receipt_footer):
        print(line)


def _parse_bill_item(text: str) -> tuple[str, int]:
    """'8901234:3' -> ('8901234', 3); a bare barcode means one unit"""
    barcode, sep, qty = text.rpartition(":")
    if not sep:
        return text, 1
    try:
        return barcode, int(qty)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quantity in {text!r}")


def cmd_add(args, store: ShopStore, settings: Settings):
    """Add a product, or restock an existing barcode"""
    if not args.category.strip():
        print("Error: a category is required.", file=sys.stderr)
        sys.exit(1)
    product = store.upsert_product(Product(
        barcode=args.barcode,
        name=args.name,
        category=args.category,
        purchase_price=args.purchase_price,
        selling_price=args.selling_price,
        quantity=args.quantity,
        image=args.image,
    ))
    print(f"{product.name} saved ({product.barcode}): {product.quantity} in stock")


def cmd_products(args, store: ShopStore, settings: Settings):
    """List the catalog"""
    products = store.search_products(args.search) if args.search else store.list_products()
    if not products:
        print("No products.")
        return
    print(f"=== Products ({len(products)}) ===\n")
    _print_products(products)


def cmd_stock(args, store: ShopStore, settings: Settings):
    """Show products running low"""
    products = store.low_stock_products(args.threshold)
    if not products:
        print(f"Nothing below {args.threshold} units.")
        return
    print(f"=== Low stock (< {args.threshold}, {len(products)} products) ===\n")
    for p in products:
        print(f"  {p.barcode}  {p.name} x{p.quantity}")


def cmd_set_stock(args, store: ShopStore, settings: Settings):
    if store.get_product(args.barcode) is None:
        print(f"No product with barcode {args.barcode}.", file=sys.stderr)
        sys.exit(1)
    store.set_stock(args.barcode, args.quantity)
    print(f"{args.barcode} quantity updated to {args.quantity}")


def cmd_edit(args, store: ShopStore, settings: Settings):
    fields = {
        name: value for name, value in (
            ("name", args.name),
            ("category", args.category),
            ("purchase_price", args.purchase_price),
            ("selling_price", args.selling_price),
            ("image", args.image),
        ) if value is not None
    }
    if not fields:
        print("Nothing to change.")
        return
    if store.get_product(args.barcode) is None:
        print(f"No product with barcode {args.barcode}.", file=sys.stderr)
        sys.exit(1)
    store.patch_product(args.barcode, **fields)
    print(f"{args.barcode} updated: {', '.join(sorted(fields))}")


def cmd_delete(args, store: ShopStore, settings: Settings):
    product = store.get_product(args.barcode)
    if product is None:
        print(f"No product with barcode {args.barcode}.", file=sys.stderr)
        sys.exit(1)
    if not args.yes:
        answer = input(f"Are you sure you want to delete {product.name}? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("Cancelled.")
            return
    store.remove_product(args.barcode)
    print(f"{product.name} has been removed from inventory")


def cmd_bill(args, store: ShopStore, settings: Settings):
    """Bill the given barcodes"""
    cart = Cart(store, tax_rate=args.tax_rate)
    cart.customer_name = args.customer_name or ""
    cart.customer_mobile = args.customer_mobile or ""

    for item in args.items:
        barcode, quantity = _parse_bill_item(item)
        line = cart.scan(barcode)
        if line is None:
            continue
        if quantity != 1:
            cart.set_quantity(barcode, line.quantity - 1 + quantity)

    bill = cart.checkout()
    _print_receipt(bill, settings)

    if args.image_dir:
        path = save_receipt_image(
            bill, output_dir=args.image_dir,
            shop_name=settings.shop_name, footer=settings.receipt_footer,
        )
        print(f"\nReceipt image saved: {path}")


def cmd_bills(args, store: ShopStore, settings: Settings):
    """Customer purchase history"""
    if args.customer:
        bills = list(reversed(store.find_bills_by_customer(args.customer)))
    elif args.search:
        bills = store.search_bills(args.search)
    else:
        bills = store.list_bills(latest_first=True)

    if not bills:
        print("No bills found.")
        return

    print(f"=== Bills ({len(bills)}) ===\n")
    for b in bills:
        when = parse_timestamp(b.date).astimezone().strftime("%Y-%m-%d %H:%M")
        customer = b.customer_name or "Walk-in"
        if b.customer_mobile:
            customer += f" ({b.customer_mobile})"
        units = sum(item.quantity for item in b.items)
        print(f"  {b.id}  {when}  {customer}  {units} items  {format_amount(b.total)}")


def cmd_show_bill(args, store: ShopStore, settings: Settings):
    bill = store.get_bill(args.bill_id)
    if bill is None:
        print(f"No bill {args.bill_id}.", file=sys.stderr)
        sys.exit(1)
    _print_receipt(bill, settings)
    if args.image_dir:
        path = save_receipt_image(
            bill, output_dir=args.image_dir,
            shop_name=settings.shop_name, footer=settings.receipt_footer,
        )
        print(f"\nReceipt image saved: {path}")


def cmd_stats(args, store: ShopStore, settings: Settings):
    """Dashboard figures"""
    today = store.today_stats()
    totals = store.total_stats()

    print(f"=== {settings.shop_name} ({datetime.now().strftime('%Y-%m-%d')}) ===\n")
    print(f"  Total products:  {totals.total_products}")
    print(f"  Total customers: {totals.total_customers}")
    print(f"  Today's bills:   {today.bills_count}")
    print(f"  Today's sales:   {format_amount(today.total_sales)}")

    revenue = "****"
    if args.reveal:
        if not settings.passphrase_hash:
            print("\nSHOPKEEP_PASSPHRASE_HASH is not set; total revenue stays hidden.", file=sys.stderr)
        elif settings.check_passphrase(getpass.getpass("Passphrase: ")):
            revenue = format_amount(totals.total_revenue)
        else:
            print("\nIncorrect passphrase.", file=sys.stderr)
    print(f"  Total revenue:   {revenue}")


def cmd_import(args, store: ShopStore, settings: Settings):
    """Upload a spreadsheet to the bulk import service"""
    if not settings.import_url:
        print("Error: set SHOPKEEP_IMPORT_URL in .env first.", file=sys.stderr)
        sys.exit(1)

    client = BulkImportClient(settings.import_url)
    print(f"Uploading {args.file}...")
    result = client.upload(args.file)
    if result.success:
        print(f"{result.message or 'Import complete'} ({result.count} rows)")
    else:
        print(f"Import failed: {result.message}", file=sys.stderr)
        sys.exit(1)


COMMANDS = {
    "add": cmd_add,
    "products": cmd_products,
    "stock": cmd_stock,
    "set-stock": cmd_set_stock,
    "edit": cmd_edit,
    "delete": cmd_delete,
    "bill": cmd_bill,
    "bills": cmd_bills,
    "show-bill": cmd_show_bill,
    "stats": cmd_stats,
    "import": cmd_import,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="shopkeep", description="Shop catalog, billing and stock")
    parser.add_argument("--env", default=None, help=".env file path (default: search from cwd)")
    subparsers = parser.add_subparsers(dest="command")

    # add
    p_add = subparsers.add_parser("add", help="Add or restock a product")
    p_add.add_argument("barcode")
    p_add.add_argument("name")
    p_add.add_argument("--category", required=True,
                       help="Free text, e.g. " + ", ".join(f"\"{c}\"" for c in CATEGORIES))
    p_add.add_argument("--purchase-price", type=float, default=0.0)
    p_add.add_argument("--selling-price", type=float, default=0.0)
    p_add.add_argument("--quantity", type=int, default=0)
    p_add.add_argument("--image", help="Image path or URL")

    # products
    p_products = subparsers.add_parser("products", help="List products")
    p_products.add_argument("--search", help="Filter by name, barcode or category")

    # stock
    p_stock = subparsers.add_parser("stock", help="Show low-stock products")
    p_stock.add_argument("--threshold", type=int, default=LOW_STOCK_THRESHOLD,
                         help=f"Report quantities below this (default: {LOW_STOCK_THRESHOLD})")

    # set-stock
    p_set = subparsers.add_parser("set-stock", help="Overwrite a product's quantity")
    p_set.add_argument("barcode")
    p_set.add_argument("quantity", type=int)

    # edit
    p_edit = subparsers.add_parser("edit", help="Change product fields")
    p_edit.add_argument("barcode")
    p_edit.add_argument("--name")
    p_edit.add_argument("--category")
    p_edit.add_argument("--purchase-price", type=float)
    p_edit.add_argument("--selling-price", type=float)
    p_edit.add_argument("--image")

    # delete
    p_delete = subparsers.add_parser("delete", help="Remove a product")
    p_delete.add_argument("barcode")
    p_delete.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    # bill
    p_bill = subparsers.add_parser("bill", help="Create a bill")
    p_bill.add_argument("items", nargs="+", metavar="BARCODE[:QTY]")
    p_bill.add_argument("--customer-name")
    p_bill.add_argument("--customer-mobile")
    p_bill.add_argument("--tax-rate", type=float, default=0.0, help="e.g. 0.18 for 18%% (default: 0)")
    p_bill.add_argument("--image-dir", help="Also save the receipt as PNG here")

    # bills
    p_bills = subparsers.add_parser("bills", help="Customer purchase history")
    group = p_bills.add_mutually_exclusive_group()
    group.add_argument("--customer", help="Exact customer name or mobile")
    group.add_argument("--search", help="Partial name, mobile or bill id")

    # show-bill
    p_show = subparsers.add_parser("show-bill", help="Print a past bill")
    p_show.add_argument("bill_id")
    p_show.add_argument("--image-dir", help="Also save the receipt as PNG here")

    # stats
    p_stats = subparsers.add_parser("stats", help="Today's and all-time figures")
    p_stats.add_argument("--reveal", action="store_true", help="Ask for the passphrase and show total revenue")

    # import
    p_import = subparsers.add_parser("import", help="Bulk import products from a spreadsheet")
    p_import.add_argument("file")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return

    settings = Settings.from_env(args.env)
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store = ShopStore(SQLiteKeyValue(settings.db_path))
    try:
        command(args, store, settings)
    except (BillingError, BulkImportError, ShopStoreError) as e:
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    finally:
        store.close()


if __name__ == "__main__":
    main()
