"""
Receipt rendering

Turns a Bill into the lines of an 80mm till receipt, and draws those lines
onto an image with Pillow. Nothing here touches the store.
"""

from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

from shopkeep.store.db import parse_timestamp
from shopkeep.store.models import Bill

# characters per line on an 80mm roll
RECEIPT_WIDTH = 32
CURRENCY = "₹"
# for bitmap fonts, which only cover latin-1
PLAIN_CURRENCY = "Rs."

DEFAULT_SHOP_NAME = "My Shop"
DEFAULT_FOOTER = "Thank you! Visit again."


def format_amount(value: float, currency: str = CURRENCY) -> str:
    return f"{currency}{value:.2f}"


def _pair(left: str, right: str, width: int) -> str:
    """left and right on one line, left truncated to fit"""
    room = max(width - len(right) - 1, 0)
    return f"{left[:room]:<{room}} {right}"


def _receipt_rows(
    bill: Bill,
    shop_name: str,
    footer: str,
    width: int,
    currency: str,
) -> list[tuple[str, bool]]:
    """(text, emphasized) rows"""
    rule = "-" * width
    qty_w, amount_w = 5, 11
    name_w = width - qty_w - amount_w

    rows = [(shop_name.center(width).rstrip(), True), (rule, False)]
    rows.append((f"Bill ID: {bill.id}", False))
    when = parse_timestamp(bill.date).astimezone()
    rows.append((f"Date: {when.strftime('%Y-%m-%d %H:%M')}", False))
    if bill.customer_name:
        rows.append((f"Customer: {bill.customer_name}", False))
    if bill.customer_mobile:
        rows.append((f"Mobile: {bill.customer_mobile}", False))
    rows.append((rule, False))

    rows.append((f"{'Item':<{name_w}}{'Qty':>{qty_w}}{'Amount':>{amount_w}}", False))
    for item in bill.items:
        rows.append((
            f"{item.name[:name_w]:<{name_w}}"
            f"{item.quantity:>{qty_w}}"
            f"{format_amount(item.amount, currency):>{amount_w}}",
            False,
        ))
    rows.append((rule, False))

    rows.append((_pair("Subtotal:", format_amount(bill.subtotal, currency), width), False))
    if bill.tax > 0:
        rows.append((_pair("Tax:", format_amount(bill.tax, currency), width), False))
    rows.append((_pair("Total:", format_amount(bill.total, currency), width), True))
    rows.append((rule, False))
    if footer:
        rows.append((footer.center(width).rstrip(), False))
    return rows


def render_receipt_lines(
    bill: Bill,
    shop_name: str = DEFAULT_SHOP_NAME,
    footer: str = DEFAULT_FOOTER,
    width: int = RECEIPT_WIDTH,
    currency: str = CURRENCY,
) -> list[str]:
    """Plain-text receipt, one string per printed line."""
    return [text for text, _ in _receipt_rows(bill, shop_name, footer, width, currency)]


def render_receipt_image(
    bill: Bill,
    shop_name: str = DEFAULT_SHOP_NAME,
    footer: str = DEFAULT_FOOTER,
    font_size: int = 20,
    width: int = 640,
    padding: int = 20,
    bg_color: str = "white",
    text_color: str = "black",
) -> Image.Image:
    """Draw the receipt lines onto an image.

    Args:
        bill: Bill to print
        font_size: body font size; the shop name and total are drawn larger
        width: image width (px)
        padding: margin (px)

    Returns:
        PIL.Image
    """
    font = _find_font(font_size)
    bold_font = _find_font(int(font_size * 1.4), bold=True)

    line_height = font_size + 6
    bold_line_height = int(font_size * 1.4) + 8

    currency = CURRENCY
    if not isinstance(font, ImageFont.FreeTypeFont) or not isinstance(bold_font, ImageFont.FreeTypeFont):
        currency = PLAIN_CURRENCY
    rows = _receipt_rows(bill, shop_name, footer, RECEIPT_WIDTH, currency)

    total_height = padding * 2
    for _, emphasized in rows:
        total_height += bold_line_height if emphasized else line_height

    img = Image.new("RGB", (width, total_height), bg_color)
    draw = ImageDraw.Draw(img)
    y = padding

    for text, emphasized in rows:
        if emphasized:
            draw.text((padding, y), text.strip(), fill=text_color, font=bold_font)
            y += bold_line_height
        else:
            draw.text((padding, y), text, fill=text_color, font=font)
            y += line_height

    return img


def save_receipt_image(
    bill: Bill,
    output_dir: str = ".",
    prefix: str = "receipt",
    **render_kwargs,
) -> Path:
    """Save the receipt as ``<prefix>_<bill id>.png``.

    Returns:
        Path of the written file
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    img = render_receipt_image(bill, **render_kwargs)
    filepath = out / f"{prefix}_{bill.id}.png"
    img.save(str(filepath))
    return filepath


def _find_font(size: int, bold: bool = False):
    """Find a monospace font that has the rupee sign, else Pillow's default."""
    if bold:
        font_paths = [
            "/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Bold.ttf",
            "/usr/share/fonts/dejavu/DejaVuSansMono-Bold.ttf",
            "/usr/share/fonts/truetype/liberation/LiberationMono-Bold.ttf",
            # macOS
            "/System/Library/Fonts/Menlo.ttc",
        ]
    else:
        font_paths = [
            "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
            "/usr/share/fonts/dejavu/DejaVuSansMono.ttf",
            "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
            # macOS
            "/System/Library/Fonts/Menlo.ttc",
            "/Library/Fonts/Courier New.ttf",
        ]
    for path in font_paths:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)
