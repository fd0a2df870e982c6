from PIL import Image, ImageDraw, ImageFont

from shopkeep.receipt import render_receipt_image, render_receipt_lines, save_receipt_image
from shopkeep.receipt import render
from shopkeep.receipt.render import RECEIPT_WIDTH
from shopkeep.store import Bill, BillItem


def _bill(**overrides) -> Bill:
    fields = dict(
        id="BILL-1730283300000",
        items=[
            BillItem("111", "Flower Pot Deluxe Special Edition", 20.0, 2),
            BillItem("222", "Chakkar", 15.5, 1),
        ],
        subtotal=55.5,
        tax=0,
        total=55.5,
        date="2024-10-30T10:15:00.000Z",
        customer_name="Ravi",
    )
    fields.update(overrides)
    return Bill(**fields)


def test_lines_contain_bill_details():
    lines = render_receipt_lines(_bill(), shop_name="Chella Crackers", footer="Happy Diwali")

    assert lines[0].strip() == "Chella Crackers"
    assert "Bill ID: BILL-1730283300000" in lines
    assert "Customer: Ravi" in lines
    assert not any(line.startswith("Mobile:") for line in lines)
    assert lines[-1].strip() == "Happy Diwali"
    assert any(line.startswith("Chakkar") and line.endswith("₹15.50") for line in lines)
    assert any(line.startswith("Total:") and line.endswith("₹55.50") for line in lines)


def test_lines_fit_the_roll():
    for line in render_receipt_lines(_bill()):
        assert len(line) <= RECEIPT_WIDTH


def test_tax_line_only_when_taxed():
    assert not any(line.startswith("Tax:") for line in render_receipt_lines(_bill()))

    taxed = render_receipt_lines(_bill(tax=10.0, total=65.5))
    assert any(line.startswith("Tax:") and line.endswith("₹10.00") for line in taxed)


def test_render_image_size():
    img = render_receipt_image(_bill(), width=400)
    assert isinstance(img, Image.Image)
    assert img.width == 400
    assert img.height > 200


def test_save_receipt_image(tmp_path):
    path = save_receipt_image(_bill(), output_dir=str(tmp_path / "receipts"))

    assert path == tmp_path / "receipts" / "receipt_BILL-1730283300000.png"
    with Image.open(path) as img:
        assert img.format == "PNG"


def test_render_without_system_fonts(monkeypatch):
    real_truetype = ImageFont.truetype

    def bundled_only(font, *args, **kwargs):
        if isinstance(font, str):
            raise OSError(f"cannot open resource {font}")
        return real_truetype(font, *args, **kwargs)

    monkeypatch.setattr(ImageFont, "truetype", bundled_only)

    img = render_receipt_image(_bill(), width=400)
    assert img.width == 400


def test_render_with_bitmap_font_uses_plain_currency(monkeypatch):
    drawn = []
    real_text = ImageDraw.ImageDraw.text

    def recording_text(self, xy, text, *args, **kwargs):
        drawn.append(text)
        return real_text(self, xy, text, *args, **kwargs)

    monkeypatch.setattr(render, "_find_font", lambda size, bold=False: ImageFont.load_default_imagefont())
    monkeypatch.setattr(ImageDraw.ImageDraw, "text", recording_text)

    render_receipt_image(_bill())

    assert any(text.endswith("Rs.55.50") for text in drawn)
    assert not any("₹" in text for text in drawn)
