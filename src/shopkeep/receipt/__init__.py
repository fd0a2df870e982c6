"""Receipt printing"""

from .render import (
    render_receipt_image,
    render_receipt_lines,
    save_receipt_image,
)

__all__ = [
    "render_receipt_image",
    "render_receipt_lines",
    "save_receipt_image",
]
