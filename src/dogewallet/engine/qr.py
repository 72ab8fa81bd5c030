"""
QR code encoding for addresses and payment strings.

Pure functions: text in, image bytes (PNG/JPEG), ASCII art or a module
matrix out. Rendering is done by the qrcode package with its Pillow backend.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Literal

import qrcode
from qrcode.constants import ERROR_CORRECT_M

from dogewallet.errors import EncodingError

ImageFormat = Literal["png", "jpeg"]

DEFAULT_BORDER = 4


def _build(text: str, size_multiplier: int = 1) -> qrcode.QRCode:
    if not text:
        raise EncodingError("Cannot encode empty text as QR code")
    if size_multiplier < 1:
        raise EncodingError(f"Invalid size multiplier: {size_multiplier}")

    qr = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=size_multiplier,
        border=DEFAULT_BORDER,
    )
    qr.add_data(text)
    try:
        qr.make(fit=True)
    except ValueError as e:
        raise EncodingError(f"Text too long for a QR code: {e}") from e
    return qr


def to_string(text: str) -> str:
    """Render as ASCII art with line breaks, suitable for a terminal."""
    qr = _build(text)
    buffer = io.StringIO()
    qr.print_ascii(out=buffer, invert=True)
    return buffer.getvalue()


def to_bits(text: str) -> tuple[int, list[int]]:
    """
    Module matrix without the quiet zone.

    Returns (size, bits) where bits holds size*size values in row-major
    order, 1 for a dark module.
    """
    qr = _build(text)
    matrix = qr.get_matrix()
    border = DEFAULT_BORDER
    rows = [row[border:-border] for row in matrix[border:-border]]
    size = len(rows)
    return size, [1 if cell else 0 for row in rows for cell in row]


def to_image(text: str, image_format: ImageFormat = "png", size_multiplier: int = 4) -> bytes:
    qr = _build(text, size_multiplier)
    img = qr.make_image(fill_color="black", back_color="white").get_image()
    buffer = io.BytesIO()
    if image_format == "png":
        img.save(buffer, format="PNG")
    elif image_format == "jpeg":
        img.convert("RGB").save(buffer, format="JPEG")
    else:
        raise EncodingError(f"Unsupported image format: {image_format}")
    return buffer.getvalue()


def to_png(text: str, size_multiplier: int = 4) -> bytes:
    return to_image(text, "png", size_multiplier)


def to_jpeg(text: str, size_multiplier: int = 4) -> bytes:
    return to_image(text, "jpeg", size_multiplier)


def write_image(
    text: str,
    path: Path,
    image_format: ImageFormat | None = None,
    size_multiplier: int = 4,
) -> Path:
    """Write a QR image file; the format defaults to the file suffix."""
    if image_format is None:
        suffix = path.suffix.lower()
        image_format = "jpeg" if suffix in (".jpg", ".jpeg") else "png"
    path.write_bytes(to_image(text, image_format, size_multiplier))
    return path
