"""
Tests for QR code rendering.
"""

import pytest

from dogewallet.engine import qr
from dogewallet.errors import EncodingError

ADDRESS = "DH5yaieqoZN36fDVciNyRueRGvGLR3mr7L"


class TestQr:
    def test_to_string(self):
        text = qr.to_string(ADDRESS)
        assert "\n" in text
        assert len(text.splitlines()) > 10

    def test_to_bits(self):
        size, bits = qr.to_bits(ADDRESS)
        assert size >= 21
        assert (size - 21) % 4 == 0
        assert len(bits) == size * size
        assert set(bits) <= {0, 1}
        # Finder pattern: top-left module is dark
        assert bits[0] == 1

    def test_to_bits_is_deterministic(self):
        assert qr.to_bits(ADDRESS) == qr.to_bits(ADDRESS)

    def test_png(self):
        data = qr.to_png(ADDRESS)
        assert data.startswith(b"\x89PNG\r\n\x1a\n")

    def test_jpeg(self):
        data = qr.to_jpeg(ADDRESS)
        assert data.startswith(b"\xff\xd8")

    def test_size_multiplier(self):
        assert len(qr.to_png(ADDRESS, 8)) > len(qr.to_png(ADDRESS, 1))

    def test_write_image(self, tmp_path):
        png = qr.write_image(ADDRESS, tmp_path / "address.png")
        jpeg = qr.write_image(ADDRESS, tmp_path / "address.jpg")
        assert png.read_bytes().startswith(b"\x89PNG")
        assert jpeg.read_bytes().startswith(b"\xff\xd8")

    def test_empty_text(self):
        with pytest.raises(EncodingError):
            qr.to_string("")
        with pytest.raises(EncodingError):
            qr.to_png("")

    def test_bad_multiplier(self):
        with pytest.raises(EncodingError):
            qr.to_png(ADDRESS, 0)

    def test_unknown_format(self):
        with pytest.raises(EncodingError):
            qr.to_image(ADDRESS, "gif")  # type: ignore[arg-type]
