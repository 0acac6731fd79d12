from __future__ import annotations

import io

import pytest
from PIL import Image

from starprnt.core import raster
from starprnt.core.commands import BitmapOptions
from starprnt.core.options import BitmapRotation
from starprnt.core.raster import decode_image, rasterize_text, to_raster


def _png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def test_black_pixels_become_set_bits() -> None:
    image = Image.new("L", (16, 1), 255)
    image.paste(0, (0, 0, 8, 1))
    result = to_raster(image, BitmapOptions(diffusion=False, width=16, both_scale=False))
    assert (result.width, result.height) == (16, 1)
    assert result.data == b"\xff\x00"


def test_transparent_pixels_are_flattened_to_white() -> None:
    image = Image.new("RGBA", (8, 1), (0, 0, 0, 0))
    result = to_raster(image, BitmapOptions(diffusion=False, width=8))
    assert result.data == b"\x00"


def test_both_scale_keeps_aspect_ratio() -> None:
    image = Image.new("L", (100, 50), 255)
    assert to_raster(image, BitmapOptions(width=200)).height == 100
    assert to_raster(image, BitmapOptions(width=200, both_scale=False)).height == 50


def test_rotation_swaps_dimensions() -> None:
    image = Image.new("L", (40, 10), 255)
    result = to_raster(image, BitmapOptions(width=10, rotation=BitmapRotation.Right90, both_scale=False))
    assert (result.width, result.height) == (10, 40)


def test_rows_are_padded_to_whole_bytes() -> None:
    result = to_raster(Image.new("L", (10, 3), 0), BitmapOptions(diffusion=False, width=10, both_scale=False))
    assert result.bytes_per_row == 2
    assert list(result.rows()) == [b"\xff\xc0"] * 3


def test_decode_image_from_bytes() -> None:
    decoded = decode_image(_png(Image.new("RGB", (3, 2), "white")))
    assert decoded.size == (3, 2)


def test_decode_image_from_url(monkeypatch: pytest.MonkeyPatch) -> None:
    payload = _png(Image.new("L", (5, 4), 0))
    calls = []

    class FakeResponse:
        content = payload

        def raise_for_status(self) -> None:
            return None

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse()

    monkeypatch.setattr(raster.requests, "get", fake_get)
    decoded = decode_image("https://example.invalid/logo.png")
    assert decoded.size == (5, 4)
    assert calls[0][0] == "https://example.invalid/logo.png"


def test_decode_image_from_path(tmp_path) -> None:
    path = tmp_path / "logo.png"
    path.write_bytes(_png(Image.new("L", (7, 7), 0)))
    assert decode_image(str(path)).size == (7, 7)


def test_rasterize_text_fills_requested_width() -> None:
    image = rasterize_text("hello world " * 20, 25, 200)
    assert image.width == 200
    assert image.height > 25
    assert image.getextrema()[0] < 128
