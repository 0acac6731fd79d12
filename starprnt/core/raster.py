"""Bitmap sources and conversion to 1-bit printer raster data.

Decoding and text rasterization are pluggable: the compiler accepts any
``Decoder``/``Rasterizer`` callable and only relies on them returning a Pillow
image. The defaults here use Pillow directly and ``requests`` for http(s)
sources.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass

import requests
from PIL import Image, ImageDraw, ImageFont, ImageOps

from starprnt.core.commands import BitmapOptions
from starprnt.core.options import BitmapRotation

LOGGER = logging.getLogger(__name__)

Decoder = Callable[[object], Image.Image]
Rasterizer = Callable[[str, float, int], Image.Image]

_MONOSPACE_FONTS = ("DejaVuSansMono.ttf", "LiberationMono-Regular.ttf", "Courier New.ttf")
_URL_PREFIXES = ("http://", "https://")
_FETCH_TIMEOUT_S = 10.0

_TRANSPOSE = {
    BitmapRotation.Left90: Image.Transpose.ROTATE_90,
    BitmapRotation.Right90: Image.Transpose.ROTATE_270,
    BitmapRotation.Rotate180: Image.Transpose.ROTATE_180,
}


@dataclass(frozen=True)
class RasterImage:
    """Packed 1-bit image, MSB first, 1 = print a dot."""

    width: int
    height: int
    data: bytes

    @property
    def bytes_per_row(self) -> int:
        return (self.width + 7) // 8

    def rows(self) -> Iterator[bytes]:
        step = self.bytes_per_row
        for offset in range(0, len(self.data), step):
            yield self.data[offset : offset + step]


def decode_image(source: object) -> Image.Image:
    """Decode a file path, http(s) URL, or in-memory buffer into an image."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        image = Image.open(io.BytesIO(bytes(source)))
    elif isinstance(source, str) and source.lower().startswith(_URL_PREFIXES):
        response = requests.get(source, timeout=_FETCH_TIMEOUT_S)
        response.raise_for_status()
        image = Image.open(io.BytesIO(response.content))
    else:
        image = Image.open(str(source))
    image.load()
    return image


def _load_font(font_size: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for name in _MONOSPACE_FONTS:
        try:
            return ImageFont.truetype(name, int(font_size))
        except OSError:
            continue
    LOGGER.debug("No monospace TrueType font found; using Pillow default font")
    return ImageFont.load_default(size=font_size)


def _wrap(text: str, draw: ImageDraw.ImageDraw, font: ImageFont.ImageFont, width: int) -> list[str]:
    lines: list[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split(" "):
            candidate = word if not current else f"{current} {word}"
            if current and draw.textlength(candidate, font=font) > width:
                lines.append(current)
                current = word
            else:
                current = candidate
        lines.append(current)
    return lines


def rasterize_text(text: str, font_size: float, width: int) -> Image.Image:
    """Render text left-aligned in black on white, wrapped to ``width`` dots."""
    font = _load_font(font_size)
    measure = ImageDraw.Draw(Image.new("L", (1, 1), 255))
    lines = _wrap(text, measure, font, width)
    line_height = int(font.getbbox("Ag")[3]) + 2
    image = Image.new("L", (max(1, width), max(1, line_height * len(lines))), 255)
    draw = ImageDraw.Draw(image)
    for index, line in enumerate(lines):
        draw.text((0, index * line_height), line, fill=0, font=font)
    return image


def _flatten(image: Image.Image) -> Image.Image:
    if image.mode in ("RGBA", "LA", "PA") or (image.mode == "P" and "transparency" in image.info):
        rgba = image.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
        image = Image.alpha_composite(background, rgba)
    return image.convert("L")


def to_raster(image: Image.Image, options: BitmapOptions) -> RasterImage:
    gray = _flatten(image)
    transpose = _TRANSPOSE.get(options.rotation)
    if transpose is not None:
        gray = gray.transpose(transpose)

    width = max(1, options.width)
    if options.both_scale:
        height = max(1, round(gray.height * width / gray.width))
    else:
        height = gray.height
    if (width, height) != gray.size:
        gray = gray.resize((width, height), Image.Resampling.LANCZOS)

    dither = Image.Dither.FLOYDSTEINBERG if options.diffusion else Image.Dither.NONE
    mono = ImageOps.invert(gray).convert("1", dither=dither)
    return RasterImage(width=width, height=height, data=mono.tobytes())
