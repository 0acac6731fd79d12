"""Typed print commands parsed from loosely-typed descriptor mappings.

A descriptor is a mapping with one operation key (``append``,
``appendBarcode``, ...) plus optional modifier keys. ``parse_command`` turns
it into one of the frozen dataclasses below, or ``None`` when the mapping
carries no known operation key. Values that cannot be coerced raise
``ValueError`` or ``TypeError``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Union

from starprnt.core.encoding import TextEncoding, resolve_encoding
from starprnt.core.options import (
    AlignmentPosition,
    BarcodeSymbology,
    BarcodeWidth,
    BitmapRotation,
    BlackMarkType,
    CodePageType,
    CutPaperAction,
    FallbackHook,
    FontStyleType,
    InternationalType,
    LogoSize,
    PeripheralChannel,
    resolve_alignment,
    resolve_barcode_symbology,
    resolve_barcode_width,
    resolve_bitmap_rotation,
    resolve_black_mark,
    resolve_code_page,
    resolve_cut_paper_action,
    resolve_font_style,
    resolve_international,
    resolve_logo_size,
    resolve_peripheral_channel,
)

Payload = Union[str, bytes]

DEFAULT_BARCODE_HEIGHT = 40
DEFAULT_BITMAP_WIDTH = 576
DEFAULT_FONT_SIZE = 25.0


@dataclass(frozen=True)
class Placement:
    """Where a barcode or bitmap goes; at most one of the fields is set."""

    absolute_position: int | None = None
    alignment: AlignmentPosition | None = None


@dataclass(frozen=True)
class BitmapOptions:
    diffusion: bool = True
    width: int = DEFAULT_BITMAP_WIDTH
    both_scale: bool = True
    rotation: BitmapRotation = BitmapRotation.Normal


@dataclass(frozen=True)
class CharacterSpace:
    space: int


@dataclass(frozen=True)
class SetEncoding:
    encoding: TextEncoding


@dataclass(frozen=True)
class SetCodePage:
    code_page: CodePageType


@dataclass(frozen=True)
class AppendText:
    data: Payload


@dataclass(frozen=True)
class AppendRaw:
    data: Payload


@dataclass(frozen=True)
class AppendMultiple:
    data: Payload
    width: int = 2
    height: int = 2


@dataclass(frozen=True)
class Emphasis:
    data: Payload


@dataclass(frozen=True)
class EnableEmphasis:
    enabled: bool


@dataclass(frozen=True)
class Invert:
    data: Payload


@dataclass(frozen=True)
class EnableInvert:
    enabled: bool


@dataclass(frozen=True)
class Underline:
    data: Payload


@dataclass(frozen=True)
class EnableUnderline:
    enabled: bool


@dataclass(frozen=True)
class International:
    international: InternationalType


@dataclass(frozen=True)
class LineFeed:
    lines: int


@dataclass(frozen=True)
class UnitFeed:
    units: int


@dataclass(frozen=True)
class LineSpace:
    dots: int


@dataclass(frozen=True)
class FontStyle:
    style: FontStyleType


@dataclass(frozen=True)
class CutPaper:
    action: CutPaperAction


@dataclass(frozen=True)
class Peripheral:
    channel: PeripheralChannel


@dataclass(frozen=True)
class BlackMark:
    mark: BlackMarkType


@dataclass(frozen=True)
class AbsolutePosition:
    position: int
    data: Payload | None = None


@dataclass(frozen=True)
class Alignment:
    alignment: AlignmentPosition
    data: Payload | None = None


@dataclass(frozen=True)
class HorizontalTabPosition:
    positions: tuple[int, ...]


@dataclass(frozen=True)
class Logo:
    number: int
    size: LogoSize = LogoSize.Normal


@dataclass(frozen=True)
class Barcode:
    data: Payload
    symbology: BarcodeSymbology = BarcodeSymbology.Code128
    width: BarcodeWidth = BarcodeWidth.Mode2
    height: int = DEFAULT_BARCODE_HEIGHT
    hri: bool = True
    placement: Placement = field(default_factory=Placement)


@dataclass(frozen=True)
class BitmapFromSource:
    source: str
    options: BitmapOptions = field(default_factory=BitmapOptions)
    placement: Placement = field(default_factory=Placement)


@dataclass(frozen=True)
class BitmapFromText:
    text: str
    font_size: float = DEFAULT_FONT_SIZE
    options: BitmapOptions = field(default_factory=BitmapOptions)
    placement: Placement = field(default_factory=Placement)


@dataclass(frozen=True)
class BitmapFromBytes:
    data: bytes
    options: BitmapOptions = field(default_factory=BitmapOptions)
    placement: Placement = field(default_factory=Placement)


Command = Union[
    CharacterSpace,
    SetEncoding,
    SetCodePage,
    AppendText,
    AppendRaw,
    AppendMultiple,
    Emphasis,
    EnableEmphasis,
    Invert,
    EnableInvert,
    Underline,
    EnableUnderline,
    International,
    LineFeed,
    UnitFeed,
    LineSpace,
    FontStyle,
    CutPaper,
    Peripheral,
    BlackMark,
    AbsolutePosition,
    Alignment,
    HorizontalTabPosition,
    Logo,
    Barcode,
    BitmapFromSource,
    BitmapFromText,
    BitmapFromBytes,
]


def _as_int(value: Any) -> int:
    return int(str(value))


def _as_float(value: Any) -> float:
    return float(str(value))


def _as_bool(value: Any) -> bool:
    return str(value).lower() == "true"


def _as_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, Sequence) and not isinstance(value, str):
        return bytes(int(v) for v in value)
    raise TypeError(f"expected a byte buffer, got {type(value).__name__}")


def _as_payload(value: Any) -> Payload:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, Sequence) and value and all(isinstance(v, int) for v in value):
        return bytes(value)
    return str(value)


def _as_int_tuple(value: Any) -> tuple[int, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise TypeError(f"expected a sequence of integers, got {type(value).__name__}")
    return tuple(int(v) for v in value)


def _placement(d: Mapping[str, Any], hook: FallbackHook | None) -> Placement:
    if "absolutePosition" in d:
        return Placement(absolute_position=_as_int(d["absolutePosition"]))
    if "alignment" in d:
        return Placement(alignment=resolve_alignment(d["alignment"], on_fallback=hook))
    return Placement()


def _bitmap_options(d: Mapping[str, Any], hook: FallbackHook | None) -> BitmapOptions:
    return BitmapOptions(
        diffusion=_as_bool(d["diffusion"]) if "diffusion" in d else True,
        width=_as_int(d["width"]) if "width" in d else DEFAULT_BITMAP_WIDTH,
        both_scale=_as_bool(d["bothScale"]) if "bothScale" in d else True,
        rotation=resolve_bitmap_rotation(d.get("rotation", "Normal"), on_fallback=hook),
    )


def _barcode(d: Mapping[str, Any], hook: FallbackHook | None) -> Barcode:
    return Barcode(
        data=_as_payload(d["appendBarcode"]),
        symbology=resolve_barcode_symbology(d.get("BarcodeSymbology", "Code128"), on_fallback=hook),
        width=resolve_barcode_width(d.get("BarcodeWidth", "Mode2"), on_fallback=hook),
        height=_as_int(d["height"]) if "height" in d else DEFAULT_BARCODE_HEIGHT,
        hri=_as_bool(d["hri"]) if "hri" in d else True,
        placement=_placement(d, hook),
    )


def _optional_data(d: Mapping[str, Any]) -> Payload | None:
    return _as_payload(d["data"]) if "data" in d else None


_Parser = Callable[[Mapping[str, Any], Union[FallbackHook, None]], Command]

# Match order matters: the first key present wins.
_PARSERS: tuple[tuple[str, _Parser], ...] = (
    ("appendCharacterSpace", lambda d, h: CharacterSpace(_as_int(d["appendCharacterSpace"]))),
    ("appendEncoding", lambda d, h: SetEncoding(resolve_encoding(str(d["appendEncoding"]), on_fallback=h))),
    ("appendCodePage", lambda d, h: SetCodePage(resolve_code_page(d["appendCodePage"], on_fallback=h))),
    ("append", lambda d, h: AppendText(_as_payload(d["append"]))),
    ("appendRaw", lambda d, h: AppendText(_as_payload(d["appendRaw"]))),
    ("appendMultiple", lambda d, h: AppendMultiple(_as_payload(d["appendMultiple"]))),
    ("appendEmphasis", lambda d, h: Emphasis(_as_payload(d["appendEmphasis"]))),
    ("enableEmphasis", lambda d, h: EnableEmphasis(_as_bool(d["enableEmphasis"]))),
    ("appendInvert", lambda d, h: Invert(_as_payload(d["appendInvert"]))),
    ("enableInvert", lambda d, h: EnableInvert(_as_bool(d["enableInvert"]))),
    ("appendUnderline", lambda d, h: Underline(_as_payload(d["appendUnderline"]))),
    ("enableUnderline", lambda d, h: EnableUnderline(_as_bool(d["enableUnderline"]))),
    (
        "appendInternational",
        lambda d, h: International(resolve_international(d["appendInternational"], on_fallback=h)),
    ),
    ("appendLineFeed", lambda d, h: LineFeed(_as_int(d["appendLineFeed"]))),
    ("appendUnitFeed", lambda d, h: UnitFeed(_as_int(d["appendUnitFeed"]))),
    ("appendLineSpace", lambda d, h: LineSpace(_as_int(d["appendLineSpace"]))),
    ("appendFontStyle", lambda d, h: FontStyle(resolve_font_style(d["appendFontStyle"], on_fallback=h))),
    ("appendCutPaper", lambda d, h: CutPaper(resolve_cut_paper_action(d["appendCutPaper"], on_fallback=h))),
    ("openCashDrawer", lambda d, h: Peripheral(resolve_peripheral_channel(d["openCashDrawer"], on_fallback=h))),
    ("appendBlackMark", lambda d, h: BlackMark(resolve_black_mark(d["appendBlackMark"], on_fallback=h))),
    ("appendBytes", lambda d, h: AppendText(_as_payload(d["appendBytes"]))),
    ("appendRawBytes", lambda d, h: AppendRaw(_as_payload(d["appendRawBytes"]))),
    (
        "appendAbsolutePosition",
        lambda d, h: AbsolutePosition(_as_int(d["appendAbsolutePosition"]), _optional_data(d)),
    ),
    (
        "appendAlignment",
        lambda d, h: Alignment(resolve_alignment(d["appendAlignment"], on_fallback=h), _optional_data(d)),
    ),
    (
        "appendHorizontalTabPosition",
        lambda d, h: HorizontalTabPosition(_as_int_tuple(d["appendHorizontalTabPosition"])),
    ),
    (
        "appendLogo",
        lambda d, h: Logo(_as_int(d["appendLogo"]), resolve_logo_size(d.get("logoSize", "Normal"), on_fallback=h)),
    ),
    ("appendBarcode", _barcode),
    (
        "appendBitmap",
        lambda d, h: BitmapFromSource(str(d["appendBitmap"]), _bitmap_options(d, h), _placement(d, h)),
    ),
    (
        "appendBitmapText",
        lambda d, h: BitmapFromText(
            str(d["appendBitmapText"]),
            _as_float(d["fontSize"]) if "fontSize" in d else DEFAULT_FONT_SIZE,
            _bitmap_options(d, h),
            _placement(d, h),
        ),
    ),
    (
        "appendBitmapByteArray",
        lambda d, h: BitmapFromBytes(_as_bytes(d["appendBitmapByteArray"]), _bitmap_options(d, h), _placement(d, h)),
    ),
)


def parse_command(descriptor: Mapping[str, Any], *, on_fallback: FallbackHook | None = None) -> Command | None:
    for key, parser in _PARSERS:
        if key in descriptor:
            return parser(descriptor, on_fallback)
    return None
