"""Lookup tables mapping symbolic option values to emulation enums.

Every resolver accepts any input and returns a documented default when the
value is not recognized. A fallback is reported through ``on_fallback`` or,
when no callback is given, logged at WARNING so that a typo can be told apart
from an explicit choice of the default.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

LOGGER = logging.getLogger(__name__)

FallbackHook = Callable[[str, Any, Enum], None]
E = TypeVar("E", bound=Enum)


class EmulationKind(Enum):
    StarPRNT = "StarPRNT"
    StarPRNTL = "StarPRNTL"
    StarLine = "StarLine"
    StarGraphic = "StarGraphic"
    EscPos = "EscPos"
    EscPosMobile = "EscPosMobile"
    StarDotImpact = "StarDotImpact"

    @property
    def is_escpos(self) -> bool:
        return self in (EmulationKind.EscPos, EmulationKind.EscPosMobile)


class CodePageType(Enum):
    CP437 = "CP437"
    CP737 = "CP737"
    CP772 = "CP772"
    CP774 = "CP774"
    CP851 = "CP851"
    CP852 = "CP852"
    CP855 = "CP855"
    CP857 = "CP857"
    CP858 = "CP858"
    CP860 = "CP860"
    CP861 = "CP861"
    CP862 = "CP862"
    CP863 = "CP863"
    CP864 = "CP864"
    CP865 = "CP865"
    CP866 = "CP866"
    CP869 = "CP869"
    CP874 = "CP874"
    CP928 = "CP928"
    CP932 = "CP932"
    CP998 = "CP998"
    CP999 = "CP999"
    CP1001 = "CP1001"
    CP1250 = "CP1250"
    CP1251 = "CP1251"
    CP1252 = "CP1252"
    CP2001 = "CP2001"
    CP3001 = "CP3001"
    CP3002 = "CP3002"
    CP3011 = "CP3011"
    CP3012 = "CP3012"
    CP3021 = "CP3021"
    CP3041 = "CP3041"
    CP3840 = "CP3840"
    CP3841 = "CP3841"
    CP3843 = "CP3843"
    CP3845 = "CP3845"
    CP3846 = "CP3846"
    CP3847 = "CP3847"
    CP3848 = "CP3848"
    UTF8 = "UTF8"
    Blank = "Blank"


class InternationalType(Enum):
    USA = "USA"
    France = "France"
    Germany = "Germany"
    UK = "UK"
    Denmark = "Denmark"
    Sweden = "Sweden"
    Italy = "Italy"
    Spain = "Spain"
    Japan = "Japan"
    Norway = "Norway"
    Denmark2 = "Denmark2"
    Spain2 = "Spain2"
    LatinAmerica = "LatinAmerica"
    Korea = "Korea"
    Ireland = "Ireland"
    Legal = "Legal"


class FontStyleType(Enum):
    A = "A"
    B = "B"


class CutPaperAction(Enum):
    FullCut = "FullCut"
    PartialCut = "PartialCut"
    FullCutWithFeed = "FullCutWithFeed"
    PartialCutWithFeed = "PartialCutWithFeed"


class PeripheralChannel(Enum):
    No1 = "1"
    No2 = "2"


class BlackMarkType(Enum):
    Invalid = "Invalid"
    Valid = "Valid"
    ValidWithDetection = "ValidWithDetection"


class AlignmentPosition(Enum):
    Left = "Left"
    Center = "Center"
    Right = "Right"


class LogoSize(Enum):
    Normal = "Normal"
    DoubleWidth = "DoubleWidth"
    DoubleHeight = "DoubleHeight"
    DoubleWidthDoubleHeight = "DoubleWidthDoubleHeight"


class BarcodeSymbology(Enum):
    UPCE = "UPCE"
    UPCA = "UPCA"
    JAN8 = "JAN8"
    JAN13 = "JAN13"
    Code39 = "Code39"
    ITF = "ITF"
    Code128 = "Code128"
    Code93 = "Code93"
    NW7 = "NW7"


class BarcodeWidth(Enum):
    Mode1 = "Mode1"
    Mode2 = "Mode2"
    Mode3 = "Mode3"
    Mode4 = "Mode4"
    Mode5 = "Mode5"
    Mode6 = "Mode6"
    Mode7 = "Mode7"
    Mode8 = "Mode8"
    Mode9 = "Mode9"


class BitmapRotation(Enum):
    Normal = "Normal"
    Left90 = "Left90"
    Right90 = "Right90"
    Rotate180 = "Rotate180"


def _lookup(
    enum_cls: type[E],
    value: Any,
    default: E,
    category: str,
    on_fallback: FallbackHook | None,
) -> E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value))
    except ValueError:
        pass
    if on_fallback is None:
        LOGGER.warning("Unrecognized %s %r; using %s", category, value, default.name)
    else:
        on_fallback(category, value, default)
    return default


def resolve_emulation(value: Any, *, on_fallback: FallbackHook | None = None) -> EmulationKind:
    return _lookup(EmulationKind, value, EmulationKind.StarLine, "emulation", on_fallback)


def resolve_code_page(value: Any, *, on_fallback: FallbackHook | None = None) -> CodePageType:
    return _lookup(CodePageType, value, CodePageType.CP998, "code page", on_fallback)


def resolve_international(value: Any, *, on_fallback: FallbackHook | None = None) -> InternationalType:
    return _lookup(InternationalType, value, InternationalType.USA, "international set", on_fallback)


def resolve_font_style(value: Any, *, on_fallback: FallbackHook | None = None) -> FontStyleType:
    return _lookup(FontStyleType, value, FontStyleType.A, "font style", on_fallback)


def resolve_cut_paper_action(value: Any, *, on_fallback: FallbackHook | None = None) -> CutPaperAction:
    return _lookup(CutPaperAction, value, CutPaperAction.PartialCutWithFeed, "cut action", on_fallback)


def resolve_peripheral_channel(value: Any, *, on_fallback: FallbackHook | None = None) -> PeripheralChannel:
    return _lookup(PeripheralChannel, value, PeripheralChannel.No1, "peripheral channel", on_fallback)


def resolve_black_mark(value: Any, *, on_fallback: FallbackHook | None = None) -> BlackMarkType:
    return _lookup(BlackMarkType, value, BlackMarkType.Valid, "black mark type", on_fallback)


def resolve_alignment(value: Any, *, on_fallback: FallbackHook | None = None) -> AlignmentPosition:
    return _lookup(AlignmentPosition, value, AlignmentPosition.Left, "alignment", on_fallback)


def resolve_logo_size(value: Any, *, on_fallback: FallbackHook | None = None) -> LogoSize:
    return _lookup(LogoSize, value, LogoSize.Normal, "logo size", on_fallback)


def resolve_barcode_symbology(value: Any, *, on_fallback: FallbackHook | None = None) -> BarcodeSymbology:
    return _lookup(BarcodeSymbology, value, BarcodeSymbology.Code128, "barcode symbology", on_fallback)


def resolve_barcode_width(value: Any, *, on_fallback: FallbackHook | None = None) -> BarcodeWidth:
    return _lookup(BarcodeWidth, value, BarcodeWidth.Mode2, "barcode width", on_fallback)


def resolve_bitmap_rotation(value: Any, *, on_fallback: FallbackHook | None = None) -> BitmapRotation:
    return _lookup(BitmapRotation, value, BitmapRotation.Normal, "bitmap rotation", on_fallback)


def port_settings(emulation: str | EmulationKind) -> str:
    """Connection-profile string the port is opened with for an emulation."""
    name = emulation.value if isinstance(emulation, EmulationKind) else emulation
    if name == "EscPosMobile":
        return "mini"
    if name == "EscPos":
        return "escpos"
    if name in ("StarPRNT", "StarPRNTL"):
        return "Portable;l"
    return name
