"""Byte grammars for the two printer command families.

Star emulations (StarLine, StarPRNT, StarPRNTL, StarGraphic, StarDotImpact)
share the Star Line Mode command set; EscPos and EscPosMobile share ESC/POS.
Builders accumulate bytes in call order; ``commands`` returns the document.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from starprnt.core.commands import Placement
from starprnt.core.errors import UnsupportedCommandError
from starprnt.core.options import (
    AlignmentPosition,
    BarcodeSymbology,
    BarcodeWidth,
    BlackMarkType,
    CodePageType,
    CutPaperAction,
    EmulationKind,
    FontStyleType,
    InternationalType,
    LogoSize,
    PeripheralChannel,
)
from starprnt.core.raster import RasterImage

ESC = 0x1B
GS = 0x1D
FS = 0x1C
RS = 0x1E
LF = 0x0A
NUL = 0x00

_ALIGNMENT = {
    AlignmentPosition.Left: 0,
    AlignmentPosition.Center: 1,
    AlignmentPosition.Right: 2,
}

_LOGO_SIZE = {
    LogoSize.Normal: 0,
    LogoSize.DoubleWidth: 1,
    LogoSize.DoubleHeight: 2,
    LogoSize.DoubleWidthDoubleHeight: 3,
}

_INTERNATIONAL = {
    InternationalType.USA: 0,
    InternationalType.France: 1,
    InternationalType.Germany: 2,
    InternationalType.UK: 3,
    InternationalType.Denmark: 4,
    InternationalType.Sweden: 5,
    InternationalType.Italy: 6,
    InternationalType.Spain: 7,
    InternationalType.Japan: 8,
    InternationalType.Norway: 9,
    InternationalType.Denmark2: 10,
    InternationalType.Spain2: 11,
    InternationalType.LatinAmerica: 12,
    InternationalType.Korea: 13,
    InternationalType.Ireland: 14,
    InternationalType.Legal: 64,
}

_BARCODE_MODULE_DOTS = {width: 2 + index % 3 for index, width in enumerate(BarcodeWidth)}


def _u16(value: int) -> bytes:
    return bytes((value & 0xFF, (value >> 8) & 0xFF))


def _u8(value: int) -> int:
    return max(0, min(255, value))


class CommandBuilder(ABC):
    """Shared document buffer and placement handling."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def commands(self) -> bytes:
        return bytes(self._buffer)

    def _emit(self, *chunks: int | bytes) -> None:
        for chunk in chunks:
            if isinstance(chunk, int):
                self._buffer.append(chunk)
            else:
                self._buffer.extend(chunk)

    def _placed(self, placement: Placement, emit: Callable[[], None]) -> None:
        if placement.absolute_position is not None:
            self.append_absolute_position(placement.absolute_position)
            emit()
        elif placement.alignment is not None:
            self.append_alignment(placement.alignment)
            emit()
            self.append_alignment(AlignmentPosition.Left)
        else:
            emit()

    def begin_document(self) -> None:
        self._emit(ESC, ord("@"))

    def append(self, data: bytes) -> None:
        self._emit(data)

    def append_raw(self, data: bytes) -> None:
        self._emit(data)

    def append_character_space(self, space: int) -> None:
        self._emit(ESC, 0x20, _u8(space))

    def append_emphasis(self, data: bytes) -> None:
        self.set_emphasis(True)
        self._emit(data)
        self.set_emphasis(False)

    def append_invert(self, data: bytes) -> None:
        self.set_invert(True)
        self._emit(data)
        self.set_invert(False)

    def append_underline(self, data: bytes) -> None:
        self.set_underline(True)
        self._emit(data)
        self.set_underline(False)

    def set_underline(self, enabled: bool) -> None:
        self._emit(ESC, ord("-"), 1 if enabled else 0)

    def append_horizontal_tab_position(self, positions: Sequence[int]) -> None:
        self._emit(ESC, ord("D"), bytes(_u8(p) for p in positions), NUL)

    def append_absolute_position(self, position: int, data: bytes | None = None) -> None:
        self._emit_absolute_position(position)
        if data is not None:
            self._emit(data)

    def append_alignment(self, alignment: AlignmentPosition, data: bytes | None = None) -> None:
        self._emit_alignment(_ALIGNMENT[alignment])
        if data is not None:
            self._emit(data)

    def append_barcode(
        self,
        data: bytes,
        symbology: BarcodeSymbology,
        width: BarcodeWidth,
        height: int,
        hri: bool,
        placement: Placement,
    ) -> None:
        data = self._barcode_payload(data, symbology)
        self._placed(placement, lambda: self._emit_barcode(data, symbology, width, height, hri))

    def _barcode_payload(self, data: bytes, symbology: BarcodeSymbology) -> bytes:
        return data

    def append_bitmap(self, raster: RasterImage, placement: Placement) -> None:
        self._placed(placement, lambda: self._emit_bitmap(raster))

    # Family specific commands.

    @abstractmethod
    def set_emphasis(self, enabled: bool) -> None:
        ...

    @abstractmethod
    def set_invert(self, enabled: bool) -> None:
        ...

    @abstractmethod
    def append_multiple(self, data: bytes, width: int, height: int) -> None:
        ...

    @abstractmethod
    def append_code_page(self, code_page: CodePageType) -> None:
        ...

    @abstractmethod
    def append_international(self, international: InternationalType) -> None:
        ...

    @abstractmethod
    def append_line_feed(self, lines: int) -> None:
        ...

    @abstractmethod
    def append_unit_feed(self, units: int) -> None:
        ...

    @abstractmethod
    def append_line_space(self, dots: int) -> None:
        ...

    @abstractmethod
    def append_font_style(self, style: FontStyleType) -> None:
        ...

    @abstractmethod
    def append_cut_paper(self, action: CutPaperAction) -> None:
        ...

    @abstractmethod
    def append_peripheral(self, channel: PeripheralChannel) -> None:
        ...

    @abstractmethod
    def append_black_mark(self, mark: BlackMarkType) -> None:
        ...

    @abstractmethod
    def append_logo(self, number: int, size: LogoSize) -> None:
        ...

    @abstractmethod
    def _emit_absolute_position(self, position: int) -> None:
        ...

    @abstractmethod
    def _emit_alignment(self, value: int) -> None:
        ...

    @abstractmethod
    def _emit_barcode(
        self,
        data: bytes,
        symbology: BarcodeSymbology,
        width: BarcodeWidth,
        height: int,
        hri: bool,
    ) -> None:
        ...

    @abstractmethod
    def _emit_bitmap(self, raster: RasterImage) -> None:
        ...


class StarLineBuilder(CommandBuilder):
    """Star Line Mode commands."""

    CODE_PAGES = {
        CodePageType.CP998: 0,
        CodePageType.CP437: 1,
        CodePageType.CP932: 2,
        CodePageType.CP858: 4,
        CodePageType.CP852: 5,
        CodePageType.CP860: 6,
        CodePageType.CP861: 7,
        CodePageType.CP863: 8,
        CodePageType.CP865: 9,
        CodePageType.CP866: 10,
        CodePageType.CP855: 11,
        CodePageType.CP857: 12,
        CodePageType.CP862: 13,
        CodePageType.CP864: 14,
        CodePageType.CP737: 15,
        CodePageType.CP851: 16,
        CodePageType.CP869: 17,
        CodePageType.CP928: 18,
        CodePageType.CP772: 19,
        CodePageType.CP774: 20,
        CodePageType.CP874: 21,
        CodePageType.CP1252: 32,
        CodePageType.CP1250: 33,
        CodePageType.CP1251: 34,
        CodePageType.CP3840: 64,
        CodePageType.CP3841: 65,
        CodePageType.CP3843: 66,
        CodePageType.CP3845: 68,
        CodePageType.CP3846: 69,
        CodePageType.CP3847: 70,
        CodePageType.CP3848: 71,
        CodePageType.CP1001: 72,
        CodePageType.CP2001: 73,
        CodePageType.CP3001: 74,
        CodePageType.CP3002: 75,
        CodePageType.CP3011: 76,
        CodePageType.CP3012: 77,
        CodePageType.CP3021: 78,
        CodePageType.CP3041: 79,
        CodePageType.CP999: 96,
        CodePageType.Blank: 255,
    }
    SYMBOLOGIES = {
        BarcodeSymbology.UPCE: 0,
        BarcodeSymbology.UPCA: 1,
        BarcodeSymbology.JAN8: 2,
        BarcodeSymbology.JAN13: 3,
        BarcodeSymbology.Code39: 4,
        BarcodeSymbology.ITF: 5,
        BarcodeSymbology.Code128: 6,
        BarcodeSymbology.Code93: 7,
        BarcodeSymbology.NW7: 8,
    }
    CUTS = {
        CutPaperAction.FullCut: 0,
        CutPaperAction.PartialCut: 1,
        CutPaperAction.FullCutWithFeed: 2,
        CutPaperAction.PartialCutWithFeed: 3,
    }
    BLACK_MARKS = {
        BlackMarkType.Invalid: 0,
        BlackMarkType.Valid: 1,
        BlackMarkType.ValidWithDetection: 2,
    }
    UTF8_MODE = bytes((ESC, GS, 0x29, 0x55, 0x02, 0x00, 0x30, 0x01))

    def set_emphasis(self, enabled: bool) -> None:
        self._emit(ESC, ord("E") if enabled else ord("F"))

    def set_invert(self, enabled: bool) -> None:
        self._emit(ESC, ord("4") if enabled else ord("5"))

    def append_multiple(self, data: bytes, width: int, height: int) -> None:
        self._emit(ESC, ord("i"), _u8(height - 1), _u8(width - 1))
        self._emit(data)
        self._emit(ESC, ord("i"), 0, 0)

    def append_code_page(self, code_page: CodePageType) -> None:
        if code_page is CodePageType.UTF8:
            self._emit(self.UTF8_MODE)
            return
        self._emit(ESC, GS, ord("t"), self.CODE_PAGES[code_page])

    def append_international(self, international: InternationalType) -> None:
        self._emit(ESC, ord("R"), _INTERNATIONAL[international])

    def append_line_feed(self, lines: int) -> None:
        self._emit(bytes([LF]) * max(0, lines))

    def append_unit_feed(self, units: int) -> None:
        while units > 0:
            step = min(units, 255)
            self._emit(ESC, ord("J"), step)
            units -= step

    def append_line_space(self, dots: int) -> None:
        # Line Mode only offers 3 mm (24 dots) and 4 mm (32 dots) pitches.
        self._emit(ESC, ord("z"), 1 if dots >= 32 else 0)

    def append_font_style(self, style: FontStyleType) -> None:
        self._emit(ESC, RS, ord("F"), 1 if style is FontStyleType.B else 0)

    def append_cut_paper(self, action: CutPaperAction) -> None:
        self._emit(ESC, ord("d"), self.CUTS[action])

    def append_peripheral(self, channel: PeripheralChannel) -> None:
        self._emit(0x07 if channel is PeripheralChannel.No1 else 0x1A)

    def append_black_mark(self, mark: BlackMarkType) -> None:
        self._emit(ESC, RS, ord("m"), self.BLACK_MARKS[mark])

    def append_logo(self, number: int, size: LogoSize) -> None:
        self._emit(ESC, FS, ord("p"), _u8(number), _LOGO_SIZE[size])

    def _emit_absolute_position(self, position: int) -> None:
        self._emit(ESC, GS, ord("A"), _u16(position))

    def _emit_alignment(self, value: int) -> None:
        self._emit(ESC, GS, ord("a"), value)

    def _emit_barcode(
        self,
        data: bytes,
        symbology: BarcodeSymbology,
        width: BarcodeWidth,
        height: int,
        hri: bool,
    ) -> None:
        mode = list(BarcodeWidth).index(width) + 1
        self._emit(ESC, ord("b"), self.SYMBOLOGIES[symbology], 2 if hri else 1, mode, _u8(height))
        self._emit(data, RS)

    def _emit_bitmap(self, raster: RasterImage) -> None:
        self._emit(ESC, GS, ord("S"), 1, _u16(raster.bytes_per_row), _u16(raster.height), 0)
        self._emit(raster.data)


class EscPosBuilder(CommandBuilder):
    """ESC/POS commands."""

    CODE_PAGES = {
        CodePageType.CP998: 0,
        CodePageType.CP437: 0,
        CodePageType.CP932: 1,
        CodePageType.CP860: 3,
        CodePageType.CP863: 4,
        CodePageType.CP865: 5,
        CodePageType.CP851: 11,
        CodePageType.CP857: 13,
        CodePageType.CP737: 14,
        CodePageType.CP1252: 16,
        CodePageType.CP866: 17,
        CodePageType.CP852: 18,
        CodePageType.CP858: 19,
        CodePageType.CP855: 34,
        CodePageType.CP861: 35,
        CodePageType.CP862: 36,
        CodePageType.CP864: 37,
        CodePageType.CP869: 38,
        CodePageType.CP1250: 45,
        CodePageType.CP1251: 46,
    }
    SYMBOLOGIES = {
        BarcodeSymbology.UPCA: 65,
        BarcodeSymbology.UPCE: 66,
        BarcodeSymbology.JAN13: 67,
        BarcodeSymbology.JAN8: 68,
        BarcodeSymbology.Code39: 69,
        BarcodeSymbology.ITF: 70,
        BarcodeSymbology.NW7: 71,
        BarcodeSymbology.Code93: 72,
        BarcodeSymbology.Code128: 73,
    }
    CUTS = {
        CutPaperAction.FullCut: bytes((GS, ord("V"), 0)),
        CutPaperAction.PartialCut: bytes((GS, ord("V"), 1)),
        CutPaperAction.FullCutWithFeed: bytes((GS, ord("V"), 65, 0)),
        CutPaperAction.PartialCutWithFeed: bytes((GS, ord("V"), 66, 0)),
    }

    def set_emphasis(self, enabled: bool) -> None:
        self._emit(ESC, ord("E"), 1 if enabled else 0)

    def set_invert(self, enabled: bool) -> None:
        self._emit(GS, ord("B"), 1 if enabled else 0)

    def append_multiple(self, data: bytes, width: int, height: int) -> None:
        size = ((max(1, min(8, width)) - 1) << 4) | (max(1, min(8, height)) - 1)
        self._emit(GS, ord("!"), size)
        self._emit(data)
        self._emit(GS, ord("!"), 0)

    def append_code_page(self, code_page: CodePageType) -> None:
        table = self.CODE_PAGES.get(code_page)
        if table is None:
            raise UnsupportedCommandError(f"ESC/POS has no code page table for {code_page.name}")
        self._emit(ESC, ord("t"), table)

    def append_international(self, international: InternationalType) -> None:
        value = _INTERNATIONAL[international]
        if value > _INTERNATIONAL[InternationalType.Korea]:
            raise UnsupportedCommandError(f"ESC/POS has no international set {international.name}")
        self._emit(ESC, ord("R"), value)

    def append_line_feed(self, lines: int) -> None:
        self._emit(ESC, ord("d"), _u8(lines))

    def append_unit_feed(self, units: int) -> None:
        while units > 0:
            step = min(units, 255)
            self._emit(ESC, ord("J"), step)
            units -= step

    def append_line_space(self, dots: int) -> None:
        self._emit(ESC, ord("3"), _u8(dots))

    def append_font_style(self, style: FontStyleType) -> None:
        self._emit(ESC, ord("M"), 1 if style is FontStyleType.B else 0)

    def append_cut_paper(self, action: CutPaperAction) -> None:
        self._emit(self.CUTS[action])

    def append_peripheral(self, channel: PeripheralChannel) -> None:
        self._emit(ESC, ord("p"), 0 if channel is PeripheralChannel.No1 else 1, 25, 250)

    def append_black_mark(self, mark: BlackMarkType) -> None:
        raise UnsupportedCommandError("ESC/POS has no black mark command")

    def append_logo(self, number: int, size: LogoSize) -> None:
        self._emit(FS, ord("p"), _u8(number), _LOGO_SIZE[size])

    def _emit_absolute_position(self, position: int) -> None:
        self._emit(ESC, ord("$"), _u16(position))

    def _emit_alignment(self, value: int) -> None:
        self._emit(ESC, ord("a"), value)

    def _barcode_payload(self, data: bytes, symbology: BarcodeSymbology) -> bytes:
        if symbology is BarcodeSymbology.Code128 and not data.startswith(b"{"):
            data = b"{B" + data
        # GS k format B carries a one-byte length.
        if len(data) > 255:
            raise UnsupportedCommandError(f"ESC/POS barcode data is limited to 255 bytes, got {len(data)}")
        return data

    def _emit_barcode(
        self,
        data: bytes,
        symbology: BarcodeSymbology,
        width: BarcodeWidth,
        height: int,
        hri: bool,
    ) -> None:
        self._emit(GS, ord("H"), 2 if hri else 0)
        self._emit(GS, ord("h"), max(1, _u8(height)))
        self._emit(GS, ord("w"), _BARCODE_MODULE_DOTS[width])
        self._emit(GS, ord("k"), self.SYMBOLOGIES[symbology], _u8(len(data)), data)

    def _emit_bitmap(self, raster: RasterImage) -> None:
        self._emit(GS, ord("v"), ord("0"), 0, _u16(raster.bytes_per_row), _u16(raster.height))
        self._emit(raster.data)


def create_builder(emulation: EmulationKind) -> CommandBuilder:
    if emulation.is_escpos:
        return EscPosBuilder()
    return StarLineBuilder()
