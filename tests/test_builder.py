from __future__ import annotations

import pytest

from starprnt.core.builder import CommandBuilder, EscPosBuilder, StarLineBuilder, create_builder
from starprnt.core.commands import Placement
from starprnt.core.errors import UnsupportedCommandError
from starprnt.core.options import (
    AlignmentPosition,
    BarcodeSymbology,
    BarcodeWidth,
    CodePageType,
    EmulationKind,
    InternationalType,
    LogoSize,
    PeripheralChannel,
)


@pytest.mark.parametrize(
    ("emulation", "builder_cls"),
    [
        (EmulationKind.StarPRNT, StarLineBuilder),
        (EmulationKind.StarGraphic, StarLineBuilder),
        (EmulationKind.StarDotImpact, StarLineBuilder),
        (EmulationKind.EscPos, EscPosBuilder),
        (EmulationKind.EscPosMobile, EscPosBuilder),
    ],
)
def test_create_builder_by_family(emulation: EmulationKind, builder_cls: type) -> None:
    assert isinstance(create_builder(emulation), builder_cls)


def test_star_code_pages() -> None:
    builder = StarLineBuilder()
    builder.append_code_page(CodePageType.CP1252)
    builder.append_code_page(CodePageType.UTF8)
    assert builder.commands == b"\x1b\x1dt\x20" + b"\x1b\x1d)U\x02\x000\x01"


def test_escpos_rejects_star_only_code_page() -> None:
    with pytest.raises(UnsupportedCommandError):
        EscPosBuilder().append_code_page(CodePageType.CP3841)


def test_escpos_rejects_star_only_international_set() -> None:
    builder = EscPosBuilder()
    builder.append_international(InternationalType.Korea)
    assert builder.commands == b"\x1bR\x0d"
    with pytest.raises(UnsupportedCommandError):
        builder.append_international(InternationalType.Legal)


def test_star_line_feed_and_unit_feed() -> None:
    builder = StarLineBuilder()
    builder.append_line_feed(3)
    builder.append_unit_feed(300)
    assert builder.commands == b"\n\n\n" + b"\x1bJ\xff" + b"\x1bJ\x2d"


def test_peripheral_channels() -> None:
    star = StarLineBuilder()
    star.append_peripheral(PeripheralChannel.No1)
    star.append_peripheral(PeripheralChannel.No2)
    assert star.commands == b"\x07\x1a"

    escpos = EscPosBuilder()
    escpos.append_peripheral(PeripheralChannel.No2)
    assert escpos.commands == b"\x1bp\x01\x19\xfa"


def test_logo_sizes() -> None:
    builder = StarLineBuilder()
    builder.append_logo(2, LogoSize.DoubleWidthDoubleHeight)
    assert builder.commands == b"\x1b\x1cp\x02\x03"


def test_escpos_code128_gets_code_set_prefix() -> None:
    builder = EscPosBuilder()
    builder.append_barcode(b"ABC", BarcodeSymbology.Code128, BarcodeWidth.Mode2, 40, True, Placement())
    assert builder.commands == (
        b"\x1dH\x02" + b"\x1dh\x28" + b"\x1dw\x03" + b"\x1dk\x49\x05{BABC"
    )


def test_escpos_rejects_barcode_longer_than_length_byte() -> None:
    builder = EscPosBuilder()
    with pytest.raises(UnsupportedCommandError):
        builder.append_barcode(
            b"1" * 300,
            BarcodeSymbology.Code39,
            BarcodeWidth.Mode2,
            40,
            False,
            Placement(alignment=AlignmentPosition.Center),
        )
    assert builder.commands == b""


def test_escpos_accepts_barcode_at_length_limit() -> None:
    builder = EscPosBuilder()
    builder.append_barcode(b"1" * 255, BarcodeSymbology.Code39, BarcodeWidth.Mode2, 40, False, Placement())
    assert builder.commands.endswith(b"\x1dk\x45\xff" + b"1" * 255)


def test_builder_missing_family_commands_cannot_be_created() -> None:
    class HalfBuilder(CommandBuilder):
        def set_emphasis(self, enabled: bool) -> None:
            pass

    with pytest.raises(TypeError):
        HalfBuilder()


def test_horizontal_tabs_are_nul_terminated() -> None:
    builder = StarLineBuilder()
    builder.append_horizontal_tab_position([8, 16, 24])
    assert builder.commands == b"\x1bD\x08\x10\x18\x00"
