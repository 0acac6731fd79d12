"""Compile a print job (list of command descriptors) into printer bytes."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from starprnt.core import commands as cmd
from starprnt.core.builder import CommandBuilder, create_builder
from starprnt.core.encoding import DEFAULT_ENCODING, TextEncoding
from starprnt.core.errors import UnsupportedCommandError
from starprnt.core.options import EmulationKind, resolve_emulation
from starprnt.core.raster import Decoder, Rasterizer, decode_image, rasterize_text, to_raster

LOGGER = logging.getLogger(__name__)


class CommandCompiler:
    """Turns descriptors into one document for a single emulation.

    Compilation never fails because of a descriptor: unknown operations,
    uncoercible values, unsupported commands and undecodable images are
    skipped and recorded in ``warnings``. Text is encoded with the encoding
    active at the moment its descriptor is processed.
    """

    def __init__(
        self,
        emulation: EmulationKind | str,
        *,
        decoder: Decoder | None = None,
        rasterizer: Rasterizer | None = None,
    ) -> None:
        self.emulation = resolve_emulation(emulation)
        self._decoder = decoder or decode_image
        self._rasterizer = rasterizer or rasterize_text
        self._warnings: list[str] = []
        self._encoding: TextEncoding = DEFAULT_ENCODING
        self._emitters: dict[type, Callable[[CommandBuilder, Any], None]] = {
            cmd.CharacterSpace: lambda b, c: b.append_character_space(c.space),
            cmd.SetEncoding: self._set_encoding,
            cmd.SetCodePage: lambda b, c: b.append_code_page(c.code_page),
            cmd.AppendText: lambda b, c: b.append(self._encode(c.data)),
            cmd.AppendRaw: lambda b, c: b.append_raw(self._encode(c.data)),
            cmd.AppendMultiple: lambda b, c: b.append_multiple(self._encode(c.data), c.width, c.height),
            cmd.Emphasis: lambda b, c: b.append_emphasis(self._encode(c.data)),
            cmd.EnableEmphasis: lambda b, c: b.set_emphasis(c.enabled),
            cmd.Invert: lambda b, c: b.append_invert(self._encode(c.data)),
            cmd.EnableInvert: lambda b, c: b.set_invert(c.enabled),
            cmd.Underline: lambda b, c: b.append_underline(self._encode(c.data)),
            cmd.EnableUnderline: lambda b, c: b.set_underline(c.enabled),
            cmd.International: lambda b, c: b.append_international(c.international),
            cmd.LineFeed: lambda b, c: b.append_line_feed(c.lines),
            cmd.UnitFeed: lambda b, c: b.append_unit_feed(c.units),
            cmd.LineSpace: lambda b, c: b.append_line_space(c.dots),
            cmd.FontStyle: lambda b, c: b.append_font_style(c.style),
            cmd.CutPaper: lambda b, c: b.append_cut_paper(c.action),
            cmd.Peripheral: lambda b, c: b.append_peripheral(c.channel),
            cmd.BlackMark: lambda b, c: b.append_black_mark(c.mark),
            cmd.AbsolutePosition: lambda b, c: b.append_absolute_position(c.position, self._encode_optional(c.data)),
            cmd.Alignment: lambda b, c: b.append_alignment(c.alignment, self._encode_optional(c.data)),
            cmd.HorizontalTabPosition: lambda b, c: b.append_horizontal_tab_position(c.positions),
            cmd.Logo: lambda b, c: b.append_logo(c.number, c.size),
            cmd.Barcode: self._barcode,
            cmd.BitmapFromSource: self._bitmap_from_source,
            cmd.BitmapFromText: self._bitmap_from_text,
            cmd.BitmapFromBytes: self._bitmap_from_bytes,
        }

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(self._warnings)

    def compile(self, descriptors: Sequence[Mapping[str, Any]]) -> bytes:
        self._warnings = []
        self._encoding = DEFAULT_ENCODING
        builder = create_builder(self.emulation)
        builder.begin_document()
        for index, descriptor in enumerate(descriptors):
            self._compile_one(builder, index, descriptor)
        return builder.commands

    def _compile_one(self, builder: CommandBuilder, index: int, descriptor: Mapping[str, Any]) -> None:
        if not isinstance(descriptor, Mapping):
            self._warn(f"Command #{index} is not a mapping; skipped")
            return

        def on_fallback(category: str, value: Any, default: Any) -> None:
            self._warn(f"Command #{index}: unrecognized {category} {value!r}, using {default.name}")

        try:
            command = cmd.parse_command(descriptor, on_fallback=on_fallback)
        except (TypeError, ValueError) as exc:
            self._warn(f"Command #{index} has an invalid value and was skipped: {exc}")
            return
        if command is None:
            keys = ", ".join(sorted(str(k) for k in descriptor)) or "<empty>"
            self._warn(f"Command #{index} has no recognized operation ({keys}); skipped")
            return

        try:
            self._emitters[type(command)](builder, command)
        except UnsupportedCommandError as exc:
            self._warn(f"Command #{index} skipped for {self.emulation.value}: {exc}")

    def _warn(self, message: str) -> None:
        LOGGER.warning(message)
        self._warnings.append(message)

    def _encode(self, data: cmd.Payload) -> bytes:
        if isinstance(data, bytes):
            return data
        return self._encoding.encode(data)

    def _encode_optional(self, data: cmd.Payload | None) -> bytes | None:
        return None if data is None else self._encode(data)

    def _set_encoding(self, builder: CommandBuilder, command: cmd.SetEncoding) -> None:
        self._encoding = command.encoding

    def _barcode(self, builder: CommandBuilder, command: cmd.Barcode) -> None:
        builder.append_barcode(
            self._encode(command.data),
            command.symbology,
            command.width,
            command.height,
            command.hri,
            command.placement,
        )

    def _bitmap_from_source(self, builder: CommandBuilder, command: cmd.BitmapFromSource) -> None:
        try:
            image = self._decoder(command.source)
            raster = to_raster(image, command.options)
        except Exception as exc:
            self._warn(f"appendBitmap failed for {command.source!r}: {exc}")
            return
        builder.append_bitmap(raster, command.placement)

    def _bitmap_from_text(self, builder: CommandBuilder, command: cmd.BitmapFromText) -> None:
        try:
            image = self._rasterizer(command.text, command.font_size, command.options.width)
            raster = to_raster(image, command.options)
        except Exception as exc:
            self._warn(f"appendBitmapText failed: {exc}")
            return
        builder.append_bitmap(raster, command.placement)

    def _bitmap_from_bytes(self, builder: CommandBuilder, command: cmd.BitmapFromBytes) -> None:
        try:
            image = self._decoder(command.data)
            raster = to_raster(image, command.options)
        except Exception as exc:
            self._warn(f"appendBitmapByteArray failed: {exc}")
            return
        builder.append_bitmap(raster, command.placement)


def compile_job(
    descriptors: Sequence[Mapping[str, Any]],
    emulation: EmulationKind | str,
    *,
    decoder: Decoder | None = None,
    rasterizer: Rasterizer | None = None,
) -> bytes:
    return CommandCompiler(emulation, decoder=decoder, rasterizer=rasterizer).compile(descriptors)
