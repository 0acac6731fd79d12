"""Status and firmware reply parsing for Star and ESC/POS printers."""

from __future__ import annotations

from starprnt.core.errors import TransportSendError
from starprnt.core.model import PrinterStatus

STAR_STATUS_REQUEST = b"\x1b\x06\x01"
STAR_FIRMWARE_REQUEST = b"\x1b\x23\x2a\x0a\x00"
ESCPOS_STATUS_REQUESTS = (b"\x10\x04\x01", b"\x10\x04\x02", b"\x10\x04\x03", b"\x10\x04\x04")
ESCPOS_MODEL_REQUEST = b"\x1d\x49\x43"
ESCPOS_FIRMWARE_REQUEST = b"\x1d\x49\x41"

_STAR_MIN_STATUS_BYTES = 5


def _bit(value: int, bit: int) -> bool:
    return bool(value & (1 << bit))


def star_status_length(header: int) -> int:
    """Number of bytes in a Star automatic status reply, header included."""
    return ((header >> 2) & 0x18) | ((header >> 1) & 0x07)


def parse_star_status(data: bytes) -> PrinterStatus:
    """Parse a Star automatic status reply.

    Byte 2: bit 3 offline, bit 5 cover open. Byte 3: bit 3 cutter error,
    bit 6 stopped by high head temperature. Byte 4: bit 5 presenter paper jam.
    Byte 5: bit 3 receipt paper empty, bit 2 near end (inner), bit 1 near end
    (outer).
    """
    if len(data) < _STAR_MIN_STATUS_BYTES:
        raise TransportSendError(f"Short status reply ({len(data)} bytes): {data.hex()}")
    return PrinterStatus(
        offline=_bit(data[1], 3),
        cover_open=_bit(data[1], 5),
        cutter_error=_bit(data[2], 3),
        over_temp=_bit(data[2], 6),
        paper_jam=_bit(data[3], 5),
        receipt_paper_empty=_bit(data[4], 3),
        receipt_paper_near_empty_inner=_bit(data[4], 2),
        receipt_paper_near_empty_outer=_bit(data[4], 1),
        raw=bytes(data),
    )


def parse_escpos_status(printer: int, offline_cause: int, error_cause: int, paper: int) -> PrinterStatus:
    """Combine the four DLE EOT replies (n = 1..4) into one snapshot."""
    return PrinterStatus(
        offline=_bit(printer, 3),
        cover_open=_bit(offline_cause, 2),
        cutter_error=_bit(error_cause, 3),
        over_temp=_bit(error_cause, 6),
        receipt_paper_empty=_bit(paper, 5) and _bit(paper, 6),
        receipt_paper_near_empty_inner=_bit(paper, 2) and _bit(paper, 3),
        raw=bytes((printer, offline_cause, error_cause, paper)),
    )


def parse_star_firmware(data: bytes) -> dict[str, str]:
    text = data.split(b"\x00", 1)[0].decode("ascii", errors="replace").strip()
    model, _, version = text.partition(" Ver")
    return {"ModelName": model.strip(), "FirmwareVersion": version.strip()}


def parse_escpos_info(data: bytes) -> str:
    """Strip the ``_`` header and NUL terminator of a GS I block reply."""
    body = data.split(b"\x00", 1)[0]
    if body.startswith(b"_"):
        body = body[1:]
    return body.decode("ascii", errors="replace").strip()
