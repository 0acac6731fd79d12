"""Core data models used across compiler, session, discovery, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RawPortInfo:
    """A port as reported by one discovery sub-scan, before normalization."""

    port_name: str
    mac_address: str = ""
    model_name: str = ""
    usb_serial_number: str = ""


@dataclass(frozen=True)
class PortDescriptor:
    port_name: str
    mac_address: str | None = None
    model_name: str | None = None
    usb_serial_number: str | None = None

    def to_dict(self) -> dict[str, str]:
        data = {"portName": self.port_name}
        if self.mac_address is not None:
            data["macAddress"] = self.mac_address
        if self.model_name is not None:
            data["modelName"] = self.model_name
        if self.usb_serial_number is not None:
            data["USBSerialNumber"] = self.usb_serial_number
        return data


@dataclass(frozen=True)
class PrinterStatus:
    offline: bool = False
    cover_open: bool = False
    cutter_error: bool = False
    receipt_paper_empty: bool = False
    paper_jam: bool = False
    receipt_paper_near_empty_inner: bool = False
    receipt_paper_near_empty_outer: bool = False
    over_temp: bool = False
    raw: bytes = b""

    @property
    def receipt_paper_near_empty(self) -> bool:
        return self.receipt_paper_near_empty_inner or self.receipt_paper_near_empty_outer


@dataclass(frozen=True)
class SessionOutcome:
    is_success: bool
    status: PrinterStatus | None
    error_message: str | None = None
    info_message: str | None = None
    diagnostic_trail: str = ""
    end_block_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        status = self.status or PrinterStatus()
        data: dict[str, Any] = {
            "is_success": self.is_success,
            "offline": status.offline,
            "coverOpen": status.cover_open,
            "overTemp": status.over_temp,
            "cutterError": status.cutter_error,
            "receiptPaperEmpty": status.receipt_paper_empty,
        }
        if self.error_message is not None:
            data["error_message"] = self.error_message
        if self.info_message is not None:
            data["info_message"] = self.info_message
        return data


@dataclass(frozen=True)
class StatusReport:
    status: PrinterStatus
    model_name: str | None = None
    firmware_version: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "is_success": True,
            "offline": self.status.offline,
            "coverOpen": self.status.cover_open,
            "overTemp": self.status.over_temp,
            "cutterError": self.status.cutter_error,
            "receiptPaperEmpty": self.status.receipt_paper_empty,
        }
        if self.model_name is not None:
            data["ModelName"] = self.model_name
        if self.firmware_version is not None:
            data["FirmwareVersion"] = self.firmware_version
        if self.error_message is not None:
            data["error_message"] = self.error_message
        return data


@dataclass(frozen=True)
class PrinterProfile:
    id: str
    name: str
    emulation: str
    port: str | None = None


@dataclass(frozen=True)
class PrintJob:
    """A loaded job file: the descriptors plus optional target hints."""

    commands: tuple[dict[str, Any], ...]
    emulation: str | None = None
    port: str | None = None
    printer: str | None = None


@dataclass(frozen=True)
class PrintResult:
    outcome: SessionOutcome
    port_name: str | None
    emulation: str
    byte_count: int
    warnings: tuple[str, ...] = ()
