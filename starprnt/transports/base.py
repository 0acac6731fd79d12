"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from starprnt.core.model import PrinterStatus, RawPortInfo


class Port(Protocol):
    def retrieve_status(self) -> PrinterStatus:
        """Query the current printer status."""

    def begin_checked_block(self) -> PrinterStatus:
        """Capture the status before a write."""

    def write(self, data: bytes) -> None:
        """Write the whole buffer to the printer."""

    def set_end_checked_block_timeout(self, timeout_s: float) -> None:
        """Set how long ``end_checked_block`` may wait for the printer."""

    def end_checked_block(self) -> PrinterStatus:
        """Wait for the written data to be processed and capture the status."""

    def firmware_information(self) -> dict[str, str]:
        """Return ``ModelName`` and ``FirmwareVersion``."""

    def close(self) -> None:
        """Release the port."""


class PortOpener(Protocol):
    def __call__(self, port_name: str, port_settings: str, *, timeout_s: float) -> Port:
        """Open a port by name with an emulation-derived settings string."""


class PortScanner(Protocol):
    def search(self, prefix: str) -> list[RawPortInfo]:
        """Discover ports for one interface prefix (``BT:``, ``TCP:``, ``USB:``)."""
