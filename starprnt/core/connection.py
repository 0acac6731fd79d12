"""Caller-owned persistent printer connection."""

from __future__ import annotations

import logging
import threading
from types import TracebackType

from starprnt.core.errors import ConnectError, ConnectionBusyError
from starprnt.core.options import port_settings
from starprnt.transports.base import Port, PortOpener

LOGGER = logging.getLogger(__name__)

CONNECTED_MESSAGE = "Printer Connected"


class PrinterConnection:
    """Holds one open port between calls.

    Connecting again tears the previous port down first. A connect that races
    another one on the same instance is rejected rather than queued.
    """

    def __init__(self, opener: PortOpener, *, timeout_s: float = 10.0) -> None:
        self._opener = opener
        self._timeout_s = timeout_s
        self._lock = threading.Lock()
        self._port: Port | None = None
        self.port_name: str | None = None
        self.has_barcode_reader = False

    @property
    def connected(self) -> bool:
        return self._port is not None

    def connect(self, port_name: str, emulation: str, *, has_barcode_reader: bool = False) -> str:
        if not self._lock.acquire(blocking=False):
            raise ConnectionBusyError(f"A connect to {self.port_name or port_name} is already in progress")
        try:
            self._release()
            try:
                self._port = self._opener(port_name, port_settings(emulation), timeout_s=self._timeout_s)
            except Exception as exc:
                raise ConnectError(f"Could not connect to {port_name}: {exc}") from exc
            self.port_name = port_name
            self.has_barcode_reader = has_barcode_reader
            LOGGER.info("Connected to %s (barcode reader: %s)", port_name, has_barcode_reader)
            return CONNECTED_MESSAGE
        finally:
            self._lock.release()

    def disconnect(self) -> None:
        with self._lock:
            self._release()

    def _release(self) -> None:
        port, self._port = self._port, None
        if port is None:
            return
        try:
            port.close()
        except Exception as exc:
            LOGGER.warning("Closing %s failed: %s", self.port_name, exc)
        self.port_name = None
        self.has_barcode_reader = False

    def __enter__(self) -> PrinterConnection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.disconnect()
