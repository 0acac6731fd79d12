"""Stable public API for building tooling on top of starprnt.

This module is the supported integration surface for third-party callers.
Results are plain dictionaries in their wire shape, so UI code can pass them
through unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

from starprnt.core.compiler import CommandCompiler, compile_job
from starprnt.core.dispatch import Completion, Dispatcher
from starprnt.core.encoding import TextEncoding, known_encodings, resolve_encoding
from starprnt.core.errors import (
    ConnectError,
    ConnectionBusyError,
    DeviceDiscoveryError,
    DispatchQueueFullError,
    JobLoadError,
    JobValidationError,
    NotImplementedMethodError,
    PrinterSelectionError,
    PrintTransportError,
    ProfileLoadError,
    ProfileValidationError,
    StarPrntError,
    StatusCheckError,
    TransportConnectError,
    TransportError,
    TransportSendError,
    TransportTimeoutError,
)
from starprnt.core.job_loader import load_job
from starprnt.core.model import (
    PortDescriptor,
    PrinterProfile,
    PrinterStatus,
    PrintJob,
    PrintResult,
    SessionOutcome,
    StatusReport,
)
from starprnt.core.options import EmulationKind, port_settings
from starprnt.core.raster import Decoder, Rasterizer
from starprnt.core.service import PrinterService
from starprnt.core.session import PrintSession, SessionTimeouts
from starprnt.transports.base import Port, PortOpener, PortScanner

__all__ = [
    "StarPrntError",
    "ConnectError",
    "ConnectionBusyError",
    "DeviceDiscoveryError",
    "DispatchQueueFullError",
    "JobLoadError",
    "JobValidationError",
    "NotImplementedMethodError",
    "PrinterSelectionError",
    "PrintTransportError",
    "ProfileLoadError",
    "ProfileValidationError",
    "StatusCheckError",
    "TransportError",
    "TransportConnectError",
    "TransportSendError",
    "TransportTimeoutError",
    "CommandCompiler",
    "Completion",
    "Dispatcher",
    "EmulationKind",
    "Port",
    "PortDescriptor",
    "PortOpener",
    "PortScanner",
    "PrinterProfile",
    "PrinterStatus",
    "PrintJob",
    "PrintResult",
    "PrintSession",
    "SessionOutcome",
    "SessionTimeouts",
    "StatusReport",
    "TextEncoding",
    "compile_job",
    "known_encodings",
    "load_job",
    "port_settings",
    "resolve_encoding",
    "Client",
]


class Client:
    """Public client for discovering, querying and printing to Star printers.

    Every collaborator (port opener, scanner, image decoder, text rasterizer)
    can be injected; the defaults talk to real hardware.
    """

    def __init__(
        self,
        *,
        opener: PortOpener | None = None,
        scanner: PortScanner | None = None,
        decoder: Decoder | None = None,
        rasterizer: Rasterizer | None = None,
        timeouts: SessionTimeouts | None = None,
    ) -> None:
        self._service = PrinterService(
            opener=opener,
            scanner=scanner,
            decoder=decoder,
            rasterizer=rasterizer,
            timeouts=timeouts,
        )

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    @property
    def runtime_warnings(self) -> tuple[str, ...]:
        return self._service.runtime_warnings

    def list_profiles(self) -> list[PrinterProfile]:
        return self._service.list_profiles()

    def port_discovery(self, interface: str | None = "All") -> list[dict[str, str]]:
        return [port.to_dict() for port in self._service.port_discovery(interface)]

    def check_status(self, port_name: str, emulation: str | None = None) -> dict[str, Any]:
        return self._service.check_status(port_name, emulation).to_dict()

    def print(
        self,
        port_name: str | None,
        emulation: str | None,
        commands: Sequence[Mapping[str, Any]],
    ) -> dict[str, Any]:
        return self._service.print(port_name, emulation, commands).outcome.to_dict()

    def connect(self, port_name: str, emulation: str | None = None, *, has_barcode_reader: bool = False) -> str:
        return self._service.connect(port_name, emulation, has_barcode_reader=has_barcode_reader)

    def disconnect(self) -> None:
        self._service.connection.disconnect()

    def dispatcher(self, *, max_workers: int = 2, max_pending: int = 16) -> Dispatcher:
        """Dispatcher over ``portDiscovery``, ``checkStatus``, ``print`` and ``connect``."""
        return Dispatcher(self._service.method_handlers(), max_workers=max_workers, max_pending=max_pending)

    def method_handlers(self) -> dict[str, Callable[[Mapping[str, Any]], Any]]:
        return self._service.method_handlers()
