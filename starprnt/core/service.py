"""Service layer used by the CLI, the public API and the dispatcher."""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from starprnt.core.compiler import CommandCompiler
from starprnt.core.connection import PrinterConnection
from starprnt.core.discovery import discover_ports
from starprnt.core.errors import PrinterSelectionError
from starprnt.core.model import PortDescriptor, PrinterProfile, PrintResult, StatusReport
from starprnt.core.options import EmulationKind, port_settings, resolve_emulation
from starprnt.core.profiles import load_profiles
from starprnt.core.raster import Decoder, Rasterizer
from starprnt.core.session import PrintSession, SessionTimeouts, check_status, empty_job_outcome
from starprnt.transports.base import PortOpener, PortScanner
from starprnt.transports.scanner import SystemScanner
from starprnt.transports.stream import open_port

LOGGER = logging.getLogger(__name__)


class PrinterService:
    def __init__(
        self,
        *,
        opener: PortOpener | None = None,
        scanner: PortScanner | None = None,
        decoder: Decoder | None = None,
        rasterizer: Rasterizer | None = None,
        timeouts: SessionTimeouts | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        loaded = load_profiles()
        self.profiles = loaded.profiles
        self.load_warnings = loaded.warnings
        self.runtime_warnings = _runtime_warnings()
        self.opener: PortOpener = opener or open_port
        self.scanner: PortScanner = scanner or SystemScanner()
        self.decoder = decoder
        self.rasterizer = rasterizer
        self.timeouts = timeouts or SessionTimeouts()
        self._sleep = sleep
        self.connection = PrinterConnection(self.opener, timeout_s=self.timeouts.open_s)

    def list_profiles(self) -> list[PrinterProfile]:
        return sorted(self.profiles.values(), key=lambda p: p.id)

    def resolve_target(
        self,
        port_name: str | None,
        emulation: str | None,
        profile_id: str | None = None,
    ) -> tuple[str | None, str]:
        """Combine explicit options with a profile; explicit values win."""
        profile: PrinterProfile | None = None
        if profile_id:
            profile = self.profiles.get(profile_id)
            if profile is None:
                raise PrinterSelectionError(
                    f"Unknown printer profile '{profile_id}'. Use 'starprnt profiles' to inspect available profiles."
                )
        port = port_name or (profile.port if profile else None)
        kind = _emulation_kind(emulation or (profile.emulation if profile else None))
        return port, kind.value

    def port_discovery(self, interface: str | None = "All") -> list[PortDescriptor]:
        return discover_ports(self.scanner, interface)

    def check_status(self, port_name: str, emulation: str | None) -> StatusReport:
        kind = _emulation_kind(emulation)
        return check_status(
            self.opener,
            port_name,
            port_settings(kind),
            timeouts=self.timeouts,
            sleep=self._sleep,
        )

    def compile(self, commands: Sequence[Mapping[str, Any]], emulation: str | None) -> tuple[bytes, tuple[str, ...]]:
        compiler = CommandCompiler(
            _emulation_kind(emulation),
            decoder=self.decoder,
            rasterizer=self.rasterizer,
        )
        data = compiler.compile(commands)
        return data, compiler.warnings

    def print(
        self,
        port_name: str | None,
        emulation: str | None,
        commands: Sequence[Mapping[str, Any]],
    ) -> PrintResult:
        kind = _emulation_kind(emulation)
        if not commands:
            return PrintResult(outcome=empty_job_outcome(), port_name=port_name, emulation=kind.value, byte_count=0)
        if not port_name:
            raise PrinterSelectionError("No printer port given. Use --port or a profile with a port.")

        data, warnings = self.compile(commands, kind.value)
        LOGGER.info("Printing %d bytes (%s) to %s", len(data), kind.value, port_name)
        session = PrintSession(self.opener, timeouts=self.timeouts, sleep=self._sleep)
        outcome = session.run(port_name, port_settings(kind), data)
        return PrintResult(
            outcome=outcome,
            port_name=port_name,
            emulation=kind.value,
            byte_count=len(data),
            warnings=warnings,
        )

    def connect(self, port_name: str, emulation: str | None, *, has_barcode_reader: bool = False) -> str:
        kind = _emulation_kind(emulation)
        return self.connection.connect(port_name, kind.value, has_barcode_reader=has_barcode_reader)

    def method_handlers(self) -> dict[str, Callable[[Mapping[str, Any]], Any]]:
        """Handlers keyed by method name, returning the wire dictionaries."""
        return {
            "portDiscovery": lambda args: [p.to_dict() for p in self.port_discovery(args.get("type"))],
            "checkStatus": lambda args: self.check_status(args["portName"], args.get("emulation")).to_dict(),
            "print": lambda args: self.print(
                args.get("portName"),
                args.get("emulation"),
                args.get("printCommands") or [],
            ).outcome.to_dict(),
            "connect": lambda args: self.connect(
                args["portName"],
                args.get("emulation"),
                has_barcode_reader=str(args.get("hasBarcodeReader", False)).lower() == "true",
            ),
        }


def _emulation_kind(name: str | None) -> EmulationKind:
    # No emulation given means StarLine, without a fallback warning.
    return resolve_emulation(name) if name else EmulationKind.StarLine


def _runtime_warnings() -> tuple[str, ...]:
    warnings: list[str] = []
    if not hasattr(socket, "AF_BLUETOOTH") or not hasattr(socket, "BTPROTO_RFCOMM"):
        warnings.append(
            "Python runtime missing AF_BLUETOOTH/BTPROTO_RFCOMM; BT: ports cannot be opened."
        )
    return tuple(warnings)
