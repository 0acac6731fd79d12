"""Port discovery backed by the host system.

Bluetooth uses BlueZ's ``bluetoothctl``, LAN probes the raw printing port of
configured hosts, USB lists printer-class device files.
"""

from __future__ import annotations

import logging
import re
import socket
import subprocess
from collections.abc import Sequence
from pathlib import Path

from starprnt.core.discovery import NO_USB_SERIAL
from starprnt.core.errors import DeviceDiscoveryError
from starprnt.core.model import RawPortInfo
from starprnt.transports.stream import RAW_TCP_PORT

LOGGER = logging.getLogger(__name__)

_DEVICE_LINE_RE = re.compile(r"^Device\s+([0-9A-F:]{17})\s+(.+)$", re.IGNORECASE)


class SystemScanner:
    def __init__(
        self,
        *,
        tcp_hosts: Sequence[str] = (),
        probe_timeout_s: float = 1.0,
        usb_root: Path = Path("/dev/usb"),
        sysfs_root: Path = Path("/sys/class/usbmisc"),
    ) -> None:
        self.tcp_hosts = tuple(tcp_hosts)
        self.probe_timeout_s = probe_timeout_s
        self.usb_root = usb_root
        self.sysfs_root = sysfs_root

    def search(self, prefix: str) -> list[RawPortInfo]:
        if prefix == "BT:":
            return _scan_bluetooth()
        if prefix == "TCP:":
            return self._scan_tcp()
        if prefix == "USB:":
            return self._scan_usb()
        raise DeviceDiscoveryError(f"Unknown discovery prefix '{prefix}'")

    def _scan_tcp(self) -> list[RawPortInfo]:
        ports: list[RawPortInfo] = []
        for host in self.tcp_hosts:
            try:
                with socket.create_connection((host, RAW_TCP_PORT), timeout=self.probe_timeout_s):
                    pass
            except OSError as exc:
                LOGGER.debug("No printer answering on %s:%d: %s", host, RAW_TCP_PORT, exc)
                continue
            ports.append(RawPortInfo(port_name=f"TCP:{host}"))
        return ports

    def _scan_usb(self) -> list[RawPortInfo]:
        if not self.usb_root.is_dir():
            raise DeviceDiscoveryError(f"No USB printer class devices under {self.usb_root}")
        ports: list[RawPortInfo] = []
        for device in sorted(self.usb_root.glob("lp*")):
            attributes = self.sysfs_root / device.name / "device" / ".."
            model = _read_attribute(attributes / "product")
            serial = _read_attribute(attributes / "serial")
            ports.append(
                RawPortInfo(
                    port_name=f"USB:{device}",
                    model_name=model,
                    usb_serial_number=f" SN:{serial}" if serial else NO_USB_SERIAL,
                )
            )
        return ports


def _read_attribute(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return ""


def _scan_bluetooth() -> list[RawPortInfo]:
    commands = [
        ["bluetoothctl", "devices", "Paired"],
        ["bluetoothctl", "paired-devices"],
    ]

    seen: set[str] = set()
    ports: list[RawPortInfo] = []
    command_errors: list[str] = []

    for cmd in commands:
        result = _run_discovery_command(cmd)
        if result is None:
            continue
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            if stderr:
                command_errors.append(f"{' '.join(cmd)} -> {stderr}")
            continue

        for line in result.stdout.splitlines():
            match = _DEVICE_LINE_RE.match(line.strip())
            if not match:
                continue
            mac, name = match.group(1).upper(), match.group(2).strip()
            if mac in seen:
                continue
            seen.add(mac)
            ports.append(RawPortInfo(port_name=f"BT:{name}", mac_address=mac))

    if ports:
        return ports

    if command_errors:
        joined = " | ".join(command_errors)
        raise DeviceDiscoveryError(
            f"Bluetooth discovery failed. Ensure a working D-Bus/BlueZ session. Details: {joined}"
        )

    return ports


def _run_discovery_command(cmd: Sequence[str]) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return None
