"""Merge discovery sub-scans and reshape raw ports into PortDescriptor."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from starprnt.core.model import PortDescriptor, RawPortInfo
from starprnt.transports.base import PortScanner

LOGGER = logging.getLogger(__name__)

INTERFACES = ("Bluetooth", "LAN", "USB", "All")
NO_USB_SERIAL = " SN:"


def resolve_interface(name: str | None) -> str:
    return name if name in ("Bluetooth", "LAN", "USB") else "All"


def _wants(interface: str, *names: str) -> bool:
    return interface == "All" or interface in names


def normalize_ports(entries: Iterable[RawPortInfo], interface: str) -> list[PortDescriptor]:
    """Reshape raw discovery entries, preserving their order.

    Bluetooth ports are renamed ``BT:<mac>`` and, as the Star SDK always did,
    report their original port name as the model name.
    """
    interface = resolve_interface(interface)
    ports: list[PortDescriptor] = []
    for entry in entries:
        is_bluetooth = entry.port_name.startswith("BT:")
        port_name = f"BT:{entry.mac_address}" if is_bluetooth and entry.mac_address else entry.port_name

        if entry.mac_address:
            if is_bluetooth:
                model_name: str | None = entry.port_name
            else:
                model_name = entry.model_name or None
            ports.append(PortDescriptor(port_name=port_name, mac_address=entry.mac_address, model_name=model_name))
        elif _wants(interface, "USB"):
            serial = entry.usb_serial_number if entry.usb_serial_number != NO_USB_SERIAL else None
            ports.append(
                PortDescriptor(
                    port_name=port_name,
                    model_name=entry.model_name or None,
                    usb_serial_number=serial,
                )
            )
        else:
            ports.append(PortDescriptor(port_name=port_name))
    return ports


def discover_ports(scanner: PortScanner, interface: str | None = "All") -> list[PortDescriptor]:
    interface = resolve_interface(interface)
    entries: list[RawPortInfo] = []

    if _wants(interface, "Bluetooth"):
        entries.extend(scanner.search("BT:"))
    if _wants(interface, "LAN"):
        entries.extend(scanner.search("TCP:"))
    if _wants(interface, "USB"):
        try:
            entries.extend(scanner.search("USB:"))
        except Exception as exc:
            LOGGER.error("usb not connected: %s", exc)

    return normalize_ports(entries, interface)
