"""Byte-stream ports: raw TCP, Bluetooth RFCOMM and USB printer device files.

Port names follow the ``<interface>:<address>`` convention: ``TCP:10.0.0.5``
(optionally ``TCP:10.0.0.5:9100``), ``BT:00:11:62:AA:BB:CC`` and
``USB:/dev/usb/lp0``.
"""

from __future__ import annotations

import os
import select
import socket

from starprnt.core.errors import TransportConnectError, TransportSendError, TransportTimeoutError
from starprnt.core.model import PrinterStatus
from starprnt.transports.status import (
    ESCPOS_FIRMWARE_REQUEST,
    ESCPOS_MODEL_REQUEST,
    ESCPOS_STATUS_REQUESTS,
    STAR_FIRMWARE_REQUEST,
    STAR_STATUS_REQUEST,
    parse_escpos_info,
    parse_escpos_status,
    parse_star_firmware,
    parse_star_status,
    star_status_length,
)

RAW_TCP_PORT = 9100
RFCOMM_CHANNEL = 1
_ESCPOS_SETTINGS = ("escpos", "mini")
_INFO_REPLY_MAX = 80


class StreamPort:
    """Printer port over a bidirectional byte stream.

    Subclasses provide ``_send``, ``_recv``, ``_set_timeout`` and ``close``.
    The status dialect is chosen from the port settings string: ``escpos``
    and ``mini`` speak ESC/POS DLE EOT, anything else Star automatic status.
    """

    def __init__(self, port_name: str, port_settings: str, *, timeout_s: float) -> None:
        self.port_name = port_name
        self.port_settings = port_settings
        self._timeout_s = timeout_s
        self._end_block_timeout_s = timeout_s
        self._escpos = port_settings in _ESCPOS_SETTINGS

    def _send(self, data: bytes) -> None:
        raise NotImplementedError

    def _recv(self, size: int) -> bytes:
        raise NotImplementedError

    def _set_timeout(self, timeout_s: float) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def _recv_exact(self, size: int) -> bytes:
        chunks = bytearray()
        while len(chunks) < size:
            chunk = self._recv(size - len(chunks))
            if not chunk:
                raise TransportSendError(f"{self.port_name} closed the connection")
            chunks.extend(chunk)
        return bytes(chunks)

    def _recv_until_nul(self) -> bytes:
        reply = bytearray()
        while len(reply) < _INFO_REPLY_MAX:
            byte = self._recv_exact(1)
            reply.extend(byte)
            if byte == b"\x00":
                break
        return bytes(reply)

    def retrieve_status(self) -> PrinterStatus:
        if self._escpos:
            replies = []
            for request in ESCPOS_STATUS_REQUESTS:
                self._send(request)
                replies.append(self._recv_exact(1)[0])
            return parse_escpos_status(*replies)

        self._send(STAR_STATUS_REQUEST)
        header = self._recv_exact(1)
        remaining = star_status_length(header[0]) - 1
        return parse_star_status(header + self._recv_exact(max(0, remaining)))

    def begin_checked_block(self) -> PrinterStatus:
        return self.retrieve_status()

    def write(self, data: bytes) -> None:
        self._send(data)

    def set_end_checked_block_timeout(self, timeout_s: float) -> None:
        self._end_block_timeout_s = timeout_s

    def end_checked_block(self) -> PrinterStatus:
        self._set_timeout(self._end_block_timeout_s)
        try:
            return self.retrieve_status()
        finally:
            self._set_timeout(self._timeout_s)

    def firmware_information(self) -> dict[str, str]:
        if self._escpos:
            self._send(ESCPOS_MODEL_REQUEST)
            model = parse_escpos_info(self._recv_until_nul())
            self._send(ESCPOS_FIRMWARE_REQUEST)
            version = parse_escpos_info(self._recv_until_nul())
            return {"ModelName": model, "FirmwareVersion": version}

        self._send(STAR_FIRMWARE_REQUEST)
        return parse_star_firmware(self._recv_until_nul())


class SocketPort(StreamPort):
    def __init__(self, sock: socket.socket, port_name: str, port_settings: str, *, timeout_s: float) -> None:
        super().__init__(port_name, port_settings, timeout_s=timeout_s)
        self._socket = sock
        self._socket.settimeout(timeout_s)

    def _send(self, data: bytes) -> None:
        try:
            self._socket.sendall(data)
        except TimeoutError as exc:
            raise TransportTimeoutError(f"Write to {self.port_name} timed out") from exc
        except OSError as exc:
            raise TransportSendError(f"Write to {self.port_name} failed: {exc}") from exc

    def _recv(self, size: int) -> bytes:
        try:
            return self._socket.recv(size)
        except TimeoutError as exc:
            raise TransportTimeoutError(f"Read from {self.port_name} timed out") from exc
        except OSError as exc:
            raise TransportSendError(f"Read from {self.port_name} failed: {exc}") from exc

    def _set_timeout(self, timeout_s: float) -> None:
        self._socket.settimeout(timeout_s)

    def close(self) -> None:
        self._socket.close()


class DeviceFilePort(StreamPort):
    def __init__(self, fd: int, port_name: str, port_settings: str, *, timeout_s: float) -> None:
        super().__init__(port_name, port_settings, timeout_s=timeout_s)
        self._fd = fd
        self._read_timeout_s = timeout_s

    def _send(self, data: bytes) -> None:
        view = memoryview(data)
        try:
            while view:
                written = os.write(self._fd, view)
                view = view[written:]
        except OSError as exc:
            raise TransportSendError(f"Write to {self.port_name} failed: {exc}") from exc

    def _recv(self, size: int) -> bytes:
        readable, _, _ = select.select([self._fd], [], [], self._read_timeout_s)
        if not readable:
            raise TransportTimeoutError(f"Read from {self.port_name} timed out")
        try:
            return os.read(self._fd, size)
        except OSError as exc:
            raise TransportSendError(f"Read from {self.port_name} failed: {exc}") from exc

    def _set_timeout(self, timeout_s: float) -> None:
        self._read_timeout_s = timeout_s

    def close(self) -> None:
        os.close(self._fd)


def _open_tcp(address: str, port_name: str, port_settings: str, timeout_s: float) -> SocketPort:
    host, _, port_text = address.partition(":")
    port = int(port_text) if port_text else RAW_TCP_PORT
    try:
        sock = socket.create_connection((host, port), timeout=timeout_s)
    except TimeoutError as exc:
        raise TransportTimeoutError(f"Connect to {host}:{port} timed out") from exc
    except OSError as exc:
        raise TransportConnectError(f"Connect to {host}:{port} failed: {exc}") from exc
    return SocketPort(sock, port_name, port_settings, timeout_s=timeout_s)


def _open_rfcomm(mac: str, port_name: str, port_settings: str, timeout_s: float) -> SocketPort:
    try:
        af_bluetooth = socket.AF_BLUETOOTH
        btproto_rfcomm = socket.BTPROTO_RFCOMM
    except AttributeError as exc:
        raise TransportConnectError(
            "This Python build does not expose Bluetooth socket APIs (AF_BLUETOOTH/BTPROTO_RFCOMM)."
        ) from exc

    try:
        bt_socket = socket.socket(af_bluetooth, socket.SOCK_STREAM, btproto_rfcomm)
    except OSError as exc:
        raise TransportConnectError(f"Could not create RFCOMM socket: {exc}") from exc
    bt_socket.settimeout(timeout_s)
    try:
        bt_socket.connect((mac, RFCOMM_CHANNEL))
    except TimeoutError as exc:
        bt_socket.close()
        raise TransportTimeoutError(f"RFCOMM connect timed out for {mac}") from exc
    except OSError as exc:
        bt_socket.close()
        raise TransportConnectError(f"RFCOMM connect failed for {mac}: {exc}") from exc
    return SocketPort(bt_socket, port_name, port_settings, timeout_s=timeout_s)


def _open_device_file(path: str, port_name: str, port_settings: str, timeout_s: float) -> DeviceFilePort:
    if not path.startswith("/"):
        path = f"/dev/usb/{path}"
    try:
        fd = os.open(path, os.O_RDWR)
    except OSError as exc:
        raise TransportConnectError(f"Could not open {path}: {exc}") from exc
    return DeviceFilePort(fd, port_name, port_settings, timeout_s=timeout_s)


def open_port(port_name: str, port_settings: str, *, timeout_s: float) -> StreamPort:
    interface, _, address = port_name.partition(":")
    interface = interface.upper()
    if not address:
        raise TransportConnectError(f"Port name '{port_name}' has no address")
    if interface == "TCP":
        return _open_tcp(address, port_name, port_settings, timeout_s)
    if interface == "BT":
        return _open_rfcomm(address, port_name, port_settings, timeout_s)
    if interface == "USB":
        return _open_device_file(address, port_name, port_settings, timeout_s)
    raise TransportConnectError(f"Unsupported port interface '{interface}' in '{port_name}'")
