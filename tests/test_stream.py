from __future__ import annotations

import socket

import pytest

from starprnt.core.errors import TransportConnectError, TransportSendError, TransportTimeoutError
from starprnt.transports import stream
from starprnt.transports.status import (
    ESCPOS_STATUS_REQUESTS,
    STAR_STATUS_REQUEST,
    parse_escpos_info,
    parse_escpos_status,
    parse_star_firmware,
    parse_star_status,
    star_status_length,
)
from starprnt.transports.stream import SocketPort, open_port

# 9-byte automatic status: offline, receipt paper empty.
STAR_REPLY = bytes([0x23, 0x08, 0x00, 0x00, 0x08, 0x00, 0x00, 0x00, 0x00])


@pytest.fixture
def socket_pair():
    ours, theirs = socket.socketpair()
    yield ours, theirs
    ours.close()
    theirs.close()


def test_star_status_length_from_header() -> None:
    assert star_status_length(0x23) == 9
    assert star_status_length(0x0F) == 7


def test_parse_star_status_bits() -> None:
    status = parse_star_status(STAR_REPLY)
    assert status.offline
    assert status.receipt_paper_empty
    assert not status.cover_open
    assert status.raw == STAR_REPLY


def test_parse_star_status_rejects_short_reply() -> None:
    with pytest.raises(TransportSendError):
        parse_star_status(b"\x23\x00")


def test_parse_escpos_status_bits() -> None:
    status = parse_escpos_status(0x08, 0x04, 0x00, 0x60)
    assert status.offline
    assert status.cover_open
    assert status.receipt_paper_empty
    assert not status.receipt_paper_near_empty


def test_parse_firmware_replies() -> None:
    assert parse_star_firmware(b"TSP143IIIW Ver1.1\x00") == {"ModelName": "TSP143IIIW", "FirmwareVersion": "1.1"}
    assert parse_escpos_info(b"_TM-T88V\x00") == "TM-T88V"


def test_socket_port_reads_star_status(socket_pair) -> None:
    ours, theirs = socket_pair
    port = SocketPort(ours, "TCP:test", "StarLine", timeout_s=2.0)
    theirs.sendall(STAR_REPLY)

    status = port.retrieve_status()

    assert status.offline
    assert theirs.recv(16) == STAR_STATUS_REQUEST


def test_socket_port_reads_escpos_status(socket_pair) -> None:
    ours, theirs = socket_pair
    port = SocketPort(ours, "TCP:test", "escpos", timeout_s=2.0)
    theirs.sendall(bytes([0x16, 0x12, 0x12, 0x12]))

    status = port.begin_checked_block()

    assert not status.offline
    assert theirs.recv(64) == b"".join(ESCPOS_STATUS_REQUESTS)


def test_socket_port_write_and_firmware(socket_pair) -> None:
    ours, theirs = socket_pair
    port = SocketPort(ours, "TCP:test", "Portable;l", timeout_s=2.0)
    port.write(b"\x1b@hello")
    assert theirs.recv(64) == b"\x1b@hello"

    theirs.sendall(b"SM-L200 Ver2.3\x00")
    assert port.firmware_information() == {"ModelName": "SM-L200", "FirmwareVersion": "2.3"}


def test_end_checked_block_times_out(socket_pair) -> None:
    ours, _ = socket_pair
    port = SocketPort(ours, "TCP:test", "StarLine", timeout_s=2.0)
    port.set_end_checked_block_timeout(0.05)
    with pytest.raises(TransportTimeoutError):
        port.end_checked_block()
    assert ours.gettimeout() == 2.0


def test_closed_peer_is_a_send_error(socket_pair) -> None:
    ours, theirs = socket_pair
    port = SocketPort(ours, "TCP:test", "StarLine", timeout_s=2.0)
    theirs.close()
    with pytest.raises(TransportSendError):
        port.retrieve_status()


@pytest.mark.parametrize("port_name", ["TCP:", "SERIAL:/dev/ttyS0", "printer"])
def test_open_port_rejects_unusable_names(port_name: str) -> None:
    with pytest.raises(TransportConnectError):
        open_port(port_name, "StarLine", timeout_s=1.0)


def test_open_tcp_uses_raw_printing_port(monkeypatch: pytest.MonkeyPatch, socket_pair) -> None:
    ours, _ = socket_pair
    calls = []

    def fake_create_connection(address, timeout):
        calls.append((address, timeout))
        return ours

    monkeypatch.setattr(socket, "create_connection", fake_create_connection)
    port = open_port("TCP:192.168.1.50", "StarLine", timeout_s=10.0)
    assert isinstance(port, SocketPort)
    assert calls == [(("192.168.1.50", 9100), 10.0)]

    open_port("TCP:192.168.1.50:9101", "StarLine", timeout_s=10.0)
    assert calls[1][0] == ("192.168.1.50", 9101)


def test_open_tcp_refused_is_connect_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_create_connection(address, timeout):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(socket, "create_connection", fake_create_connection)
    with pytest.raises(TransportConnectError):
        open_port("TCP:192.168.1.50", "StarLine", timeout_s=1.0)


def test_missing_bluetooth_constants_raises_clean_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delattr(socket, "AF_BLUETOOTH", raising=False)
    monkeypatch.delattr(socket, "BTPROTO_RFCOMM", raising=False)

    with pytest.raises(TransportConnectError):
        open_port("BT:00:11:62:AA:BB:CC", "Portable;l", timeout_s=1.0)


def test_usb_relative_path_is_under_dev_usb(monkeypatch: pytest.MonkeyPatch) -> None:
    opened = []

    def fake_open(path, flags):
        opened.append(path)
        raise FileNotFoundError(path)

    monkeypatch.setattr(stream.os, "open", fake_open)
    with pytest.raises(TransportConnectError):
        open_port("USB:lp0", "StarLine", timeout_s=1.0)
    assert opened == ["/dev/usb/lp0"]
