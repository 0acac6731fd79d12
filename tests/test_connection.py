from __future__ import annotations

import threading

import pytest

from starprnt.core.connection import PrinterConnection
from starprnt.core.errors import ConnectError, ConnectionBusyError, TransportConnectError


class FakePort:
    def __init__(self, name: str) -> None:
        self.name = name
        self.closes = 0

    def close(self) -> None:
        self.closes += 1


class FakeOpener:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, float]] = []
        self.ports: list[FakePort] = []

    def __call__(self, port_name: str, port_settings: str, *, timeout_s: float) -> FakePort:
        self.calls.append((port_name, port_settings, timeout_s))
        port = FakePort(port_name)
        self.ports.append(port)
        return port


def test_connect_returns_confirmation() -> None:
    opener = FakeOpener()
    connection = PrinterConnection(opener)

    assert connection.connect("TCP:printer", "EscPos", has_barcode_reader=True) == "Printer Connected"
    assert connection.connected
    assert connection.has_barcode_reader
    assert opener.calls == [("TCP:printer", "escpos", 10.0)]


def test_reconnect_tears_down_previous_port() -> None:
    opener = FakeOpener()
    connection = PrinterConnection(opener)
    connection.connect("TCP:first", "StarLine")
    connection.connect("TCP:second", "StarPRNT")

    assert opener.ports[0].closes == 1
    assert opener.ports[1].closes == 0
    assert connection.port_name == "TCP:second"


def test_context_manager_disconnects() -> None:
    opener = FakeOpener()
    with PrinterConnection(opener) as connection:
        connection.connect("TCP:printer", "StarLine")
    assert opener.ports[0].closes == 1
    assert not connection.connected


def test_open_failure_surfaces_underlying_message() -> None:
    def failing_opener(port_name: str, port_settings: str, *, timeout_s: float):
        raise TransportConnectError("host unreachable")

    connection = PrinterConnection(failing_opener)
    with pytest.raises(ConnectError, match="host unreachable"):
        connection.connect("TCP:printer", "StarLine")
    assert not connection.connected


def test_concurrent_connect_is_rejected() -> None:
    entered = threading.Event()
    release = threading.Event()

    def slow_opener(port_name: str, port_settings: str, *, timeout_s: float) -> FakePort:
        entered.set()
        release.wait(timeout=5)
        return FakePort(port_name)

    connection = PrinterConnection(slow_opener)
    results: list[str] = []
    worker = threading.Thread(target=lambda: results.append(connection.connect("TCP:first", "StarLine")))
    worker.start()
    try:
        assert entered.wait(timeout=5)
        with pytest.raises(ConnectionBusyError):
            connection.connect("TCP:second", "StarLine")
    finally:
        release.set()
        worker.join(timeout=5)

    assert results == ["Printer Connected"]
    assert connection.port_name == "TCP:first"
