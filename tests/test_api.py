from __future__ import annotations

from pathlib import Path

import pytest

from starprnt.api import Client, PrintTransportError
from starprnt.core.errors import TransportSendError
from starprnt.core.model import PrinterStatus, RawPortInfo


class FakePort:
    def __init__(self, *, fail_write: bool = False) -> None:
        self.fail_write = fail_write
        self.writes: list[bytes] = []
        self.closes = 0

    def retrieve_status(self) -> PrinterStatus:
        return PrinterStatus()

    def begin_checked_block(self) -> PrinterStatus:
        return PrinterStatus()

    def write(self, data: bytes) -> None:
        if self.fail_write:
            raise TransportSendError("Broken pipe")
        self.writes.append(data)

    def set_end_checked_block_timeout(self, timeout_s: float) -> None:
        pass

    def end_checked_block(self) -> PrinterStatus:
        return PrinterStatus()

    def firmware_information(self) -> dict[str, str]:
        return {"ModelName": "TSP143IIIW", "FirmwareVersion": "1.0"}

    def close(self) -> None:
        self.closes += 1


class FakeScanner:
    def search(self, prefix: str) -> list[RawPortInfo]:
        if prefix == "BT:":
            return [RawPortInfo(port_name="BT:Star Micronics", mac_address="00:11:62:AA:BB:CC")]
        return []


@pytest.fixture(autouse=True)
def isolated_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


def _client(port: FakePort) -> Client:
    return Client(opener=lambda name, settings, *, timeout_s: port, scanner=FakeScanner())


def test_public_client_list_profiles() -> None:
    profiles = _client(FakePort()).list_profiles()
    assert any(p.id == "tsp100" for p in profiles)


def test_public_client_port_discovery() -> None:
    ports = _client(FakePort()).port_discovery("Bluetooth")
    assert ports == [
        {"portName": "BT:00:11:62:AA:BB:CC", "macAddress": "00:11:62:AA:BB:CC", "modelName": "BT:Star Micronics"}
    ]


def test_public_client_check_status() -> None:
    client = _client(FakePort())
    client._service._sleep = lambda s: None
    status = client.check_status("TCP:10.0.0.5", "StarLine")
    assert status["is_success"] is True
    assert status["ModelName"] == "TSP143IIIW"


def test_public_client_print() -> None:
    port = FakePort()
    client = _client(port)
    client._service._sleep = lambda s: None

    result = client.print("TCP:10.0.0.5", "StarGraphic", [{"append": "Total 9.99\n"}, {"appendCutPaper": "FullCut"}])

    assert result["is_success"] is True
    assert port.writes == [b"\x1b@Total 9.99\n\x1bd\x00"]
    assert port.closes == 1


def test_public_client_print_transport_failure() -> None:
    port = FakePort(fail_write=True)
    client = _client(port)
    client._service._sleep = lambda s: None

    with pytest.raises(PrintTransportError, match="Writing to port,"):
        client.print("TCP:10.0.0.5", "StarLine", [{"append": "x"}])
    assert port.closes == 1


def test_public_client_connect_and_disconnect() -> None:
    port = FakePort()
    client = _client(port)
    assert client.connect("TCP:10.0.0.5", "StarPRNT") == "Printer Connected"
    client.disconnect()
    assert port.closes == 1
