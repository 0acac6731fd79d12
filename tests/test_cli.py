from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from starprnt import cli
from starprnt.core.errors import PrinterSelectionError, StatusCheckError
from starprnt.core.model import PortDescriptor, PrinterProfile, PrinterStatus, PrintResult, SessionOutcome, StatusReport


class FakeService:
    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.profiles = {
            "kitchen": PrinterProfile(id="kitchen", name="Kitchen", emulation="StarLine", port="TCP:10.0.0.7"),
        }

    def list_profiles(self):
        return list(self.profiles.values())

    def port_discovery(self, interface):
        return [
            PortDescriptor(port_name="BT:00:11:62:AA:BB:CC", mac_address="00:11:62:AA:BB:CC", model_name="BT:SM-L200"),
            PortDescriptor(port_name="TCP:10.0.0.7"),
        ]

    def check_status(self, port_name, emulation):
        if port_name == "TCP:dead":
            raise StatusCheckError("Connect to dead:9100 timed out")
        return StatusReport(status=PrinterStatus(), model_name="TSP143", firmware_version="1.0")

    def resolve_target(self, port_name, emulation, profile_id=None):
        if profile_id == "kitchen":
            return port_name or "TCP:10.0.0.7", emulation or "StarLine"
        if profile_id:
            raise PrinterSelectionError(f"Unknown printer profile '{profile_id}'.")
        return port_name, emulation or "StarLine"

    def compile(self, commands, emulation):
        return b"\x1b@hi", ("Command #1 has no recognized operation (appendTypo); skipped",)

    def print(self, port_name, emulation, commands):
        if port_name == "TCP:jammed":
            outcome = SessionOutcome(is_success=False, status=PrinterStatus(paper_jam=True), error_message="Paper Jam")
        else:
            outcome = SessionOutcome(is_success=True, status=PrinterStatus())
        return PrintResult(outcome=outcome, port_name=port_name, emulation=emulation, byte_count=4)


runner = CliRunner()


def _job(tmp_path: Path) -> Path:
    path = tmp_path / "job.yaml"
    path.write_text("- append: hi\n- appendTypo: x\n", encoding="utf-8")
    return path


def test_discover_command(monkeypatch):
    monkeypatch.setattr(cli, "PrinterService", FakeService)
    result = runner.invoke(cli.app, ["discover", "--type", "All"])
    assert result.exit_code == 0
    assert "BT:00:11:62:AA:BB:CC macAddress=00:11:62:AA:BB:CC, modelName=BT:SM-L200" in result.stdout
    assert "TCP:10.0.0.7" in result.stdout


def test_status_command(monkeypatch):
    monkeypatch.setattr(cli, "PrinterService", FakeService)
    result = runner.invoke(cli.app, ["status", "TCP:10.0.0.7"])
    assert result.exit_code == 0
    assert "ModelName: TSP143" in result.stdout


def test_status_command_error(monkeypatch):
    monkeypatch.setattr(cli, "PrinterService", FakeService)
    result = runner.invoke(cli.app, ["status", "TCP:dead"])
    assert result.exit_code == 1
    assert "Error: Connect to dead:9100 timed out" in result.output


def test_print_command_with_profile(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "PrinterService", FakeService)
    result = runner.invoke(cli.app, ["print", str(_job(tmp_path)), "--printer", "kitchen"])
    assert result.exit_code == 0
    assert "Printed 4 bytes to TCP:10.0.0.7 (StarLine)" in result.stdout


def test_print_command_unhealthy_printer(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "PrinterService", FakeService)
    result = runner.invoke(cli.app, ["print", str(_job(tmp_path)), "--port", "TCP:jammed"])
    assert result.exit_code == 1
    assert "Error: Paper Jam" in result.output


def test_print_command_dry_run(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "PrinterService", FakeService)
    result = runner.invoke(cli.app, ["print", str(_job(tmp_path)), "--dry-run", "--emulation", "StarPRNT"])
    assert result.exit_code == 0
    assert "4 bytes for StarPRNT" in result.stdout
    assert "1b406869" in result.stdout


def test_print_command_unknown_profile(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "PrinterService", FakeService)
    result = runner.invoke(cli.app, ["print", str(_job(tmp_path)), "--printer", "garage"])
    assert result.exit_code == 1
    assert "Unknown printer profile 'garage'" in result.output


def test_print_command_missing_job(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "PrinterService", FakeService)
    result = runner.invoke(cli.app, ["print", str(tmp_path / "missing.yaml"), "--port", "TCP:10.0.0.7"])
    assert result.exit_code == 1
    assert "Could not read job file" in result.output


def test_profiles_command(monkeypatch):
    monkeypatch.setattr(cli, "PrinterService", FakeService)
    result = runner.invoke(cli.app, ["profiles"])
    assert result.exit_code == 0
    assert "kitchen: Kitchen [StarLine] port=TCP:10.0.0.7" in result.stdout


def test_encodings_command():
    result = runner.invoke(cli.app, ["encodings"])
    assert result.exit_code == 0
    assert result.stdout.split() == ["US-ASCII", "Windows-1252", "Shift-JIS", "Windows-1251", "GB2312", "Big5", "UTF-8"]
