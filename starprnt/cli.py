"""Typer CLI entrypoint."""

from __future__ import annotations

from pathlib import Path

import typer

from starprnt.core.encoding import known_encodings
from starprnt.core.errors import StarPrntError
from starprnt.core.job_loader import load_job
from starprnt.core.service import PrinterService
from starprnt.logging import configure_logging
from starprnt.transports.scanner import SystemScanner

app = typer.Typer(help="Star receipt printer control: discover, query status and print jobs")


def _build_service(**kwargs) -> PrinterService:
    service = PrinterService(**kwargs)
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    for warning in getattr(service, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _echo_fields(data: dict) -> None:
    for key, value in data.items():
        typer.echo(f"  {key}: {value}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Also write logs to this file"),
) -> None:
    configure_logging("DEBUG" if verbose else "WARNING", log_path=log_file)


@app.command("discover")
def discover(
    interface: str = typer.Option("All", "--type", help="Bluetooth, LAN, USB or All"),
    hosts: list[str] = typer.Option([], "--host", help="Host to probe for LAN printers (repeatable)"),
) -> None:
    """List printer ports found on the given interface."""
    try:
        service = _build_service(scanner=SystemScanner(tcp_hosts=hosts))
        ports = service.port_discovery(interface)
        if not ports:
            typer.echo("No printers found")
            return

        for port in ports:
            details = ", ".join(f"{k}={v}" for k, v in port.to_dict().items() if k != "portName")
            typer.echo(f"{port.port_name} {details}".rstrip())
    except StarPrntError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("status")
def status(
    port: str,
    emulation: str | None = typer.Option(None, "--emulation", help="Printer emulation, e.g. StarPRNT"),
) -> None:
    """Query printer status and firmware information on PORT."""
    try:
        service = _build_service()
        report = service.check_status(port, emulation)
        typer.echo(f"Status of {port}:")
        _echo_fields(report.to_dict())
    except StarPrntError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("print")
def print_job(
    job_file: Path,
    port: str | None = typer.Option(None, "--port", help="Printer port, e.g. TCP:192.168.1.50"),
    emulation: str | None = typer.Option(None, "--emulation", help="Printer emulation, e.g. StarPRNT"),
    printer: str | None = typer.Option(None, "--printer", help="Printer profile ID"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compile only and print the bytes as hex"),
) -> None:
    """Compile JOB_FILE and send it to the printer.

    Options override the job file's own hints, which override the profile.
    """
    try:
        job = load_job(job_file)
        service = _build_service()
        port_name, kind = service.resolve_target(
            port or job.port,
            emulation or job.emulation,
            printer or job.printer,
        )

        if dry_run:
            data, warnings = service.compile(job.commands, kind)
            for warning in warnings:
                typer.echo(f"Warning: {warning}", err=True)
            typer.echo(f"{len(data)} bytes for {kind}")
            typer.echo(data.hex())
            return

        result = service.print(port_name, kind, job.commands)
        for warning in result.warnings:
            typer.echo(f"Warning: {warning}", err=True)
        outcome = result.outcome
        if outcome.end_block_error:
            typer.echo(f"Warning: end of checked block failed: {outcome.end_block_error}", err=True)
        if not outcome.is_success:
            typer.echo(f"Error: {outcome.error_message}", err=True)
            raise typer.Exit(code=1)

        target = result.port_name or "<none>"
        typer.echo(f"Printed {result.byte_count} bytes to {target} ({result.emulation})")
        if outcome.info_message:
            typer.echo(outcome.info_message)
    except StarPrntError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("profiles")
def list_profiles() -> None:
    """List available printer profiles."""
    try:
        service = _build_service()
        profiles = service.list_profiles()
        if not profiles:
            typer.echo("No profiles loaded")
            raise typer.Exit(code=1)

        for profile in profiles:
            port = f" port={profile.port}" if profile.port else ""
            typer.echo(f"{profile.id}: {profile.name} [{profile.emulation}]{port}")
    except StarPrntError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("encodings")
def list_encodings() -> None:
    """List text encoding names accepted by appendEncoding."""
    for name in known_encodings():
        typer.echo(name)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
