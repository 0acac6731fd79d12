"""Transactional print session and standalone status check.

A session owns one port for one call: open, capture status, write when the
printer is healthy, capture status again, release. The port is released
exactly once on every path.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from types import TracebackType

from starprnt.core.errors import PrintTransportError, StatusCheckError
from starprnt.core.model import PrinterStatus, SessionOutcome, StatusReport
from starprnt.transports.base import Port, PortOpener

LOGGER = logging.getLogger(__name__)

OFFLINE_MESSAGE = "A printer is offline"
COVER_OPEN_MESSAGE = "Printer cover is open"
PAPER_EMPTY_MESSAGE = "Paper empty"
PAPER_JAM_MESSAGE = "Paper Jam"
PAPER_NEAR_EMPTY_MESSAGE = "Paper near empty"
NO_DATA_MESSAGE = "No data to print"


@dataclass(frozen=True)
class SessionTimeouts:
    open_s: float = 10.0
    end_checked_block_s: float = 30.0
    print_settle_s: float = 0.1
    status_settle_s: float = 0.5


@dataclass(frozen=True)
class Health:
    healthy: bool
    error_message: str | None
    info_message: str | None


def evaluate_health(status: PrinterStatus) -> Health:
    """Apply the fault priority offline > cover open > paper empty > paper jam.

    Only the first fault is reported. Paper near empty is informational.
    """
    if status.offline:
        error = OFFLINE_MESSAGE
    elif status.cover_open:
        error = COVER_OPEN_MESSAGE
    elif status.receipt_paper_empty:
        error = PAPER_EMPTY_MESSAGE
    elif status.paper_jam:
        error = PAPER_JAM_MESSAGE
    else:
        error = None
    info = PAPER_NEAR_EMPTY_MESSAGE if status.receipt_paper_near_empty else None
    return Health(healthy=error is None, error_message=error, info_message=info)


def empty_job_outcome() -> SessionOutcome:
    return SessionOutcome(is_success=True, status=None, info_message=NO_DATA_MESSAGE)


class DiagnosticTrail:
    def __init__(self) -> None:
        self._markers: list[str] = []

    def mark(self, marker: str) -> None:
        LOGGER.debug("Session step: %s", marker)
        self._markers.append(marker)

    @property
    def text(self) -> str:
        return "".join(f"{marker}," for marker in self._markers)


class PortLease:
    """Context manager that opens a port and always releases it once.

    A release failure is kept in ``release_error`` when the block itself
    succeeded; after an earlier failure it is only logged.
    """

    def __init__(self, opener: PortOpener, port_name: str, port_settings: str, *, timeout_s: float) -> None:
        self._opener = opener
        self.port_name = port_name
        self.port_settings = port_settings
        self.timeout_s = timeout_s
        self.release_error: Exception | None = None
        self._port: Port | None = None

    def __enter__(self) -> Port:
        self._port = self._opener(self.port_name, self.port_settings, timeout_s=self.timeout_s)
        return self._port

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        port, self._port = self._port, None
        if port is None:
            return
        try:
            port.close()
        except Exception as release_exc:
            if exc is None:
                self.release_error = release_exc
            else:
                LOGGER.warning("Releasing %s failed after an earlier error: %s", self.port_name, release_exc)


class PrintSession:
    def __init__(
        self,
        opener: PortOpener,
        *,
        timeouts: SessionTimeouts | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._opener = opener
        self.timeouts = timeouts or SessionTimeouts()
        self._sleep = sleep

    def run(self, port_name: str, port_settings: str, data: bytes) -> SessionOutcome:
        trail = DiagnosticTrail()
        lease = PortLease(self._opener, port_name, port_settings, timeout_s=self.timeouts.open_s)
        try:
            with lease as port:
                trail.mark("Port Opened")
                outcome = self._checked_write(port, data, trail)
        except Exception as exc:
            raise PrintTransportError(str(exc) or "Unknown", trail.text) from exc

        if lease.release_error is not None:
            LOGGER.warning("Releasing %s failed: %s", port_name, lease.release_error)
            if outcome.error_message is None:
                outcome = replace(outcome, error_message=f"Port release failed: {lease.release_error}")
        return outcome

    def _checked_write(self, port: Port, data: bytes, trail: DiagnosticTrail) -> SessionOutcome:
        self._sleep(self.timeouts.print_settle_s)

        status = port.begin_checked_block()
        trail.mark("got status for begin Check")
        health = evaluate_health(status)
        if not health.healthy:
            LOGGER.info("Printer not ready: %s", health.error_message)
            return SessionOutcome(
                is_success=False,
                status=status,
                error_message=health.error_message,
                info_message=health.info_message,
                diagnostic_trail=trail.text,
            )

        trail.mark("Writing to port")
        port.write(data)
        trail.mark("setting delay End check block")
        port.set_end_checked_block_timeout(self.timeouts.end_checked_block_s)
        trail.mark("doing End check block")

        end_block_error: str | None = None
        try:
            status = port.end_checked_block()
        except Exception as exc:
            end_block_error = str(exc)
            trail.mark(f"End check block exception {exc}")
            LOGGER.warning("End of checked block failed; using the status captured before writing: %s", exc)

        begin_info = health.info_message
        health = evaluate_health(status)
        return SessionOutcome(
            is_success=health.healthy,
            status=status,
            error_message=health.error_message,
            info_message=health.info_message or begin_info,
            diagnostic_trail=trail.text,
            end_block_error=end_block_error,
        )


def check_status(
    opener: PortOpener,
    port_name: str,
    port_settings: str,
    *,
    timeouts: SessionTimeouts | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> StatusReport:
    timeouts = timeouts or SessionTimeouts()
    lease = PortLease(opener, port_name, port_settings, timeout_s=timeouts.open_s)
    try:
        with lease as port:
            sleep(timeouts.status_settle_s)
            status = port.retrieve_status()
            report = StatusReport(status=status)
            try:
                info = port.firmware_information()
            except Exception as exc:
                report = replace(report, error_message=str(exc))
            else:
                report = replace(
                    report,
                    model_name=info.get("ModelName"),
                    firmware_version=info.get("FirmwareVersion"),
                )
    except Exception as exc:
        raise StatusCheckError(str(exc)) from exc

    if lease.release_error is not None and report.error_message is None:
        report = replace(report, error_message=f"Port release failed: {lease.release_error}")
    return report
