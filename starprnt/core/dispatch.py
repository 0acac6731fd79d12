"""Run printer calls on worker threads and deliver results on the caller's thread.

Work runs on a bounded thread pool. Every finished call is pushed once onto a
single completion queue; callbacks only ever run inside ``drain``/``wait`` on
whichever thread calls them, so a UI or event loop keeps ownership of result
delivery.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from types import TracebackType
from typing import Any

from starprnt.core.errors import DispatchQueueFullError, NotImplementedMethodError

LOGGER = logging.getLogger(__name__)

Handler = Callable[[Mapping[str, Any]], Any]


@dataclass(frozen=True)
class Completion:
    ticket: int
    method: str
    result: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


Callback = Callable[[Completion], None]


class Dispatcher:
    def __init__(
        self,
        handlers: Mapping[str, Handler],
        *,
        max_workers: int = 2,
        max_pending: int = 16,
    ) -> None:
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self._handlers = dict(handlers)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="starprnt-dispatch")
        self._slots = threading.BoundedSemaphore(max_pending)
        self._completions: queue.Queue[tuple[Completion, Callback | None]] = queue.Queue()
        self._tickets = itertools.count(1)
        self.max_pending = max_pending

    def submit(
        self,
        method: str,
        arguments: Mapping[str, Any] | None = None,
        callback: Callback | None = None,
    ) -> int:
        """Queue ``method`` and return its ticket.

        A call holds its slot until its completion has been delivered.
        """
        if not self._slots.acquire(blocking=False):
            raise DispatchQueueFullError(f"{self.max_pending} calls already pending")
        ticket = next(self._tickets)
        try:
            self._executor.submit(self._run, ticket, method, dict(arguments or {}), callback)
        except RuntimeError:
            self._slots.release()
            raise
        LOGGER.debug("Dispatched %s as ticket %d", method, ticket)
        return ticket

    def _run(self, ticket: int, method: str, arguments: dict[str, Any], callback: Callback | None) -> None:
        handler = self._handlers.get(method)
        try:
            if handler is None:
                raise NotImplementedMethodError(f"Method '{method}' is not implemented")
            completion = Completion(ticket=ticket, method=method, result=handler(arguments))
        except Exception as exc:
            LOGGER.debug("Ticket %d (%s) failed: %s", ticket, method, exc)
            completion = Completion(ticket=ticket, method=method, error=exc)
        self._completions.put((completion, callback))

    def _deliver(self, completion: Completion, callback: Callback | None) -> Completion:
        self._slots.release()
        if callback is not None:
            callback(completion)
        return completion

    def drain(self) -> list[Completion]:
        """Deliver every completion that is ready, without blocking."""
        delivered: list[Completion] = []
        while True:
            try:
                completion, callback = self._completions.get_nowait()
            except queue.Empty:
                return delivered
            delivered.append(self._deliver(completion, callback))

    def wait(self, timeout: float | None = None) -> Completion:
        """Block until one completion is ready and deliver it.

        Raises ``TimeoutError`` when nothing completes within ``timeout``.
        """
        try:
            completion, callback = self._completions.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError(f"No completion within {timeout} seconds") from None
        return self._deliver(completion, callback)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> Dispatcher:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.shutdown()
