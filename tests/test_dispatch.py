from __future__ import annotations

import threading

import pytest

from starprnt.core.dispatch import Dispatcher
from starprnt.core.errors import DispatchQueueFullError, NotImplementedMethodError


def test_completions_are_delivered_on_the_draining_thread() -> None:
    delivered: list[tuple[int, object, int]] = []
    handlers = {"checkStatus": lambda args: {"portName": args["portName"]}}

    with Dispatcher(handlers) as dispatcher:
        ticket = dispatcher.submit(
            "checkStatus",
            {"portName": "TCP:printer"},
            callback=lambda c: delivered.append((c.ticket, c.result, threading.get_ident())),
        )
        completion = dispatcher.wait(timeout=5)

    assert completion.ok
    assert completion.ticket == ticket
    assert delivered == [(ticket, {"portName": "TCP:printer"}, threading.get_ident())]


def test_each_ticket_completes_exactly_once() -> None:
    with Dispatcher({"print": lambda args: args["n"]}, max_workers=3) as dispatcher:
        tickets = {dispatcher.submit("print", {"n": n}) for n in range(5)}
        completions = [dispatcher.wait(timeout=5) for _ in range(5)]
        assert dispatcher.drain() == []

    assert {c.ticket for c in completions} == tickets
    assert sorted(c.result for c in completions) == [0, 1, 2, 3, 4]


def test_unknown_method_completes_with_error() -> None:
    with Dispatcher({}) as dispatcher:
        dispatcher.submit("cutPaperNow")
        completion = dispatcher.wait(timeout=5)

    assert not completion.ok
    assert isinstance(completion.error, NotImplementedMethodError)


def test_handler_exception_is_captured() -> None:
    def boom(args):
        raise RuntimeError("port exploded")

    with Dispatcher({"connect": boom}) as dispatcher:
        dispatcher.submit("connect")
        completion = dispatcher.wait(timeout=5)

    assert str(completion.error) == "port exploded"


def test_submissions_beyond_bound_are_rejected() -> None:
    release = threading.Event()

    with Dispatcher({"portDiscovery": lambda args: release.wait(timeout=5)}, max_pending=1) as dispatcher:
        dispatcher.submit("portDiscovery")
        with pytest.raises(DispatchQueueFullError):
            dispatcher.submit("portDiscovery")

        release.set()
        dispatcher.wait(timeout=5)
        dispatcher.submit("portDiscovery")
        assert dispatcher.wait(timeout=5).ok


def test_wait_times_out_when_nothing_completes() -> None:
    with Dispatcher({}) as dispatcher:
        with pytest.raises(TimeoutError):
            dispatcher.wait(timeout=0.01)
