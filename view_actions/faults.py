"""Fault channel for asynchronous action results.

An action method may return a coroutine or a future. The dispatcher does not
wait for it; instead the result is handed to this channel, which schedules it
and reports any failure exactly once: logged, then passed to the registered
handlers (or ``sys.excepthook`` when there are none).

A coroutine is started right away: its synchronous part (up to the first
await that suspends) runs inside ``track()``, the rest is scheduled as a task.
Without a running loop or one passed to ``init()``, a qasync loop is attached
to the Qt application so ``app.exec()`` drives the remaining steps.

Lifecycle: ``init()`` at host startup, ``teardown()`` at shutdown.
"""

from __future__ import annotations

import asyncio
import collections.abc
import concurrent.futures
import inspect
import sys
import threading
from collections.abc import Callable
from typing import Any

from PySide6.QtCore import QCoreApplication
from qasync import QEventLoop

from .logger import get_logger
from .settings_manager import get_settings

_logger = get_logger("faults")

FaultHandler = Callable[[BaseException, str], None]


def _excepthook_handler(exc: BaseException, description: str) -> None:  # noqa: ARG001
    sys.excepthook(type(exc), exc, exc.__traceback__)


def is_async_result(value: Any) -> bool:
    return isinstance(value, concurrent.futures.Future) or inspect.isawaitable(value)


def _qt_application() -> QCoreApplication | None:
    return QCoreApplication.instance()


class _Resumed(collections.abc.Coroutine):
    """A coroutine that was already advanced to its first suspension point.

    The first ``send`` hands the task what the coroutine yielded back then;
    everything after that is forwarded unchanged.
    """

    def __init__(self, steps: Any, first_yield: Any) -> None:
        self._steps = steps
        self._first_yield = first_yield
        self._primed = False

    def send(self, value: Any) -> Any:
        if not self._primed:
            self._primed = True
            return self._first_yield
        return self._steps.send(value)

    def throw(self, typ: Any, val: Any = None, tb: Any = None) -> Any:
        self._primed = True
        if val is None and tb is None:
            return self._steps.throw(typ)
        return self._steps.throw(typ, val, tb)

    def close(self) -> None:
        self._steps.close()

    def __await__(self) -> Any:
        return self

    def __iter__(self) -> Any:
        return self

    def __next__(self) -> Any:
        return self.send(None)


class FaultChannel:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._handlers: list[FaultHandler] = []
        self._pending: dict[Any, str] = {}
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Start the channel; `loop` runs coroutines when none is running."""
        with self._lock:
            self._loop = loop
            self._initialized = True
        _logger.debug("fault channel initialised (loop=%r)", loop)

    def teardown(self, timeout: float | None = None) -> None:
        """Let pending work finish so its failures are still reported, then reset."""
        with self._lock:
            pending = list(self._pending)
            loop = self._loop

        async_pending = [f for f in pending if isinstance(f, asyncio.Future)]
        if async_pending and loop is not None and not loop.is_running() and not loop.is_closed():
            loop.run_until_complete(asyncio.gather(*async_pending, return_exceptions=True))

        thread_pending = [f for f in pending if isinstance(f, concurrent.futures.Future)]
        if thread_pending:
            concurrent.futures.wait(thread_pending, timeout=timeout)

        with self._lock:
            remaining = len(self._pending)
            self._pending.clear()
            self._handlers.clear()
            self._loop = None
            self._initialized = False
        if remaining:
            _logger.warning("fault channel torn down with %d invocation(s) still running", remaining)
        else:
            _logger.debug("fault channel torn down")

    def add_handler(self, handler: FaultHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def remove_handler(self, handler: FaultHandler) -> None:
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)

    def pending(self) -> list[Any]:
        with self._lock:
            return list(self._pending)

    def track(self, result: Any, description: str) -> asyncio.Future | concurrent.futures.Future:
        """Observe `result` without waiting for it and return the future to watch.

        Coroutines run up to their first suspension before this returns; one
        that finishes (or fails) in that synchronous part comes back as a
        future that is already done.
        """
        if isinstance(result, (asyncio.Future, concurrent.futures.Future)):
            future = result
        elif inspect.isawaitable(result):
            future = self._start(result, description)
            if future.done():
                return future
        else:
            raise TypeError(f"{description} did not return an awaitable: {result!r}")

        with self._lock:
            self._pending[future] = description
        future.add_done_callback(self._on_done)
        return future

    def _start(self, awaitable: Any, description: str) -> asyncio.Future:
        loop = self._loop_for(awaitable)
        if inspect.iscoroutine(awaitable) or inspect.isgenerator(awaitable):
            steps = awaitable
        else:
            steps = awaitable.__await__()

        # Loop-bound primitives (Event, Lock, sleep) look up the running loop.
        outer = asyncio._get_running_loop()
        if outer is None:
            asyncio._set_running_loop(loop)
        try:
            first_yield = steps.send(None)
        except StopIteration as done:
            future = loop.create_future()
            future.set_result(done.value)
            return future
        except asyncio.CancelledError:
            future = loop.create_future()
            future.cancel()
            return future
        except Exception as e:
            future = loop.create_future()
            future.set_exception(e)
            future.exception()  # reported below; keeps asyncio from logging it again
            self.report(e, description)
            return future
        finally:
            if outer is None:
                asyncio._set_running_loop(None)

        return loop.create_task(_Resumed(steps, first_yield))

    def _loop_for(self, awaitable: Any) -> asyncio.AbstractEventLoop:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            pass
        if self._loop is not None and not self._loop.is_closed():
            return self._loop

        app = _qt_application()
        if app is not None:
            # The host runs app.exec(); qasync feeds the loop's callbacks through Qt timers.
            loop = QEventLoop(app, already_running=True)
            with self._lock:
                self._loop = loop
                self._initialized = True
            _logger.info("no event loop given; attached a qasync loop to %s", type(app).__name__)
            return loop

        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise RuntimeError(
            "No event loop to run the action on and no Qt application to attach one to; "
            "call view_actions.faults.init(loop) at startup"
        )

    def _on_done(self, future: Any) -> None:
        with self._lock:
            description = self._pending.pop(future, "action")
        if future.cancelled():
            _logger.debug("%s was cancelled", description)
            return
        exc = future.exception()
        if exc is None:
            return
        self.report(exc, description)

    def report(self, exc: BaseException, description: str) -> None:
        _logger.error("Unobserved failure in %s", description, exc_info=(type(exc), exc, exc.__traceback__))
        with self._lock:
            handlers = list(self._handlers) or [_excepthook_handler]
        for handler in handlers:
            handler(exc, description)


_channel = FaultChannel()


def get_fault_channel() -> FaultChannel:
    return _channel


def init(loop: asyncio.AbstractEventLoop | None = None) -> None:
    _channel.init(loop)


def teardown(timeout: float | None = None) -> None:
    if timeout is None:
        timeout = get_settings().fault_join_timeout
    _channel.teardown(timeout)


def add_handler(handler: FaultHandler) -> None:
    _channel.add_handler(handler)


def remove_handler(handler: FaultHandler) -> None:
    _channel.remove_handler(handler)


def track(result: Any, description: str) -> asyncio.Future | concurrent.futures.Future:
    return _channel.track(result, description)


def pending() -> list[Any]:
    return _channel.pending()
