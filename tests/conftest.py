"""Pytest configuration.

Actions are QObjects and connect to Qt signals, so a single QApplication is
created for the whole session before any test module is imported. The fault
channel is reset around every test so handlers and loops never leak.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

import pytest

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QApplication exists before collecting/running tests."""

    # Headless environments have no display; honour an explicit override.
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    global _APP

    app = QApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtWidgets import QApplication
    except ImportError:
        return

    app = QApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()


@pytest.fixture
def event_loop_channel():
    """A private asyncio loop registered with the fault channel."""
    from view_actions import faults

    loop = asyncio.new_event_loop()
    faults.init(loop)
    try:
        yield loop
    finally:
        faults.teardown(timeout=1.0)
        loop.close()


@pytest.fixture
def fault_sink():
    """Collects (exception, description) pairs reported by the fault channel."""
    from view_actions import faults

    reported: list[tuple[BaseException, str]] = []

    def _handler(exc: BaseException, description: str) -> None:
        reported.append((exc, description))

    faults.add_handler(_handler)
    try:
        yield reported
    finally:
        faults.remove_handler(_handler)
