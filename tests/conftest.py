# =============================================================================
# tests/conftest.py: Shared pytest fixtures for Boss
# =============================================================================
#
# This file is auto-loaded by pytest before any test module runs.
# It provides:
#   - QApplication lifecycle management (one instance per session)
#   - A logical-clock scheduler so debounce timing is deterministic
#   - A recording CompletionHost (status changes + error notifications)
#   - A patched httpx.AsyncClient for Ollama client tests
#   - QSettings isolation so tests never touch real config
#
# =============================================================================

import os
import sys
from unittest.mock import AsyncMock, patch

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# ---------------------------------------------------------------------------
# QApplication singleton: PyQt6 requires exactly one per process
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def qapp():
    """
    Create or reuse a QApplication instance for the test session.

    PyQt6 enforces a single QApplication per process. If one already
    exists (e.g., from pytest-qt), we reuse it.
    """
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([*sys.argv, "--platform", "offscreen"])
        app.setApplicationName("Boss-Tests")

    yield app

    # Note: We do NOT call app.quit() here. Destroying QApplication
    # in a session fixture can cause segfaults if other fixtures
    # still hold QObject references. Let the process exit handle it.


# ---------------------------------------------------------------------------
# Fake scheduler: replaces loop.call_later with a manually advanced clock
# ---------------------------------------------------------------------------


class FakeTimerHandle:
    """Timer handle compatible with asyncio.TimerHandle.cancel()."""

    def __init__(self, due_ms: int, callback):
        self.due_ms = due_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """
    Logical clock in whole milliseconds.

    Timers only fire when a test calls advance(), in due order.
    """

    def __init__(self):
        self.now_ms = 0
        self.timers: list[FakeTimerHandle] = []

    def call_later(self, delay: float, callback) -> FakeTimerHandle:
        handle = FakeTimerHandle(self.now_ms + round(delay * 1000), callback)
        self.timers.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [t for t in self.pending if t.due_ms <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.due_ms)
            self.now_ms = timer.due_ms
            timer.fired = True
            timer.callback()
        self.now_ms = target


@pytest.fixture
def fake_scheduler():
    """A FakeScheduler starting at t=0."""
    return FakeScheduler()


# ---------------------------------------------------------------------------
# Recording host: collects what the orchestrator shows the user
# ---------------------------------------------------------------------------


class RecordingHost:
    """CompletionHost that remembers every notification and status change."""

    def __init__(self):
        self.errors: list[str] = []
        self.statuses: list = []
        self.models: list[str] = []

    def show_error(self, message: str) -> None:
        self.errors.append(message)

    def status_changed(self, status, model: str) -> None:
        self.statuses.append(status)
        self.models.append(model)


@pytest.fixture
def recording_host():
    """A fresh RecordingHost."""
    return RecordingHost()


# ---------------------------------------------------------------------------
# Mock HTTP: patched httpx.AsyncClient for the Ollama client
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_http():
    """
    Patch httpx.AsyncClient inside ai.providers.ollama.

    Yields the mock client; tests set .get / .post to AsyncMocks returning
    httpx.Response objects (or raising httpx errors).

    Usage:
        def test_tags(mock_http):
            mock_http.get = AsyncMock(return_value=httpx.Response(200, json={...}))
    """
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)

    with patch("ai.providers.ollama.httpx.AsyncClient", return_value=mock_client):
        yield mock_client


# ---------------------------------------------------------------------------
# Settings isolation: prevent tests from reading/writing real settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """
    Redirect QSettings to a temp directory so tests never touch real config.

    This runs automatically for every test (autouse=True).
    """
    from PyQt6.QtCore import QSettings

    QSettings.setDefaultFormat(QSettings.Format.IniFormat)
    QSettings.setPath(
        QSettings.Format.IniFormat,
        QSettings.Scope.UserScope,
        str(tmp_path / "settings"),
    )
