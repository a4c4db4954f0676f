"""
AI code completion controller: connects the editor to the orchestrator.

Implements the CompletionHost capabilities (error notifications and status
updates) as Qt signals, forwards editor requests, and shows ghost text.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine

from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import QMainWindow

from ai.document import Position
from ai.orchestrator import (
    CancellationToken,
    CompletionOrchestrator,
    Scheduler,
    ServiceStatus,
)
from ai.providers.ollama import OllamaClient
from core.settings import SettingsManager
from ui.editor_tab import EditorTab

logger = logging.getLogger(__name__)


class CompletionController(QObject):
    """Manages AI code completion lifecycle and UI state.

    Owns the CompletionOrchestrator and acts as its host: status changes and
    error notifications are re-emitted as signals for the window to display.
    """

    service_status_changed = pyqtSignal(object, str)  # ServiceStatus, model
    error_notified = pyqtSignal(str)
    enabled_changed = pyqtSignal(bool)

    def __init__(
        self,
        parent: QMainWindow | None,
        get_editor: Callable[[], EditorTab | None],
        settings_manager: SettingsManager,
        client: OllamaClient | None = None,
        scheduler: Scheduler | None = None,
    ):
        super().__init__(parent)
        self._get_editor = get_editor
        self._settings = settings_manager
        self._enabled = settings_manager.get_completion_enabled()
        self._token: CancellationToken | None = None
        self._tasks: set[asyncio.Task] = set()

        self._orchestrator = CompletionOrchestrator(
            settings_manager.get_service_config(),
            client=client,
            host=self,
            scheduler=scheduler,
        )

        self.toggle_action: QAction | None = None
        self.check_action: QAction | None = None

    @property
    def orchestrator(self) -> CompletionOrchestrator:
        return self._orchestrator

    def setup(self, window: QMainWindow) -> list[QAction]:
        """Create the toggle and status-check actions.

        Returns:
            The actions, for the window to place in a menu.
        """
        self.toggle_action = QAction(window.tr("Inline Completion"), window)
        self.toggle_action.setCheckable(True)
        self.toggle_action.setChecked(self._enabled)
        self.toggle_action.setShortcut(QKeySequence("Ctrl+Shift+Space"))
        self.toggle_action.toggled.connect(self.set_enabled)

        self.check_action = QAction(window.tr("Check Service Status"), window)
        self.check_action.triggered.connect(self.check_status)

        return [self.toggle_action, self.check_action]

    def connect_editor(self, editor: EditorTab) -> None:
        """Wire completion signals for the editor."""
        editor.set_completion_enabled(self._enabled)
        editor.completion_requested.connect(self._on_editor_requested)

    def disconnect_editor(self, editor: EditorTab) -> None:
        """Disconnect completion signals from an editor."""
        with contextlib.suppress(TypeError):
            editor.completion_requested.disconnect(self._on_editor_requested)
        editor.set_completion_enabled(False)

    def is_enabled(self) -> bool:
        """Check if completion is enabled."""
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable completion."""
        if enabled == self._enabled:
            return
        self._enabled = enabled
        self._settings.set_completion_enabled(enabled)
        if not enabled:
            self.cancel()
        editor = self._get_editor()
        if editor:
            editor.set_completion_enabled(enabled)
        if self.toggle_action and self.toggle_action.isChecked() != enabled:
            self.toggle_action.setChecked(enabled)
        self.enabled_changed.emit(enabled)

    def activate(self) -> None:
        """Run the initial availability check."""
        self._spawn(self._orchestrator.activate())

    def check_status(self) -> None:
        """Re-check the service on user request."""
        self._spawn(self._orchestrator.check_status())

    def refresh_settings(self) -> None:
        """Re-read settings after the settings dialog closes."""
        self.set_enabled(self._settings.get_completion_enabled())
        config = self._settings.get_service_config()
        if config != self._orchestrator.config:
            self._spawn(self._orchestrator.update_config(config))

    def cancel(self) -> None:
        """Cancel the current request and clear any ghost text."""
        if self._token:
            self._token.cancel()
            self._token = None
        editor = self._get_editor()
        if editor:
            editor.clear_ghost_text()

    def dispose(self) -> None:
        """Stop the debounce timer and abandon in-flight requests."""
        if self._token:
            self._token.cancel()
            self._token = None
        self._orchestrator.dispose()
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    # ─── CompletionHost ───

    def show_error(self, message: str) -> None:
        self.error_notified.emit(message)

    def status_changed(self, status: ServiceStatus, model: str) -> None:
        self.service_status_changed.emit(status, model)

    # ─── Internal handlers ───

    def _spawn(self, coro: Coroutine) -> asyncio.Task | None:
        try:
            loop = asyncio.get_event_loop()
            task = loop.create_task(coro)
        except RuntimeError:
            coro.close()
            logger.debug("No event loop available for completion request")
            return None
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _on_editor_requested(self, line: int, character: int) -> None:
        """Supersede the previous request and start a new one."""
        if not self._enabled:
            return
        editor = self._get_editor()
        if editor is None:
            return

        if self._token:
            self._token.cancel()
        token = CancellationToken()
        self._token = token
        self._spawn(self._complete(editor, Position(line, character), token))

    async def _complete(
        self, editor: EditorTab, position: Position, token: CancellationToken
    ) -> None:
        suggestion = await self._orchestrator.request(editor, position, token)
        if suggestion is None or token.is_cancellation_requested:
            return
        # Cursor moved on while the model was thinking
        if editor is not self._get_editor() or editor.cursor_position() != suggestion.position:
            return
        if self._enabled:
            editor.set_ghost_text(suggestion.text, suggestion.position)
