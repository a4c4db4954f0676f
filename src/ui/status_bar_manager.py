"""
Status bar manager: creates and updates the status bar indicators.
"""

from collections.abc import Callable

from PyQt6.QtWidgets import QLabel, QMainWindow, QStatusBar

from ai.orchestrator import ServiceStatus
from ui.editor_tab import EditorTab

STATUS_PREFIX = "✦ Boss"


class StatusBarManager:
    """Manages the status bar and its indicator labels.

    Reads editor state via a callable accessor and shows the completion
    service status reported by the CompletionController.
    """

    def __init__(
        self,
        window: QMainWindow,
        get_editor: Callable[[], EditorTab | None],
    ):
        self._window = window
        self._get_editor = get_editor

        # Labels, created in setup()
        self.statusbar: QStatusBar | None = None
        self.position_label: QLabel | None = None
        self.language_label: QLabel | None = None
        self.service_label: QLabel | None = None

    def setup(self) -> QStatusBar:
        """Create the status bar with all indicators.

        Returns:
            The QStatusBar instance (also set on the window).
        """
        self.statusbar = QStatusBar(self._window)
        self._window.setStatusBar(self.statusbar)

        self.position_label = QLabel("Ln 1, Col 1")
        self.statusbar.addPermanentWidget(self.position_label)

        self.language_label = QLabel("plaintext")
        self.statusbar.addPermanentWidget(self.language_label)

        self.service_label = QLabel()
        self.statusbar.addPermanentWidget(self.service_label)
        self.update_service_status(ServiceStatus.STARTING, "")

        return self.statusbar

    def connect_editor(self, editor: EditorTab) -> None:
        """Connect editor signals for status bar updates."""
        editor.cursorPositionChanged.connect(self.update)
        self.update()

    def update(self) -> None:
        """Update the cursor and language indicators from the current editor."""
        editor = self._get_editor()
        if not editor or not self.position_label:
            return

        position = editor.cursor_position()
        self.position_label.setText(f"Ln {position.line + 1}, Col {position.character + 1}")
        self.language_label.setText(editor.language_id)

    def update_service_status(self, status: ServiceStatus, model: str) -> None:
        """Show the completion service status."""
        if not self.service_label:
            return
        self.service_label.setText(f"{STATUS_PREFIX}: {status.label}")
        self.service_label.setToolTip(f"Using model: {model}" if model else "")

    def show_message(self, msg: str, timeout_ms: int = 3000) -> None:
        """Show a temporary message in the status bar."""
        if self.statusbar:
            self.statusbar.showMessage(msg, timeout_ms)

    def dispose(self) -> None:
        """Remove the service indicator."""
        if self.statusbar and self.service_label:
            self.statusbar.removeWidget(self.service_label)
            self.service_label.deleteLater()
        self.service_label = None
