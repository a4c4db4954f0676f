"""
Main application window: one editor, a status bar and the log panel.
"""

from pathlib import Path

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import QDockWidget, QFileDialog, QMainWindow, QMessageBox

from core.settings import SettingsManager
from ui.completion_controller import CompletionController
from ui.editor_tab import EditorTab
from ui.log_panel import LogPanel
from ui.settings_dialog import SettingsDialog
from ui.status_bar_manager import StatusBarManager

FILE_FILTER = (
    "All Files (*);;Python (*.py);;JavaScript (*.js);;TypeScript (*.ts);;"
    "Go (*.go);;Rust (*.rs);;Text Files (*.txt)"
)

# How long completion errors stay in the status bar
ERROR_MESSAGE_MS = 8000


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self, parent=None, settings_manager: SettingsManager | None = None):
        super().__init__(parent)
        self.settings_manager = settings_manager or SettingsManager()

        self._setup_ui()
        self._status_bar_mgr = StatusBarManager(self, self.current_editor)
        self._status_bar_mgr.setup()
        self._status_bar_mgr.connect_editor(self.editor)

        self._completion_ctrl = CompletionController(
            self, self.current_editor, self.settings_manager
        )
        self._completion_ctrl.service_status_changed.connect(
            self._status_bar_mgr.update_service_status
        )
        self._completion_ctrl.error_notified.connect(self._on_completion_error)
        completion_actions = self._completion_ctrl.setup(self)
        self._completion_ctrl.connect_editor(self.editor)

        self._setup_menus(completion_actions)
        self._restore_geometry()
        self._update_window_title()

    @property
    def completion_controller(self) -> CompletionController:
        return self._completion_ctrl

    def _setup_ui(self):
        """Initialize the main UI components."""
        self.setMinimumSize(400, 300)

        self.editor = EditorTab(self)
        self.setCentralWidget(self.editor)

        self.log_panel = LogPanel(self)
        self.log_panel.attach()
        self.log_dock = QDockWidget(self.tr("Output"), self)
        self.log_dock.setObjectName("OutputDock")
        self.log_dock.setWidget(self.log_panel)
        self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, self.log_dock)
        self.log_dock.setVisible(self.settings_manager.get_log_panel_visible())

    def _setup_menus(self, completion_actions: list[QAction]):
        """Create the menu bar and menus."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu(self.tr("&File"))

        open_action = QAction(self.tr("Open"), self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.open_file)
        file_menu.addAction(open_action)

        save_action = QAction(self.tr("Save"), self)
        save_action.setShortcut(QKeySequence.StandardKey.Save)
        save_action.triggered.connect(self.save_file)
        file_menu.addAction(save_action)

        save_as_action = QAction(self.tr("Save as"), self)
        save_as_action.setShortcut(QKeySequence("Ctrl+Shift+S"))
        save_as_action.triggered.connect(self.save_file_as)
        file_menu.addAction(save_as_action)

        file_menu.addSeparator()

        exit_action = QAction(self.tr("Exit"), self)
        exit_action.setShortcut(QKeySequence.StandardKey.Quit)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        # AI menu
        ai_menu = menubar.addMenu(self.tr("&AI"))
        for action in completion_actions:
            ai_menu.addAction(action)
        ai_menu.addSeparator()

        settings_action = QAction(self.tr("Settings..."), self)
        settings_action.setShortcut(QKeySequence("Ctrl+,"))
        settings_action.triggered.connect(self._show_settings)
        ai_menu.addAction(settings_action)

        # View menu
        view_menu = menubar.addMenu(self.tr("&View"))
        log_action = self.log_dock.toggleViewAction()
        log_action.setText(self.tr("Output"))
        log_action.setShortcut(QKeySequence("Ctrl+Shift+U"))
        view_menu.addAction(log_action)

    def _update_window_title(self):
        """Update window title to show current filename."""
        if self.editor.filepath:
            self.setWindowTitle(f"Boss - {Path(self.editor.filepath).name}")
        else:
            self.setWindowTitle("Boss")

    def _restore_geometry(self):
        """Restore window geometry from settings."""
        geometry = self.settings_manager.get_window_geometry()
        if geometry:
            self.restoreGeometry(geometry)
        else:
            self.resize(1000, 700)

    def current_editor(self) -> EditorTab | None:
        """Get the editor."""
        return self.editor

    def activate(self) -> None:
        """Kick off the initial service check (needs a running event loop)."""
        self._completion_ctrl.activate()

    # File operations
    def open_file(self):
        """Open a file dialog and load the selected file."""
        filepath, _ = QFileDialog.getOpenFileName(self, self.tr("Open File"), "", FILE_FILTER)
        if filepath:
            self.open_file_path(filepath)

    def open_file_path(self, filepath: str):
        """Load a file into the editor."""
        # Pending suggestions refer to the old contents
        self._completion_ctrl.cancel()
        try:
            self.editor.load_file(filepath)
        except OSError as e:
            QMessageBox.warning(self, self.tr("Open File"), str(e))
            return
        self._status_bar_mgr.update()
        self._update_window_title()

    def save_file(self):
        """Save the current file."""
        if self.editor.filepath:
            error = self.editor.save_file()
            if error:
                QMessageBox.warning(self, self.tr("Save File"), error)
        else:
            self.save_file_as()

    def save_file_as(self):
        """Save the current file with a new name."""
        filepath, _ = QFileDialog.getSaveFileName(self, self.tr("Save File"), "", FILE_FILTER)
        if filepath:
            error = self.editor.save_file(filepath)
            if error:
                QMessageBox.warning(self, self.tr("Save File"), error)
                return
            self._status_bar_mgr.update()
            self._update_window_title()

    # AI
    def _show_settings(self):
        """Show the settings dialog."""
        dialog = SettingsDialog(self, self.settings_manager)
        dialog.settings_changed.connect(self._completion_ctrl.refresh_settings)
        dialog.exec()

    def _on_completion_error(self, message: str):
        """Show a completion error once, in the status bar."""
        self._status_bar_mgr.show_message(message, ERROR_MESSAGE_MS)

    def closeEvent(self, event):
        """Save geometry and release completion resources on close."""
        if self.editor.document().isModified():
            result = QMessageBox.warning(
                self,
                self.tr("Unsaved Changes"),
                self.tr("Save changes before closing?"),
                QMessageBox.StandardButton.Save
                | QMessageBox.StandardButton.Discard
                | QMessageBox.StandardButton.Cancel,
                QMessageBox.StandardButton.Save,
            )
            if result == QMessageBox.StandardButton.Cancel:
                event.ignore()
                return
            if result == QMessageBox.StandardButton.Save:
                self.save_file()
                if self.editor.document().isModified():
                    event.ignore()
                    return

        self.dispose()
        self.settings_manager.set_log_panel_visible(self.log_dock.isVisible())
        self.settings_manager.set_window_geometry(self.saveGeometry())
        event.accept()

    def dispose(self):
        """Stop completion work and detach the log panel."""
        self._completion_ctrl.dispose()
        self._status_bar_mgr.dispose()
        self.log_panel.detach()
