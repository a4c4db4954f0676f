"""
Settings dialog for the Ollama connection and completion behavior.
"""

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QGroupBox,
    QLineEdit,
    QVBoxLayout,
)

from ai.providers.ollama import DEFAULT_HOST
from core.settings import SettingsManager

# Suggested models (the field stays editable)
COMPLETION_MODELS = [
    "llama3.2:3b",
    "qwen2.5-coder:1.5b",
    "deepseek-coder:1.3b",
    "codellama:7b",
]


class SettingsDialog(QDialog):
    """Dialog for application settings."""

    settings_changed = pyqtSignal()

    def __init__(self, parent=None, settings_manager: SettingsManager | None = None):
        super().__init__(parent)
        self.settings_manager = settings_manager or SettingsManager()
        self.setWindowTitle(self.tr("Settings"))
        self.setMinimumWidth(420)

        self._setup_ui()
        self._load_settings()

    def _setup_ui(self):
        layout = QVBoxLayout(self)

        ollama_group = QGroupBox(self.tr("Ollama"))
        form = QFormLayout(ollama_group)

        self.host_edit = QLineEdit()
        self.host_edit.setPlaceholderText(DEFAULT_HOST)
        form.addRow(self.tr("Host:"), self.host_edit)

        self.model_combo = QComboBox()
        self.model_combo.setEditable(True)
        self.model_combo.addItems(COMPLETION_MODELS)
        form.addRow(self.tr("Model:"), self.model_combo)

        layout.addWidget(ollama_group)

        completion_group = QGroupBox(self.tr("Completion"))
        completion_layout = QVBoxLayout(completion_group)
        self.enabled_check = QCheckBox(self.tr("Show inline suggestions while typing"))
        completion_layout.addWidget(self.enabled_check)
        layout.addWidget(completion_group)

        buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _load_settings(self):
        """Fill the form from saved settings."""
        self.host_edit.setText(self.settings_manager.get_ollama_host())
        self.model_combo.setCurrentText(self.settings_manager.get_ollama_model())
        self.enabled_check.setChecked(self.settings_manager.get_completion_enabled())

    def accept(self):
        """Save settings and notify listeners."""
        host = self.host_edit.text().strip() or DEFAULT_HOST
        self.settings_manager.set_ollama_host(host)
        model = self.model_combo.currentText().strip()
        if model:
            self.settings_manager.set_ollama_model(model)
        self.settings_manager.set_completion_enabled(self.enabled_check.isChecked())
        self.settings_changed.emit()
        super().accept()
