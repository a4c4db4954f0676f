"""
Application settings.
"""

from PyQt6.QtCore import QSettings

from ai.providers.ollama import DEFAULT_HOST, DEFAULT_MODEL, ServiceConfig


class SettingsManager:
    """Manages application settings."""

    def __init__(self):
        self.settings = QSettings(
            QSettings.Format.IniFormat, QSettings.Scope.UserScope, "Boss", "Completion"
        )

    # Ollama service
    def get_ollama_host(self) -> str:
        """Get the Ollama API host URL."""
        host = self.settings.value("ollama_host", DEFAULT_HOST)
        if not isinstance(host, str) or not host.strip():
            return DEFAULT_HOST
        return host.strip().rstrip("/")

    def set_ollama_host(self, host: str):
        """Set the Ollama API host URL."""
        self.settings.setValue("ollama_host", host.strip().rstrip("/"))

    def get_ollama_model(self) -> str:
        """Get the Ollama model used for completions."""
        model = self.settings.value("ollama_model", DEFAULT_MODEL)
        if not isinstance(model, str) or not model.strip():
            return DEFAULT_MODEL
        return model.strip()

    def set_ollama_model(self, model: str):
        """Set the Ollama model used for completions."""
        self.settings.setValue("ollama_model", model.strip())

    def get_service_config(self) -> ServiceConfig:
        """Snapshot of the current service settings."""
        return ServiceConfig(host=self.get_ollama_host(), model=self.get_ollama_model())

    # Completion
    def get_completion_enabled(self) -> bool:
        """Get whether inline completion is enabled."""
        return self.settings.value("completion_enabled", True, type=bool)

    def set_completion_enabled(self, enabled: bool):
        """Set whether inline completion is enabled."""
        self.settings.setValue("completion_enabled", enabled)

    # Log panel
    def get_log_panel_visible(self) -> bool:
        """Get log panel visibility state."""
        return self.settings.value("log_panel_visible", False, type=bool)

    def set_log_panel_visible(self, visible: bool):
        """Save log panel visibility state."""
        self.settings.setValue("log_panel_visible", visible)

    # Window
    def get_window_geometry(self):
        """Get saved main window geometry (QByteArray or None)."""
        return self.settings.value("window_geometry")

    def set_window_geometry(self, geometry):
        """Save main window geometry."""
        self.settings.setValue("window_geometry", geometry)
