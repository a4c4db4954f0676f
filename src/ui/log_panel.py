"""
Output panel that mirrors application log records.
"""

import logging
from datetime import datetime, timezone

from PyQt6.QtCore import QObject, pyqtSignal
from PyQt6.QtGui import QFont, QFontDatabase
from PyQt6.QtWidgets import QPlainTextEdit


class IsoTimestampFormatter(logging.Formatter):
    """Formats records as "[2024-01-01T12:00:00.000Z] message"."""

    def formatTime(self, record, datefmt=None):
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{stamp.microsecond // 1000:03d}Z"

    def format(self, record):
        message = super().format(record)
        return f"[{self.formatTime(record)}] {message}"


class _RecordBridge(QObject):
    """Carries formatted log lines onto the GUI thread."""

    line_ready = pyqtSignal(str)


class QtLogHandler(logging.Handler):
    """logging.Handler that forwards formatted lines through a Qt signal."""

    def __init__(self, level: int = logging.INFO):
        super().__init__(level)
        self.bridge = _RecordBridge()
        self.setFormatter(IsoTimestampFormatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return
        self.bridge.line_ready.emit(line)


class LogPanel(QPlainTextEdit):
    """Read-only, append-only log view."""

    MAX_BLOCKS = 5000

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setReadOnly(True)
        self.setMaximumBlockCount(self.MAX_BLOCKS)
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        font = QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont)
        if font.pointSize() <= 0:
            font = QFont(font.family(), 10)
        self.setFont(font)

        self._handler: QtLogHandler | None = None
        self._logger: logging.Logger | None = None

    def append_line(self, line: str) -> None:
        """Append one line to the panel."""
        self.appendPlainText(line)

    def attach(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> QtLogHandler:
        """Start mirroring records from logger (root by default)."""
        self.detach()
        self._logger = logger or logging.getLogger()
        self._handler = QtLogHandler(level)
        self._handler.bridge.line_ready.connect(self.append_line)
        self._logger.addHandler(self._handler)
        return self._handler

    def detach(self) -> None:
        """Stop mirroring log records."""
        if self._handler is not None and self._logger is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
        self._handler = None
        self._logger = None
