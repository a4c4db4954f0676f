"""
Editor widget: a plain-text code editor that shows inline suggestions.
"""

from pathlib import Path

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QColor, QFont, QFontDatabase, QPainter
from PyQt6.QtWidgets import QPlainTextEdit

from ai.document import Position

# File extension → editor language identifier
LANGUAGE_IDS = {
    ".py": "python",
    ".pyw": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".jsx": "javascriptreact",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".rb": "ruby",
    ".php": "php",
    ".sh": "shellscript",
    ".html": "html",
    ".css": "css",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".md": "markdown",
    ".sql": "sql",
}


def get_language_id(filepath: str) -> str:
    """Map a file path to a language identifier ("plaintext" if unknown)."""
    return LANGUAGE_IDS.get(Path(filepath).suffix.lower(), "plaintext")


class EditorTab(QPlainTextEdit):
    """A code editor that also serves as the TextDocument for completion."""

    # Emitted after a text-producing key press (line, character)
    completion_requested = pyqtSignal(int, int)

    def __init__(self, parent=None):
        super().__init__(parent)

        self.filepath: str | None = None
        self.language_id = "plaintext"

        # Ghost text (inline completion suggestion)
        self._ghost_text: str = ""
        self._ghost_text_line: int = -1
        self._ghost_text_col: int = -1
        self._completion_enabled = False

        self._setup_editor()

    def _setup_editor(self):
        """Configure the editor appearance and behavior."""
        font = QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont)
        if font.pointSize() <= 0:
            font = QFont(font.family(), 12)
        self.setFont(font)
        self.document().setDefaultFont(font)

        # Tab settings (4 spaces)
        self.setTabStopDistance(self.fontMetrics().horizontalAdvance(" ") * 4)
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)

    # ─── TextDocument ───

    @property
    def line_count(self) -> int:
        return self.document().blockCount()

    def line_at(self, index: int) -> str:
        block = self.document().findBlockByNumber(index)
        if not block.isValid():
            raise IndexError(f"Line {index} out of range (0..{self.line_count - 1})")
        return block.text()

    def cursor_position(self) -> Position:
        """Current cursor as a zero-based Position."""
        cursor = self.textCursor()
        return Position(cursor.blockNumber(), cursor.positionInBlock())

    # ─── Files ───

    def load_file(self, filepath: str):
        """Load content from a file."""
        self.filepath = filepath
        self.language_id = get_language_id(filepath)

        try:
            with open(filepath, encoding="utf-8") as f:
                self.setPlainText(f.read())
        except UnicodeDecodeError:
            with open(filepath) as f:
                self.setPlainText(f.read())

        self.document().setModified(False)

    def save_file(self, filepath: str | None = None) -> str | None:
        """Save content to a file.

        Returns:
            Error message, or None on success.
        """
        if filepath:
            self.filepath = filepath
            self.language_id = get_language_id(filepath)

        if not self.filepath:
            return None
        try:
            with open(self.filepath, "w", encoding="utf-8") as f:
                f.write(self.toPlainText())
        except OSError as e:
            return f"Could not save {self.filepath}: {e}"
        self.document().setModified(False)
        return None

    # ─── Ghost text (inline completion) ───

    def set_completion_enabled(self, enabled: bool) -> None:
        """Enable or disable completion requests from this editor."""
        self._completion_enabled = enabled
        if not enabled:
            self.clear_ghost_text()

    def is_completion_enabled(self) -> bool:
        return self._completion_enabled

    def set_ghost_text(self, text: str, position: Position | None = None) -> None:
        """Show ghost text at position (default: the current cursor)."""
        if not text:
            self.clear_ghost_text()
            return
        position = position or self.cursor_position()
        self._ghost_text = text
        self._ghost_text_line = position.line
        self._ghost_text_col = position.character
        self.viewport().update()

    def clear_ghost_text(self) -> None:
        """Remove any visible ghost text."""
        if self._ghost_text:
            self._ghost_text = ""
            self._ghost_text_line = -1
            self._ghost_text_col = -1
            self.viewport().update()

    def has_ghost_text(self) -> bool:
        """Check if ghost text is currently displayed."""
        return bool(self._ghost_text)

    def ghost_text(self) -> str:
        return self._ghost_text

    def accept_ghost_text(self) -> None:
        """Insert the ghost text at its anchor position."""
        if not self._ghost_text:
            return

        block = self.document().findBlockByNumber(self._ghost_text_line)
        cursor = self.textCursor()
        if block.isValid():
            col = min(self._ghost_text_col, len(block.text()))
            cursor.setPosition(block.position() + col)
        cursor.insertText(self._ghost_text)
        self.setTextCursor(cursor)
        self.clear_ghost_text()

    def keyPressEvent(self, event) -> None:
        """Handle key presses for ghost text accept/dismiss and completion triggers."""
        # Tab: accept ghost text
        if event.key() == Qt.Key.Key_Tab and self.has_ghost_text():
            self.accept_ghost_text()
            return

        # Escape: dismiss ghost text
        if event.key() == Qt.Key.Key_Escape and self.has_ghost_text():
            self.clear_ghost_text()
            return

        # Any other key clears ghost text
        if self.has_ghost_text():
            self.clear_ghost_text()

        super().keyPressEvent(event)

        if self._completion_enabled and event.text():
            position = self.cursor_position()
            self.completion_requested.emit(position.line, position.character)

    def paintEvent(self, event) -> None:
        """Paint the editor, then overlay ghost text if present."""
        super().paintEvent(event)

        if not self._ghost_text or self._ghost_text_line < 0:
            return

        block = self.document().findBlockByNumber(self._ghost_text_line)
        if not block.isValid():
            return

        geom = self.blockBoundingGeometry(block).translated(self.contentOffset())
        block_top = int(geom.top())

        prefix_on_line = block.text()[: self._ghost_text_col]
        x_offset = self.fontMetrics().horizontalAdvance(prefix_on_line)
        x_offset += int(self.document().documentMargin())

        painter = QPainter(self.viewport())
        painter.setPen(QColor(180, 210, 190, 90))
        painter.setFont(self.font())
        painter.drawText(x_offset, block_top + self.fontMetrics().ascent(), self._ghost_text)
        painter.end()
