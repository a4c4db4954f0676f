"""
Text buffer contracts shared by the completion pipeline and its hosts.
"""

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True, order=True)
class Position:
    """Zero-based cursor position inside a document."""

    line: int
    character: int


class TextDocument(Protocol):
    """Line-addressable view of a document the orchestrator reads from."""

    language_id: str

    @property
    def line_count(self) -> int: ...

    def line_at(self, index: int) -> str: ...


@dataclass
class TextBuffer:
    """In-memory TextDocument backed by a plain string."""

    text: str = ""
    language_id: str = "plaintext"
    _lines: list[str] = field(init=False, repr=False)

    def __post_init__(self):
        self._lines = self.text.split("\n")

    def set_text(self, text: str) -> None:
        """Replace the buffer contents."""
        self.text = text
        self._lines = text.split("\n")

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_at(self, index: int) -> str:
        if index < 0 or index >= len(self._lines):
            raise IndexError(f"Line {index} out of range (0..{len(self._lines) - 1})")
        return self._lines[index]
