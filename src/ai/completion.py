"""
Context extraction, prompt building and suggestion cleanup for inline completion.

Pure functions only. The request orchestration lives in ai.orchestrator.
"""

from dataclasses import dataclass

from ai.document import Position, TextDocument

# Instruction delimiters (also used as stop sequences by the Ollama client)
INST_BEGIN = "[INST]"
INST_END = "[/INST]"

# Lines of context on each side of the cursor line
CONTEXT_LINES = 10

# Quote characters a model likes to wrap single-line answers in
_QUOTE_CHARS = "\"'`"
_WRAPPING_CHARS = " \t\r\n" + _QUOTE_CHARS

PROMPT_TEMPLATE = (
    INST_BEGIN + "You are an expert code completion assistant. "
    "Given this {language_id} code:\n"
    "\n"
    "{preceding}\n"
    "{current}\n"
    "{following}\n"
    "\n"
    "Complete this line of code to the best of your ability. "
    "Output a complete syntactically correct line of code.\n"
    "Only output the completion, no explanations." + INST_END
)


@dataclass(frozen=True)
class ContextWindow:
    """Bounded span of lines around the cursor line."""

    preceding_lines: tuple[str, ...]
    current_line: str
    following_lines: tuple[str, ...]

    @property
    def preceding_text(self) -> str:
        return "\n".join(self.preceding_lines)

    @property
    def following_text(self) -> str:
        return "\n".join(self.following_lines)


def extract_context(document: TextDocument, position: Position) -> ContextWindow:
    """Collect up to CONTEXT_LINES lines before and after the cursor line.

    The current line is returned verbatim, not split at the cursor.

    Args:
        document: Document to read from
        position: Zero-based cursor position

    Returns:
        ContextWindow for the cursor line.

    Raises:
        IndexError: If the position lies outside the document.
    """
    last_line = document.line_count - 1
    if position.line < 0 or position.line > last_line:
        raise IndexError(f"Line {position.line} outside document (0..{last_line})")

    current_line = document.line_at(position.line)
    if position.character < 0 or position.character > len(current_line):
        raise IndexError(
            f"Character {position.character} outside line {position.line} "
            f"(0..{len(current_line)})"
        )

    start_line = max(0, position.line - CONTEXT_LINES)
    end_line = min(last_line, position.line + CONTEXT_LINES)

    preceding = tuple(document.line_at(i) for i in range(start_line, position.line))
    following = tuple(document.line_at(i) for i in range(position.line + 1, end_line + 1))

    return ContextWindow(preceding, current_line, following)


def build_completion_prompt(
    language_id: str, preceding_text: str, current_line: str, following_text: str
) -> str:
    """Build the instruction prompt sent to the model.

    Source text is embedded as-is; delimiter-like substrings in the code are
    not escaped.

    Args:
        language_id: Editor language identifier (e.g., "python")
        preceding_text: Lines above the cursor line
        current_line: The full cursor line
        following_text: Lines below the cursor line

    Returns:
        Formatted prompt string.
    """
    return PROMPT_TEMPLATE.format(
        language_id=language_id,
        preceding=preceding_text,
        current=current_line,
        following=following_text,
    )


def count_significant_chars(text: str) -> int:
    """Count non-whitespace characters."""
    return sum(1 for ch in text if not ch.isspace())


def clean_suggestion(raw: str, text_before_cursor: str = "") -> str:
    """Turn raw model output into a single insertable line.

    Trims whitespace and wrapping quotes/backticks, keeps the first line only,
    and drops an echo of the text already typed before the cursor.

    Args:
        raw: Raw model output
        text_before_cursor: Current line up to the cursor

    Returns:
        Cleaned suggestion, or empty string when nothing is left.
    """
    text = (raw or "").strip(_WRAPPING_CHARS)

    newline = text.find("\n")
    if newline != -1:
        text = text[:newline].strip(_WRAPPING_CHARS)

    # Model echoed the line, keep only what comes after the typed part
    for typed in (text_before_cursor, text_before_cursor.lstrip()):
        if typed and text.startswith(typed):
            text = text[len(typed) :]
            break

    return text.strip()
