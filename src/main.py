"""
Boss - inline code completion backed by a local Ollama server.
Entry point for the application.
"""

import os
import sys

os.environ.setdefault("QT_ENABLE_HIGHDPI_SCALING", "1")

from app import run_app  # noqa: E402


def main() -> int:
    return run_app()


if __name__ == "__main__":
    sys.exit(main())
