"""
Logging setup for the application.
"""

import logging
import logging.handlers
import os
from pathlib import Path

DEFAULT_LOG_DIR = Path.home() / ".boss" / "logs"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("asyncio", "qasync", "httpx", "httpcore")

_log_path: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Configure root logging with a rotating file and optional console handler.

    Args:
        level: Root log level
        log_dir: Directory for boss.log (default ~/.boss/logs, or $BOSS_LOG_DIR)
        console: Also log to stderr
        max_bytes: Rotate the file after this size
        backup_count: Rotated files to keep
        force: Reconfigure even if already set up

    Returns:
        Path of the log file.
    """
    global _log_path
    if _log_path is not None and not force:
        return _log_path

    target_dir = Path(log_dir or os.environ.get("BOSS_LOG_DIR") or DEFAULT_LOG_DIR).expanduser()
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / "boss.log"

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [file_handler]

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    quiet_level = max(level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    _log_path = log_path
    return log_path


def get_log_path() -> Path | None:
    """Return the configured log file, if logging was set up."""
    return _log_path
