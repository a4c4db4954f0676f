"""
Application setup and event loop configuration.
"""

import asyncio
import logging
import sys

from PyQt6.QtCore import QtMsgType, qInstallMessageHandler
from PyQt6.QtWidgets import QApplication
from qasync import QEventLoop

from core.logging_config import setup_logging
from ui.main_window import MainWindow

logger = logging.getLogger(__name__)

_qt_logger = logging.getLogger("qt")


def qt_message_handler(msg_type: QtMsgType, context, message: str):
    """Route Qt warnings into the logging system."""
    if msg_type == QtMsgType.QtWarningMsg:
        _qt_logger.warning(message)
    elif msg_type in (QtMsgType.QtCriticalMsg, QtMsgType.QtFatalMsg):
        _qt_logger.error(message)


def run_app(argv: list[str] | None = None) -> int:
    """Initialize and run the application with async support."""
    argv = sys.argv if argv is None else argv
    debug = "--debug" in argv
    setup_logging(logging.DEBUG if debug else logging.INFO)
    qInstallMessageHandler(qt_message_handler)

    app = QApplication(argv)
    app.setApplicationName("Boss")
    app.setOrganizationName("Boss")

    # Set up async event loop with Qt integration
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)

    window = MainWindow()
    files = [arg for arg in argv[1:] if not arg.startswith("--")]
    if files:
        window.open_file_path(files[0])
    window.show()
    window.activate()
    logger.info("Boss started")

    with loop:
        return loop.run_forever()
