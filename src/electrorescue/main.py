# -*- coding: utf-8 -*-
"""Application entry point."""

from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path

from PyQt6.QtWidgets import QApplication, QMessageBox

from electrorescue.config import ConfigError, get_default_config, load_config
from electrorescue.constants import APP_NAME, APP_SLUG
from electrorescue.gui.main_window import MainWindow
from electrorescue.utils.image_utils import ImageFormatError, file_to_data_url
from electrorescue.utils.logger import setup_session_logging


def global_exception_handler(exc_type, exc_value, exc_traceback):
    """Log fatal errors and keep a copy of the last crash on disk."""
    error_msg = "".join(traceback.format_exception(exc_type, exc_value, exc_traceback))
    logging.getLogger().critical("FATAL CRASH:\n%s", error_msg)

    crash_path = Path.cwd() / "logs" / "LAST_CRASH.log"
    try:
        crash_path.parent.mkdir(parents=True, exist_ok=True)
        crash_path.write_text(error_msg, encoding="utf-8")
    except OSError:
        logging.getLogger().exception("Could not write crash report")

    if QApplication.instance():
        QMessageBox.critical(None, "Application Crash", f"A fatal error occurred.\nDetails saved to: {crash_path}")

    sys.__excepthook__(exc_type, exc_value, exc_traceback)


def main() -> int:
    """Start the GUI application."""
    sys.excepthook = global_exception_handler
    session_log_path = setup_session_logging(Path.cwd(), APP_SLUG)
    logger = logging.getLogger(__name__)
    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    if session_log_path is not None:
        logger.info("Session log file: %s", session_log_path)

    try:
        settings = load_config()
    except ConfigError as exc:
        logger.error("Invalid settings, falling back to defaults: %s", exc)
        QMessageBox.warning(None, "Settings", f"settings.json is invalid, defaults are used.\n\n{exc}")
        settings = get_default_config()

    window = MainWindow(settings=settings)
    window.show()

    # An image path on the command line starts the analysis right away.
    if len(sys.argv) > 1:
        candidate = Path(sys.argv[1])
        if candidate.is_file():
            try:
                window.controller.select_image(
                    file_to_data_url(candidate, max_file_mb=window.max_file_mb)
                )
            except ImageFormatError as exc:
                logger.warning("Startup image rejected: %s", exc)
                window.statusBar().showMessage(str(exc), 8000)

    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
