# -*- coding: utf-8 -*-
"""Session logging setup for console + file output."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path


def setup_session_logging(base_dir: str | Path, app_name: str) -> Path | None:
    """Configure root logging for the app at DEBUG level.

    Adds a console handler and a per-run log file under `<base_dir>/logs`.
    Repeated calls return the log path of the first call.
    """
    root = logging.getLogger()
    if getattr(root, "_electrorescue_logging_configured", False):
        return getattr(root, "_electrorescue_session_log", None)

    level = logging.DEBUG
    root.setLevel(level)

    # Thread name helps to tell the GUI thread from analysis workers.
    formatter = logging.Formatter(
        "%(asctime)s [%(threadName)s] %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    if not any(isinstance(handler, logging.StreamHandler) for handler in root.handlers):
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    logs_dir = Path(base_dir) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    safe_app_name = app_name.lower().replace(" ", "-")
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")

    session_log_path: Path | None = logs_dir / f"{safe_app_name}-{timestamp}.log"
    try:
        file_handler = logging.FileHandler(session_log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)
        root.info("=== Application starting ===")
        root.info("Session log file established: %s", session_log_path)
        root.info("System info: OS=%s", os.name)
    except OSError as e:
        root.error("Failed to establish session log file: %s", e)
        session_log_path = None

    root._electrorescue_logging_configured = True  # type: ignore[attr-defined]
    root._electrorescue_session_log = session_log_path  # type: ignore[attr-defined]
    return session_log_path
