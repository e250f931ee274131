# -*- coding: utf-8 -*-
"""Application controller: drives the analysis session from GUI events."""

from __future__ import annotations

import logging
from copy import deepcopy
from typing import Any

from PyQt6.QtCore import QObject, QThread, pyqtSignal

from electrorescue.core.state import AnalysisSession, AppState
from electrorescue.gui.workers import AnalysisWorker
from electrorescue.models.analysis_result import AnalysisResult
from electrorescue.models.image_payload import ImagePayload
from electrorescue.pipeline.analyzer import Analyzer
from electrorescue.utils.image_utils import ImageFormatError

logger = logging.getLogger(__name__)


class AppController(QObject):
    """
    Owns the `AnalysisSession` and the worker threads.
    Every state change is announced through `state_changed`.
    """

    state_changed = pyqtSignal(object)

    def __init__(self, settings: dict[str, Any], analyzer: Analyzer | None = None) -> None:
        super().__init__()
        self.settings = settings
        self.analyzer = analyzer or Analyzer()
        self.session = AnalysisSession()
        self._active_threads: list[QThread] = []
        self._workers: dict[QThread, AnalysisWorker] = {}

    @property
    def state(self) -> AppState:
        return self.session.state

    def _on_thread_finished(self) -> None:
        thread = self.sender()
        if thread in self._active_threads:
            self._active_threads.remove(thread)
        self._workers.pop(thread, None)

    def select_image(self, data_url: str) -> None:
        """Start analysing a newly selected image."""
        try:
            payload = self.session.select_image(data_url)
        except ImageFormatError as exc:
            logger.warning("Rejected image before dispatch: %s", exc)
            self._emit_state()
            return
        if self.session.request_id > 1 and self._active_threads:
            logger.info("Replacing in-flight analysis with request %d", self.session.request_id)
        self._emit_state()
        self._start_worker(self.session.request_id, payload)

    def try_again(self) -> None:
        self.session.try_again()
        self._emit_state()

    def reset(self) -> None:
        self.session.reset()
        self._emit_state()

    def update_settings(self, settings: dict[str, Any]) -> None:
        self.settings = settings

    def _start_worker(self, request_id: int, payload: ImagePayload) -> None:
        thread = QThread(self)
        # Workers get a snapshot so settings edits do not race the request.
        worker = AnalysisWorker(self.analyzer, request_id, payload, deepcopy(self.settings))
        worker.moveToThread(thread)

        thread.started.connect(worker.run)
        worker.finished.connect(self._on_analysis_finished)
        worker.error.connect(self._on_analysis_failed)

        worker.finished.connect(thread.quit)
        worker.error.connect(thread.quit)
        thread.finished.connect(worker.deleteLater)
        thread.finished.connect(self._on_thread_finished)
        thread.finished.connect(thread.deleteLater)

        self._active_threads.append(thread)
        self._workers[thread] = worker
        thread.start()

    def _on_analysis_finished(self, request_id: int, result: AnalysisResult) -> None:
        if self.session.resolve(request_id, result):
            logger.info("Analysis %d succeeded (%s)", request_id, result.model_used)
            self._emit_state()

    def _on_analysis_failed(self, request_id: int, message: str) -> None:
        if self.session.reject(request_id, message):
            logger.info("Analysis %d failed: %s", request_id, message)
            self._emit_state()

    def _emit_state(self) -> None:
        self.state_changed.emit(self.session.state)

    def shutdown(self, timeout_ms: int = 2000) -> None:
        """Wait briefly for running workers before the window closes."""
        for thread in list(self._active_threads):
            if thread.isRunning():
                thread.quit()
                thread.wait(timeout_ms)
        self._active_threads.clear()
        self._workers.clear()
