# -*- coding: utf-8 -*-
"""Worker objects for background analysis."""

from __future__ import annotations

import logging
from typing import Any

from PyQt6.QtCore import QObject, pyqtSignal

from electrorescue.models.image_payload import ImagePayload
from electrorescue.pipeline.analyzer import Analyzer

logger = logging.getLogger(__name__)


class AnalysisWorker(QObject):
    """Runs one blocking analysis call off the GUI thread."""

    finished = pyqtSignal(int, object)
    error = pyqtSignal(int, str)

    def __init__(
        self,
        analyzer: Analyzer,
        request_id: int,
        image: ImagePayload,
        settings: dict[str, Any],
    ) -> None:
        super().__init__()
        self.analyzer = analyzer
        self.request_id = request_id
        self.image = image
        self.settings = settings

    def run(self) -> None:
        try:
            logger.info("AnalysisWorker: starting request %d", self.request_id)
            result = self.analyzer.analyze(self.image, self.settings)
            self.finished.emit(self.request_id, result)
        except Exception as e:
            logger.exception("AnalysisWorker: request %d failed", self.request_id)
            self.error.emit(self.request_id, str(e))
