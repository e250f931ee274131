# -*- coding: utf-8 -*-
"""Image picker with drag and drop support."""

from __future__ import annotations

import logging
from pathlib import Path

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QDragEnterEvent, QDropEvent
from PyQt6.QtWidgets import QFileDialog, QFrame, QLabel, QPushButton, QVBoxLayout, QWidget

from electrorescue.constants import IMAGE_FILE_FILTER
from electrorescue.utils.image_utils import ImageFormatError, file_to_data_url

logger = logging.getLogger(__name__)


class ImageUploader(QFrame):
    """Turn a chosen image file into a data URL.

    The compact variant is a single button used in the header once a
    report is shown.
    """

    image_selected = pyqtSignal(str)
    image_rejected = pyqtSignal(str)

    def __init__(
        self,
        parent: QWidget | None = None,
        *,
        compact: bool = False,
        max_file_mb: float | None = None,
    ) -> None:
        super().__init__(parent)
        self.compact = compact
        self.max_file_mb = max_file_mb
        self.setAcceptDrops(True)

        layout = QVBoxLayout(self)
        if compact:
            layout.setContentsMargins(0, 0, 0, 0)
            self.choose_button = QPushButton("Analyze New Board")
            self.choose_button.setObjectName("secondaryButton")
            self.hint_label = QLabel("")
            self.hint_label.hide()
        else:
            self.setObjectName("dropZone")
            layout.setContentsMargins(24, 32, 24, 32)
            layout.setSpacing(10)
            title = QLabel("Drop a PCB photo here")
            title.setObjectName("sectionTitle")
            title.setAlignment(Qt.AlignmentFlag.AlignCenter)
            self.hint_label = QLabel("PNG, JPEG, WEBP or HEIC")
            self.hint_label.setObjectName("mutedText")
            self.hint_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            self.choose_button = QPushButton("Choose Image")
            self.choose_button.setObjectName("primaryButton")
            layout.addWidget(title)
            layout.addWidget(self.hint_label)
        layout.addWidget(self.choose_button, alignment=Qt.AlignmentFlag.AlignCenter)
        self.choose_button.clicked.connect(self.open_file_dialog)

    def open_file_dialog(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Select PCB Image", "", IMAGE_FILE_FILTER)
        if path:
            self.load_file(Path(path))

    def load_file(self, path: Path) -> bool:
        """Encode `path` and emit `image_selected`. Returns False when rejected."""
        try:
            data_url = file_to_data_url(path, max_file_mb=self.max_file_mb)
        except ImageFormatError as exc:
            logger.warning("Image rejected: %s", exc)
            self.hint_label.setText(str(exc))
            self.image_rejected.emit(str(exc))
            return False
        logger.info("Image selected: %s", path.name)
        self.image_selected.emit(data_url)
        return True

    def dragEnterEvent(self, event: QDragEnterEvent) -> None:
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            event.ignore()

    def dropEvent(self, event: QDropEvent) -> None:
        urls = [url for url in event.mimeData().urls() if url.isLocalFile()]
        if not urls:
            event.ignore()
            return
        event.acceptProposedAction()
        self.load_file(Path(urls[0].toLocalFile()))
