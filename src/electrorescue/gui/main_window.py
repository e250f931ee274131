# -*- coding: utf-8 -*-
"""Main window: idle, analyzing and results pages around one controller."""

from __future__ import annotations

import logging
from typing import Any

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QCloseEvent, QKeySequence, QPixmap
from PyQt6.QtWidgets import (
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QProgressBar,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from electrorescue.config import ConfigError, save_config
from electrorescue.constants import APP_NAME, APP_TAGLINE, APP_VERSION, FEATURE_CARDS
from electrorescue.core.state import AppState
from electrorescue.gui.component_chart import ComponentChart
from electrorescue.gui.controller import AppController
from electrorescue.gui.image_uploader import ImageUploader
from electrorescue.gui.report_widget import ReportWidget
from electrorescue.gui.settings_dialog import SettingsDialog
from electrorescue.pipeline.analyzer import Analyzer
from electrorescue.utils.image_utils import ImageFormatError, decode_data_url

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Upload a PCB photo, wait for the analysis and read the report."""

    def __init__(
        self,
        settings: dict[str, Any],
        parent: QWidget | None = None,
        analyzer: Analyzer | None = None,
    ) -> None:
        super().__init__(parent)
        self.settings = settings
        self.controller = AppController(settings, analyzer=analyzer)
        self.controller.state_changed.connect(self._on_state_changed)

        self.setWindowTitle(f"{APP_NAME} v{APP_VERSION}")
        ui = settings.get("ui", {})
        self.resize(int(ui.get("window_width", 1280)), int(ui.get("window_height", 860)))

        self._build_actions()
        self._build_ui()
        self._apply_styles()
        self._refresh_ui()

    @property
    def max_file_mb(self) -> float:
        return float(self.settings.get("uploader", {}).get("max_file_mb", 20))

    def _build_actions(self) -> None:
        self.open_image_action = QAction("Open Image", self)
        self.open_image_action.setShortcut(QKeySequence.StandardKey.Open)
        self.open_image_action.triggered.connect(self._open_image)
        self.settings_action = QAction("Settings", self)
        self.settings_action.triggered.connect(self.open_settings_dialog)
        self.addAction(self.open_image_action)

    def _build_ui(self) -> None:
        header = QWidget()
        header.setObjectName("header")
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(16, 8, 16, 8)
        self.brand_button = QPushButton(APP_NAME)
        self.brand_button.setObjectName("brandButton")
        self.brand_button.setFlat(True)
        self.brand_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self.brand_button.clicked.connect(self.reset)
        self.header_uploader = ImageUploader(compact=True, max_file_mb=self.max_file_mb)
        self.header_uploader.image_selected.connect(self.controller.select_image)
        self.header_uploader.image_rejected.connect(self._show_rejection)
        self.settings_button = QPushButton("Settings")
        self.settings_button.setObjectName("secondaryButton")
        self.settings_button.clicked.connect(self.open_settings_dialog)
        header_layout.addWidget(self.brand_button)
        header_layout.addStretch(1)
        header_layout.addWidget(self.header_uploader)
        header_layout.addWidget(self.settings_button)

        self.pages = QStackedWidget()
        self.idle_page = self._build_idle_page()
        self.analyzing_page = self._build_analyzing_page()
        self.results_page = self._build_results_page()
        for page in (self.idle_page, self.analyzing_page, self.results_page):
            self.pages.addWidget(page)

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(header)
        layout.addWidget(self.pages, 1)
        self.setCentralWidget(central)

    def _build_idle_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setContentsMargins(80, 40, 80, 40)
        layout.setSpacing(18)

        title = QLabel(APP_TAGLINE)
        title.setObjectName("heroTitle")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        intro = QLabel(
            "Upload a photo of any Printed Circuit Board (PCB). ElectroRescue.ai will identify "
            "components, explain their functions, and decode markings in seconds."
        )
        intro.setObjectName("mutedText")
        intro.setWordWrap(True)
        intro.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self.uploader = ImageUploader(max_file_mb=self.max_file_mb)
        self.uploader.image_selected.connect(self.controller.select_image)
        self.uploader.image_rejected.connect(self._show_rejection)

        cards = QWidget()
        cards_layout = QHBoxLayout(cards)
        cards_layout.setContentsMargins(0, 24, 0, 0)
        cards_layout.setSpacing(16)
        for heading, text in FEATURE_CARDS:
            card = QFrame()
            card.setObjectName("featureCard")
            card_layout = QVBoxLayout(card)
            card_title = QLabel(heading)
            card_title.setObjectName("sectionTitle")
            card_title.setAlignment(Qt.AlignmentFlag.AlignCenter)
            card_text = QLabel(text)
            card_text.setObjectName("mutedText")
            card_text.setWordWrap(True)
            card_text.setAlignment(Qt.AlignmentFlag.AlignCenter)
            card_layout.addWidget(card_title)
            card_layout.addWidget(card_text)
            cards_layout.addWidget(card)

        layout.addWidget(title)
        layout.addWidget(intro)
        layout.addWidget(self.uploader)
        layout.addWidget(cards)
        layout.addStretch(1)
        return page

    def _build_analyzing_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setContentsMargins(80, 40, 80, 40)
        layout.setSpacing(12)
        self.analyzing_preview = QLabel()
        self.analyzing_preview.setObjectName("imagePreview")
        self.analyzing_preview.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.analyzing_preview.setMinimumSize(480, 270)
        self.busy_bar = QProgressBar()
        # Range 0..0 renders as a busy indicator.
        self.busy_bar.setRange(0, 0)
        self.busy_bar.setTextVisible(False)
        self.analyzing_label = QLabel("Analyzing Circuit Topography...")
        self.analyzing_label.setObjectName("sectionTitle")
        self.analyzing_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        detail = QLabel("Identifying components and reading silkscreen text.")
        detail.setObjectName("mutedText")
        detail.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(self.analyzing_preview, 1)
        layout.addWidget(self.busy_bar)
        layout.addWidget(self.analyzing_label)
        layout.addWidget(detail)
        return page

    def _build_results_page(self) -> QWidget:
        page = QWidget()
        grid = QGridLayout(page)
        grid.setContentsMargins(24, 24, 24, 24)
        grid.setHorizontalSpacing(24)

        left = QWidget()
        left_layout = QVBoxLayout(left)
        left_layout.setContentsMargins(0, 0, 0, 0)
        left_layout.setSpacing(16)
        source_title = QLabel("Source Image")
        source_title.setObjectName("sectionTitle")
        self.source_preview = QLabel()
        self.source_preview.setObjectName("imagePreview")
        self.source_preview.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.source_preview.setMinimumSize(320, 200)
        self.component_chart = ComponentChart()
        left_layout.addWidget(source_title)
        left_layout.addWidget(self.source_preview)
        left_layout.addWidget(self.component_chart)
        left_layout.addStretch(1)

        self.result_stack = QStackedWidget()
        self.report_widget = ReportWidget()
        self.error_panel = QFrame()
        self.error_panel.setObjectName("errorPanel")
        error_layout = QVBoxLayout(self.error_panel)
        error_title = QLabel("Analysis Failed")
        error_title.setObjectName("errorTitle")
        self.error_label = QLabel("")
        self.error_label.setWordWrap(True)
        self.error_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self.try_again_button = QPushButton("Try Again")
        self.try_again_button.setObjectName("dangerButton")
        self.try_again_button.clicked.connect(self.controller.try_again)
        error_layout.addWidget(error_title)
        error_layout.addWidget(self.error_label)
        error_layout.addWidget(self.try_again_button, alignment=Qt.AlignmentFlag.AlignLeft)
        error_layout.addStretch(1)
        self.result_stack.addWidget(self.report_widget)
        self.result_stack.addWidget(self.error_panel)

        grid.addWidget(left, 0, 0)
        grid.addWidget(self.result_stack, 0, 1)
        grid.setColumnStretch(0, 1)
        grid.setColumnStretch(1, 2)
        return page

    def _apply_styles(self) -> None:
        self.setStyleSheet(
            """
            QMainWindow, QWidget {
                background: #0f172a;
                color: #e2e8f0;
                font-family: "Segoe UI", "Noto Sans", sans-serif;
                font-size: 13px;
            }
            QWidget#header {
                border-bottom: 1px solid #1e293b;
            }
            QPushButton#brandButton {
                font-size: 20px;
                font-weight: 700;
                color: #2dd4bf;
                border: none;
                text-align: left;
            }
            QLabel#heroTitle {
                font-size: 36px;
                font-weight: 700;
                color: #f1f5f9;
            }
            QLabel#sectionTitle {
                font-size: 14px;
                font-weight: 600;
                color: #e2e8f0;
            }
            QLabel#mutedText {
                color: #94a3b8;
            }
            QFrame#dropZone {
                border: 2px dashed #334155;
                border-radius: 12px;
                background: #111c33;
            }
            QFrame#featureCard {
                border: 1px solid #1e293b;
                border-radius: 8px;
                background: #131d31;
                padding: 8px;
            }
            QLabel#imagePreview {
                background: #020617;
                border: 1px solid #334155;
                border-radius: 8px;
            }
            QFrame#errorPanel {
                background: #2a1215;
                border: 1px solid #7f1d1d;
                border-radius: 12px;
                padding: 12px;
            }
            QLabel#errorTitle {
                font-size: 16px;
                font-weight: 600;
                color: #fecaca;
            }
            QTextBrowser#reportView {
                background: #131d31;
                border: 1px solid #1e293b;
                border-radius: 12px;
                padding: 16px;
            }
            QPushButton#primaryButton {
                background: #2563eb;
                color: white;
                border-radius: 6px;
                padding: 8px 18px;
                font-weight: 600;
            }
            QPushButton#secondaryButton {
                background: #1e293b;
                border: 1px solid #334155;
                border-radius: 6px;
                padding: 6px 12px;
            }
            QPushButton#dangerButton {
                background: #451a1a;
                color: #fca5a5;
                border: 1px solid #7f1d1d;
                border-radius: 6px;
                padding: 6px 14px;
            }
            QProgressBar {
                border: none;
                background: #1e293b;
                max-height: 4px;
            }
            QProgressBar::chunk {
                background: #60a5fa;
            }
            """
        )

    def _open_image(self) -> None:
        if self.controller.state is AppState.SUCCESS:
            self.header_uploader.open_file_dialog()
        else:
            self.uploader.open_file_dialog()

    def _show_rejection(self, message: str) -> None:
        self.statusBar().showMessage(message, 8000)

    def reset(self) -> None:
        self.controller.reset()

    def open_settings_dialog(self) -> None:
        """Open the settings dialog and persist changes."""
        dialog = SettingsDialog(self.settings, self)
        if not dialog.exec():
            return
        new_settings = dialog.get_settings()
        try:
            save_config(new_settings)
        except (ConfigError, OSError) as exc:
            logger.error("Could not save settings: %s", exc)
            self.statusBar().showMessage(f"Settings not saved: {exc}", 8000)
            return
        self.settings = new_settings
        self.controller.update_settings(new_settings)
        self.statusBar().showMessage("Settings saved.", 4000)

    def _on_state_changed(self, state: AppState) -> None:
        logger.debug("UI state changed: %s", state.value)
        self._refresh_ui()

    def _refresh_ui(self) -> None:
        session = self.controller.session
        state = session.state
        self.header_uploader.setVisible(state is AppState.SUCCESS)

        if state is AppState.IDLE:
            self.pages.setCurrentWidget(self.idle_page)
            return

        pixmap = self._pixmap_for(session.image)
        if state is AppState.ANALYZING:
            self._set_preview(self.analyzing_preview, pixmap)
            self.pages.setCurrentWidget(self.analyzing_page)
            return

        self._set_preview(self.source_preview, pixmap)
        if state is AppState.SUCCESS and session.result is not None:
            self.component_chart.set_stats(session.result.component_stats)
            self.component_chart.show()
            self.report_widget.set_report(session.result.markdown_report)
            self.result_stack.setCurrentWidget(self.report_widget)
        else:
            self.component_chart.hide()
            self.error_label.setText(session.error or "")
            self.result_stack.setCurrentWidget(self.error_panel)
        self.pages.setCurrentWidget(self.results_page)

    def _pixmap_for(self, data_url: str | None) -> QPixmap | None:
        if not data_url:
            return None
        try:
            raw = decode_data_url(data_url)
        except ImageFormatError:
            return None
        pixmap = QPixmap()
        if not pixmap.loadFromData(raw):
            return None
        return pixmap

    def _set_preview(self, label: QLabel, pixmap: QPixmap | None) -> None:
        if pixmap is None:
            label.clear()
            label.setText("No preview")
            return
        label.setPixmap(
            pixmap.scaled(
                label.minimumSize(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
        )

    def closeEvent(self, event: QCloseEvent) -> None:
        self.controller.shutdown()
        super().closeEvent(event)
