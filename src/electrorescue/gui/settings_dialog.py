# -*- coding: utf-8 -*-
"""Settings dialog for provider, model and API keys."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QDoubleSpinBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QSpinBox,
    QTabWidget,
    QVBoxLayout,
    QWidget,
)

from electrorescue.config import DEFAULT_MODELS, KEY_PLACEHOLDER, get_api_key
from electrorescue.constants import ANALYSIS_PROVIDERS
from electrorescue.integrations.base_client import BaseVisionClient
from electrorescue.integrations.gemini_client import GeminiClient
from electrorescue.integrations.openrouter_client import OpenRouterClient


class SettingsDialog(QDialog):
    """Modal settings dialog."""

    TAB_NAMES = ["API Keys", "AI Analysis"]

    def __init__(self, settings: dict[str, Any], parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.resize(560, 360)
        self._settings = deepcopy(settings)
        self._fields: dict[str, QWidget] = {}
        self._status_labels: dict[str, QLabel] = {}
        self._clients: dict[str, BaseVisionClient] = {
            "gemini": GeminiClient(),
            "openrouter": OpenRouterClient(),
        }

        self.tab_widget = QTabWidget()
        self.tab_widget.addTab(self._build_api_tab(), self.TAB_NAMES[0])
        self.tab_widget.addTab(self._build_analysis_tab(), self.TAB_NAMES[1])

        self.button_box = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        self.button_box.accepted.connect(self.accept)
        self.button_box.rejected.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addWidget(self.tab_widget, 1)
        layout.addWidget(self.button_box)

        for provider in ANALYSIS_PROVIDERS:
            self._line(f"api_{provider}").textChanged.connect(self._refresh_key_statuses)
        self._combo("analysis_provider").currentTextChanged.connect(self._on_provider_changed)
        self._refresh_key_statuses()

    def get_settings(self) -> dict[str, Any]:
        """Return the updated settings."""
        return deepcopy(self._settings)

    def accept(self) -> None:  # type: ignore[override]
        self._apply_into_state()
        super().accept()

    def _apply_into_state(self) -> None:
        for provider in ANALYSIS_PROVIDERS:
            value = self._line(f"api_{provider}").text().strip()
            self._settings["api_keys"][provider] = value or KEY_PLACEHOLDER
        analysis = self._settings["analysis"]
        analysis["provider"] = self._combo("analysis_provider").currentText()
        analysis["model"] = self._line("analysis_model").text().strip() or DEFAULT_MODELS[analysis["provider"]]
        analysis["temperature"] = round(self._dspin("analysis_temperature").value(), 2)
        analysis["timeout_seconds"] = self._spin("analysis_timeout").value()

    def _build_api_tab(self) -> QWidget:
        tab = QWidget()
        form = QFormLayout(tab)
        hint = QLabel("Keys from .env are used when the fields are left empty.")
        hint.setObjectName("mutedText")
        hint.setWordWrap(True)
        form.addRow(hint)
        for provider in ANALYSIS_PROVIDERS:
            form.addRow(
                f"{provider.capitalize()} API Key",
                self._register_line(f"api_{provider}", get_api_key(self._settings, provider), password=True),
            )
            form.addRow("", self._create_status_row(provider))
        return tab

    def _build_analysis_tab(self) -> QWidget:
        tab = QWidget()
        form = QFormLayout(tab)
        analysis = self._settings["analysis"]
        form.addRow(
            "Provider",
            self._register_combo("analysis_provider", list(ANALYSIS_PROVIDERS), str(analysis["provider"])),
        )
        form.addRow("Model", self._register_line("analysis_model", str(analysis["model"])))
        form.addRow(
            "Temperature",
            self._register_dspin("analysis_temperature", float(analysis["temperature"]), 0.0, 2.0, 0.1),
        )
        form.addRow(
            "Timeout (s)",
            self._register_spin("analysis_timeout", int(analysis["timeout_seconds"]), 1, 600),
        )
        return tab

    def _register_line(self, key: str, value: str, password: bool = False) -> QLineEdit:
        widget = QLineEdit()
        widget.setText(value)
        if password:
            widget.setEchoMode(QLineEdit.EchoMode.Password)
        self._fields[key] = widget
        return widget

    def _register_spin(self, key: str, value: int, minimum: int, maximum: int) -> QSpinBox:
        widget = QSpinBox()
        widget.setRange(minimum, maximum)
        widget.setValue(int(value))
        self._fields[key] = widget
        return widget

    def _register_dspin(
        self,
        key: str,
        value: float,
        minimum: float,
        maximum: float,
        step: float,
    ) -> QDoubleSpinBox:
        widget = QDoubleSpinBox()
        widget.setDecimals(2)
        widget.setRange(minimum, maximum)
        widget.setSingleStep(step)
        widget.setValue(float(value))
        self._fields[key] = widget
        return widget

    def _register_combo(self, key: str, options: list[str], value: str) -> QComboBox:
        widget = QComboBox()
        widget.addItems(options)
        index = max(0, widget.findText(value, Qt.MatchFlag.MatchExactly))
        widget.setCurrentIndex(index)
        self._fields[key] = widget
        return widget

    def _create_status_row(self, provider: str) -> QWidget:
        row = QWidget()
        layout = QHBoxLayout(row)
        layout.setContentsMargins(0, 0, 0, 0)
        label = QLabel("Not checked")
        label.setObjectName("mutedText")
        self._status_labels[provider] = label
        layout.addWidget(label, 1)
        return row

    def _refresh_key_statuses(self) -> None:
        for provider, label in self._status_labels.items():
            key = self._line(f"api_{provider}").text().strip()
            if not key:
                label.setText("Missing")
            elif self._clients[provider].validate_key(key):
                label.setText("Format OK")
            else:
                label.setText("Unexpected key format")

    def _on_provider_changed(self, provider: str) -> None:
        # Only swap the model when it is still another provider's default.
        model_line = self._line("analysis_model")
        if model_line.text().strip() in set(DEFAULT_MODELS.values()) | {""}:
            model_line.setText(DEFAULT_MODELS.get(provider, ""))

    def _line(self, key: str) -> QLineEdit:
        return self._fields[key]  # type: ignore[return-value]

    def _spin(self, key: str) -> QSpinBox:
        return self._fields[key]  # type: ignore[return-value]

    def _dspin(self, key: str) -> QDoubleSpinBox:
        return self._fields[key]  # type: ignore[return-value]

    def _combo(self, key: str) -> QComboBox:
        return self._fields[key]  # type: ignore[return-value]
