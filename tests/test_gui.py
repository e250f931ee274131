# -*- coding: utf-8 -*-
"""Tests for the main window, controller and widgets."""

from __future__ import annotations

import time
from pathlib import Path

import pytest

pytest.importorskip("PyQt6")

from electrorescue.core.state import AppState
from electrorescue.gui.component_chart import ComponentChart
from electrorescue.gui.controller import AppController
from electrorescue.gui.image_uploader import ImageUploader
from electrorescue.gui.main_window import MainWindow
from electrorescue.gui.settings_dialog import SettingsDialog
from electrorescue.gui.workers import AnalysisWorker
from electrorescue.models.analysis_result import AnalysisResult, ComponentStat
from electrorescue.pipeline.analyzer import Analyzer

from conftest import FakeVisionClient


def _result() -> AnalysisResult:
    return AnalysisResult(
        markdown_report="## Overview\nA motor driver board.",
        component_stats=[ComponentStat("ICs", 2), ComponentStat("Resistors", 9)],
    )


@pytest.fixture
def started(monkeypatch: pytest.MonkeyPatch) -> list:
    calls: list = []
    monkeypatch.setattr(
        AppController,
        "_start_worker",
        lambda self, request_id, payload: calls.append((request_id, payload)),
    )
    return calls


@pytest.fixture
def window(qt_app, configured_settings: dict, started: list):
    win = MainWindow(settings=configured_settings, analyzer=Analyzer(clients={"gemini": FakeVisionClient()}))
    yield win
    win.close()


def test_window_starts_on_idle_page(window: MainWindow) -> None:
    assert window.controller.state is AppState.IDLE
    assert window.pages.currentWidget() is window.idle_page
    assert window.header_uploader.isHidden()


def test_select_image_shows_analyzing_page(window: MainWindow, png_data_url: str, started: list) -> None:
    window.controller.select_image(png_data_url)
    assert window.controller.state is AppState.ANALYZING
    assert window.pages.currentWidget() is window.analyzing_page
    assert started[0][0] == 1
    assert started[0][1].mime_type == "image/png"


def test_malformed_image_is_not_dispatched(window: MainWindow, started: list) -> None:
    window.controller.select_image("data:image/png;base64")
    assert started == []
    assert window.controller.state is AppState.ERROR
    assert window.result_stack.currentWidget() is window.error_panel
    assert window.error_label.text() == "Invalid image format."


def test_success_shows_report_chart_and_header_uploader(window: MainWindow, png_data_url: str) -> None:
    window.controller.select_image(png_data_url)
    window.controller._on_analysis_finished(window.controller.session.request_id, _result())
    assert window.controller.state is AppState.SUCCESS
    assert window.pages.currentWidget() is window.results_page
    assert window.result_stack.currentWidget() is window.report_widget
    assert "motor driver" in window.report_widget.report()
    assert [s.category for s in window.component_chart.stats()] == ["ICs", "Resistors"]
    assert not window.header_uploader.isHidden()


def test_failure_shows_error_and_try_again_returns_idle(window: MainWindow, png_data_url: str) -> None:
    window.controller.select_image(png_data_url)
    window.controller._on_analysis_failed(window.controller.session.request_id, "HTTP 429: quota")
    assert window.controller.state is AppState.ERROR
    assert window.error_label.text() == "HTTP 429: quota"
    assert window.component_chart.isHidden()

    window.try_again_button.click()
    assert window.controller.state is AppState.IDLE
    assert window.pages.currentWidget() is window.idle_page


def test_stale_completion_does_not_change_ui(window: MainWindow, png_data_url: str) -> None:
    window.controller.select_image(png_data_url)
    stale = window.controller.session.request_id
    window.controller.select_image(png_data_url)
    window.controller._on_analysis_finished(stale, _result())
    assert window.controller.state is AppState.ANALYZING
    assert window.pages.currentWidget() is window.analyzing_page


def test_brand_button_resets_session(window: MainWindow, png_data_url: str) -> None:
    window.controller.select_image(png_data_url)
    window.controller._on_analysis_finished(window.controller.session.request_id, _result())
    window.brand_button.click()
    assert window.controller.state is AppState.IDLE
    assert window.controller.session.image is None
    assert window.controller.session.result is None


def test_state_changed_signal_emitted(qt_app, configured_settings: dict, started: list, png_data_url: str) -> None:
    controller = AppController(configured_settings, analyzer=Analyzer(clients={}))
    seen: list = []
    controller.state_changed.connect(seen.append)
    controller.select_image(png_data_url)
    controller._on_analysis_failed(controller.session.request_id, "boom")
    assert seen == [AppState.ANALYZING, AppState.ERROR]


def test_uploader_emits_data_url_for_image(qt_app, sample_image: Path) -> None:
    uploader = ImageUploader()
    received: list[str] = []
    uploader.image_selected.connect(received.append)
    assert uploader.load_file(sample_image) is True
    assert received and received[0].startswith("data:image/png;base64,")


def test_uploader_rejects_unsupported_file(qt_app, tmp_path: Path) -> None:
    path = tmp_path / "scan.pdf"
    path.write_bytes(b"%PDF-1.4")
    uploader = ImageUploader()
    selected: list[str] = []
    rejected: list[str] = []
    uploader.image_selected.connect(selected.append)
    uploader.image_rejected.connect(rejected.append)
    assert uploader.load_file(path) is False
    assert selected == []
    assert "Unsupported image type" in rejected[0]


def test_component_chart_grows_with_categories(qt_app) -> None:
    chart = ComponentChart()
    empty_height = chart.sizeHint().height()
    chart.set_stats([ComponentStat("A", 1), ComponentStat("B", 2), ComponentStat("C", 3)])
    assert chart.sizeHint().height() > empty_height
    chart.resize(400, chart.sizeHint().height())
    chart.grab()


def test_worker_emits_result(qt_app, configured_settings: dict, png_data_url: str) -> None:
    from electrorescue.utils.image_utils import parse_data_url

    worker = AnalysisWorker(
        Analyzer(clients={"gemini": FakeVisionClient()}), 7, parse_data_url(png_data_url), configured_settings
    )
    finished: list = []
    worker.finished.connect(lambda request_id, result: finished.append((request_id, result)))
    worker.run()
    assert finished[0][0] == 7
    assert finished[0][1].component_stats[0].category == "Resistors"


def test_worker_emits_error(qt_app, default_config: dict, png_data_url: str) -> None:
    from electrorescue.utils.image_utils import parse_data_url

    worker = AnalysisWorker(Analyzer(clients={"gemini": FakeVisionClient()}), 3, parse_data_url(png_data_url), default_config)
    errors: list = []
    worker.error.connect(lambda request_id, message: errors.append((request_id, message)))
    worker.run()
    assert errors[0][0] == 3
    assert "No API key" in errors[0][1]


def test_settings_dialog_applies_fields(qt_app, configured_settings: dict) -> None:
    dialog = SettingsDialog(configured_settings)
    dialog._combo("analysis_provider").setCurrentText("openrouter")
    assert dialog._line("analysis_model").text() == "google/gemini-2.5-flash"
    dialog._line("api_openrouter").setText("sk-or-v1-abc")
    dialog._spin("analysis_timeout").setValue(90)
    dialog.accept()
    settings = dialog.get_settings()
    assert settings["analysis"]["provider"] == "openrouter"
    assert settings["analysis"]["timeout_seconds"] == 90
    assert settings["api_keys"]["openrouter"] == "sk-or-v1-abc"


def test_settings_dialog_keeps_custom_model(qt_app, configured_settings: dict) -> None:
    configured_settings["analysis"]["model"] = "gemini-2.5-pro"
    dialog = SettingsDialog(configured_settings)
    dialog._combo("analysis_provider").setCurrentText("openrouter")
    assert dialog._line("analysis_model").text() == "gemini-2.5-pro"
    dialog.reject()


def test_settings_dialog_reports_key_format(qt_app, default_config: dict) -> None:
    dialog = SettingsDialog(default_config)
    assert dialog._status_labels["gemini"].text() == "Missing"
    dialog._line("api_gemini").setText("nonsense")
    assert dialog._status_labels["gemini"].text() == "Unexpected key format"
    dialog._line("api_gemini").setText("AIza-good")
    assert dialog._status_labels["gemini"].text() == "Format OK"
    dialog.reject()


def test_open_settings_updates_controller(window: MainWindow, configured_settings: dict, monkeypatch) -> None:
    new_settings = dict(configured_settings)
    new_settings["analysis"] = dict(configured_settings["analysis"], timeout_seconds=30)

    class _FakeDialog:
        def __init__(self, settings, parent=None):
            del settings, parent

        def exec(self):
            return True

        def get_settings(self):
            return new_settings

    saved: list = []
    monkeypatch.setattr("electrorescue.gui.main_window.SettingsDialog", _FakeDialog)
    monkeypatch.setattr("electrorescue.gui.main_window.save_config", lambda settings: saved.append(settings))

    window.open_settings_dialog()
    assert saved == [new_settings]
    assert window.controller.settings["analysis"]["timeout_seconds"] == 30


def _wait_until(qt_app, condition, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        qt_app.processEvents()
        if condition():
            return True
        time.sleep(0.01)
    qt_app.processEvents()
    return condition()


def test_worker_thread_delivers_success(qt_app, configured_settings: dict, png_data_url: str) -> None:
    client = FakeVisionClient()
    controller = AppController(configured_settings, analyzer=Analyzer(clients={"gemini": client}))
    seen: list = []
    controller.state_changed.connect(seen.append)

    controller.select_image(png_data_url)
    assert _wait_until(qt_app, lambda: controller.state is AppState.SUCCESS and not controller._active_threads)

    assert seen == [AppState.ANALYZING, AppState.SUCCESS]
    assert controller.session.result.component_stats[0].category == "Resistors"
    assert client.calls[0]["api_key"] == "test-gemini"
    assert controller._active_threads == []
    assert controller._workers == {}


def test_worker_thread_delivers_failure(qt_app, configured_settings: dict, png_data_url: str) -> None:
    client = FakeVisionClient(error=RuntimeError("HTTP 503: overloaded"))
    controller = AppController(configured_settings, analyzer=Analyzer(clients={"gemini": client}))

    controller.select_image(png_data_url)
    assert _wait_until(qt_app, lambda: controller.state is AppState.ERROR and not controller._active_threads)

    assert controller.session.error == "HTTP 503: overloaded"
    assert controller._active_threads == []


def test_header_uploader_rejection_reaches_status_bar(window: MainWindow, tmp_path: Path) -> None:
    path = tmp_path / "datasheet.pdf"
    path.write_bytes(b"%PDF-1.4")
    assert window.header_uploader.load_file(path) is False
    assert "Unsupported image type" in window.statusBar().currentMessage()
    assert window.controller.state is AppState.IDLE
