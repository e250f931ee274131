# -*- coding: utf-8 -*-
"""Shared pytest fixtures."""

from __future__ import annotations

import base64
import io
import json
import os
import sys
from pathlib import Path
from typing import Any

import pytest


SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


PNG_1X1_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mP8/x8AAwMCAO7+fJ8AAAAASUVORK5CYII="
PNG_1X1_BYTES = base64.b64decode(PNG_1X1_B64)


@pytest.fixture
def png_data_url() -> str:
    return f"data:image/png;base64,{PNG_1X1_B64}"


@pytest.fixture
def sample_image(tmp_path: Path) -> Path:
    path = tmp_path / "board.png"
    path.write_bytes(PNG_1X1_BYTES)
    return path


@pytest.fixture
def default_config() -> dict:
    from electrorescue.config import get_default_config

    return get_default_config()


@pytest.fixture
def configured_settings(default_config: dict) -> dict:
    default_config["api_keys"]["gemini"] = "test-gemini"
    default_config["api_keys"]["openrouter"] = "test-openrouter"
    return default_config


def wire_response(report: str = "## Overview\nA power supply board.", stats: list | None = None) -> str:
    if stats is None:
        stats = [{"category": "Resistors", "count": 12}, {"category": "Capacitors", "count": 5}]
    return json.dumps({"markdownReport": report, "componentStats": stats})


class FakeVisionClient:
    """Stands in for a provider client and records its calls."""

    def __init__(self, raw_response: str = "", error: Exception | None = None) -> None:
        self.api_key = ""
        self.raw_response = raw_response or wire_response()
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def run_vision_model(self, model_name, image, prompt, *, api_key=None, temperature=0.2, timeout=60.0) -> str:
        self.calls.append(
            {
                "model_name": model_name,
                "image": image,
                "prompt": prompt,
                "temperature": temperature,
                "timeout": timeout,
                "api_key": api_key if api_key is not None else self.api_key,
            }
        )
        if self.error is not None:
            raise self.error
        return self.raw_response


@pytest.fixture
def fake_client() -> FakeVisionClient:
    return FakeVisionClient()


class FakeHttpResponse:
    def __init__(self, payload: Any, status: int = 200) -> None:
        self.status = status
        self._body = json.dumps(payload).encode("utf-8") if not isinstance(payload, bytes) else payload

    def read(self) -> bytes:
        return self._body

    def __enter__(self) -> "FakeHttpResponse":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None


class UrlopenRecorder:
    """Replacement for `urllib.request.urlopen` returning canned responses."""

    def __init__(self, response: Any) -> None:
        self.response = response
        self.requests: list[Any] = []
        self.timeouts: list[float] = []

    def __call__(self, req, timeout=None):
        self.requests.append(req)
        self.timeouts.append(timeout)
        if isinstance(self.response, BaseException):
            raise self.response
        return self.response

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].data.decode("utf-8"))


def http_error(url: str, code: int, payload: dict) -> Exception:
    from urllib.error import HTTPError

    body = io.BytesIO(json.dumps(payload).encode("utf-8"))
    return HTTPError(url, code, "error", {}, body)


@pytest.fixture
def qt_app():
    pytest.importorskip("PyQt6")
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app
    app.processEvents()
