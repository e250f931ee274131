# -*- coding: utf-8 -*-
"""Tests for analyzer orchestration and response parsing."""

from __future__ import annotations

import json

import pytest

from electrorescue.models.image_payload import ImagePayload
from electrorescue.pipeline.analyzer import AnalysisError, Analyzer

from conftest import PNG_1X1_B64, FakeVisionClient, wire_response


def _image() -> ImagePayload:
    return ImagePayload(mime_type="image/png", data=PNG_1X1_B64)


def _analyzer(client: FakeVisionClient, provider: str = "gemini") -> Analyzer:
    return Analyzer(clients={provider: client})


def test_analyze_returns_report_and_stats(fake_client: FakeVisionClient, configured_settings: dict) -> None:
    result = _analyzer(fake_client).analyze(_image(), configured_settings)
    assert result.markdown_report.startswith("## Overview")
    assert [(s.category, s.count) for s in result.component_stats] == [("Resistors", 12), ("Capacitors", 5)]
    assert result.total_components == 17


def test_analyze_passes_settings_to_client(fake_client: FakeVisionClient, configured_settings: dict) -> None:
    configured_settings["analysis"]["temperature"] = 0.7
    configured_settings["analysis"]["timeout_seconds"] = 15
    _analyzer(fake_client).analyze(_image(), configured_settings)
    call = fake_client.calls[0]
    assert call["model_name"] == "gemini-2.5-flash"
    assert call["temperature"] == 0.7
    assert call["timeout"] == 15.0
    assert call["api_key"] == "test-gemini"
    assert call["image"].mime_type == "image/png"


def test_analyze_records_model_used(fake_client: FakeVisionClient, configured_settings: dict) -> None:
    result = _analyzer(fake_client).analyze(_image(), configured_settings)
    assert result.model_used == "gemini:gemini-2.5-flash"


def test_analyze_uses_openrouter_provider(configured_settings: dict) -> None:
    client = FakeVisionClient()
    configured_settings["analysis"]["provider"] = "openrouter"
    configured_settings["analysis"]["model"] = ""
    _analyzer(client, "openrouter").analyze(_image(), configured_settings)
    assert client.calls[0]["model_name"] == "google/gemini-2.5-flash"
    assert client.calls[0]["api_key"] == "test-openrouter"


def test_prompt_asks_for_components_and_json(fake_client: FakeVisionClient, configured_settings: dict) -> None:
    _analyzer(fake_client).analyze(_image(), configured_settings)
    prompt = fake_client.calls[0]["prompt"]
    assert "markdownReport" in prompt
    assert "componentStats" in prompt
    assert "Safety" in prompt


def test_missing_api_key_raises_before_call(fake_client: FakeVisionClient, default_config: dict) -> None:
    with pytest.raises(AnalysisError, match="No API key"):
        _analyzer(fake_client).analyze(_image(), default_config)
    assert fake_client.calls == []


def test_unknown_provider_raises(fake_client: FakeVisionClient, configured_settings: dict) -> None:
    configured_settings["analysis"]["provider"] = "openrouter"
    with pytest.raises(AnalysisError, match="Unknown analysis provider"):
        _analyzer(fake_client, "gemini").analyze(_image(), configured_settings)


def test_client_error_becomes_analysis_error(configured_settings: dict) -> None:
    client = FakeVisionClient(error=RuntimeError("Gemini request failed (HTTP 429: quota)"))
    with pytest.raises(AnalysisError, match="HTTP 429"):
        _analyzer(client).analyze(_image(), configured_settings)


def test_parse_response_strips_code_fences() -> None:
    raw = "```json\n" + wire_response() + "\n```"
    result = Analyzer(clients={}).parse_response(raw)
    assert len(result.component_stats) == 2
    assert result.raw_response == raw


def test_parse_response_without_stats_gives_empty_list() -> None:
    raw = json.dumps({"markdownReport": "Just text"})
    result = Analyzer(clients={}).parse_response(raw)
    assert result.component_stats == []


def test_parse_response_skips_malformed_stats() -> None:
    stats = [
        {"category": "Resistors", "count": "4"},
        {"category": "", "count": 2},
        {"category": "Diodes", "count": -1},
        {"category": "LEDs", "count": 2.5},
        {"category": "ICs", "count": True},
        {"category": "Connectors", "count": 3.0},
        "garbage",
    ]
    result = Analyzer(clients={}).parse_response(wire_response(stats=stats))
    assert [(s.category, s.count) for s in result.component_stats] == [("Resistors", 4), ("Connectors", 3)]


def test_parse_response_rejects_non_json() -> None:
    with pytest.raises(AnalysisError, match="unreadable"):
        Analyzer(clients={}).parse_response("I think this is a router board.")


def test_parse_response_rejects_json_array() -> None:
    with pytest.raises(AnalysisError, match="unexpected"):
        Analyzer(clients={}).parse_response("[]")


def test_parse_response_rejects_empty_report() -> None:
    with pytest.raises(AnalysisError, match="empty report"):
        Analyzer(clients={}).parse_response(wire_response(report="   "))


def test_result_serializes_to_wire_shape(fake_client: FakeVisionClient, configured_settings: dict) -> None:
    result = _analyzer(fake_client).analyze(_image(), configured_settings)
    assert result.to_dict() == json.loads(wire_response())


def test_non_ascii_digit_counts_are_skipped() -> None:
    raw = json.dumps(
        {
            "markdownReport": "## Report",
            "componentStats": [
                {"category": "Resistors", "count": "²"},
                {"category": "Diodes", "count": "①"},
                {"category": "ICs", "count": "3"},
            ],
        }
    )
    result = Analyzer(clients={}).parse_response(raw)
    assert [(s.category, s.count) for s in result.component_stats] == [("ICs", 3)]


def test_analyze_leaves_shared_client_key_untouched(fake_client: FakeVisionClient, configured_settings: dict) -> None:
    analyzer = _analyzer(fake_client)
    analyzer.analyze(_image(), configured_settings)
    configured_settings["api_keys"]["gemini"] = "test-rotated"
    analyzer.analyze(_image(), configured_settings)
    assert fake_client.api_key == ""
    assert [call["api_key"] for call in fake_client.calls] == ["test-gemini", "test-rotated"]
