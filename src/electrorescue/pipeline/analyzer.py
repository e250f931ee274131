# -*- coding: utf-8 -*-
"""PCB analysis orchestration."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from electrorescue.config import DEFAULT_MODELS, get_api_key
from electrorescue.constants import ANALYSIS_PROMPT
from electrorescue.integrations.base_client import BaseVisionClient
from electrorescue.integrations.gemini_client import GeminiClient
from electrorescue.integrations.openrouter_client import OpenRouterClient
from electrorescue.models.analysis_result import AnalysisResult, ComponentStat
from electrorescue.models.image_payload import ImagePayload

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


class AnalysisError(RuntimeError):
    """Raised when the analysis service cannot produce a usable result."""


class Analyzer:
    """Build the prompt, call a vision model and parse the PCB report."""

    def __init__(self, clients: dict[str, BaseVisionClient] | None = None) -> None:
        self.clients: dict[str, BaseVisionClient] = clients if clients is not None else {
            "gemini": GeminiClient(),
            "openrouter": OpenRouterClient(),
        }

    def build_prompt(self) -> str:
        return ANALYSIS_PROMPT

    def analyze(self, image: ImagePayload, settings: dict[str, Any]) -> AnalysisResult:
        analysis_settings = settings.get("analysis", {})
        provider = str(analysis_settings.get("provider", "gemini"))
        model_name = str(analysis_settings.get("model") or DEFAULT_MODELS.get(provider, ""))
        temperature = float(analysis_settings.get("temperature", 0.2))
        timeout = float(analysis_settings.get("timeout_seconds", 60))

        client = self.clients.get(provider)
        if client is None:
            raise AnalysisError(f"Unknown analysis provider: {provider}")

        api_key = get_api_key(settings, provider)
        if not api_key:
            logger.warning("%s API key missing.", provider)
            raise AnalysisError(f"No API key configured for {provider}. Add it to .env or Settings.")

        prompt = self.build_prompt()
        logger.info(
            "Sending image to %s (model=%s, mime=%s, %d base64 chars)",
            provider,
            model_name,
            image.mime_type,
            len(image.data),
        )
        try:
            raw_response = client.run_vision_model(
                model_name,
                image,
                prompt,
                api_key=api_key,
                temperature=temperature,
                timeout=timeout,
            )
        except (RuntimeError, ValueError) as exc:
            logger.error("%s API error: %s", provider, exc)
            raise AnalysisError(str(exc)) from exc

        logger.info("Received response from %s (%d chars).", provider, len(raw_response))
        result = self.parse_response(raw_response)
        result.model_used = f"{provider}:{model_name}"
        logger.info(
            "Parsed report (%d chars) with %d component categories.",
            len(result.markdown_report),
            len(result.component_stats),
        )
        return result

    def parse_response(self, raw_response: str) -> AnalysisResult:
        """Turn the model's JSON answer into an `AnalysisResult`."""
        text = raw_response.strip()
        fenced = _FENCE_PATTERN.match(text)
        if fenced:
            text = fenced.group(1)
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AnalysisError("The analysis service returned an unreadable response.") from exc
        if not isinstance(parsed, dict):
            raise AnalysisError("The analysis service returned an unexpected response.")

        report = parsed.get("markdownReport")
        if not isinstance(report, str) or not report.strip():
            raise AnalysisError("The analysis service returned an empty report.")

        return AnalysisResult(
            markdown_report=report.strip(),
            component_stats=self.parse_component_stats(parsed.get("componentStats")),
            raw_response=raw_response,
        )

    def parse_component_stats(self, raw_stats: Any) -> list[ComponentStat]:
        if not isinstance(raw_stats, list):
            return []
        stats: list[ComponentStat] = []
        for item in raw_stats:
            if not isinstance(item, dict):
                continue
            category = str(item.get("category", "") or "").strip()
            count = _coerce_count(item.get("count"))
            if not category or count is None:
                logger.debug("Skipping malformed component stat: %r", item)
                continue
            stats.append(ComponentStat(category=category, count=count))
        return stats


def _coerce_count(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        count = value
    elif isinstance(value, float) and value.is_integer():
        count = int(value)
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        # int() rejects non-ASCII digits such as "²".
        count = int(value.strip())
    else:
        return None
    return count if count >= 0 else None
