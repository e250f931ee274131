# -*- coding: utf-8 -*-
"""Google Gemini generateContent wrapper with structured JSON output."""

from __future__ import annotations

from typing import Any
from urllib import parse

from electrorescue.integrations.base_client import BaseVisionClient
from electrorescue.models.image_payload import ImagePayload


API_ROOT = "https://generativelanguage.googleapis.com/v1beta"

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "markdownReport": {"type": "STRING"},
        "componentStats": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "category": {"type": "STRING"},
                    "count": {"type": "INTEGER"},
                },
                "required": ["category", "count"],
            },
        },
    },
    "required": ["markdownReport", "componentStats"],
}


class GeminiClient(BaseVisionClient):
    """Thin wrapper for Gemini key checks and image analysis."""

    provider_name = "gemini"
    key_prefixes = ("AIza", "test-")

    def list_models(self, *, api_key: str, timeout: float) -> tuple[int, dict[str, Any] | None]:
        return self._request_json(
            "GET",
            f"{API_ROOT}/models",
            headers={"x-goog-api-key": api_key},
            timeout=timeout,
        )

    def build_payload(self, image: ImagePayload, prompt: str, temperature: float) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inline_data": {"mime_type": image.mime_type, "data": image.data}},
                        {"text": prompt},
                    ],
                }
            ],
            "generationConfig": {
                "temperature": float(temperature),
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def run_vision_model(
        self,
        model_name: str,
        image: ImagePayload,
        prompt: str,
        *,
        api_key: str | None = None,
        temperature: float = 0.2,
        timeout: float = 60.0,
    ) -> str:
        key = self._require_key(api_key)
        model = model_name.removeprefix("models/")
        url = f"{API_ROOT}/models/{parse.quote(model, safe='.-_')}:generateContent"
        status, response_payload = self._request_json(
            "POST",
            url,
            headers={"x-goog-api-key": key},
            timeout=timeout,
            data=self.build_payload(image, prompt, temperature),
        )
        if status != 200 or not isinstance(response_payload, dict):
            raise RuntimeError(f"Gemini request failed ({self.error_message(status, response_payload)})")

        candidates = response_payload.get("candidates", [])
        if not isinstance(candidates, list) or not candidates:
            feedback = response_payload.get("promptFeedback", {})
            reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            if reason:
                raise RuntimeError(f"Gemini blocked the request ({reason})")
            raise RuntimeError("Gemini response has no candidates")

        candidate = candidates[0] if isinstance(candidates[0], dict) else {}
        content = candidate.get("content", {})
        parts = content.get("parts", []) if isinstance(content, dict) else []
        text_parts = [
            str(part.get("text", ""))
            for part in parts
            if isinstance(part, dict) and part.get("text")
        ]
        if not text_parts:
            finish_reason = candidate.get("finishReason", "unknown")
            raise RuntimeError(f"Gemini returned no text (finishReason={finish_reason})")
        return "".join(text_parts)
