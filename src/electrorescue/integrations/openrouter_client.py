# -*- coding: utf-8 -*-
"""OpenRouter vision model wrapper with OpenAI-compatible payloads."""

from __future__ import annotations

from typing import Any

from electrorescue.integrations.base_client import BaseVisionClient
from electrorescue.models.image_payload import ImagePayload


API_ROOT = "https://openrouter.ai/api/v1"


class OpenRouterClient(BaseVisionClient):
    """Thin wrapper for OpenRouter model checks and vision inference."""

    provider_name = "openrouter"
    key_prefixes = ("sk-or-v1-", "test-")

    def _auth_headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"} if api_key else {}

    def list_models(self, *, api_key: str, timeout: float) -> tuple[int, dict[str, Any] | None]:
        return self._request_json(
            "GET",
            f"{API_ROOT}/models",
            headers=self._auth_headers(api_key),
            timeout=timeout,
        )

    def check_model_availability(
        self,
        model_ids: list[str],
        *,
        api_key: str | None = None,
        timeout: float = 3.0,
    ) -> dict[str, bool]:
        """Check if model IDs appear in OpenRouter's model index."""
        key = (api_key if api_key is not None else self.api_key).strip()
        status, payload = self.list_models(api_key=key, timeout=timeout)
        records = payload.get("data", []) if isinstance(payload, dict) else []
        known = {
            str(item.get("id", ""))
            for item in records
            if isinstance(item, dict) and item.get("id")
        }
        return {model_id: status == 200 and model_id in known for model_id in model_ids}

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
        payload = {
            "model": model_name,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": image.data_url}},
                    ],
                }
            ],
            "temperature": float(temperature),
            "response_format": {"type": "json_object"},
        }
        status, response_payload = self._request_json(
            "POST",
            f"{API_ROOT}/chat/completions",
            headers=self._auth_headers(key),
            timeout=timeout,
            data=payload,
        )
        if status != 200 or not isinstance(response_payload, dict):
            raise RuntimeError(f"OpenRouter request failed ({self.error_message(status, response_payload)})")

        choices = response_payload.get("choices", [])
        if not isinstance(choices, list) or not choices:
            raise RuntimeError("OpenRouter response has no choices")
        message = choices[0].get("message", {}) if isinstance(choices[0], dict) else {}
        content_value = message.get("content", "") if isinstance(message, dict) else ""
        if isinstance(content_value, str):
            return content_value
        if isinstance(content_value, list):
            text_parts = []
            for item in content_value:
                if isinstance(item, dict) and item.get("type") == "text":
                    text_parts.append(str(item.get("text", "")))
            return "\n".join(part for part in text_parts if part)
        return str(content_value)
