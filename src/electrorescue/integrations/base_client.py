# -*- coding: utf-8 -*-
"""Shared HTTP plumbing for hosted vision model clients."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib import error, request

from electrorescue.models.image_payload import ImagePayload

logger = logging.getLogger(__name__)


class BaseVisionClient:
    """Common key handling and JSON transport for vision providers."""

    provider_name = "base"
    key_prefixes: tuple[str, ...] = ("test-",)

    def __init__(self, api_key: str = "") -> None:
        self.api_key = api_key

    def validate_key(
        self,
        api_key: str | None = None,
        *,
        check_remote: bool = False,
        timeout: float = 3.0,
    ) -> bool:
        """Validate a key format and optionally verify it against the provider."""
        key = (api_key if api_key is not None else self.api_key).strip()
        if not (bool(key) and key.startswith(self.key_prefixes)):
            return False
        if not check_remote:
            return True
        status, _ = self.list_models(api_key=key, timeout=timeout)
        return status == 200

    def list_models(self, *, api_key: str, timeout: float) -> tuple[int, dict[str, Any] | None]:
        raise NotImplementedError

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
        """Send one image and a prompt, return the model's text answer."""
        raise NotImplementedError

    def _require_key(self, api_key: str | None = None) -> str:
        """Return the key for one request, falling back to the client default."""
        key = (api_key if api_key is not None else self.api_key).strip()
        if not self.validate_key(key, check_remote=False):
            raise ValueError(f"{self.provider_name} API key missing or invalid format")
        return key

    @staticmethod
    def error_message(status: int, payload: dict[str, Any] | None) -> str:
        """Extract a readable message from an error payload."""
        detail = ""
        if isinstance(payload, dict):
            err = payload.get("error")
            if isinstance(err, dict):
                detail = str(err.get("message", "") or "")
            elif isinstance(err, str):
                detail = err
        if status == 0:
            return f"Network error: {detail or 'no response'}"
        if detail:
            return f"HTTP {status}: {detail}"
        return f"HTTP {status}"

    def _request_json(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float,
        data: dict[str, Any] | None = None,
    ) -> tuple[int, dict[str, Any] | None]:
        """Perform a JSON request. Status 0 means the request never got an answer."""
        body = None
        all_headers = {"Content-Type": "application/json"}
        all_headers.update(headers or {})
        if data is not None:
            body = json.dumps(data).encode("utf-8")
        req = request.Request(url, headers=all_headers, data=body, method=method)
        logger.debug("%s %s %s", self.provider_name, method, url)
        try:
            with request.urlopen(req, timeout=timeout) as response:
                status = int(getattr(response, "status", 200))
                raw_body = response.read().decode("utf-8", errors="ignore")
                try:
                    payload = json.loads(raw_body) if raw_body else {}
                except json.JSONDecodeError:
                    payload = {}
                return status, payload if isinstance(payload, dict) else {}
        except error.HTTPError as exc:
            raw_body = exc.read().decode("utf-8", errors="ignore")
            try:
                payload = json.loads(raw_body) if raw_body else {}
            except json.JSONDecodeError:
                payload = {"error": {"message": raw_body[:200]}} if raw_body else {}
            return int(exc.code), payload if isinstance(payload, dict) else {}
        except (error.URLError, TimeoutError, OSError) as exc:
            reason = getattr(exc, "reason", exc)
            logger.warning("%s request failed: %s", self.provider_name, reason)
            return 0, {"error": {"message": str(reason)}}
