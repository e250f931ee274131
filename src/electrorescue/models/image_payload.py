# -*- coding: utf-8 -*-
"""Encoded image payload sent to the analysis service."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ImagePayload:
    """Base64 image data plus its MIME type."""

    mime_type: str
    data: str

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"
