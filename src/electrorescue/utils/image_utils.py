# -*- coding: utf-8 -*-
"""Image encoding helpers for data URLs."""

from __future__ import annotations

import base64
import binascii
import mimetypes
import re
from pathlib import Path

from electrorescue.constants import INVALID_IMAGE_MESSAGE, SUPPORTED_MIME_TYPES
from electrorescue.models.image_payload import ImagePayload


# data:[<mediatype>];base64,<data>
DATA_URL_PATTERN = re.compile(r"^data:(.+);base64,(.+)$", re.DOTALL)

_EXTRA_MIME_TYPES = {
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}


class ImageFormatError(ValueError):
    """Raised when an image cannot be turned into an analysis payload."""


def parse_data_url(data_url: str) -> ImagePayload:
    """Split a base64 data URL into MIME type and payload.

    Raises `ImageFormatError` for anything that is not an image data URL
    with valid base64 content.
    """
    match = DATA_URL_PATTERN.match(data_url.strip()) if isinstance(data_url, str) else None
    if not match:
        raise ImageFormatError(INVALID_IMAGE_MESSAGE)

    mime_type = match.group(1).strip().lower()
    data = "".join(match.group(2).split())
    if not mime_type.startswith("image/"):
        raise ImageFormatError(INVALID_IMAGE_MESSAGE)
    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageFormatError(INVALID_IMAGE_MESSAGE) from exc
    return ImagePayload(mime_type=mime_type, data=data)


def guess_mime_type(path: str | Path) -> str | None:
    """Guess the image MIME type from the file extension."""
    file_path = Path(path)
    suffix = file_path.suffix.lower()
    if suffix in _EXTRA_MIME_TYPES:
        return _EXTRA_MIME_TYPES[suffix]
    return mimetypes.guess_type(file_path.name)[0]


def encode_file_base64(path: str | Path) -> str:
    """Encode a file as base64 text."""
    return base64.b64encode(Path(path).read_bytes()).decode("ascii")


def build_data_url(mime_type: str, data: str) -> str:
    return f"data:{mime_type};base64,{data}"


def file_to_data_url(path: str | Path, max_file_mb: float | None = None) -> str:
    """Read an image file and return it as a data URL."""
    file_path = Path(path)
    mime_type = guess_mime_type(file_path)
    if mime_type not in SUPPORTED_MIME_TYPES:
        raise ImageFormatError(f"Unsupported image type: {file_path.suffix or file_path.name}")
    try:
        size = file_path.stat().st_size
    except OSError as exc:
        raise ImageFormatError(f"Cannot read image file: {file_path}") from exc
    if size == 0:
        raise ImageFormatError(f"Image file is empty: {file_path.name}")
    if max_file_mb is not None and size > float(max_file_mb) * 1024 * 1024:
        raise ImageFormatError(f"Image is larger than {max_file_mb} MB: {file_path.name}")
    return build_data_url(mime_type, encode_file_base64(file_path))


def decode_data_url(data_url: str) -> bytes:
    """Return the raw image bytes of a data URL (used for previews)."""
    payload = parse_data_url(data_url)
    return base64.b64decode(payload.data)
