"""Base64 and ``data:`` URL helpers.

Encoded images travel to the host as base64 text, so sizes are measured on
that text: every base64 character carries 6 bits, hence ``len * 3/4`` bytes.
"""

from __future__ import annotations

import base64
import binascii

from .errors import DecodeError

_DATA_PREFIX = "data:"
_BASE64_MARKER = ";base64"


def strip_data_url_prefix(text: str) -> str:
    """Return the base64 payload of ``text``, dropping a ``data:...,`` prefix."""
    _, sep, payload = text.partition(",")
    return payload if sep and payload else text


def base64_size_kb(text: str) -> float:
    payload = strip_data_url_prefix(text)
    return (len(payload) * 3 / 4) / 1024


def encoded_size_kb(data: bytes) -> float:
    """Size in KB of ``data`` once carried as base64 text (padding included)."""
    return base64_size_kb(base64.b64encode(data).decode("ascii"))


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def to_data_url(data: bytes, mime_type: str) -> str:
    return f"{_DATA_PREFIX}{mime_type}{_BASE64_MARKER},{to_base64(data)}"


def parse_data_url(text: str) -> tuple[str | None, bytes]:
    """Split base64 text or a ``data:`` URL into ``(mime_type, raw bytes)``.

    ``mime_type`` is None when ``text`` carries no ``data:`` header.
    """
    text = text.strip()
    mime_type: str | None = None
    payload = text
    if text.startswith(_DATA_PREFIX):
        header, sep, payload = text.partition(",")
        if not sep:
            raise DecodeError("data URL has no payload")
        meta = header[len(_DATA_PREFIX) :]
        if not meta.endswith(_BASE64_MARKER):
            raise DecodeError("only base64 data URLs are supported")
        mime_type = meta[: -len(_BASE64_MARKER)] or None
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid base64 payload: {e}") from e
