"""Decode -> plan -> encode pipeline.

One call handles one upload. Steps run strictly in order and nothing is kept
between calls; the only bound on codec work is the target-size search's
iteration limit.
"""

from __future__ import annotations

from typing import Any, Protocol

from compress_resize.data_url import parse_data_url
from compress_resize.errors import SourceTooLargeError
from compress_resize.logger import get_logger
from compress_resize.settings_manager import (
    DEFAULT_QUALITY,
    DEFAULT_TARGET_SIZE_KB,
    CompressionSettings,
)

from .decoder import decode_source
from .encoder import default_codec, normalize_mime_type
from .metrics import metrics
from .models import EncodedResult, EncodeRequest, QualityMode, SourceImage, TargetSizeMode
from .planner import fits, plan
from .search import run_search

_logger = get_logger("pipeline")

DEFAULT_MIME_TYPE = "image/jpeg"


class Codec(Protocol):
    def encode(self, image: Any, width: int, height: int, mime_type: str, quality: float) -> bytes: ...

    def output_mime_type(self, mime_type: str | None) -> str: ...


def build_request(
    source: SourceImage,
    config: CompressionSettings,
    mime_type: str | None = None,
    codec: Codec = default_codec,
) -> EncodeRequest:
    """Plan target dimensions and pick the encode mode for ``source``."""
    max_width = max(config.max_width or 0, 0)
    max_height = max(config.max_height or 0, 0)
    width, height = plan(source.width, source.height, max_width, max_height)
    if not fits(width, height, max_width, max_height):
        _logger.debug(
            "planned %dx%d still exceeds limits %dx%d (source %dx%d)",
            width,
            height,
            max_width,
            max_height,
            source.width,
            source.height,
        )

    requested = config.output_mime_type or mime_type or source.mime_type or DEFAULT_MIME_TYPE
    out_mime = codec.output_mime_type(requested)

    if config.target_size_mode:
        mode: QualityMode | TargetSizeMode = TargetSizeMode(config.target_size_kb or DEFAULT_TARGET_SIZE_KB)
    else:
        mode = QualityMode((config.quality or DEFAULT_QUALITY) / 100)
    return EncodeRequest(target_width=width, target_height=height, mime_type=out_mime, mode=mode)


def execute(source: SourceImage, request: EncodeRequest, codec: Codec = default_codec) -> EncodedResult:
    """Encode ``source`` as described by ``request``."""
    width, height, mime = request.target_width, request.target_height, request.mime_type
    with metrics.timed("pipeline.encode_duration"):
        if isinstance(request.mode, TargetSizeMode):
            outcome = run_search(source, width, height, mime, request.mode.target_kb, encode=codec.encode)
            data, quality, attempts = outcome.data, outcome.quality, outcome.attempts
        else:
            quality = request.mode.quality
            data = codec.encode(source, width, height, mime, quality)
            attempts = 1
    return EncodedResult(data=data, mime_type=mime, width=width, height=height, quality=quality, attempts=attempts)


def run(
    source: bytes,
    mime_type: str | None,
    config: CompressionSettings | None = None,
    codec: Codec = default_codec,
) -> EncodedResult:
    """Decode ``source``, resize it and re-encode it per ``config``.

    Raises:
        DecodeError: the source is not a readable image (or is over the size limit).
        EncodeError: the codec rejected the request.
    """
    config = config or CompressionSettings()
    mime = normalize_mime_type(mime_type) or DEFAULT_MIME_TYPE
    metrics.inc("pipeline.runs")

    if config.max_source_bytes and len(source) > config.max_source_bytes:
        raise SourceTooLargeError(len(source), config.max_source_bytes)

    with metrics.timed("pipeline.decode_duration"):
        image = decode_source(source, mime)

    request = build_request(image, config, mime, codec=codec)
    _logger.debug(
        "run: %dx%d %s -> %dx%d %s %s",
        image.width,
        image.height,
        mime,
        request.target_width,
        request.target_height,
        request.mime_type,
        request.mode,
    )
    result = execute(image, request, codec=codec)
    _logger.info(
        "encoded %dx%d %s: %.1fKB in %d attempt(s)",
        result.width,
        result.height,
        result.mime_type,
        result.size_kb,
        result.attempts,
    )
    return result


def run_base64(
    text: str,
    mime_type: str | None = None,
    config: CompressionSettings | None = None,
    codec: Codec = default_codec,
) -> EncodedResult:
    """``run`` for base64 text or a ``data:`` URL.

    The MIME type from a ``data:`` header is used when ``mime_type`` is not given.
    """
    url_mime, data = parse_data_url(text)
    return run(data, mime_type or url_mime, config, codec=codec)
