"""Quality encoder: resample a decoded image and re-encode it with libvips.

Lossy savers take ``Q`` derived from a quality in [0, 1]; lossless savers
ignore it. MIME types libvips cannot write fall back to PNG, the same thing a
browser canvas does with an unknown ``toDataURL`` type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from compress_resize.errors import EncodeError
from compress_resize.logger import get_logger

from ._vips import require_pyvips, vips_error_types
from .metrics import metrics
from .models import SourceImage

_logger = get_logger("encoder")

FALLBACK_MIME_TYPE = "image/png"
_MIN_Q = 1
_MAX_Q = 100


@dataclass(frozen=True)
class Saver:
    suffix: str
    lossy: bool
    alpha: bool


_SAVERS: dict[str, Saver] = {
    "image/jpeg": Saver(".jpg", lossy=True, alpha=False),
    "image/png": Saver(".png", lossy=False, alpha=True),
    "image/webp": Saver(".webp", lossy=True, alpha=True),
    "image/avif": Saver(".avif", lossy=True, alpha=True),
    "image/tiff": Saver(".tif", lossy=False, alpha=True),
    "image/gif": Saver(".gif", lossy=False, alpha=True),
}

_ALIASES = {
    "image/jpg": "image/jpeg",
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
    "image/tif": "image/tiff",
}

EncodeFn = Callable[[Any, int, int, str, float], bytes]


def normalize_mime_type(mime_type: str | None) -> str:
    """Lower-case ``mime_type``, drop parameters and resolve common aliases."""
    mime = (mime_type or "").split(";", 1)[0].strip().lower()
    return _ALIASES.get(mime, mime)


def quality_to_q(quality: float) -> int:
    """Map a [0, 1] quality onto the libvips ``Q`` range."""
    return max(_MIN_Q, min(_MAX_Q, int(round(quality * 100))))


class VipsCodec:
    """Raster codec backed by libvips ``write_to_buffer``."""

    def __init__(self) -> None:
        self._suffixes: frozenset[str] | None = None

    def _available_suffixes(self) -> frozenset[str]:
        if self._suffixes is None:
            pyvips = require_pyvips(EncodeError)
            self._suffixes = frozenset(s.lower() for s in pyvips.get_suffixes())
        return self._suffixes

    def output_mime_type(self, mime_type: str | None) -> str:
        """MIME type that ``encode`` will actually produce for ``mime_type``."""
        mime = normalize_mime_type(mime_type)
        saver = _SAVERS.get(mime)
        if saver is None or saver.suffix not in self._available_suffixes():
            return FALLBACK_MIME_TYPE
        return mime

    def encode(self, image: SourceImage, width: int, height: int, mime_type: str, quality: float) -> bytes:
        """Resample ``image`` to ``(width, height)`` and encode it.

        Raises:
            EncodeError: on invalid parameters or codec failure.
        """
        if width <= 0 or height <= 0:
            raise EncodeError(f"invalid target size {width}x{height}")
        if not 0.0 <= quality <= 1.0:
            raise EncodeError(f"quality must be within [0, 1], got {quality}")

        out_mime = self.output_mime_type(mime_type)
        if out_mime != normalize_mime_type(mime_type):
            metrics.inc("encoder.fallback_png")
            _logger.debug("no saver for %s, encoding as %s", mime_type, out_mime)
        saver = _SAVERS[out_mime]

        pyvips = require_pyvips(EncodeError)
        metrics.inc("encoder.encode_calls")
        try:
            vimg = image.vips_image
            if (vimg.width, vimg.height) != (width, height):
                vimg = vimg.thumbnail_image(width, height=height, size=pyvips.Size.FORCE)
            if vimg.hasalpha() and not saver.alpha:
                # Transparent pixels become black, as on a canvas without alpha
                vimg = vimg.flatten(background=[0, 0, 0])
            options: dict[str, Any] = {}
            if saver.lossy:
                options["Q"] = quality_to_q(quality)
            out = vimg.write_to_buffer(saver.suffix, **options)
        except vips_error_types() as e:
            raise EncodeError(f"{out_mime} encode failed: {e}") from e

        # Normalize to bytes in case pyvips returns a memoryview-like object
        data = out if isinstance(out, bytes) else bytes(out)
        if not data:
            raise EncodeError(f"{out_mime} encoder produced no data ({width}x{height})")
        _logger.debug("encoded %dx%d %s q=%.3f -> %d bytes", width, height, out_mime, quality, len(data))
        return data


default_codec = VipsCodec()


def encode(image: SourceImage, width: int, height: int, mime_type: str, quality: float) -> bytes:
    """Encode with the shared libvips codec."""
    return default_codec.encode(image, width, height, mime_type, quality)


def output_mime_type(mime_type: str | None) -> str:
    return default_codec.output_mime_type(mime_type)
