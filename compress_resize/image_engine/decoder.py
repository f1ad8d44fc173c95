"""Source image decoding using pyvips.

Turns an in-memory source buffer into a ``SourceImage``. The buffer is sniffed
by libvips, so a wrong declared MIME type does not prevent decoding; it is only
recorded on the result.
"""

from __future__ import annotations

from compress_resize.errors import DecodeError
from compress_resize.logger import get_logger

from ._vips import require_pyvips, vips_error_types
from .models import SourceImage

_logger = get_logger("decoder")


def _loader_name(image) -> str:
    if image.get_typeof("vips-loader") == 0:
        return ""
    return image.get("vips-loader")


def decode_source(data: bytes, mime_type: str = "") -> SourceImage:
    """Decode ``data`` into a ``SourceImage``.

    Raises:
        DecodeError: if the buffer is empty or libvips cannot read it.
    """
    if not data:
        raise DecodeError("source buffer is empty")

    pyvips = require_pyvips(DecodeError)
    try:
        image = pyvips.Image.new_from_buffer(data, "")
        loader = _loader_name(image)
        # Apply EXIF orientation the way browsers display the source
        image = image.autorot()
        # Decode once; encoders read the pixels repeatedly during a size search
        image = image.copy_memory()
    except vips_error_types() as e:
        _logger.debug("decode failed (declared %s): %s", mime_type or "unknown", e)
        raise DecodeError(f"failed to decode image: {e}") from e

    if image.width <= 0 or image.height <= 0:
        raise DecodeError(f"decoded image has no pixels ({image.width}x{image.height})")

    _logger.debug("decoded %dx%d via %s (declared %s)", image.width, image.height, loader, mime_type)
    return SourceImage(
        width=image.width,
        height=image.height,
        vips_image=image,
        loader=loader,
        mime_type=mime_type,
    )
