class CompressResizeError(Exception):
    """Base class for every error raised by compress_resize."""


class DecodeError(CompressResizeError):
    """Source bytes could not be decoded as an image."""


class SourceTooLargeError(DecodeError):
    """Source buffer is larger than the configured limit."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"source is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit


class EncodeError(CompressResizeError):
    """Codec is unavailable or rejected the encode parameters."""


class SettingsError(CompressResizeError):
    """Settings file or configuration value is invalid."""
