"""Value types passed between the decoder, planner, encoder and pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

import numpy as np

from compress_resize.data_url import encoded_size_kb, to_base64, to_data_url

from ._vips import get_pyvips_module

_EXPECTED_NDIM = 3
_RGB_CHANNELS = 3


@dataclass(frozen=True)
class SourceImage:
    """Decoded raster. Never mutated; encoders resample copies of ``vips_image``."""

    width: int
    height: int
    vips_image: Any = field(repr=False, compare=False)
    loader: str = ""
    mime_type: str = ""

    @property
    def bands(self) -> int:
        return int(self.vips_image.bands)

    def pixels(self) -> np.ndarray:
        """Return the raster as an (height, width, bands) uint8 array.

        16-bit sources are scaled down to 8 bits rather than clipped.
        """
        image = self.vips_image
        if image.format == "ushort":
            image = image >> 8
        if image.format != "uchar":
            image = image.cast("uchar")
        mem = image.write_to_memory()
        array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands)
        return array.copy()

    @classmethod
    def from_array(cls, array: np.ndarray, mime_type: str = "") -> SourceImage:
        """Wrap an (h, w) or (h, w, bands) uint8 array."""
        pyvips = get_pyvips_module()
        arr = np.ascontiguousarray(array)
        if arr.ndim == _EXPECTED_NDIM - 1:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != _EXPECTED_NDIM:
            raise ValueError("expected numpy array with shape (h, w) or (h, w, bands)")
        if arr.dtype != np.uint8:
            arr = arr.astype(np.uint8)
        h, w, bands = arr.shape
        image = pyvips.Image.new_from_memory(arr.tobytes(), w, h, bands, "uchar")
        image = image.copy(interpretation="srgb" if bands >= _RGB_CHANNELS else "b-w")
        return cls(width=w, height=h, vips_image=image, loader="memory", mime_type=mime_type)


@dataclass(frozen=True)
class QualityMode:
    quality: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.quality <= 1.0:
            raise ValueError(f"quality must be within [0, 1], got {self.quality}")


@dataclass(frozen=True)
class TargetSizeMode:
    target_kb: float

    def __post_init__(self) -> None:
        if not self.target_kb > 0:
            raise ValueError(f"target_kb must be positive, got {self.target_kb}")


EncodeMode = Union[QualityMode, TargetSizeMode]


@dataclass(frozen=True)
class EncodeRequest:
    target_width: int
    target_height: int
    mime_type: str
    mode: EncodeMode


@dataclass(frozen=True)
class EncodedResult:
    """Encoded image bytes plus the MIME type the codec actually produced."""

    data: bytes = field(repr=False)
    mime_type: str
    width: int = 0
    height: int = 0
    quality: float | None = None
    attempts: int = 1

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def size_kb(self) -> float:
        return encoded_size_kb(self.data)

    @property
    def base64(self) -> str:
        return to_base64(self.data)

    @property
    def data_url(self) -> str:
        return to_data_url(self.data, self.mime_type)
