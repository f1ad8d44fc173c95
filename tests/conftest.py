"""Pytest configuration.

Codec-backed tests build their source images in memory with pyvips; tests
that exercise pure logic (planner, search, settings) never import it.
"""

from __future__ import annotations

import numpy as np
import pytest

from compress_resize.image_engine.metrics import metrics


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def noise_rgb() -> np.ndarray:
    """Noisy gradient; compresses differently at different JPEG qualities."""
    rng = np.random.default_rng(1234)
    h, w = 240, 320
    ramp = np.linspace(0, 255, w, dtype=np.float32)[np.newaxis, :, np.newaxis]
    base = np.broadcast_to(ramp, (h, w, 3))
    noise = rng.normal(0, 40, (h, w, 3))
    return np.clip(base + noise, 0, 255).astype(np.uint8)


@pytest.fixture
def encode_array():
    """Return a helper that encodes a numpy array with pyvips, e.g. to '.png'."""
    pyvips = pytest.importorskip("pyvips")

    def _encode(arr: np.ndarray, suffix: str = ".png", **options) -> bytes:
        arr = np.ascontiguousarray(arr, dtype=np.uint8)
        h, w, bands = arr.shape
        img = pyvips.Image.new_from_memory(arr.tobytes(), w, h, bands, "uchar")
        img = img.copy(interpretation="srgb")
        return bytes(img.write_to_buffer(suffix, **options))

    return _encode
