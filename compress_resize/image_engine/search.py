"""Target-size search.

Re-encodes at decreasing quality until the base64 size of the output fits the
budget. The search is best effort: after ``MAX_ITERATIONS`` encodes, or once
quality has hit ``MIN_QUALITY``, the last output is returned even when it is
still too large. Callers must check ``size_kb`` themselves if they need a hard
bound.

Encoded size is not linear in quality, so each step scales quality by the
size ratio times ``DAMPING``. Pure proportional steps overshoot and oscillate.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from compress_resize.data_url import encoded_size_kb
from compress_resize.logger import get_logger

from .encoder import EncodeFn, encode as default_encode
from .metrics import metrics

_logger = get_logger("search")

INITIAL_QUALITY = 0.9
MIN_QUALITY = 0.1
MAX_ITERATIONS = 10
DAMPING = 0.9


@dataclass(frozen=True)
class SearchOutcome:
    data: bytes = field(repr=False)
    quality: float
    attempts: int
    size_kb: float
    target_kb: float

    @property
    def met_target(self) -> bool:
        return self.size_kb <= self.target_kb


def run_search(
    image: Any,
    width: int,
    height: int,
    mime_type: str,
    target_kb: float,
    encode: EncodeFn = default_encode,
) -> SearchOutcome:
    """Search for the highest quality whose output fits ``target_kb``.

    Returns the accepted attempt, or the last attempt when the iteration
    budget runs out.
    """
    if not target_kb > 0:
        raise ValueError(f"target_kb must be positive, got {target_kb}")

    metrics.inc("search.runs")
    quality = INITIAL_QUALITY
    iteration = 0
    attempts = 0
    data = b""
    size_kb = 0.0
    used_quality = quality

    while iteration < MAX_ITERATIONS:
        data = encode(image, width, height, mime_type, quality)
        used_quality = quality
        attempts += 1
        metrics.inc("search.attempts")
        size_kb = encoded_size_kb(data)
        _logger.debug("attempt %d: quality=%.4f size=%.2fKB target=%.2fKB", attempts, quality, size_kb, target_kb)

        # Stop at the floor too: more attempts there would encode the same thing
        if size_kb <= target_kb or quality <= MIN_QUALITY:
            break

        ratio = target_kb / size_kb
        quality = max(MIN_QUALITY, quality * ratio * DAMPING)
        iteration += 1

    outcome = SearchOutcome(data=data, quality=used_quality, attempts=attempts, size_kb=size_kb, target_kb=target_kb)
    if not outcome.met_target:
        metrics.inc("search.target_missed")
        _logger.info(
            "target %.2fKB not reached after %d attempts, returning %.2fKB at quality %.4f",
            target_kb,
            attempts,
            size_kb,
            used_quality,
        )
    return outcome


def search_to_target(
    image: Any,
    width: int,
    height: int,
    mime_type: str,
    target_kb: float,
    encode: EncodeFn = default_encode,
) -> bytes:
    """Encoded bytes from ``run_search``; may exceed ``target_kb``."""
    return run_search(image, width, height, mime_type, target_kb, encode=encode).data
