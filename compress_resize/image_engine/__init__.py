"""Image Engine - decode, plan, encode.

This package provides the image processing core:
- Source decoding (decoder)
- Target dimension planning (planner)
- Quality encoding (encoder) and target-size search (search)
- Orchestration (pipeline) and background execution (loader)

Usage:
    from compress_resize.image_engine import run
    from compress_resize.settings_manager import CompressionSettings

    config = CompressionSettings(max_width=1280, mode="targetSize", target_size_kb=200)
    result = run(source_bytes, "image/jpeg", config)
    result.data_url
"""

from .models import EncodedResult, EncodeRequest, QualityMode, SourceImage, TargetSizeMode
from .pipeline import build_request, execute, run, run_base64
from .planner import plan
from .search import search_to_target

__all__ = [
    "EncodeRequest",
    "EncodedResult",
    "QualityMode",
    "SourceImage",
    "TargetSizeMode",
    "build_request",
    "execute",
    "plan",
    "run",
    "run_base64",
    "search_to_target",
]
