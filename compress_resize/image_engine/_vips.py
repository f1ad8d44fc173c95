"""Lazy pyvips import shared by the decoder and encoder."""

import contextlib
from typing import Any

_pyvips: Any | None = None


def get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        # Configure pyvips caches to avoid memory growth across runs
        with contextlib.suppress(Exception):
            pyvips.cache_set_max(0)
            pyvips.cache_set_max_mem(0)
            pyvips.cache_set_max_files(0)
        _pyvips = pyvips
    return _pyvips


def vips_error_types() -> tuple[type[BaseException], ...]:
    """Exception types pyvips raises for codec failures."""
    pyvips = get_pyvips_module()
    return (pyvips.Error,)


def require_pyvips(error_cls: type[Exception]) -> Any:
    """``get_pyvips_module`` that reports a missing libvips as ``error_cls``."""
    try:
        return get_pyvips_module()
    except (ImportError, OSError) as e:
        raise error_cls(f"libvips is not available: {e}") from e
