from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .errors import SettingsError
from .logger import get_logger

_logger = get_logger("settings")

MODE_QUALITY = "quality"
MODE_TARGET_SIZE = "targetSize"

# Host enum values ("0" quality, "1" target size) are accepted as well
_MODE_ALIASES = {
    "0": MODE_QUALITY,
    "quality": MODE_QUALITY,
    "1": MODE_TARGET_SIZE,
    "targetsize": MODE_TARGET_SIZE,
    "target_size": MODE_TARGET_SIZE,
}

DEFAULT_QUALITY = 80
DEFAULT_TARGET_SIZE_KB = 100.0

# camelCase host option names -> field names
_KEY_ALIASES = {
    "maxWidth": "max_width",
    "maxHeight": "max_height",
    "compressionMode": "mode",
    "targetSizeKB": "target_size_kb",
    "targetSizeKb": "target_size_kb",
    "outputMimeType": "output_mime_type",
    "maxSourceBytes": "max_source_bytes",
}


def normalize_keys(values: Mapping[str, Any]) -> dict[str, Any]:
    return {_KEY_ALIASES.get(k, k): v for k, v in values.items()}


def _as_number(key: str, value: Any) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise SettingsError(f"{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise SettingsError(f"{key} must be a number, got {value!r}") from e


def _non_negative_int(key: str, value: Any) -> int:
    number = _as_number(key, value)
    if number is None or number <= 0:
        return 0
    return int(number)


def normalize_mode(value: Any) -> str:
    if value is None or value == "":
        return MODE_QUALITY
    mode = _MODE_ALIASES.get(str(value).strip().lower())
    if mode is None:
        raise SettingsError(f"unknown compression mode {value!r}")
    return mode


@dataclass(frozen=True)
class CompressionSettings:
    """Options supplied by the host for one pipeline run.

    ``quality`` and ``target_size_kb`` treat 0 as unset, like the host form
    fields do.
    """

    max_width: int = 0
    max_height: int = 0
    mode: str = MODE_QUALITY
    quality: int = DEFAULT_QUALITY
    target_size_kb: float = DEFAULT_TARGET_SIZE_KB
    output_mime_type: str | None = None
    max_source_bytes: int = 0

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> CompressionSettings:
        data = normalize_keys(values)

        quality = _as_number("quality", data.get("quality"))
        if not quality:
            quality = float(DEFAULT_QUALITY)
        if not 0 < quality <= 100:
            raise SettingsError(f"quality must be within 0-100, got {quality:g}")
        if not quality.is_integer():
            raise SettingsError(f"quality must be a whole number, got {quality:g}")

        target = _as_number("target_size_kb", data.get("target_size_kb"))
        if not target:
            target = DEFAULT_TARGET_SIZE_KB
        if target < 0:
            raise SettingsError(f"target_size_kb must be positive, got {target:g}")

        return cls(
            max_width=_non_negative_int("max_width", data.get("max_width")),
            max_height=_non_negative_int("max_height", data.get("max_height")),
            mode=normalize_mode(data.get("mode")),
            quality=int(quality),
            target_size_kb=target,
            output_mime_type=data.get("output_mime_type") or None,
            max_source_bytes=_non_negative_int("max_source_bytes", data.get("max_source_bytes")),
        )

    @property
    def target_size_mode(self) -> bool:
        return self.mode == MODE_TARGET_SIZE


class SettingsManager:
    """JSON-backed store for the default compression options.

    With ``strict`` a missing or unreadable file raises ``SettingsError``
    instead of falling back to DEFAULTS.
    """

    def __init__(self, settings_path: str, strict: bool = False):
        self.settings_path = settings_path
        self.strict = strict
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "max_width": 0,
        "max_height": 0,
        "mode": MODE_QUALITY,
        "quality": DEFAULT_QUALITY,
        "target_size_kb": DEFAULT_TARGET_SIZE_KB,
        "output_mime_type": None,
        "max_source_bytes": 0,
    }

    def load(self) -> None:
        self._settings = {}
        if not self.strict and not os.path.exists(self.settings_path):
            return
        try:
            with open(self.settings_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self._load_failed(f"settings load failed: {e}")
            return
        if not isinstance(data, dict):
            self._load_failed(f"settings file is not a JSON object: {self.settings_path}")
            return
        self._settings = data
        _logger.debug("settings loaded: %s", self.settings_path)

    def _load_failed(self, message: str) -> None:
        if self.strict:
            raise SettingsError(message)
        _logger.warning(message)

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    def compression_settings(self, **overrides: Any) -> CompressionSettings:
        """Stored options merged over DEFAULTS, then ``overrides`` (None skipped)."""
        values = {**self.DEFAULTS, **normalize_keys(self._settings)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return CompressionSettings.from_mapping(values)
