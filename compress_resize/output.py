"""Value handed back to the host after an upload or a removal.

The host distinguishes three states: leave the bound field alone, clear it, or
set it to a new image. They are modelled as separate types so "no change" and
"cleared" can never be confused through None vs empty string.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .data_url import to_data_url
from .image_engine.models import EncodedResult
from .logger import get_logger

_logger = get_logger("output")


@dataclass(frozen=True)
class Unchanged:
    pass


@dataclass(frozen=True)
class Cleared:
    pass


@dataclass(frozen=True)
class SetValue:
    result: EncodedResult

    @property
    def data_url(self) -> str:
        return to_data_url(self.result.data, self.result.mime_type)


OutputState = Union[Unchanged, Cleared, SetValue]

UNCHANGED = Unchanged()
CLEARED = Cleared()


class OutputSlot:
    """Holds the image value the host should persist."""

    def __init__(self) -> None:
        self._state: OutputState = UNCHANGED
        self._bound: str | None = None

    @property
    def state(self) -> OutputState:
        return self._state

    @property
    def has_image(self) -> bool:
        return isinstance(self._state, SetValue) or bool(self._bound)

    def set(self, result: EncodedResult) -> None:
        self._state = SetValue(result)
        self._bound = None

    def clear(self) -> None:
        self._state = CLEARED
        self._bound = None

    def sync(self, incoming: str | None) -> bool:
        """Mirror a value the host pushed into the bound field.

        Returns True when the value differs from what the slot last saw. The
        pushed value is only tracked; it does not produce an output of its own.
        """
        current = self.bound_value() if not isinstance(self._state, Unchanged) else self._bound
        if incoming == current:
            return False
        _logger.debug("bound value changed externally (%s)", "set" if incoming else "cleared")
        self._state = UNCHANGED
        self._bound = incoming
        return True

    def bound_value(self) -> str | None:
        """Legacy field representation: None = no change, "" = clear, data URL = set."""
        if isinstance(self._state, SetValue):
            return self._state.data_url
        if isinstance(self._state, Cleared):
            return ""
        return None
