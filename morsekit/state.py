"""morsekit — playback status and the observable UI state container."""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable


class PlaybackStatus(str, Enum):
    """Idle → Playing → Idle."""

    IDLE    = "idle"
    PLAYING = "playing"


@dataclass(frozen=True)
class UiState:
    """Everything a presentation layer needs to render one frame."""

    input_text:     str  = ""
    morse_code:     str  = ""
    displayed_text: str  = ""
    is_playing:     bool = False

    def copy(self, **changes) -> "UiState":
        return replace(self, **changes)


Subscriber = Callable[[UiState], None]


class StateStore:
    """Single-writer state container with change notification.

    Only the owner calls :meth:`update`; everyone else reads :attr:`value` or
    subscribes.  Subscribers are called synchronously, in subscription order,
    and only when the new state differs from the old one.
    """

    def __init__(self, initial: UiState | None = None):
        self._value = initial if initial is not None else UiState()
        self._subscribers: list[Subscriber] = []

    @property
    def value(self) -> UiState:
        return self._value

    def update(self, fn: Callable[[UiState], UiState]) -> UiState:
        new = fn(self._value)
        if new == self._value:
            return new
        self._value = new
        for cb in list(self._subscribers):
            cb(new)
        return new

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register *callback*; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe
