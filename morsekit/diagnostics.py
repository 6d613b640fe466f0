"""morsekit — playback result type, outcome codes and device errors."""

from dataclasses import dataclass
from enum import Enum


class ToneDeviceError(RuntimeError):
    """A tone source or channel could not be opened or driven."""


class PlaybackOutcome(str, Enum):
    """How a playback session ended."""

    COMPLETED          = "completed"           # every symbol played
    STOPPED            = "stopped"             # stop() or a newer session cut it short
    REJECTED           = "rejected"            # already playing, or empty message
    DEVICE_UNAVAILABLE = "device_unavailable"  # acquire() failed
    DEVICE_FAILED      = "device_failed"       # start_tone / stop_tone raised mid-session


@dataclass
class PlaybackResult:
    """Outcome of one :meth:`PlaybackEngine.play` call.

    Never raised; device errors are folded into ``outcome``.
    """

    outcome:        PlaybackOutcome
    symbols_played: int   = 0       # encoded characters fully traversed
    elapsed_ms:     float = 0.0     # clock time from acquire to release

    @property
    def ok(self) -> bool:
        return self.outcome is PlaybackOutcome.COMPLETED

    def summary(self) -> str:
        return (
            f"[{self.outcome.value.upper()}] "
            f"symbols={self.symbols_played} elapsed={self.elapsed_ms:.0f}ms"
        )

    def __repr__(self) -> str:
        return f"PlaybackResult({self.summary()})"
