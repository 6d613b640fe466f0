"""morsekit — text to Morse code with animated reveal and timed tone playback.

Public API:
    encode(text)                                   -> EncodedMessage
    RevealScheduler(clock).start(encoded)          -> AsyncIterator[RevealState]
    PlaybackEngine(source, clock).play(encoded)    -> PlaybackResult
    MorseController(source, clock)                 — owns state, reveal and playback
"""

from .clock import Clock, AsyncioClock, VirtualClock
from .controller import MorseController
from .diagnostics import PlaybackOutcome, PlaybackResult, ToneDeviceError
from .encoder import EncodedMessage, encode
from .playback import PlaybackEngine, PlaybackSession
from .reveal import RevealScheduler, RevealState
from .state import PlaybackStatus, StateStore, UiState
from .symbols import MORSE_MAP

__version__ = "1.0.0"
__all__ = [
    "encode", "EncodedMessage", "MORSE_MAP",
    "RevealScheduler", "RevealState",
    "PlaybackEngine", "PlaybackSession", "PlaybackStatus",
    "PlaybackOutcome", "PlaybackResult", "ToneDeviceError",
    "MorseController", "StateStore", "UiState",
    "Clock", "AsyncioClock", "VirtualClock",
]
