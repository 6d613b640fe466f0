"""morsekit — encoded Morse string → ordered tone / silence steps.

One symbol of the encoded string expands to:

    '.'  → tone(DOT_FREQ_HZ,  DOT_MS)   + silence(ELEMENT_GAP_MS)
    '-'  → tone(DASH_FREQ_HZ, DASH_MS)  + silence(ELEMENT_GAP_MS)
    ' '  → silence(LETTER_GAP_MS)
    '/'  → silence(WORD_GAP_MS)
    else → nothing

Both the live PlaybackEngine and the offline renderer walk these steps, so a
WAV export and a live playback of the same message share one timing table.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from .constants import (
    DOT, DASH, LETTER_SEP, WORD_SEP,
    DOT_MS, DASH_MS, ELEMENT_GAP_MS, LETTER_GAP_MS, WORD_GAP_MS,
    DOT_FREQ_HZ, DASH_FREQ_HZ,
)

TONE    = "tone"
SILENCE = "silence"


@dataclass(frozen=True)
class Step:
    kind:         str              # TONE | SILENCE
    duration_ms:  int
    frequency_hz: Optional[int] = None
    symbol:       str = ""         # encoded character this step belongs to
    index:        int = 0          # position of that character in the message

    @property
    def is_tone(self) -> bool:
        return self.kind == TONE


def symbol_steps(symbol: str, index: int = 0) -> list[Step]:
    """Steps for a single encoded character; [] for anything unrecognised."""
    if symbol == DOT:
        return [
            Step(TONE, DOT_MS, DOT_FREQ_HZ, symbol, index),
            Step(SILENCE, ELEMENT_GAP_MS, None, symbol, index),
        ]
    if symbol == DASH:
        return [
            Step(TONE, DASH_MS, DASH_FREQ_HZ, symbol, index),
            Step(SILENCE, ELEMENT_GAP_MS, None, symbol, index),
        ]
    if symbol == LETTER_SEP:
        return [Step(SILENCE, LETTER_GAP_MS, None, symbol, index)]
    if symbol == WORD_SEP:
        return [Step(SILENCE, WORD_GAP_MS, None, symbol, index)]
    return []


def iter_steps(encoded: str) -> Iterator[Step]:
    for index, symbol in enumerate(encoded):
        yield from symbol_steps(symbol, index)


def total_duration_ms(encoded: str) -> int:
    return sum(step.duration_ms for step in iter_steps(encoded))
