"""morsekit — text → Morse string.

    encode("SOS")  -> "... --- ..."
    encode("A B")  -> ".- / -..."

Every input character owns one slot in the output, joined by a single space.
Unmapped characters leave an empty slot, so "A~B" encodes to ".-  -..." with a
doubled space. That spacing is kept as-is; playback treats each space as a
letter gap.
"""
from __future__ import annotations

from .constants import LETTER_SEP
from .symbols import lookup


class EncodedMessage(str):
    """Immutable encoded Morse string. Compares equal to the plain ``str``."""

    __slots__ = ()

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def symbols(self) -> list[str]:
        """Per-input-character slots (an empty slot marks an unmapped character)."""
        if self.is_empty:
            return []
        return self.split(LETTER_SEP)

    def __repr__(self) -> str:
        return f'EncodedMessage({str.__repr__(self)})'


def encode(text: str) -> EncodedMessage:
    """Encode *text* to Morse. Case-insensitive, total, side-effect free."""
    return EncodedMessage(LETTER_SEP.join(lookup(ch) for ch in text.upper()))
