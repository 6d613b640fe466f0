"""morsekit — animated character-by-character reveal of an encoded message.

Each ``start`` bumps a generation counter.  A session compares its own
generation against the scheduler's after every delay and before every state it
emits; once superseded it simply stops iterating.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncIterator

from .clock import AsyncioClock, Clock
from .constants import REVEAL_INTERVAL_MS
from .encoder import EncodedMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevealState:
    encoded:        str
    visible_length: int

    def __post_init__(self):
        if not 0 <= self.visible_length <= len(self.encoded):
            raise ValueError(
                f"visible_length {self.visible_length} outside [0, {len(self.encoded)}]"
            )

    @property
    def visible_text(self) -> str:
        return self.encoded[:self.visible_length]

    @property
    def is_complete(self) -> bool:
        return self.visible_length == len(self.encoded)


class RevealScheduler:
    """Produces time-ordered :class:`RevealState` snapshots for one display."""

    def __init__(self, clock: Clock | None = None,
                 interval_ms: float = REVEAL_INTERVAL_MS):
        self.clock = clock if clock is not None else AsyncioClock()
        self.interval_ms = interval_ms
        self._generation = 0
        self._live: int | None = None

    @property
    def active(self) -> bool:
        """True while the most recent session has states left to emit."""
        return self._live == self._generation

    def start(self, encoded: EncodedMessage | str) -> AsyncIterator[RevealState]:
        """Supersede any in-flight reveal and return the new session's states."""
        self._generation += 1
        self._live = self._generation
        logger.debug("reveal #%d: %d chars", self._generation, len(encoded))
        return self._run(str(encoded), self._generation)

    def cancel(self) -> None:
        """Stop the in-flight session without starting another."""
        if self.active:
            logger.debug("reveal #%d cancelled", self._generation)
        self._generation += 1

    def _current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run(self, encoded: str, generation: int) -> AsyncIterator[RevealState]:
        try:
            if not self._current(generation):
                return
            yield RevealState(encoded, 0)
            for index in range(len(encoded)):
                await self.clock.sleep(self.interval_ms)
                if not self._current(generation):
                    return
                yield RevealState(encoded, index + 1)
        finally:
            if self._live == generation:
                self._live = None
