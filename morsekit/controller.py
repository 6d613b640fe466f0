"""morsekit — the single owner of the UI state.

Runs the reveal and the playback of the current message as two independent
asyncio tasks and is the only writer of its :class:`StateStore`.

    controller.update_text("SOS")
    controller.convert()            # encode + animated reveal
    controller.toggle_playback()    # start / stop audio
    controller.snapshot()           # (visible_text, full_morse_text, is_playing)
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .audio.devices import ToneSource
from .clock import AsyncioClock, Clock
from .encoder import encode
from .playback import PlaybackEngine
from .reveal import RevealScheduler
from .state import PlaybackStatus, StateStore, UiState

logger = logging.getLogger(__name__)


class MorseController:

    def __init__(self, source: ToneSource, clock: Clock | None = None,
                 store: StateStore | None = None):
        self.clock = clock if clock is not None else AsyncioClock()
        self.store = store if store is not None else StateStore()
        self.reveal = RevealScheduler(self.clock)
        self.playback = PlaybackEngine(source, self.clock, on_status=self._on_status)
        self._reveal_task: Optional[asyncio.Task] = None
        self._playback_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> UiState:
        return self.store.value

    def snapshot(self) -> tuple[str, str, bool]:
        s = self.store.value
        return s.displayed_text, s.morse_code, s.is_playing

    # ── text / reveal ─────────────────────────────────────────────────────────

    def update_text(self, text: str) -> None:
        self.store.update(lambda s: s.copy(input_text=text))

    def convert(self) -> asyncio.Task:
        """Encode the current input and start its reveal, superseding any other."""
        encoded = encode(self.store.value.input_text)
        logger.debug("convert: %d chars -> %d symbols",
                     len(self.store.value.input_text), len(encoded))
        self.store.update(lambda s: s.copy(morse_code=str(encoded), displayed_text=""))
        states = self.reveal.start(encoded)
        self._reveal_task = asyncio.get_running_loop().create_task(self._drive_reveal(states))
        return self._reveal_task

    async def _drive_reveal(self, states) -> None:
        async for st in states:
            self.store.update(lambda s, st=st: s.copy(displayed_text=st.visible_text))

    # ── playback ──────────────────────────────────────────────────────────────

    def toggle_playback(self) -> Optional[asyncio.Task]:
        if self.playback.is_playing:
            self.playback.stop()
            return None
        self._playback_task = self.playback.start(self.store.value.morse_code)
        return self._playback_task

    def _on_status(self, status: PlaybackStatus) -> None:
        playing = status is PlaybackStatus.PLAYING
        self.store.update(lambda s: s.copy(is_playing=playing))

    # ── lifecycle ─────────────────────────────────────────────────────────────

    async def join(self) -> None:
        """Wait for the latest reveal and playback tasks to finish."""
        tasks = [t for t in (self._reveal_task, self._playback_task) if t is not None]
        if tasks:
            await asyncio.gather(*tasks)

    def close(self) -> None:
        """Cancel the reveal and stop playback; safe to call more than once."""
        self.reveal.cancel()
        self.playback.stop()
