"""morsekit — Morse playback engine.

Drives a :class:`~morsekit.audio.devices.ToneSource` through the step schedule
of an encoded message (see :mod:`morsekit.schedule`).

State machine
=============

    IDLE ──start()──▶ PLAYING ──(completed | stop() | device error)──▶ IDLE

  - start() while PLAYING, or with an empty message, is rejected.
  - Every session acquires a fresh channel and releases it exactly once.
  - The session re-checks that it is still current before every step and
    after every delay, so a stop() lands within one element and the channel is
    never touched after it was released.
  - Device errors are logged and end the session; they never reach the caller.
  - A raising on_status during start() rolls the session back to IDLE and the
    error propagates from start().  Later on_status and on_step failures are
    logged and playback carries on.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .audio.devices import ToneChannel, ToneSource
from .clock import AsyncioClock, Clock
from .diagnostics import PlaybackOutcome, PlaybackResult
from .encoder import EncodedMessage
from .schedule import Step, symbol_steps
from .state import PlaybackStatus

logger = logging.getLogger(__name__)


@dataclass
class PlaybackSession:
    encoded:    EncodedMessage
    status:     PlaybackStatus = PlaybackStatus.PLAYING
    cursor:     int = 0                       # encoded characters fully played
    channel:    Optional[ToneChannel] = None
    generation: int = 0
    tone_on:    bool = False


class PlaybackEngine:

    def __init__(
        self,
        source: ToneSource,
        clock: Clock | None = None,
        *,
        on_status: Callable[[PlaybackStatus], None] | None = None,
        on_step: Callable[[Step], None] | None = None,
    ):
        self.source = source
        self.clock = clock if clock is not None else AsyncioClock()
        self.on_status = on_status
        self.on_step = on_step

        self._status = PlaybackStatus.IDLE
        self._session: Optional[PlaybackSession] = None
        self._generation = 0

    # ── status ────────────────────────────────────────────────────────────────

    @property
    def status(self) -> PlaybackStatus:
        return self._status

    @property
    def is_playing(self) -> bool:
        return self._status is PlaybackStatus.PLAYING

    @property
    def session(self) -> Optional[PlaybackSession]:
        return self._session

    def _set_status(self, status: PlaybackStatus, *, quiet: bool = False) -> None:
        if status is self._status:
            return
        self._status = status
        if self.on_status is None:
            return
        if not quiet:
            self.on_status(status)
            return
        try:
            self.on_status(status)
        except Exception:
            logger.exception("on_status callback failed for %s", status.value)

    # ── public API ────────────────────────────────────────────────────────────

    def start(self, encoded: str) -> Optional[asyncio.Task]:
        """Begin playback on the running loop.

        Returns the session task, or None if the request was rejected.  The
        status is PLAYING by the time this returns, so a second call made
        straight after is rejected.
        """
        session = self._begin(encoded)
        if session is None:
            return None
        return asyncio.get_running_loop().create_task(self._run(session))

    async def play(self, encoded: str) -> PlaybackResult:
        """Play *encoded* to completion (or until stopped) and report how it ended."""
        session = self._begin(encoded)
        if session is None:
            return PlaybackResult(PlaybackOutcome.REJECTED)
        return await self._run(session)

    def stop(self) -> None:
        """End the current session.  Idempotent; never raises."""
        session = self._session
        if session is None:
            self._set_status(PlaybackStatus.IDLE, quiet=True)
            return
        self._session = None
        session.status = PlaybackStatus.IDLE

        channel, session.channel = session.channel, None
        if channel is not None:
            if session.tone_on:
                session.tone_on = False
                try:
                    channel.stop_tone()
                except Exception:
                    logger.exception("failed to silence tone on stop")
            try:
                channel.release()
            except Exception:
                logger.exception("failed to release tone device")

        logger.info("playback #%d ended at symbol %d/%d",
                    session.generation, session.cursor, len(session.encoded))
        self._set_status(PlaybackStatus.IDLE, quiet=True)

    # ── session ───────────────────────────────────────────────────────────────

    def _begin(self, encoded: str) -> Optional[PlaybackSession]:
        if self.is_playing:
            logger.debug("start ignored: already playing")
            return None
        if not encoded:
            logger.debug("start ignored: empty message")
            return None
        self._generation += 1
        session = PlaybackSession(EncodedMessage(encoded), generation=self._generation)
        self._session = session
        try:
            self._set_status(PlaybackStatus.PLAYING)
        except Exception:
            # nothing acquired yet: roll back to IDLE
            self._session = None
            self._set_status(PlaybackStatus.IDLE, quiet=True)
            raise
        logger.info("playback #%d: %d symbols", session.generation, len(session.encoded))
        return session

    def _live(self, session: PlaybackSession) -> bool:
        return self._session is session and session.status is PlaybackStatus.PLAYING

    async def _run(self, session: PlaybackSession) -> PlaybackResult:
        t0 = self.clock.now()
        outcome = PlaybackOutcome.COMPLETED
        if not self._live(session):
            # stopped before the task got its first turn
            return PlaybackResult(PlaybackOutcome.STOPPED)
        try:
            session.channel = self.source.acquire()
        except Exception:
            logger.exception("could not acquire tone device")
            self._finish(session)
            return PlaybackResult(PlaybackOutcome.DEVICE_UNAVAILABLE)

        try:
            for index, symbol in enumerate(session.encoded):
                if not await self._play_symbol(session, symbol, index):
                    outcome = PlaybackOutcome.STOPPED
                    break
                session.cursor = index + 1
        except Exception:
            logger.exception("tone device failed during playback")
            outcome = PlaybackOutcome.DEVICE_FAILED
        finally:
            self._finish(session)

        result = PlaybackResult(outcome, session.cursor, self.clock.now() - t0)
        logger.info("playback #%d %s", session.generation, result.summary())
        return result

    async def _play_symbol(self, session: PlaybackSession, symbol: str, index: int) -> bool:
        for step in symbol_steps(symbol, index):
            if not self._live(session):
                return False
            if not await self._perform(session, step):
                return False
        return self._live(session)

    async def _perform(self, session: PlaybackSession, step: Step) -> bool:
        logger.debug("step %s %s %dms @%d", step.kind, step.frequency_hz or '',
                     step.duration_ms, step.index)
        if self.on_step is not None:
            try:
                self.on_step(step)
            except Exception:
                logger.exception("on_step callback failed at symbol %d", step.index)

        if not step.is_tone:
            await self.clock.sleep(step.duration_ms)
            return self._live(session)

        channel = session.channel
        channel.start_tone(step.frequency_hz)
        session.tone_on = True
        await self.clock.sleep(step.duration_ms)
        if not self._live(session):
            # stop() already silenced and released the channel
            return False
        session.tone_on = False
        channel.stop_tone()
        return True

    def _finish(self, session: PlaybackSession) -> None:
        if self._session is session:
            self.stop()
