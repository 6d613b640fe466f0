"""morsekit — tone-emitting device boundary.

    ToneSource.acquire()        -> ToneChannel     (fresh channel per session)
    ToneChannel.start_tone(hz)
    ToneChannel.stop_tone()
    ToneChannel.release()

Timing is the caller's job: channels only switch a tone on or off, the
playback engine sleeps on its clock in between.

Implementations:
  RecordingToneSource   — in-memory event log against a Clock; can inject faults
  SounddeviceToneSource — live audio through a PortAudio output stream
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..clock import Clock, VirtualClock
from ..diagnostics import ToneDeviceError

logger = logging.getLogger(__name__)


class ToneChannel(ABC):

    @abstractmethod
    def start_tone(self, frequency_hz: float) -> None:
        ...

    @abstractmethod
    def stop_tone(self) -> None:
        ...

    @abstractmethod
    def release(self) -> None:
        ...


class ToneSource(ABC):

    @abstractmethod
    def acquire(self) -> ToneChannel:
        """Open a new channel.  Raises :class:`ToneDeviceError` on failure."""


# ═══════════════════════════════════════════════════════════════════════════════
# RECORDING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ToneEvent:
    time_ms:      float
    kind:         str               # 'acquire' | 'start' | 'stop' | 'release'
    frequency_hz: Optional[float] = None
    channel:      int = 0


class RecordingChannel(ToneChannel):

    def __init__(self, source: "RecordingToneSource", channel_id: int):
        self._source = source
        self.channel_id = channel_id
        self.release_count = 0
        self.tone_on: Optional[float] = None

    def _log(self, kind: str, frequency_hz: Optional[float] = None) -> None:
        self._source.events.append(ToneEvent(
            self._source.clock.now(), kind, frequency_hz, self.channel_id,
        ))

    def start_tone(self, frequency_hz: float) -> None:
        if self.release_count:
            raise ToneDeviceError(f"channel {self.channel_id} used after release")
        self._source.tones_started += 1
        if self._source.fail_on_tone is not None \
                and self._source.tones_started >= self._source.fail_on_tone:
            raise ToneDeviceError(
                f"injected failure on tone #{self._source.tones_started}"
            )
        self.tone_on = float(frequency_hz)
        self._log('start', float(frequency_hz))

    def stop_tone(self) -> None:
        if self.release_count:
            raise ToneDeviceError(f"channel {self.channel_id} used after release")
        self.tone_on = None
        self._log('stop')

    def release(self) -> None:
        self.release_count += 1
        self.tone_on = None
        self._log('release')


class RecordingToneSource(ToneSource):
    """Records every device call with its clock timestamp.

    ``fail_on_acquire`` makes :meth:`acquire` raise; ``fail_on_tone=N`` makes
    the N-th ``start_tone`` across all channels raise.
    """

    def __init__(self, clock: Clock | None = None, *,
                 fail_on_acquire: bool = False,
                 fail_on_tone: Optional[int] = None):
        self.clock = clock if clock is not None else VirtualClock()
        self.fail_on_acquire = fail_on_acquire
        self.fail_on_tone = fail_on_tone
        self.events: list[ToneEvent] = []
        self.channels: list[RecordingChannel] = []
        self.tones_started = 0

    def acquire(self) -> RecordingChannel:
        if self.fail_on_acquire:
            raise ToneDeviceError("injected failure on acquire")
        ch = RecordingChannel(self, len(self.channels))
        self.channels.append(ch)
        ch._log('acquire')
        return ch

    def tones(self) -> list[tuple[float, float, float]]:
        """``(start_ms, frequency_hz, duration_ms)`` for every completed tone."""
        out: list[tuple[float, float, float]] = []
        pending: dict[int, ToneEvent] = {}
        for ev in self.events:
            if ev.kind == 'start':
                pending[ev.channel] = ev
            elif ev.kind in ('stop', 'release') and ev.channel in pending:
                on = pending.pop(ev.channel)
                out.append((on.time_ms, on.frequency_hz, ev.time_ms - on.time_ms))
        return out


# ═══════════════════════════════════════════════════════════════════════════════
# LIVE AUDIO (sounddevice)
# ═══════════════════════════════════════════════════════════════════════════════

class SounddeviceChannel(ToneChannel):
    """Gated sine oscillator.

    The gate opens on ``start_tone`` and closes on ``stop_tone``; a short
    linear attack/release keeps the edges click-free.  Phase is carried across
    blocks.  Nothing is emitted while the gate is closed and the envelope is 0.
    """

    def __init__(self, sd, samplerate: int = 48000, volume: float = 0.5,
                 attack_s: float = 0.004, release_s: float = 0.008):
        self.fs = int(samplerate)
        self.vol = float(volume)
        self._atk_step = 1.0 / max(1, int(attack_s * self.fs))
        self._rel_step = 1.0 / max(1, int(release_s * self.fs))

        self._freq = 0.0
        self._gate = 0.0
        self._env = 0.0
        self._phase = 0.0
        self._lock = threading.Lock()
        self._released = False

        try:
            self._stream = sd.OutputStream(
                samplerate=self.fs, channels=1, dtype='float32',
                callback=self._cb, blocksize=0, latency='low',
            )
        except Exception as exc:
            raise ToneDeviceError(f"could not open audio output: {exc}") from exc
        try:
            self._stream.start()
        except Exception as exc:
            self._released = True
            try:
                self._stream.close()
            except Exception:
                logger.exception("could not close audio output after failed start")
            raise ToneDeviceError(f"could not start audio output: {exc}") from exc

    def start_tone(self, frequency_hz: float) -> None:
        if self._released:
            raise ToneDeviceError("audio channel used after release")
        with self._lock:
            self._freq = float(frequency_hz)
            self._gate = 1.0

    def stop_tone(self) -> None:
        if self._released:
            raise ToneDeviceError("audio channel used after release")
        with self._lock:
            self._gate = 0.0

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        with self._lock:
            self._gate = 0.0
        try:
            try:
                self._stream.stop()
            finally:
                self._stream.close()
        except Exception as exc:
            raise ToneDeviceError(f"could not close audio output: {exc}") from exc

    # ====== audio callback ======
    def _cb(self, outdata, frames, time_info, status):
        if status:
            logger.debug("audio stream status: %s", status)

        with self._lock:
            target = self._gate
            freq = self._freq

        ramp = np.arange(1, frames + 1, dtype=np.float32)
        if target >= 0.5:
            env = np.minimum(1.0, self._env + self._atk_step * ramp)
        else:
            env = np.maximum(0.0, self._env - self._rel_step * ramp)
        self._env = float(env[-1]) if frames else self._env

        phase_inc = 2.0 * np.pi * freq / self.fs
        ph = self._phase + phase_inc * np.arange(frames, dtype=np.float64)
        self._phase = float((self._phase + phase_inc * frames) % (2 * np.pi))

        outdata[:, 0] = (np.sin(ph) * env * self.vol).astype(np.float32)


class SounddeviceToneSource(ToneSource):
    """Opens a fresh PortAudio output stream for every session."""

    def __init__(self, samplerate: int = 48000, volume: float = 0.5):
        self.samplerate = samplerate
        self.volume = volume

    def acquire(self) -> SounddeviceChannel:
        try:
            import sounddevice as sd
        except (ImportError, OSError) as exc:
            # OSError: the wheel is installed but PortAudio itself is missing
            raise ToneDeviceError(f"sounddevice unavailable: {exc}") from exc
        return SounddeviceChannel(sd, self.samplerate, self.volume)
