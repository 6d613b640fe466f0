"""
synth.py — offline rendering of an encoded message to PCM, plus WAV I/O.

Walks the same step schedule as the live PlaybackEngine, so a rendered WAV
carries the exact tone/silence timing heard during playback.
"""
from __future__ import annotations

import numpy as np

from ..constants import SR
from ..schedule import iter_steps

# ─────────────────────────────────────────────────────────────
# Default render parameters
# ─────────────────────────────────────────────────────────────
DEFAULTS: dict = {
    'volume':    0.8,
    'fade_ms':   5.0,      # raised-cosine rise/fall per tone
    'waveform': 'sine',    # sine | square | sawtooth | triangle
}

WAVEFORMS = ('sine', 'square', 'sawtooth', 'triangle')


def _params(overrides: dict) -> dict:
    unknown = set(overrides) - set(DEFAULTS)
    if unknown:
        raise ValueError(f"Unknown render parameter(s): {sorted(unknown)}")
    p = {**DEFAULTS, **overrides}
    if p['waveform'] not in WAVEFORMS:
        raise ValueError(f"Unknown waveform '{p['waveform']}': choose from {list(WAVEFORMS)}")
    if not 0.0 <= float(p['volume']) <= 1.0:
        raise ValueError(f"volume must be within [0, 1], got {p['volume']}")
    if float(p['fade_ms']) < 0.0:
        raise ValueError(f"fade_ms must be >= 0, got {p['fade_ms']}")
    return p


def _oscillator(freq: float, n_samples: int, sr: int, waveform: str) -> np.ndarray:
    """Carrier for one keyed element, starting at zero phase."""
    phi = 2.0 * np.pi * freq * np.arange(n_samples, dtype=np.float64) / sr
    if waveform == 'sine':
        return np.sin(phi).astype(np.float32)
    from scipy import signal
    if waveform == 'square':
        return signal.square(phi).astype(np.float32)
    return signal.sawtooth(phi, width=1.0 if waveform == 'sawtooth' else 0.5).astype(np.float32)


def _key_envelope(n: int, ramp_n: int) -> np.ndarray:
    """Raised-cosine keying envelope for one n-sample tone.

    Rises over the first ramp_n samples and falls over the last, with ramp_n
    capped at half the element.
    """
    env = np.ones(n, dtype=np.float32)
    ramp_n = min(ramp_n, n // 2)
    if ramp_n > 0:
        edge = 0.5 - 0.5 * np.cos(np.linspace(0.0, np.pi, ramp_n))
        env[:ramp_n] = edge
        env[n - ramp_n:] = edge[::-1]
    return env


def _n_samples(ms: float, sr: int) -> int:
    return max(0, int(round(sr * ms / 1000.0)))


def render(encoded: str, sr: int = SR, **kwargs) -> np.ndarray:
    """
    Synthesise *encoded* Morse to float32 mono PCM.

    Tones use the fixed dot/dash frequencies and durations; silences are zeros.
    Output is peak-normalised to 0.9.  An empty message renders to an empty
    array.

    Keyword args override DEFAULTS (volume, fade_ms, waveform).
    """
    p = _params(kwargs)
    segments: list[np.ndarray] = []

    for step in iter_steps(encoded):
        n = _n_samples(step.duration_ms, sr)
        if not n:
            continue
        if step.is_tone:
            fade_n = _n_samples(p['fade_ms'], sr)
            wave = p['volume'] * _oscillator(float(step.frequency_hz), n, sr, p['waveform'])
            segments.append((wave * _key_envelope(n, fade_n)).astype(np.float32))
        else:
            segments.append(np.zeros(n, dtype=np.float32))

    if not segments:
        return np.zeros(0, dtype=np.float32)

    audio = np.concatenate(segments)
    peak = float(np.max(np.abs(audio)))
    if peak > 0.0:
        audio = audio * (0.9 / peak)
    return audio.astype(np.float32)


# ─────────────────────────────────────────────────────────────
# WAV I/O
# ─────────────────────────────────────────────────────────────

def write_wav(path: str, samples: np.ndarray, sr: int = SR) -> None:
    """Write 16-bit PCM mono WAV."""
    import soundfile as sf
    sf.write(path, np.clip(samples, -1.0, 1.0), sr, subtype='PCM_16')


def read_wav(path: str) -> tuple[np.ndarray, int]:
    """Load a rendered message back as (mono float32 samples, sample rate).

    Multi-channel files are averaged down to one channel.
    """
    import soundfile as sf
    data, sr = sf.read(path, dtype='float32', always_2d=True)
    return data.mean(axis=1).astype(np.float32), int(sr)
