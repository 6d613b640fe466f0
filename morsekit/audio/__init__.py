"""Tone devices and offline synthesis."""

from .devices import (
    ToneSource, ToneChannel, ToneEvent,
    RecordingToneSource, SounddeviceChannel, SounddeviceToneSource,
)
from .synth import render, write_wav, read_wav

__all__ = [
    "ToneSource", "ToneChannel", "ToneEvent",
    "RecordingToneSource", "SounddeviceChannel", "SounddeviceToneSource",
    "render", "write_wav", "read_wav",
]
