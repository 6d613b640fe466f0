"""
test_playback.py — playback engine timing, state machine and device cleanup.

All sessions run on a VirtualClock against a RecordingToneSource, so the
timeline is exact and nothing waits on the wall clock.
"""
from __future__ import annotations

import asyncio

import pytest

from morsekit import (
    PlaybackEngine, PlaybackOutcome, PlaybackStatus, VirtualClock, encode,
)
from morsekit.audio import RecordingToneSource
from morsekit.schedule import total_duration_ms


def _rig(**source_kwargs):
    clock  = VirtualClock()
    source = RecordingToneSource(clock, **source_kwargs)
    seen: list[PlaybackStatus] = []
    engine = PlaybackEngine(source, clock, on_status=seen.append)
    return clock, source, engine, seen


# ─────────────────────────────────────────────────────────────────────────────
# 1. Full traversal
# ─────────────────────────────────────────────────────────────────────────────

def test_sos_timeline():
    clock, source, engine, seen = _rig()
    result = asyncio.run(engine.play(encode('SOS')))

    assert result.outcome is PlaybackOutcome.COMPLETED
    assert result.ok
    assert result.symbols_played == len('... --- ...')
    assert result.elapsed_ms == 3300

    dot  = [120.0, 100.0]
    dash = [360.0, 100.0]
    assert clock.delays == dot * 3 + [300.0] + dash * 3 + [300.0] + dot * 3

    assert source.tones() == [
        (0.0,    1200.0, 120.0), (220.0,  1200.0, 120.0), (440.0,  1200.0, 120.0),
        (960.0,   600.0, 360.0), (1420.0,  600.0, 360.0), (1880.0,  600.0, 360.0),
        (2640.0, 1200.0, 120.0), (2860.0, 1200.0, 120.0), (3080.0, 1200.0, 120.0),
    ]
    assert source.events[0].kind == 'acquire'
    assert source.events[-1].kind == 'release'
    assert source.events[-1].time_ms == 3300.0

    assert engine.status is PlaybackStatus.IDLE
    assert engine.session is None
    assert seen == [PlaybackStatus.PLAYING, PlaybackStatus.IDLE]
    assert source.channels[0].release_count == 1


def test_total_duration_matches_clock():
    clock, source, engine, _ = _rig()
    msg = encode('Hello, World 73')
    asyncio.run(engine.play(msg))
    assert sum(clock.delays) == total_duration_ms(msg)


def test_word_gap_keeps_join_spaces():
    # "E E" encodes to ". / ."; the letter gaps on both sides of '/' are played
    clock, source, engine, _ = _rig()
    asyncio.run(engine.play(encode('E E')))
    assert clock.delays == [120.0, 100.0, 300.0, 700.0, 300.0, 120.0, 100.0]


def test_unrecognised_symbols_are_skipped():
    clock, source, engine, _ = _rig()
    result = asyncio.run(engine.play('.x-'))
    assert result.outcome is PlaybackOutcome.COMPLETED
    assert result.symbols_played == 3
    assert clock.delays == [120.0, 100.0, 360.0, 100.0]
    assert [f for _, f, _ in source.tones()] == [1200.0, 600.0]


def test_on_step_sees_every_step():
    clock = VirtualClock()
    steps = []
    engine = PlaybackEngine(RecordingToneSource(clock), clock, on_step=steps.append)
    asyncio.run(engine.play('.-'))
    assert [(s.kind, s.duration_ms, s.frequency_hz) for s in steps] == [
        ('tone', 120, 1200), ('silence', 100, None),
        ('tone', 360, 600),  ('silence', 100, None),
    ]


# ─────────────────────────────────────────────────────────────────────────────
# 2. State machine
# ─────────────────────────────────────────────────────────────────────────────

def test_second_start_is_noop_while_playing():
    clock, source, engine, _ = _rig()

    async def main():
        task = engine.start(encode('SOS'))
        assert task is not None
        assert engine.is_playing
        assert engine.start(encode('E')) is None
        rejected = await engine.play(encode('T'))
        assert rejected.outcome is PlaybackOutcome.REJECTED
        return await task

    result = asyncio.run(main())
    assert result.outcome is PlaybackOutcome.COMPLETED
    assert len(source.channels) == 1
    assert len(source.tones()) == 9


def test_empty_message_is_rejected():
    clock, source, engine, seen = _rig()

    async def main():
        assert engine.start('') is None
        return await engine.play(encode(''))

    result = asyncio.run(main())
    assert result.outcome is PlaybackOutcome.REJECTED
    assert engine.status is PlaybackStatus.IDLE
    assert source.channels == []
    assert seen == []


def test_stop_when_idle_is_noop():
    clock, source, engine, seen = _rig()
    engine.stop()
    engine.stop()
    assert engine.status is PlaybackStatus.IDLE
    assert source.events == []
    assert seen == []


def test_stop_mid_playback():
    clock, source, engine, seen = _rig()

    async def main():
        task = engine.start(encode('SOS'))
        while clock.now() < 500:
            await asyncio.sleep(0)
        engine.stop()
        engine.stop()
        return await task

    result = asyncio.run(main())
    assert result.outcome is PlaybackOutcome.STOPPED
    assert engine.status is PlaybackStatus.IDLE
    assert seen == [PlaybackStatus.PLAYING, PlaybackStatus.IDLE]

    channel = source.channels[0]
    assert channel.release_count == 1
    assert channel.tone_on is None
    assert source.events[-1].kind == 'release'
    assert 0 < source.tones_started < 9
    # the tone in progress was silenced before release
    assert source.events[-2].kind == 'stop'


def test_stop_before_session_runs():
    clock, source, engine, _ = _rig()

    async def main():
        task = engine.start(encode('SOS'))
        engine.stop()
        return await task

    result = asyncio.run(main())
    assert result.outcome is PlaybackOutcome.STOPPED
    assert source.channels == []
    assert engine.status is PlaybackStatus.IDLE


def test_fresh_device_per_session():
    clock, source, engine, _ = _rig()

    async def main():
        await engine.play(encode('E'))
        await engine.play(encode('T'))

    asyncio.run(main())
    assert len(source.channels) == 2
    assert [c.release_count for c in source.channels] == [1, 1]
    assert [e.kind for e in source.events if e.kind in ('acquire', 'release')] == \
        ['acquire', 'release', 'acquire', 'release']


def test_restart_after_stop_ignores_stale_session():
    clock, source, engine, _ = _rig()

    async def main():
        first = engine.start(encode('SOS'))
        await asyncio.sleep(0)
        engine.stop()
        second = engine.start(encode('E'))
        return await first, await second

    first, second = asyncio.run(main())
    assert first.outcome is PlaybackOutcome.STOPPED
    assert second.outcome is PlaybackOutcome.COMPLETED
    assert [c.release_count for c in source.channels] == [1, 1]
    # no tone from the first session after the second acquired its channel
    second_acquire = next(i for i, e in enumerate(source.events)
                          if e.kind == 'acquire' and e.channel == 1)
    assert all(e.channel == 1 for e in source.events[second_acquire:])


# ─────────────────────────────────────────────────────────────────────────────
# 3. Device failures
# ─────────────────────────────────────────────────────────────────────────────

def test_device_failure_mid_sequence(caplog):
    clock, source, engine, seen = _rig(fail_on_tone=2)
    result = asyncio.run(engine.play(encode('SOS')))

    assert result.outcome is PlaybackOutcome.DEVICE_FAILED
    assert result.symbols_played == 1
    assert engine.status is PlaybackStatus.IDLE
    assert seen == [PlaybackStatus.PLAYING, PlaybackStatus.IDLE]
    assert source.channels[0].release_count == 1
    assert source.events[-1].kind == 'release'
    assert 'tone device failed' in caplog.text


def test_device_acquire_failure(caplog):
    clock, source, engine, seen = _rig(fail_on_acquire=True)
    result = asyncio.run(engine.play(encode('SOS')))

    assert result.outcome is PlaybackOutcome.DEVICE_UNAVAILABLE
    assert engine.status is PlaybackStatus.IDLE
    assert seen == [PlaybackStatus.PLAYING, PlaybackStatus.IDLE]
    assert source.channels == []
    assert 'could not acquire tone device' in caplog.text

    # engine is usable again once the device recovers
    source.fail_on_acquire = False
    assert asyncio.run(engine.play(encode('E'))).ok


def test_result_summary():
    clock, source, engine, _ = _rig()
    result = asyncio.run(engine.play(encode('E')))
    assert result.summary() == '[COMPLETED] symbols=1 elapsed=220ms'


# ─────────────────────────────────────────────────────────────────────────────
# 4. Callback failures
# ─────────────────────────────────────────────────────────────────────────────

def test_raising_status_callback_rolls_back_start():
    clock = VirtualClock()
    source = RecordingToneSource(clock)
    seen: list[PlaybackStatus] = []

    def on_status(status):
        seen.append(status)
        if status is PlaybackStatus.PLAYING:
            raise RuntimeError('subscriber broke')

    engine = PlaybackEngine(source, clock, on_status=on_status)

    async def main():
        with pytest.raises(RuntimeError):
            engine.start(encode('E'))
        assert engine.status is PlaybackStatus.IDLE
        assert engine.session is None

        engine.on_status = seen.append
        return await engine.start(encode('E'))

    result = asyncio.run(main())
    assert result.outcome is PlaybackOutcome.COMPLETED
    assert seen == [PlaybackStatus.PLAYING, PlaybackStatus.IDLE,
                    PlaybackStatus.PLAYING, PlaybackStatus.IDLE]
    # the rejected start never reached the device
    assert len(source.channels) == 1


def test_raising_status_callback_on_stop_still_releases(caplog):
    clock = VirtualClock()
    source = RecordingToneSource(clock)

    def on_status(status):
        if status is PlaybackStatus.IDLE:
            raise RuntimeError('subscriber broke')

    engine = PlaybackEngine(source, clock, on_status=on_status)
    result = asyncio.run(engine.play(encode('E')))

    assert result.outcome is PlaybackOutcome.COMPLETED
    assert engine.status is PlaybackStatus.IDLE
    assert source.channels[0].release_count == 1
    assert 'on_status callback failed' in caplog.text


def test_raising_step_callback_is_not_a_device_failure(caplog):
    clock = VirtualClock()
    source = RecordingToneSource(clock)

    def on_step(step):
        raise ValueError('observer broke')

    engine = PlaybackEngine(source, clock, on_step=on_step)
    result = asyncio.run(engine.play(encode('SOS')))

    assert result.outcome is PlaybackOutcome.COMPLETED
    assert result.symbols_played == len('... --- ...')
    assert len(source.tones()) == 9
    assert 'on_step callback failed' in caplog.text
    assert 'tone device failed' not in caplog.text
