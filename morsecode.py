#!/usr/bin/env python3
"""
morsecode.py — morsekit CLI entry point.

Commands:
  encode  <text>    Print the Morse string; optionally animate it or render a WAV
  play    <text>    Reveal and play the Morse string through the speakers

Run `python3 morsecode.py --help` for full usage.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from morsekit import (
    AsyncioClock, MorseController, RevealScheduler, VirtualClock, encode,
)
from morsekit.audio import RecordingToneSource, SounddeviceToneSource
from morsekit.audio.synth import WAVEFORMS, render, write_wav
from morsekit.constants import SR
from morsekit.schedule import total_duration_ms


# ─────────────────────────────────────────────────────────────────────────────
# Sub-command handlers
# ─────────────────────────────────────────────────────────────────────────────

async def _animate(encoded: str) -> None:
    reveal = RevealScheduler(AsyncioClock())
    async for st in reveal.start(encoded):
        sys.stdout.write('\r' + st.visible_text)
        sys.stdout.flush()
    sys.stdout.write('\n')


def cmd_encode(args: argparse.Namespace):
    encoded = encode(args.text)

    if args.animate:
        asyncio.run(_animate(encoded))
    else:
        print(encoded)

    if args.wav:
        kwargs = {'waveform': args.waveform}
        if args.volume is not None: kwargs['volume']  = args.volume
        if args.fade   is not None: kwargs['fade_ms'] = args.fade

        samples = render(encoded, sr=args.sr, **kwargs)
        write_wav(args.wav, samples, args.sr)
        dur     = len(samples) / args.sr
        size_kb = os.path.getsize(args.wav) / 1024
        print(f'✓ Saved: {args.wav}  ({dur:.2f}s  {size_kb:.1f} KB)', file=sys.stderr)


async def _play(text: str, dry_run: bool):
    if dry_run:
        clock  = VirtualClock()
        source = RecordingToneSource(clock)
    else:
        clock  = AsyncioClock()
        source = SounddeviceToneSource()

    ctl = MorseController(source, clock)
    if not dry_run:
        def _show(state):
            sys.stdout.write('\r' + state.displayed_text)
            sys.stdout.flush()
        ctl.store.subscribe(_show)

    ctl.update_text(text)
    ctl.convert()
    task = ctl.toggle_playback()
    try:
        await ctl.join()
    finally:
        ctl.close()

    result = task.result() if task is not None else None
    if not dry_run:
        sys.stdout.write('\n')
    else:
        print(ctl.state.morse_code)
        for ev in source.events:
            freq = f'{ev.frequency_hz:.0f}Hz' if ev.frequency_hz is not None else ''
            print(f'{ev.time_ms:8.0f}ms  {ev.kind:<8s} {freq}')
    if result is not None:
        print(f'→ {result.summary()}', file=sys.stderr)
    return result


def cmd_play(args: argparse.Namespace):
    encoded = encode(args.text)
    if not encoded:
        print('⚠ Nothing to play: no encodable characters.', file=sys.stderr)
        return
    print(f'→ Playing {len(encoded)} symbols  '
          f'(~{total_duration_ms(encoded) / 1000:.1f}s)', file=sys.stderr)
    result = asyncio.run(_play(args.text, args.dry_run))
    if result is not None and not result.ok:
        print(f'✗ Playback failed: {result.outcome.value}', file=sys.stderr)
        sys.exit(1)


# ─────────────────────────────────────────────────────────────────────────────
# Parser
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog='morsecode',
        description='morsekit — translate text to Morse code, animate it and play it.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 morsecode.py encode "SOS"                          # → ... --- ...
  python3 morsecode.py encode "HELLO WORLD" --animate
  python3 morsecode.py encode "CQ CQ" --wav cq.wav --waveform square
  python3 morsecode.py play "SOS"                            # live audio
  python3 morsecode.py play "SOS" --dry-run                  # print the tone timeline
""",
    )
    p.add_argument('-v', '--verbose', action='store_true',
                   help='Log engine activity (DEBUG) to stderr')
    sub = p.add_subparsers(dest='command', required=True)

    # ── encode ────────────────────────────────────────────────────────────────
    enc = sub.add_parser(
        'encode',
        help='Print the Morse string for TEXT (optionally animated or rendered to WAV).',
        description=(
            'Encode text to International Morse Code. Unmapped characters are '
            'dropped. Use --wav to render the dot/dash tones to a WAV file.'
        ),
    )
    enc.add_argument('text', help='Text to encode')
    enc.add_argument('--animate', action='store_true',
                     help='Reveal the Morse string one character every 80 ms')
    enc.add_argument('--wav', default=None, metavar='PATH',
                     help='Render the playback to a 16-bit WAV file')
    enc.add_argument('--waveform', default='sine', choices=list(WAVEFORMS),
                     help='Oscillator waveform for --wav (default: sine)')
    enc.add_argument('--volume', type=float, default=None,
                     metavar='0-1', help='Tone amplitude before normalisation (default: 0.8)')
    enc.add_argument('--fade', type=float, default=None,
                     metavar='MS', help='Tone fade-in/out ramp (default: 5)')
    enc.add_argument('--sr', type=int, default=SR,
                     metavar='HZ', help=f'Sample rate for --wav (default: {SR})')
    enc.set_defaults(func=cmd_encode)

    # ── play ──────────────────────────────────────────────────────────────────
    ply = sub.add_parser(
        'play',
        help='Reveal TEXT as Morse and play it as dot/dash tones.',
        description=(
            'Runs the animated reveal and the tone playback concurrently. '
            'Dots sound at 1200 Hz, dashes at 600 Hz. Ctrl-C stops playback.'
        ),
    )
    ply.add_argument('text', help='Text to play')
    ply.add_argument('--dry-run', action='store_true',
                     help='Simulate time and print the tone event log instead of playing')
    ply.set_defaults(func=cmd_play)

    return p


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────

def main():
    parser = build_parser()
    args   = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)-7s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    try:
        args.func(args)
    except KeyboardInterrupt:
        print('\n⚠ Interrupted.', file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        print(f'✗ Error: {e}', file=sys.stderr)
        if os.environ.get('MORSEKIT_DEBUG'):
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == '__main__':
    main()
