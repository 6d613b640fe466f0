"""morsekit — all fixed timing and tone constants, keyed in one place.

These values are LOCKED: playback and reveal timing are not configurable.
"""

# ── Element timing (ms) ───────────────────────────────────────────────────────
DOT_MS          = 120
DASH_MS         = 360
ELEMENT_GAP_MS  = 100    # silence after every dot / dash
LETTER_GAP_MS   = 300    # the literal ' ' between symbols
WORD_GAP_MS     = 700    # the '/' word separator

# ── Tone frequencies (Hz) ─────────────────────────────────────────────────────
# Distinct pitches so dot and dash are told apart by ear alone.
DOT_FREQ_HZ     = 1200
DASH_FREQ_HZ    = 600

# ── Encoded-string alphabet ───────────────────────────────────────────────────
DOT             = '.'
DASH            = '-'
LETTER_SEP      = ' '
WORD_SEP        = '/'

# ── Reveal animation ──────────────────────────────────────────────────────────
REVEAL_INTERVAL_MS = 80  # one encoded character per tick

# ── Offline rendering ─────────────────────────────────────────────────────────
SR              = 44_100  # default sample rate for WAV output
