"""Fixed limits for the compiler and mixer."""
from __future__ import annotations

MAX_MACRO_DEPTH = 16
MAX_CHORD_NOTES = 16
MAX_ARP_NOTES = 4

# Row fields: spec, duration, gap, mode, flags
ROW_FIELDS = 5

# Frames rendered per voice per mixer pass.
MIX_BLOCK = 512

# Karplus-Strong delay line bounds (samples).
MIN_PLUCK_DELAY = 2
MAX_PLUCK_DELAY = 4096

# Streaming playback defaults.
DEFAULT_RING_FRAMES = 16384
SPEECH_POLL_SECONDS = 0.003
