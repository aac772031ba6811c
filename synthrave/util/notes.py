from __future__ import annotations

import math
import re

_NOTE_RE = re.compile(r"^([A-Ga-g])([#bB]?)(\d)$")
_NUMERIC_RE = re.compile(r"^[+-]?(?=\.?\d)\d*\.?\d*$")

# Semitone offset of each natural note from C.
_NOTE_BASE = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


def midi_to_hz(pitch: int) -> float:
    return 440.0 * (2.0 ** ((pitch - 69) / 12.0))


def parse_float_strict(text: str | None) -> float | None:
    """Parse a whole string as a finite float, or return None."""
    if text is None:
        return None
    s = text.strip()
    if not s:
        return None
    try:
        v = float(s)
    except ValueError:
        return None
    if not math.isfinite(v):
        return None
    return v


def parse_int_strict(text: str | None) -> int | None:
    if text is None:
        return None
    s = text.strip()
    if not s:
        return None
    try:
        return int(s, 10)
    except ValueError:
        return None


def is_numeric(text: str | None) -> bool:
    """True for plain decimal literals such as ``120``, ``-3`` or ``0.5``."""
    if not text:
        return False
    return bool(_NUMERIC_RE.match(text.strip()))


def note_to_midi(text: str) -> int | None:
    """Resolve ``[A-G](#|b)?digit`` to a MIDI note number (C4 = 60)."""
    m = _NOTE_RE.match(text.strip())
    if not m:
        return None
    letter, accidental, octave = m.groups()
    semi = _NOTE_BASE[letter.upper()]
    if accidental == "#":
        semi += 1
    elif accidental in ("b", "B"):
        semi -= 1
    return (int(octave) + 1) * 12 + semi


def note_to_hz(text: str) -> float | None:
    midi = note_to_midi(text)
    if midi is None:
        return None
    return midi_to_hz(midi)


def parse_float_or_note(text: str | None) -> float | None:
    """Parse a decimal frequency or a note name (A4 = 440 Hz).

    Returns None when neither form matches. The value is not range-checked;
    callers decide what a non-positive frequency means.
    """
    if text is None:
        return None
    v = parse_float_strict(text)
    if v is not None:
        return v
    return note_to_hz(text)
