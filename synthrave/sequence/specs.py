from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path

from synthrave.audio.samples import SampleCache
from synthrave.errors import UnknownMacroError
from synthrave.model.types import (
    SILENCE,
    Chord,
    Const,
    Glide,
    InstrumentKind,
    NamedInstrument,
    Sample,
    Spec,
    is_silence,
)
from synthrave.util.limits import MAX_ARP_NOTES, MAX_CHORD_NOTES
from synthrave.util.notes import parse_float_or_note, parse_int_strict

# name -> (kind, default frequency)
NAMED_INSTRUMENTS: dict[str, tuple[InstrumentKind, float]] = {
    "KICK": (InstrumentKind.KICK, 140.0),
    "BD": (InstrumentKind.KICK, 140.0),
    "SNARE": (InstrumentKind.SNARE, 200.0),
    "SD": (InstrumentKind.SNARE, 200.0),
    "HAT": (InstrumentKind.HIHAT, 8000.0),
    "HIHAT": (InstrumentKind.HIHAT, 8000.0),
    "HH": (InstrumentKind.HIHAT, 8000.0),
    "BASS": (InstrumentKind.BASS, 55.0),
    "SUB": (InstrumentKind.BASS, 55.0),
    "FLUTE": (InstrumentKind.FLUTE, 523.25),
    "PIANO": (InstrumentKind.PIANO, 440.0),
    "GUITAR": (InstrumentKind.GUITAR, 330.0),
    "GT": (InstrumentKind.GUITAR, 330.0),
    "EGTR": (InstrumentKind.EGTR, 196.0),
    "EGUITAR": (InstrumentKind.EGTR, 196.0),
    "BIRDS": (InstrumentKind.BIRDS, 6000.0),
    "STRPAD": (InstrumentKind.STRPAD, 440.0),
    "PAD": (InstrumentKind.STRPAD, 440.0),
    "BELL": (InstrumentKind.BELL, 880.0),
    "BRASS": (InstrumentKind.BRASS, 330.0),
    "KALIMBA": (InstrumentKind.KALIMBA, 392.0),
    "KORA": (InstrumentKind.KALIMBA, 392.0),
    "LASER": (InstrumentKind.LASER, 1320.0),
    "CHOIR": (InstrumentKind.CHOIR, 261.63),
    "ANALOGLEAD": (InstrumentKind.ANALOGLEAD, 440.0),
    "SIDBASS": (InstrumentKind.SIDBASS, 55.0),
    "CHIPARP": (InstrumentKind.CHIPARP, 523.25),
}


@dataclass(frozen=True)
class Token:
    """A parsed primary field: channel specs plus duration bookkeeping."""

    left: Spec
    right: Spec
    stereo: bool
    duration_ms: int
    explicit_duration: bool = False
    sample_override: bool = False

    @property
    def is_silent(self) -> bool:
        return is_silence(self.left) and is_silence(self.right)


def _split_param(text: str) -> tuple[str, str | None]:
    """Split ``NAME@p``, ``NAME=p`` or ``NAME(p)`` into name and parameter."""
    for i, ch in enumerate(text):
        if ch in "@=":
            return text[:i].strip(), text[i + 1 :].strip()
        if ch == "(":
            param = text[i + 1 :]
            end = param.rfind(")")
            if end >= 0:
                param = param[:end]
            return text[:i].strip(), param.strip()
    return text.strip(), None


def _named_instrument(kind: InstrumentKind, default: float, param: str | None) -> NamedInstrument:
    freq = default
    end_freq = 0.0
    notes: tuple[float, ...] = ()
    if not param:
        return NamedInstrument(kind=kind, freq=freq)

    if kind is InstrumentKind.LASER and "->" in param:
        lhs, rhs = param.split("->", 1)
        start = parse_float_or_note(lhs)
        if start is not None:
            freq = start
        end = parse_float_or_note(rhs)
        if end is not None:
            end_freq = end
    elif kind is InstrumentKind.CHIPARP and "+" in param:
        parsed: list[float] = []
        for part in param.split("+"):
            if len(parsed) >= MAX_ARP_NOTES:
                break
            v = parse_float_or_note(part)
            if v is not None and v > 0:
                parsed.append(v)
        if parsed:
            notes = tuple(parsed)
            freq = parsed[0]
    else:
        v = parse_float_or_note(param)
        if v is not None and v > 0:
            freq = v
    return NamedInstrument(kind=kind, freq=freq, end_freq=end_freq, notes=notes)


def parse_named_spec(text: str, samples: SampleCache | None = None, *, base_dir: Path | None = None) -> Spec | None:
    """Resolve a named instrument or ``WAV``/``SAMPLE`` reference.

    Returns None when ``text`` does not name anything in the catalog.
    Raises :class:`~synthrave.errors.SampleLoadError` for unusable samples.
    """
    name, param = _split_param(text)
    upper = name.upper()
    if upper.startswith("WAV") or upper == "SAMPLE":
        if not param:
            return None
        cache = samples if samples is not None else SampleCache()
        data = cache.get(param, base_dir)
        return Sample(path=param, data=data, channel=0)

    entry = NAMED_INSTRUMENTS.get(upper)
    if entry is None:
        return None
    kind, default = entry
    return _named_instrument(kind, default, param)


def parse_spec(text: str, samples: SampleCache | None = None, *, base_dir: Path | None = None) -> Spec:
    """Convert one field into a sound spec.

    Resolution order: silence, named instrument / sample, glide (``A~B``),
    chord (``A+B+...``), then a bare frequency or note. Anything that does
    not resolve to a positive frequency is silence.
    """
    s = text.strip()
    if not s or s in ("r", "R"):
        return SILENCE

    named = parse_named_spec(s, samples, base_dir=base_dir)
    if named is not None:
        return named

    if "~" in s:
        a, b = s.split("~", 1)
        f0 = parse_float_or_note(a)
        f1 = parse_float_or_note(b)
        if f0 is None or f1 is None:
            return SILENCE
        return Glide(f0=f0, f1=f1)

    if "+" in s:
        freqs: list[float] = []
        for part in s.split("+"):
            if len(freqs) >= MAX_CHORD_NOTES:
                break
            v = parse_float_or_note(part)
            if v is not None:
                freqs.append(v)
        if not freqs:
            return SILENCE
        return Chord(freqs=tuple(freqs))

    f = parse_float_or_note(s)
    if f is None or f <= 0:
        return SILENCE
    return Const(freq=f)


def split_duration(text: str, default_ms: int) -> tuple[str, int, bool]:
    """Split ``body:ms`` on the last colon.

    Returns ``(body, duration_ms, explicit)``; an invalid or non-positive
    suffix falls back to ``default_ms``.
    """
    body, sep, suffix = text.rpartition(":")
    if not sep:
        return text.strip(), default_ms, False
    dur = parse_int_strict(suffix)
    if dur is not None and dur > 0:
        return body.strip(), dur, True
    return body.strip(), default_ms, False


def parse_token(
    text: str,
    default_ms: int,
    samples: SampleCache | None = None,
    *,
    base_dir: Path | None = None,
) -> Token:
    body, duration_ms, explicit = split_duration(text, default_ms)

    if body in ("r", "R", "0"):
        return Token(left=SILENCE, right=SILENCE, stereo=False, duration_ms=duration_ms, explicit_duration=explicit)

    if len(body) > 1 and body.startswith("@"):
        raise UnknownMacroError(body[1:].strip())

    if "," in body:
        ls, rs = body.split(",", 1)
        left = parse_spec(ls, samples, base_dir=base_dir)
        right = parse_spec(rs, samples, base_dir=base_dir)
        stereo = True
    else:
        left = parse_spec(body, samples, base_dir=base_dir)
        right = left
        stereo = False

    if isinstance(left, Sample) and left.data.channel_count > 1:
        # a stereo file plays its own two channels, whatever the row said
        left = replace(left, channel=0)
        right = replace(left, channel=1)
        stereo = True

    sample_override = not explicit and (isinstance(left, Sample) or isinstance(right, Sample))
    return Token(
        left=left,
        right=right,
        stereo=stereo,
        duration_ms=duration_ms,
        explicit_duration=explicit,
        sample_override=sample_override,
    )
