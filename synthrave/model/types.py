from __future__ import annotations

from array import array
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class InstrumentKind(str, Enum):
    """Closed catalog of procedural instruments addressable by name."""

    KICK = "kick"
    SNARE = "snare"
    HIHAT = "hihat"
    BASS = "bass"
    FLUTE = "flute"
    PIANO = "piano"
    GUITAR = "guitar"
    EGTR = "egtr"
    BIRDS = "birds"
    STRPAD = "strpad"
    BELL = "bell"
    BRASS = "brass"
    KALIMBA = "kalimba"
    LASER = "laser"
    CHOIR = "choir"
    ANALOGLEAD = "analoglead"
    SIDBASS = "sidbass"
    CHIPARP = "chiparp"


@dataclass(eq=False)
class SampleData:
    """Decoded 16-bit PCM, one float array per channel, normalized to [-1, 1).

    Instances are shared by reference between every spec naming the same file,
    so equality is identity.
    """

    channels: list[array]
    sample_rate: int

    @property
    def channel_count(self) -> int:
        return len(self.channels)

    @property
    def length(self) -> int:
        return len(self.channels[0]) if self.channels else 0

    def default_length(self, sample_rate: int) -> int:
        """Native duration of the sample, expressed in frames at ``sample_rate``."""
        if self.sample_rate <= 0 or self.length <= 0:
            return 0
        return max(1, int(round(self.length / float(self.sample_rate) * sample_rate)))


@dataclass(frozen=True)
class Silence:
    def to_dict(self) -> dict[str, Any]:
        return {"type": "silence"}


@dataclass(frozen=True)
class Const:
    freq: float

    def to_dict(self) -> dict[str, Any]:
        return {"type": "const", "freq": float(self.freq)}


@dataclass(frozen=True)
class Glide:
    f0: float
    f1: float

    def to_dict(self) -> dict[str, Any]:
        return {"type": "glide", "f0": float(self.f0), "f1": float(self.f1)}


@dataclass(frozen=True)
class Chord:
    freqs: tuple[float, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"type": "chord", "freqs": [float(f) for f in self.freqs]}


@dataclass(frozen=True)
class NamedInstrument:
    kind: InstrumentKind
    freq: float
    # laser sweep target; 0 means "derive from freq"
    end_freq: float = 0.0
    # chip arpeggio note list
    notes: tuple[float, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"type": "instrument", "kind": self.kind.value, "freq": float(self.freq)}
        if self.end_freq:
            d["end_freq"] = float(self.end_freq)
        if self.notes:
            d["notes"] = [float(n) for n in self.notes]
        return d


@dataclass(frozen=True)
class Sample:
    path: str
    data: SampleData = field(compare=False, repr=False)
    channel: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "sample",
            "path": self.path,
            "channel": int(self.channel),
            "channels": self.data.channel_count,
            "sample_rate": self.data.sample_rate,
            "length": self.data.length,
        }


Spec = Union[Silence, Const, Glide, Chord, NamedInstrument, Sample]

SILENCE = Silence()


def is_silence(spec: Spec) -> bool:
    return isinstance(spec, Silence)


@dataclass(frozen=True)
class ToneEvent:
    """One scheduled tone: a left/right spec pair over an absolute sample window."""

    left: Spec
    right: Spec
    stereo: bool
    start_sample: int
    sample_count: int
    duration_ms: int = 0
    gap_ms: int = 0
    explicit_duration: bool = False
    sample_override: bool = False
    is_bg: bool = False
    adv: bool = False
    mode_raw: str | None = None
    flags_raw: str | None = None
    pan: float = 0.0
    gain: float = 1.0

    @property
    def end_sample(self) -> int:
        return self.start_sample + self.sample_count

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "left": self.left.to_dict(),
            "right": self.right.to_dict(),
            "stereo": bool(self.stereo),
            "start_sample": int(self.start_sample),
            "sample_count": int(self.sample_count),
            "duration_ms": int(self.duration_ms),
            "gap_ms": int(self.gap_ms),
        }
        # Omit defaults to keep dumps small.
        if self.explicit_duration:
            d["explicit_duration"] = True
        if self.sample_override:
            d["sample_override"] = True
        if self.is_bg:
            d["bg"] = True
        if self.adv:
            d["adv"] = True
        if self.mode_raw:
            d["mode"] = self.mode_raw
        if self.flags_raw:
            d["flags"] = self.flags_raw
        if self.pan:
            d["pan"] = float(self.pan)
        if self.gain != 1.0:
            d["gain"] = float(self.gain)
        return d


@dataclass(frozen=True)
class SpeechEvent:
    start_ms: int
    text: str
    voice: str | None = None
    args: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_ms": int(self.start_ms),
            "voice": self.voice,
            "text": self.text,
            "args": list(self.args),
        }


@dataclass(frozen=True)
class SequenceOptions:
    sample_rate: int = 44100
    default_duration_ms: int = 120
    fade_ms: int = 8

    def __post_init__(self) -> None:
        if int(self.sample_rate) <= 0:
            raise ValueError(f"invalid sample rate: {self.sample_rate}")
        if int(self.default_duration_ms) <= 0:
            raise ValueError(f"invalid default duration: {self.default_duration_ms}")
        if int(self.fade_ms) < 0:
            raise ValueError(f"invalid fade: {self.fade_ms}")


@dataclass(frozen=True)
class SequenceDocument:
    """Compiled timeline: tone events, speech cues and the rendered length."""

    tones: tuple[ToneEvent, ...]
    speech: tuple[SpeechEvent, ...]
    total_samples: int
    sample_rate: int

    def __post_init__(self) -> None:
        for ev in self.tones:
            if ev.end_sample > self.total_samples:
                raise ValueError(
                    f"tone event [{ev.start_sample}, {ev.end_sample}) exceeds total_samples={self.total_samples}"
                )

    @property
    def duration_seconds(self) -> float:
        return self.total_samples / float(self.sample_rate) if self.sample_rate > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sample_rate": int(self.sample_rate),
            "total_samples": int(self.total_samples),
            "tones": [t.to_dict() for t in self.tones],
            "speech": [s.to_dict() for s in self.speech],
        }
