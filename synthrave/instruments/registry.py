from __future__ import annotations

from typing import Dict, List, Type

from synthrave.instruments.base import Voice
from synthrave.instruments.chip import AnalogLeadVoice, ChipArpVoice, ChoirVoice, LaserVoice, SidBassVoice
from synthrave.instruments.drums import HatVoice, KickVoice, SnareVoice
from synthrave.instruments.pluck_karplus import GuitarVoice, KalimbaVoice
from synthrave.instruments.synth_basic import (
    BassVoice,
    BellVoice,
    BirdsVoice,
    BrassVoice,
    EgtrVoice,
    FluteVoice,
    PianoVoice,
    StrPadVoice,
)
from synthrave.instruments.tones import ChordVoice, ConstVoice, GlideVoice, SampleVoice
from synthrave.model.types import Chord, Const, Glide, InstrumentKind, NamedInstrument, Sample, Spec

_TONE_VOICES: Dict[type, Type[Voice]] = {}
_INSTRUMENTS: Dict[InstrumentKind, Type[Voice]] = {}


def _register(kind: InstrumentKind, cls: Type[Voice]) -> None:
    _INSTRUMENTS[kind] = cls


def _init_registry() -> None:
    if _INSTRUMENTS:
        return
    _TONE_VOICES.update({Const: ConstVoice, Glide: GlideVoice, Chord: ChordVoice, Sample: SampleVoice})
    _register(InstrumentKind.KICK, KickVoice)
    _register(InstrumentKind.SNARE, SnareVoice)
    _register(InstrumentKind.HIHAT, HatVoice)
    _register(InstrumentKind.BASS, BassVoice)
    _register(InstrumentKind.FLUTE, FluteVoice)
    _register(InstrumentKind.PIANO, PianoVoice)
    _register(InstrumentKind.GUITAR, GuitarVoice)
    _register(InstrumentKind.EGTR, EgtrVoice)
    _register(InstrumentKind.BIRDS, BirdsVoice)
    _register(InstrumentKind.STRPAD, StrPadVoice)
    _register(InstrumentKind.BELL, BellVoice)
    _register(InstrumentKind.BRASS, BrassVoice)
    _register(InstrumentKind.KALIMBA, KalimbaVoice)
    _register(InstrumentKind.LASER, LaserVoice)
    _register(InstrumentKind.CHOIR, ChoirVoice)
    _register(InstrumentKind.ANALOGLEAD, AnalogLeadVoice)
    _register(InstrumentKind.SIDBASS, SidBassVoice)
    _register(InstrumentKind.CHIPARP, ChipArpVoice)


def list_kinds() -> List[InstrumentKind]:
    _init_registry()
    return list(_INSTRUMENTS.keys())


def voice_class(spec: Spec) -> Type[Voice] | None:
    """Voice implementation for ``spec``; None for silence."""
    _init_registry()
    if isinstance(spec, NamedInstrument):
        return _INSTRUMENTS.get(spec.kind)
    return _TONE_VOICES.get(type(spec))


def create_voice(spec: Spec, *, channel: int, start_sample: int, sample_count: int, sample_rate: int) -> Voice | None:
    cls = voice_class(spec)
    if cls is None or sample_count <= 0:
        return None
    return cls(spec, channel=channel, start_sample=start_sample, sample_count=sample_count, sample_rate=sample_rate)
