from __future__ import annotations

from pathlib import Path

import pytest

from synthrave.audio.samples import SampleCache
from synthrave.audio.wav import write_wav_mono, write_wav_stereo
from synthrave.errors import SampleLoadError, UnknownMacroError
from synthrave.model.types import SILENCE, Chord, Const, Glide, InstrumentKind, NamedInstrument, Sample
from synthrave.sequence.specs import parse_spec, parse_token, split_duration
from synthrave.util.notes import is_numeric, midi_to_hz, note_to_hz, note_to_midi, parse_float_or_note


def test_note_names() -> None:
    assert note_to_hz("A4") == pytest.approx(440.0)
    assert note_to_hz("A3") == pytest.approx(220.0)
    assert note_to_hz("C4") == pytest.approx(261.6256, abs=1e-3)
    assert note_to_midi("C#4") == 61
    assert note_to_midi("Db4") == 61
    assert note_to_midi("a4") == 69
    assert note_to_midi("H4") is None
    assert note_to_midi("A10") is None
    assert midi_to_hz(81) == pytest.approx(880.0)


def test_frequency_or_note() -> None:
    assert parse_float_or_note("440") == 440.0
    assert parse_float_or_note(" 261.5 ") == 261.5
    assert parse_float_or_note("E5") == pytest.approx(659.255, abs=1e-2)
    assert parse_float_or_note("nan") is None
    assert parse_float_or_note("bogus") is None


def test_is_numeric() -> None:
    assert is_numeric("120")
    assert is_numeric("-3")
    assert is_numeric("0.5")
    assert is_numeric(".5")
    assert not is_numeric("E5")
    assert not is_numeric("-")
    assert not is_numeric("")


def test_split_duration_uses_last_colon() -> None:
    assert split_duration("A4:250", 120) == ("A4", 250, True)
    assert split_duration("A4", 120) == ("A4", 120, False)
    assert split_duration("A4:0", 120) == ("A4", 120, False)
    assert split_duration("A4:xx", 120) == ("A4", 120, False)


def test_parse_spec_variants() -> None:
    assert parse_spec("r") == SILENCE
    assert parse_spec("") == SILENCE
    assert parse_spec("A4") == Const(freq=440.0)
    assert parse_spec("440~880") == Glide(f0=440.0, f1=880.0)
    assert parse_spec("440~zz") == SILENCE
    chord = parse_spec("C4+E4+G4")
    assert isinstance(chord, Chord)
    assert len(chord.freqs) == 3
    assert parse_spec("-20") == SILENCE
    assert parse_spec("nonsense") == SILENCE


def test_chord_is_capped() -> None:
    chord = parse_spec("+".join(["100"] * 20))
    assert isinstance(chord, Chord)
    assert len(chord.freqs) == 16


def test_named_instruments_and_parameters() -> None:
    assert parse_spec("kick") == NamedInstrument(kind=InstrumentKind.KICK, freq=140.0)
    assert parse_spec("BD@60") == NamedInstrument(kind=InstrumentKind.KICK, freq=60.0)
    assert parse_spec("piano(C5)").freq == pytest.approx(523.25, abs=1e-2)
    assert parse_spec("BASS=A1").freq == pytest.approx(55.0)
    assert parse_spec("BELL@-5").freq == 880.0

    laser = parse_spec("LASER@2000->200")
    assert laser == NamedInstrument(kind=InstrumentKind.LASER, freq=2000.0, end_freq=200.0)

    arp = parse_spec("CHIPARP@C5+E5+G5+C6+E6")
    assert isinstance(arp, NamedInstrument)
    assert len(arp.notes) == 4
    assert arp.freq == arp.notes[0]


def test_token_mono_and_stereo() -> None:
    tok = parse_token("A4:500", 120)
    assert tok.left == tok.right == Const(freq=440.0)
    assert not tok.stereo
    assert tok.duration_ms == 500
    assert tok.explicit_duration

    st = parse_token("A4,E5:200", 120)
    assert st.stereo
    assert st.left != st.right

    rest = parse_token("0:300", 120)
    assert rest.is_silent
    assert rest.duration_ms == 300


def test_token_macro_reference_is_rejected() -> None:
    with pytest.raises(UnknownMacroError):
        parse_token("@nope", 120)


def test_sample_references(tmp_path: Path) -> None:
    write_wav_mono(tmp_path / "hit.wav", [0.5] * 400, sample_rate=8000)
    write_wav_stereo(tmp_path / "wide.wav", [0.25] * 100, [-0.25] * 100, sample_rate=8000)

    with SampleCache(tmp_path) as cache:
        tok = parse_token("WAV@hit.wav", 120, cache)
        assert isinstance(tok.left, Sample)
        assert tok.sample_override
        assert not tok.stereo
        assert "hit.wav" in cache

        wide = parse_token("SAMPLE(wide.wav)", 120, cache)
        assert wide.stereo
        assert isinstance(wide.left, Sample) and wide.left.channel == 0
        assert isinstance(wide.right, Sample) and wide.right.channel == 1

        timed = parse_token("WAV@hit.wav:50", 120, cache)
        assert not timed.sample_override
        assert len(cache) == 2
    assert len(cache) == 0


def test_missing_sample_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(SampleLoadError) as exc:
        parse_spec("WAV@absent.wav", SampleCache(tmp_path))
    assert exc.value.path is not None
    assert exc.value.path.endswith("absent.wav")
