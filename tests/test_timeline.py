from __future__ import annotations

from pathlib import Path

import pytest

from synthrave.audio.wav import write_wav_mono
from synthrave.errors import EmptyDocumentError, SequenceFileError
from synthrave.model.types import Const, Glide, SequenceDocument, SequenceOptions, ToneEvent
from synthrave.sequence import build_from_lines, build_from_tokens, load_sequence_file
from synthrave.sequence.timeline import ms_to_samples, parse_gap_ms

CD = SequenceOptions(sample_rate=44100)


def test_single_note_token() -> None:
    doc = build_from_tokens(["A4:500"], CD)
    assert len(doc.tones) == 1
    ev = doc.tones[0]
    assert ev.left == ev.right == Const(freq=440.0)
    assert not ev.stereo
    assert (ev.start_sample, ev.end_sample) == (0, 22050)
    assert doc.total_samples == 22050


def test_glide_token_with_zero_duration_field() -> None:
    doc = build_from_tokens(["A4~A5:1000,0"], CD)
    ev = doc.tones[0]
    assert ev.left == Glide(f0=440.0, f1=880.0)
    assert ev.sample_count == 44100


def test_rows_advance_the_cursor_with_gaps() -> None:
    doc = build_from_tokens(["A4:100,0,50", "r:200", "C5:100"], SequenceOptions(sample_rate=8000))
    starts = [ev.start_sample for ev in doc.tones]
    # 100 ms + 50 ms gap, then a 200 ms rest
    assert starts == [0, 2800]
    assert doc.total_samples == 3600


def test_duration_field_overrides_default() -> None:
    doc = build_from_tokens(["A4,250"], SequenceOptions(sample_rate=8000, default_duration_ms=100))
    assert doc.tones[0].sample_count == 2000
    assert doc.tones[0].explicit_duration


def test_default_duration_applies_without_suffix() -> None:
    doc = build_from_tokens(["A4"], SequenceOptions(sample_rate=8000, default_duration_ms=100))
    assert doc.tones[0].sample_count == 800


def test_background_rows_do_not_advance() -> None:
    doc = build_from_tokens(["PAD:1000,0,0,BG", "A4:100", "C5:100"], SequenceOptions(sample_rate=8000))
    bg, a, c = doc.tones
    assert bg.is_bg
    assert a.start_sample == 0
    assert c.start_sample == 800
    assert doc.total_samples == 8000


def test_adv_flag_lets_background_rows_advance() -> None:
    doc = build_from_tokens(["PAD:100,0,0,BG|ADV", "A4:100"], SequenceOptions(sample_rate=8000))
    assert doc.tones[1].start_sample == 800


def test_flags_field_marks_background() -> None:
    doc = build_from_tokens(["PAD:500,0,0,,bg", "A4:100"], SequenceOptions(sample_rate=8000))
    assert doc.tones[0].is_bg
    assert doc.tones[1].start_sample == 0


def test_inline_right_channel() -> None:
    doc = build_from_tokens(["A4:100, E5"], SequenceOptions(sample_rate=8000))
    ev = doc.tones[0]
    assert ev.stereo
    assert ev.left == Const(freq=440.0)
    assert ev.right.freq == pytest.approx(659.255, abs=1e-2)


def test_say_rows_schedule_speech_at_the_cursor() -> None:
    doc = build_from_lines(["A4:500", '"SAY @en:hello, there",250', "C5:100"], SequenceOptions(sample_rate=8000))
    assert [s.text for s in doc.speech] == ["hello, there"]
    assert doc.speech[0].start_ms == 500
    assert doc.speech[0].voice == "en"
    assert doc.tones[1].start_sample == 6000


def test_speech_only_document_is_valid() -> None:
    doc = build_from_lines(["SAY:hi"], SequenceOptions(sample_rate=8000))
    assert doc.tones == ()
    assert len(doc.speech) == 1


def test_empty_documents_fail() -> None:
    with pytest.raises(EmptyDocumentError):
        build_from_lines(["# nothing", "r:100"], SequenceOptions(sample_rate=8000))
    with pytest.raises(EmptyDocumentError):
        build_from_tokens([], SequenceOptions(sample_rate=8000))


def test_every_event_fits_inside_the_document() -> None:
    doc = build_from_tokens(
        ["KICK:50,0,0,BG", "-2,4", "A4:30", "C5:20,0,15", "PAD:900,0,0,BG"], SequenceOptions(sample_rate=8000)
    )
    assert all(ev.end_sample <= doc.total_samples for ev in doc.tones)
    assert doc.total_samples == max(ev.end_sample for ev in doc.tones)


def test_document_rejects_out_of_range_events() -> None:
    ev = ToneEvent(left=Const(440.0), right=Const(440.0), stereo=False, start_sample=0, sample_count=10)
    with pytest.raises(ValueError):
        SequenceDocument(tones=(ev,), speech=(), total_samples=5, sample_rate=8000)


def test_gap_and_sample_conversions() -> None:
    assert parse_gap_ms("250") == 250
    assert parse_gap_ms("0.5") == 500
    assert parse_gap_ms("-3") == 0
    assert parse_gap_ms("") == 0
    assert ms_to_samples(0, 8000) == 0
    assert ms_to_samples(1, 100) == 1


def test_sample_rows_default_to_sample_length(tmp_path: Path) -> None:
    write_wav_mono(tmp_path / "hit.wav", [0.5] * 400, sample_rate=4000)
    seq = tmp_path / "song.txt"
    seq.write_text("WAV@hit.wav\nWAV@hit.wav:50\nWAV@hit.wav,20\n", encoding="utf-8")
    doc = load_sequence_file(seq, SequenceOptions(sample_rate=8000))
    assert [ev.sample_count for ev in doc.tones] == [800, 400, 160]
    assert doc.tones[0].sample_override
    assert not doc.tones[2].sample_override


def test_missing_sequence_file(tmp_path: Path) -> None:
    with pytest.raises(SequenceFileError):
        load_sequence_file(tmp_path / "nope.txt")
