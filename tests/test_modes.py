from __future__ import annotations

import pytest

from synthrave.model.types import SILENCE, Const, Glide
from synthrave.sequence.modes import apply_mode, parse_flags, split_mode
from synthrave.sequence.specs import parse_token


def _tok(text: str = "A4:200"):
    return parse_token(text, 120)


def test_split_mode_extracts_bg_and_adv() -> None:
    assert split_mode("BG") == (None, True, False)
    assert split_mode("E5|bg|ADV") == ("E5", True, True)
    assert split_mode("GLIDE:A4->A5") == ("GLIDE:A4->A5", False, False)
    assert split_mode("") == (None, False, False)


def test_parse_flags_accepts_commas_and_pipes() -> None:
    assert parse_flags("bg") == (True, False)
    assert parse_flags("BG|ADV") == (True, True)
    assert parse_flags("adv, loud") == (False, True)
    assert parse_flags(None) == (False, False)


def test_glide_mode_replaces_both_channels() -> None:
    out = apply_mode(_tok(), "GLIDE:A4->A5")
    assert out.left == out.right == Glide(f0=440.0, f1=880.0)
    assert not out.stereo


def test_relative_glides_need_a_constant_base() -> None:
    up = apply_mode(_tok(), "UPTO:A5")
    assert up.left == Glide(f0=440.0, f1=880.0)
    down = apply_mode(_tok(), "downx:2")
    assert down.left == Glide(f0=440.0, f1=220.0)
    assert apply_mode(_tok(), "UPX:3").left == Glide(f0=440.0, f1=1320.0)

    named = _tok("KICK:200")
    assert apply_mode(named, "UPTO:A5") == named
    assert apply_mode(_tok(), "UPX:0") == _tok()
    assert apply_mode(_tok(), "UPX:A5") == _tok()


def test_binaural_offsets_the_right_channel() -> None:
    out = apply_mode(_tok(), "BINAURAL:7")
    assert out.left == Const(freq=440.0)
    assert out.right == Const(freq=447.0)
    assert out.stereo
    assert apply_mode(_tok(), "BINAURAL:-500").right == SILENCE


def test_bare_mode_sets_right_channel() -> None:
    out = apply_mode(_tok(), "E5")
    assert out.stereo
    assert out.right.freq == pytest.approx(659.255, abs=1e-2)
    assert apply_mode(_tok(), "unknown") == _tok()
