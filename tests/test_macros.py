from __future__ import annotations

import pytest

from synthrave.errors import MacroRecursionError, UnknownMacroError
from synthrave.model.types import SequenceOptions
from synthrave.sequence import build_from_lines
from synthrave.sequence.macros import expand_macros
from synthrave.sequence.rows import read_rows


def _specs(lines: list[str]) -> list[str]:
    src = read_rows(lines)
    return [r.spec for r in expand_macros(src.rows, src.macros)]


def test_macro_calls_are_case_insensitive() -> None:
    assert _specs(["@Beat{", "KICK:100", "HAT:100", "}", "@beat", "@BEAT"]) == [
        "KICK:100",
        "HAT:100",
        "KICK:100",
        "HAT:100",
    ]


def test_nested_macros_expand_in_order() -> None:
    lines = ["@a{", "C4", "}", "@b{", "@a", "D4", "@a", "}", "@b"]
    assert _specs(lines) == ["C4", "D4", "C4"]


def test_unknown_top_level_reference_is_left_for_the_builder() -> None:
    assert _specs(["@nothing", "C4"]) == ["@nothing", "C4"]


def test_unknown_macro_inside_body_is_an_error() -> None:
    src = read_rows(["@a{", "@missing", "}", "@a"])
    with pytest.raises(UnknownMacroError) as exc:
        expand_macros(src.rows, src.macros)
    assert exc.value.name == "missing"
    assert exc.value.inside == "A"


def test_self_recursion_hits_the_depth_limit() -> None:
    src = read_rows(["@loop{", "C4", "@loop", "}", "@loop"])
    with pytest.raises(MacroRecursionError):
        expand_macros(src.rows, src.macros)


def test_macro_expansion_matches_inlined_rows() -> None:
    opts = SequenceOptions(sample_rate=8000)
    with_macro = build_from_lines(["@riff{", "A4:100", "C5:50,0,10", "}", "@riff", "E5:100", "@riff"], opts)
    inlined = build_from_lines(["A4:100", "C5:50,0,10", "E5:100", "A4:100", "C5:50,0,10"], opts)
    assert with_macro.tones == inlined.tones
    assert with_macro.total_samples == inlined.total_samples


def test_unresolved_reference_fails_at_compile_time() -> None:
    with pytest.raises(UnknownMacroError):
        build_from_lines(["@ghost", "A4"], SequenceOptions(sample_rate=8000))
