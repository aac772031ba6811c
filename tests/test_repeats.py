from __future__ import annotations

from synthrave.sequence.repeats import expand_repeats, repeat_marker
from synthrave.sequence.rows import Row, rows_from_tokens


def _expand(tokens: list[str]) -> list[str]:
    return [r.spec for r in expand_repeats(rows_from_tokens(tokens))]


def test_marker_recognition() -> None:
    assert repeat_marker(Row(spec="-2", duration="3")) == (2, 3)
    assert repeat_marker(Row(spec="-2")) is None
    assert repeat_marker(Row(spec="-2", duration="0")) is None
    assert repeat_marker(Row(spec="-x", duration="2")) is None
    assert repeat_marker(Row(spec="A4", duration="2")) is None


def test_repeat_following_rows() -> None:
    assert _expand(["-2,3", "A", "B", "C"]) == ["A", "B", "A", "B", "A", "B", "C"]


def test_trailing_marker_repeats_previous_rows() -> None:
    assert _expand(["A", "B", "C", "-2,3"]) == ["A", "B", "C", "B", "C", "B", "C", "B", "C"]


def test_fallback_uses_what_was_emitted() -> None:
    assert _expand(["A", "-4,2"]) == ["A", "A", "A"]


def test_leading_marker_with_nothing_to_repeat_is_dropped() -> None:
    assert _expand(["-3,2", "A"]) == ["A"]


def test_nested_markers_expand_inside_the_block() -> None:
    assert _expand(["-3,2", "-1,2", "A", "B"]) == ["A", "A", "B", "A", "A", "B"]
