from __future__ import annotations

from typing import Sequence

from synthrave.sequence.rows import Row
from synthrave.util.notes import parse_int_strict


def repeat_marker(row: Row) -> tuple[int, int] | None:
    """Return ``(span, reps)`` for a ``-N,reps`` row, else None."""
    if not row.spec.startswith("-"):
        return None
    span = parse_int_strict(row.spec)
    if span is None or span >= 0:
        return None
    reps = parse_int_strict(row.duration)
    if reps is None or reps <= 0:
        return None
    return -span, reps


def expand_repeats(rows: Sequence[Row]) -> list[Row]:
    """Inline repeat markers.

    When at least N rows follow a marker, those rows are repeated (after
    expanding repeats nested inside them). Otherwise the last N rows already
    emitted are repeated instead; with nothing emitted yet the marker is
    dropped.
    """
    out: list[Row] = []
    i = 0
    while i < len(rows):
        marker = repeat_marker(rows[i])
        if marker is None:
            out.append(rows[i])
            i += 1
            continue

        span, reps = marker
        start = i + 1
        if len(rows) - start >= span:
            block = expand_repeats(rows[start : start + span])
            for _ in range(reps):
                out.extend(block)
            i = start + span
            continue

        if out:
            tail = out[-min(span, len(out)) :]
            for _ in range(reps):
                out.extend(tail)
        i += 1
    return out
