"""Timeline compiler: sequence text or CLI tokens -> SequenceDocument."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from synthrave.audio.samples import SampleCache
from synthrave.errors import SequenceFileError
from synthrave.model.types import SequenceDocument, SequenceOptions
from synthrave.sequence.macros import expand_macros
from synthrave.sequence.repeats import expand_repeats
from synthrave.sequence.rows import MacroDef, Row, read_rows, rows_from_tokens
from synthrave.sequence.timeline import build_document

_LOGGER = logging.getLogger("synthrave.sequence")


def compile_rows(
    rows: Sequence[Row],
    macros: Mapping[str, MacroDef],
    options: SequenceOptions,
    samples: SampleCache | None = None,
    *,
    base_dir: Path | None = None,
) -> SequenceDocument:
    expanded = expand_repeats(expand_macros(rows, macros))
    _LOGGER.debug("expanded %d rows into %d", len(rows), len(expanded))
    return build_document(expanded, options, samples, base_dir=base_dir)


def build_from_lines(
    lines: Iterable[str],
    options: SequenceOptions | None = None,
    samples: SampleCache | None = None,
    *,
    base_dir: Path | None = None,
) -> SequenceDocument:
    src = read_rows(lines)
    return compile_rows(src.rows, src.macros, options or SequenceOptions(), samples, base_dir=base_dir)


def load_sequence_file(
    path: str | Path,
    options: SequenceOptions | None = None,
    samples: SampleCache | None = None,
) -> SequenceDocument:
    """Compile a sequence file; sample paths resolve relative to it."""
    p = Path(path).expanduser()
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SequenceFileError(f"cannot read sequence file ({e})", path=p) from e
    return build_from_lines(text.splitlines(), options, samples, base_dir=p.resolve().parent)


def build_from_tokens(
    tokens: Iterable[str],
    options: SequenceOptions | None = None,
    samples: SampleCache | None = None,
    *,
    base_dir: Path | None = None,
) -> SequenceDocument:
    """Compile CLI tokens, one row each."""
    rows = rows_from_tokens(tokens)
    return compile_rows(rows, {}, options or SequenceOptions(), samples, base_dir=base_dir)


__all__ = [
    "build_from_lines",
    "build_from_tokens",
    "compile_rows",
    "load_sequence_file",
]
