from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable

from synthrave.errors import ParseError, UnterminatedMacroError
from synthrave.util.limits import ROW_FIELDS
from synthrave.util.notes import is_numeric

_LOGGER = logging.getLogger("synthrave.sequence.rows")

_COMMENT_PREFIXES = ("#", "//", "--")


@dataclass(frozen=True)
class Row:
    """One timeline row: ``spec[:duration], dur, gap, mode|flags, flags``."""

    spec: str
    duration: str = ""
    gap: str = ""
    mode: str = ""
    flags: str = ""
    line_no: int | None = field(default=None, compare=False)

    @staticmethod
    def from_fields(fields: list[str], *, line_no: int | None = None) -> "Row":
        cells = (list(fields) + [""] * ROW_FIELDS)[:ROW_FIELDS]
        return Row(*cells, line_no=line_no)

    def macro_ref(self) -> str | None:
        """Name of the macro this row calls (``@name``), if any."""
        if len(self.spec) > 1 and self.spec.startswith("@"):
            return self.spec[1:].strip()
        return None


@dataclass
class MacroDef:
    name: str
    rows: list[Row] = field(default_factory=list)


@dataclass
class RowSource:
    rows: list[Row] = field(default_factory=list)
    macros: dict[str, MacroDef] = field(default_factory=dict)


def is_skippable(line: str) -> bool:
    s = line.strip()
    return not s or s.startswith(_COMMENT_PREFIXES)


def split_fields(line: str) -> list[str]:
    """Split one line into at most five comma-separated fields.

    Double-quoted fields may contain commas; ``""`` inside quotes is a literal
    quote. Unquoted fields are trimmed.
    """
    fields: list[str] = []
    i = 0
    n = len(line)
    while i < n and len(fields) < ROW_FIELDS:
        while i < n and line[i] in " \t\r":
            i += 1
        if i >= n or line[i] == "\n":
            break
        if line[i] == ",":
            fields.append("")
            i += 1
            continue

        if line[i] == '"':
            i += 1
            buf: list[str] = []
            while i < n:
                ch = line[i]
                if ch == '"':
                    if i + 1 < n and line[i + 1] == '"':
                        buf.append('"')
                        i += 2
                        continue
                    i += 1
                    break
                buf.append(ch)
                i += 1
            fields.append("".join(buf))
        else:
            start = i
            while i < n and line[i] not in ",\n\r":
                i += 1
            fields.append(line[start:i].strip())

        while i < n and line[i] in " \t":
            i += 1
        if i < n and line[i] == ",":
            i += 1
            continue
        # junk after a closing quote: skip to the next separator
        while i < n and line[i] != "\n":
            if line[i] == ",":
                i += 1
                break
            i += 1
    return fields


def normalize_inline(row: Row) -> Row:
    """Move a non-numeric duration or gap field into the empty mode field.

    This lets ``A4, E5`` mean "left A4, right E5" rather than an invalid
    duration.
    """
    if row.duration and not is_numeric(row.duration) and not row.mode:
        row = replace(row, duration="", mode=row.duration)
    if not row.mode and row.gap and not is_numeric(row.gap):
        row = replace(row, gap="", mode=row.gap)
    return row


def parse_row(line: str, *, line_no: int | None = None) -> Row | None:
    fields = split_fields(line)
    if not fields or not fields[0]:
        return None
    return normalize_inline(Row.from_fields(fields, line_no=line_no))


def _macro_header(stripped: str) -> str | None:
    if not stripped.startswith("@") or "{" not in stripped:
        return None
    return stripped[1 : stripped.index("{")].strip()


def read_rows(lines: Iterable[str]) -> RowSource:
    """Collect rows and macro blocks from sequence text, in source order."""
    src = RowSource()
    it = enumerate(lines, start=1)
    for line_no, line in it:
        if is_skippable(line):
            continue
        stripped = line.strip()

        name = _macro_header(stripped)
        if name is not None:
            if not name:
                raise ParseError(f"line {line_no}: macro block without a name")
            macro = MacroDef(name=name.upper())
            closed = False
            for inner_no, inner in it:
                if is_skippable(inner):
                    continue
                if inner.strip().startswith("}"):
                    closed = True
                    break
                row = parse_row(inner, line_no=inner_no)
                if row is not None:
                    macro.rows.append(row)
            if not closed:
                raise UnterminatedMacroError(name, line_no)
            if macro.name in src.macros:
                _LOGGER.warning("line %d: macro @%s already defined; keeping the first definition", line_no, name)
            else:
                src.macros[macro.name] = macro
            continue

        row = parse_row(line, line_no=line_no)
        if row is None or row.spec.startswith("#"):
            continue
        src.rows.append(row)

    _LOGGER.debug("read %d rows, %d macros", len(src.rows), len(src.macros))
    return src


def rows_from_tokens(tokens: Iterable[str]) -> list[Row]:
    """One row per CLI token; comment and macro-block syntax is not recognized."""
    rows: list[Row] = []
    for i, tok in enumerate(tokens, start=1):
        if not tok:
            continue
        row = parse_row(tok, line_no=i)
        if row is not None:
            rows.append(row)
    return rows
