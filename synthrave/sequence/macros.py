from __future__ import annotations

from typing import Mapping, Sequence

from synthrave.errors import MacroRecursionError, UnknownMacroError
from synthrave.sequence.rows import MacroDef, Row
from synthrave.util.limits import MAX_MACRO_DEPTH


def find_macro(macros: Mapping[str, MacroDef], name: str) -> MacroDef | None:
    return macros.get(name.strip().upper())


def expand_macros(rows: Sequence[Row], macros: Mapping[str, MacroDef]) -> list[Row]:
    """Inline every top-level ``@name`` row that names a known macro.

    Unknown top-level references are left in place; the timeline builder
    rejects them. Unknown references inside a macro body are an error.
    """
    out: list[Row] = []
    for row in rows:
        ref = row.macro_ref()
        if ref:
            macro = find_macro(macros, ref)
            if macro is not None:
                _expand_into(macro, macros, out, depth=1)
                continue
        out.append(row)
    return out


def _expand_into(macro: MacroDef, macros: Mapping[str, MacroDef], out: list[Row], *, depth: int) -> None:
    if depth > MAX_MACRO_DEPTH:
        raise MacroRecursionError(macro.name, depth)
    for row in macro.rows:
        ref = row.macro_ref()
        if ref:
            inner = find_macro(macros, ref)
            if inner is None:
                raise UnknownMacroError(ref, inside=macro.name)
            _expand_into(inner, macros, out, depth=depth + 1)
            continue
        out.append(row)
