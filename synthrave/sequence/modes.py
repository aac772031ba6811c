from __future__ import annotations

import re
from dataclasses import replace

from synthrave.model.types import SILENCE, Const, Glide, Spec
from synthrave.sequence.specs import Token
from synthrave.util.notes import parse_float_or_note, parse_float_strict

_FLAG_SPLIT = re.compile(r"[,|]")


def split_mode(mode: str | None) -> tuple[str | None, bool, bool]:
    """Pull ``BG``/``ADV`` flags out of a ``|``-separated mode field.

    Returns ``(mode, is_bg, adv)`` where ``mode`` re-joins the remaining parts
    with ``|`` (None when nothing is left).
    """
    if not mode:
        return None, False, False
    is_bg = False
    adv = False
    kept: list[str] = []
    for part in mode.split("|"):
        p = part.strip()
        if not p:
            continue
        up = p.upper()
        if up == "BG":
            is_bg = True
        elif up == "ADV":
            adv = True
        else:
            kept.append(p)
    return ("|".join(kept) or None), is_bg, adv


def parse_flags(flags: str | None) -> tuple[bool, bool]:
    """Return ``(is_bg, adv)`` from a flags field; other words are ignored."""
    if not flags:
        return False, False
    parts = {p.strip().upper() for p in _FLAG_SPLIT.split(flags)}
    return "BG" in parts, "ADV" in parts


def _const_or_silence(freq: float) -> Spec:
    return Const(freq=freq) if freq > 0 else SILENCE


def _mono_glide(token: Token, f0: float, f1: float) -> Token:
    g = Glide(f0=f0, f1=f1)
    return replace(token, left=g, right=g, stereo=False)


def apply_mode(token: Token, mode: str | None) -> Token:
    """Reinterpret ``token`` according to its mode field.

    Unrecognized or unusable modes leave the token unchanged.
    """
    if not mode:
        return token
    m = mode.strip()
    up = m.upper()
    base = token.left.freq if isinstance(token.left, Const) else 0.0

    if up.startswith("GLIDE:"):
        body = m[len("GLIDE:") :]
        if "->" not in body:
            return token
        a, b = body.split("->", 1)
        f0 = parse_float_or_note(a)
        f1 = parse_float_or_note(b)
        if f0 is None or f1 is None:
            return token
        return _mono_glide(token, f0, f1)

    for prefix in ("UPTO:", "DOWNTO:"):
        if up.startswith(prefix):
            target = parse_float_or_note(m[len(prefix) :])
            if base <= 0 or target is None:
                return token
            return _mono_glide(token, base, target)

    if up.startswith("UPX:") or up.startswith("DOWNX:"):
        down = up.startswith("DOWNX:")
        ratio = parse_float_strict(m[len("DOWNX:" if down else "UPX:") :])
        if base <= 0 or ratio is None or ratio <= 0:
            return token
        return _mono_glide(token, base, base / ratio if down else base * ratio)

    if up.startswith("BINAURAL:"):
        delta = parse_float_strict(m[len("BINAURAL:") :])
        if base <= 0 or delta is None:
            return token
        return replace(token, right=_const_or_silence(base + delta), stereo=True)

    right = parse_float_or_note(m)
    if right is not None and right > 0:
        return replace(token, right=Const(freq=right), stereo=True)
    return token
