from __future__ import annotations

from synthrave.model.types import SpeechEvent

# option key -> speech program flag
SPEECH_FLAGS = {"s": "-s", "p": "-p", "a": "-a", "g": "-g", "k": "-k"}


def is_say_row(text: str) -> bool:
    return text[:3].upper() == "SAY"


def samples_to_ms(samples: int, sample_rate: int) -> int:
    return int(samples * 1000 // sample_rate)


def _take_until(text: str, pos: int, stops: str) -> tuple[str, int]:
    end = pos
    while end < len(text) and text[end] not in stops:
        end += 1
    return text[pos:end].strip(), end


def parse_say(text: str, start_samples: int, sample_rate: int) -> SpeechEvent | None:
    """Parse ``SAY [@voice][;opt=val;...]:text`` into a speech event.

    Recognized options: ``text`` (overrides the text after ``:``), ``s``,
    ``p``, ``a``, ``g``, ``k`` (passed to the speech program as ``-x value``,
    value defaulting to ``1``) and ``variant`` (appended to the voice id).
    Returns None when there is nothing to say.
    """
    pos = 3
    while pos < len(text) and text[pos] in " \t":
        pos += 1

    voice: str | None = None
    options = ""
    if pos < len(text) and text[pos] == "@":
        voice, pos = _take_until(text, pos + 1, ":;")
    if pos < len(text) and text[pos] == ";":
        options, pos = _take_until(text, pos + 1, ":")
    after_colon: str | None = None
    if pos < len(text) and text[pos] == ":":
        after_colon = text[pos + 1 :].strip()

    said: str | None = None
    args: list[str] = []
    for part in options.split(";"):
        part = part.strip()
        if not part:
            continue
        key, _, val = part.partition("=")
        key = key.strip().lower()
        val = val.strip()
        value = val or "1"
        if key == "text":
            if val and said is None:
                said = val
        elif key in SPEECH_FLAGS:
            args.extend([SPEECH_FLAGS[key], value])
        elif key == "variant":
            if voice:
                voice = voice + value

    if said is None:
        said = after_colon
    if not said:
        return None
    return SpeechEvent(
        start_ms=samples_to_ms(start_samples, sample_rate),
        text=said,
        voice=voice or None,
        args=tuple(args),
    )
