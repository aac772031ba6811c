from __future__ import annotations

from pathlib import Path


class SynthraveError(Exception):
    """Base error for synthrave."""


class ParseError(SynthraveError, ValueError):
    """Raised when sequence text cannot be compiled."""


class UnknownMacroError(ParseError):
    """Raised when a row references a macro that was never defined."""

    def __init__(self, name: str, *, inside: str | None = None) -> None:
        self.name = name
        self.inside = inside
        if inside:
            msg = f"unknown macro @{name} inside @{inside}"
        else:
            msg = f"unknown token: @{name}"
        super().__init__(msg)


class MacroRecursionError(ParseError):
    """Raised when macro expansion nests deeper than the fixed limit."""

    def __init__(self, name: str, depth: int) -> None:
        self.name = name
        self.depth = depth
        super().__init__(f"macro recursion too deep for @{name} (depth {depth})")


class UnterminatedMacroError(ParseError):
    """Raised when a macro block is never closed with ``}``."""

    def __init__(self, name: str, line_no: int | None = None) -> None:
        self.name = name
        self.line_no = line_no
        where = f" (opened on line {line_no})" if line_no else ""
        super().__init__(f"macro @{name} missing closing brace{where}")


class ResourceError(SynthraveError):
    """Raised when an external resource (file) cannot be used."""

    def __init__(self, message: str, *, path: str | Path | None = None) -> None:
        self.path = str(path) if path is not None else None
        super().__init__(f"{message}: {self.path}" if self.path else message)


class SampleLoadError(ResourceError):
    """Raised when a WAV sample is missing or in an unsupported format."""


class SequenceFileError(ResourceError):
    """Raised when a sequence file cannot be read."""


class MidiLoadError(ResourceError):
    """Raised when a MIDI file is malformed or unsupported."""


class EmptyDocumentError(SynthraveError):
    """Raised when there is nothing to play."""


class PlaybackError(SynthraveError):
    """Raised when the audio backend cannot be opened or fails mid-stream."""


class ConfigError(SynthraveError, ValueError):
    """Raised when a config file cannot be parsed or validated."""
