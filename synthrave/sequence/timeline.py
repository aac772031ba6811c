from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from synthrave.audio.samples import SampleCache
from synthrave.errors import EmptyDocumentError
from synthrave.model.types import Sample, SequenceDocument, SequenceOptions, SpeechEvent, ToneEvent
from synthrave.sequence.modes import apply_mode, parse_flags, split_mode
from synthrave.sequence.rows import Row
from synthrave.sequence.specs import Token, parse_token
from synthrave.sequence.speech import is_say_row, parse_say
from synthrave.util.notes import parse_float_strict, parse_int_strict

_LOGGER = logging.getLogger("synthrave.sequence.timeline")


def ms_to_samples(ms: int, sample_rate: int) -> int:
    """Frames for ``ms`` milliseconds; at least one frame for any positive span."""
    if ms <= 0:
        return 0
    return max(1, sample_rate * ms // 1000)


def ms_to_samples_allow_zero(ms: int, sample_rate: int) -> int:
    if ms <= 0:
        return 0
    return sample_rate * ms // 1000


def parse_gap_ms(text: str | None) -> int:
    """Gap field: integer milliseconds, or decimal seconds when it has a dot."""
    if not text:
        return 0
    if "." in text:
        secs = parse_float_strict(text)
        if secs is not None:
            return max(0, int(round(secs * 1000.0)))
    val = parse_int_strict(text)
    if val is not None and val > 0:
        return val
    return 0


def row_duration_ms(row: Row, default_ms: int) -> tuple[int, bool]:
    """Duration from the second field, or the default. Returns ``(ms, explicit)``."""
    if row.duration:
        v = parse_int_strict(row.duration)
        if v is not None and v > 0:
            return v, True
    return default_ms, False


def token_target_samples(token: Token, sample_rate: int) -> int:
    if token.sample_override:
        for spec in (token.left, token.right):
            if isinstance(spec, Sample):
                n = spec.data.default_length(sample_rate)
                if n > 0:
                    return n
    return ms_to_samples(token.duration_ms, sample_rate)


class TimelineBuilder:
    """Walk expanded rows and place each on the shared sample cursor."""

    def __init__(
        self,
        options: SequenceOptions,
        samples: SampleCache | None = None,
        *,
        base_dir: Path | None = None,
    ) -> None:
        self.options = options
        self.samples = samples if samples is not None else SampleCache(base_dir)
        self.base_dir = base_dir
        self.cursor = 0
        self.max_end = 0
        self.tones: list[ToneEvent] = []
        self.speech: list[SpeechEvent] = []

    def add_row(self, row: Row) -> None:
        if not row.spec:
            return
        sr = self.options.sample_rate
        mode, is_bg, adv = split_mode(row.mode)
        flag_bg, flag_adv = parse_flags(row.flags)
        is_bg = is_bg or flag_bg
        adv = adv or flag_adv
        advance = not is_bg or adv

        dur_ms, explicit_field = row_duration_ms(row, self.options.default_duration_ms)
        gap_ms = parse_gap_ms(row.gap)
        gap_samples = ms_to_samples_allow_zero(gap_ms, sr)
        start = self.cursor

        if is_say_row(row.spec):
            ev = parse_say(row.spec, start, sr)
            if ev is not None:
                self.speech.append(ev)
            if advance:
                self.cursor += ms_to_samples_allow_zero(dur_ms, sr) + gap_samples
            return

        token = parse_token(row.spec, dur_ms, self.samples, base_dir=self.base_dir)
        if explicit_field and not token.explicit_duration:
            token = replace(token, explicit_duration=True, sample_override=False)
        token = apply_mode(token, mode)

        if token.is_silent:
            if advance:
                self.cursor += ms_to_samples_allow_zero(token.duration_ms, sr) + gap_samples
            return

        count = token_target_samples(token, sr)
        ev = ToneEvent(
            left=token.left,
            right=token.right,
            stereo=token.stereo,
            start_sample=start,
            sample_count=count,
            duration_ms=token.duration_ms,
            gap_ms=gap_ms,
            explicit_duration=token.explicit_duration,
            sample_override=token.sample_override,
            is_bg=is_bg,
            adv=adv,
            mode_raw=mode,
            flags_raw=row.flags or None,
        )
        self.tones.append(ev)
        self.max_end = max(self.max_end, ev.end_sample)
        if advance:
            self.cursor += count + gap_samples

    def build(self) -> SequenceDocument:
        if not self.tones and not self.speech:
            raise EmptyDocumentError("sequence has no tone or speech events")
        total = max(self.cursor, self.max_end)
        _LOGGER.debug(
            "timeline: %d tones, %d speech cues, %d samples (%.2fs)",
            len(self.tones),
            len(self.speech),
            total,
            total / float(self.options.sample_rate),
        )
        return SequenceDocument(
            tones=tuple(self.tones),
            speech=tuple(self.speech),
            total_samples=total,
            sample_rate=self.options.sample_rate,
        )


def build_document(
    rows: Sequence[Row],
    options: SequenceOptions,
    samples: SampleCache | None = None,
    *,
    base_dir: Path | None = None,
) -> SequenceDocument:
    builder = TimelineBuilder(options, samples, base_dir=base_dir)
    for row in rows:
        builder.add_row(row)
    return builder.build()
