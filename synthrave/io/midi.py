from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:  # pragma: no cover
    import mido

from synthrave.errors import MidiLoadError
from synthrave.model.types import InstrumentKind, NamedInstrument, SequenceDocument, SequenceOptions, ToneEvent
from synthrave.util.notes import midi_to_hz

_LOGGER = logging.getLogger("synthrave.io.midi")

DEFAULT_TEMPO = 500000
MIN_NOTE_MS = 10.0
MIN_EVENT_SECONDS = 0.02
TAIL_MS = 100.0

# (last program, kind); anything past the table plays as piano.
_PROGRAM_KINDS: list[tuple[int, InstrumentKind]] = [
    (7, InstrumentKind.PIANO),
    (11, InstrumentKind.GUITAR),
    (15, InstrumentKind.EGTR),
    (19, InstrumentKind.BASS),
    (23, InstrumentKind.FLUTE),
    (26, InstrumentKind.STRPAD),
    (27, InstrumentKind.CHOIR),
    (30, InstrumentKind.BRASS),
    (31, InstrumentKind.ANALOGLEAD),
    (32, InstrumentKind.LASER),
    (33, InstrumentKind.ANALOGLEAD),
    (35, InstrumentKind.CHIPARP),
]


@dataclass(frozen=True)
class MidiNote:
    start_ms: float
    duration_ms: float
    pitch: int
    channel: int
    program: int

    @property
    def end_ms(self) -> float:
        return self.start_ms + self.duration_ms


def program_kind(program: int) -> InstrumentKind:
    for last, kind in _PROGRAM_KINDS:
        if program <= last:
            return kind
    return InstrumentKind.PIANO


def channel_pan(channel: int) -> float:
    return channel / 15.0 * 2.0 - 1.0


def _track_notes(messages: Iterable[Any], ticks_per_beat: int) -> list[MidiNote]:
    """Absolute-time notes from one delta-timed message stream."""
    import mido  # type: ignore

    tempo = DEFAULT_TEMPO
    now_s = 0.0
    programs = [0] * 16
    open_notes: dict[tuple[int, int], tuple[float, int]] = {}
    notes: list[MidiNote] = []

    def close(key: tuple[int, int], end_s: float) -> None:
        start_s, program = open_notes.pop(key)
        dur_ms = max(MIN_NOTE_MS, (end_s - start_s) * 1000.0)
        notes.append(
            MidiNote(start_ms=start_s * 1000.0, duration_ms=dur_ms, pitch=key[1], channel=key[0], program=program)
        )

    for msg in messages:
        if msg.time:
            now_s += mido.tick2second(msg.time, ticks_per_beat, tempo)
        if msg.type == "set_tempo":
            tempo = msg.tempo
        elif msg.type == "program_change":
            programs[msg.channel] = msg.program
        elif msg.type == "note_on" and msg.velocity > 0:
            key = (msg.channel, msg.note)
            if key in open_notes:
                close(key, now_s)
            open_notes[key] = (now_s, programs[msg.channel])
        elif msg.type in ("note_on", "note_off"):
            key = (msg.channel, msg.note)
            if key in open_notes:
                close(key, now_s)

    for key in list(open_notes):
        close(key, now_s)
    return notes


def read_midi_notes(mf: "mido.MidiFile") -> list[MidiNote]:
    tpb = int(mf.ticks_per_beat)
    if tpb <= 0 or tpb & 0x8000:
        raise MidiLoadError("SMPTE time division is not supported", path=mf.filename)
    if mf.type not in (0, 1, 2):
        raise MidiLoadError(f"unsupported MIDI format {mf.type}", path=mf.filename)

    import mido  # type: ignore

    notes: list[MidiNote] = []
    if mf.type == 2:
        for track in mf.tracks:
            notes.extend(_track_notes(track, tpb))
    else:
        notes.extend(_track_notes(mido.merge_tracks(mf.tracks), tpb))
    notes.sort(key=lambda n: (n.start_ms, n.channel, n.pitch))
    return notes


def _to_samples(ms: float, sample_rate: int) -> int:
    # tick arithmetic leaves float residue; snap to the nearest frame
    return int(round(ms * sample_rate / 1000.0))


def notes_to_document(notes: list[MidiNote], options: SequenceOptions) -> SequenceDocument:
    sr = options.sample_rate
    min_count = int(sr * MIN_EVENT_SECONDS)
    tones: list[ToneEvent] = []
    max_end_ms = 0.0
    for n in notes:
        spec = NamedInstrument(kind=program_kind(n.program), freq=midi_to_hz(n.pitch))
        count = max(_to_samples(n.duration_ms, sr), min_count)
        tones.append(
            ToneEvent(
                left=spec,
                right=spec,
                stereo=True,
                start_sample=_to_samples(n.start_ms, sr),
                sample_count=count,
                duration_ms=int(n.duration_ms),
                explicit_duration=True,
                pan=channel_pan(n.channel),
            )
        )
        max_end_ms = max(max_end_ms, n.end_ms)

    total = max(_to_samples(max_end_ms + TAIL_MS, sr), sr // 10)
    total = max([total] + [ev.end_sample for ev in tones])
    return SequenceDocument(tones=tuple(tones), speech=(), total_samples=total, sample_rate=sr)


def load_midi_document(path: str | Path, options: SequenceOptions | None = None) -> SequenceDocument:
    """Convert a standard MIDI file into tone events, one per note."""
    import mido  # type: ignore

    p = Path(path).expanduser()
    try:
        mf = mido.MidiFile(str(p))
    except FileNotFoundError as e:
        raise MidiLoadError("MIDI file not found", path=p) from e
    except (OSError, EOFError, ValueError, KeyError, IndexError, struct.error) as e:
        raise MidiLoadError(f"malformed MIDI file ({e})", path=p) from e

    notes = read_midi_notes(mf)
    if not notes:
        raise MidiLoadError("MIDI file contains no notes", path=p)
    doc = notes_to_document(notes, options or SequenceOptions())
    _LOGGER.debug("loaded %d notes from %s (format %d)", len(notes), p, mf.type)
    return doc
