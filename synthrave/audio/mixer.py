from __future__ import annotations

import logging
from array import array
from dataclasses import dataclass

from synthrave.errors import EmptyDocumentError
from synthrave.instruments.base import Voice
from synthrave.instruments.registry import create_voice
from synthrave.model.types import SequenceDocument, SequenceOptions, ToneEvent, is_silence
from synthrave.util.limits import MIX_BLOCK

_LOGGER = logging.getLogger("synthrave.audio.mixer")


@dataclass
class MixResult:
    """Rendered float buffers plus the interleaved PCM16 output."""

    left: list[float]
    right: list[float]
    pcm: array
    sample_rate: int
    voice_count: int

    @property
    def frames(self) -> int:
        return len(self.left)

    @property
    def duration_seconds(self) -> float:
        return self.frames / float(self.sample_rate) if self.sample_rate > 0 else 0.0


def _channel_level(ev: ToneEvent, channel: int) -> float:
    level = ev.gain
    if ev.pan > 0 and channel == 0:
        level *= 1.0 - min(1.0, ev.pan)
    elif ev.pan < 0 and channel == 1:
        level *= 1.0 + max(-1.0, ev.pan)
    return level


def build_voices(doc: SequenceDocument) -> list[Voice]:
    """Instantiate fresh voices: left on channel 0, right on channel 1.

    The right channel only gets a voice when the event is stereo or its spec
    differs from the left one.
    """
    voices: list[Voice] = []
    sr = doc.sample_rate
    for ev in doc.tones:
        if ev.sample_count <= 0:
            continue
        channels = [(0, ev.left)]
        if ev.stereo or ev.right != ev.left:
            channels.append((1, ev.right))
        for channel, spec in channels:
            if is_silence(spec):
                continue
            v = create_voice(
                spec,
                channel=channel,
                start_sample=ev.start_sample,
                sample_count=ev.sample_count,
                sample_rate=sr,
            )
            if v is None:
                continue
            v.level = _channel_level(ev, channel)
            voices.append(v)
    return voices


def render_voices(voices: list[Voice], total: int, *, block_frames: int = MIX_BLOCK) -> tuple[list[float], list[float]]:
    """Render every voice block by block into two additive master buffers."""
    left = [0.0] * total
    right = [0.0] * total
    block_frames = max(1, int(block_frames))
    for frame in range(0, total, block_frames):
        block_end = min(frame + block_frames, total)
        for v in voices:
            if v.done:
                continue
            if v.end_sample <= frame or v.start_sample >= block_end:
                continue
            offset = max(0, v.start_sample - frame)
            chunk = v.render_block(block_end - frame - offset)
            dest = left if v.channel == 0 else right
            base = frame + offset
            level = v.level
            if level == 1.0:
                for i, s in enumerate(chunk):
                    dest[base + i] += s
            else:
                for i, s in enumerate(chunk):
                    dest[base + i] += s * level
    return left, right


def apply_fade(buf: list[float], sample_rate: int, fade_ms: int) -> None:
    """Linear fade-in and fade-out in place; each fade covers at most half the buffer."""
    if fade_ms <= 0:
        return
    n = len(buf)
    fade = int(fade_ms * sample_rate // 1000)
    if fade * 2 > n:
        fade = n // 2
    for i in range(fade):
        g = i / float(fade)
        buf[i] *= g
        buf[n - 1 - i] *= g


def to_pcm16(left: list[float], right: list[float], gain: float) -> array:
    """Scale, hard-clip to [-1, 1] and interleave as signed 16-bit."""
    n = min(len(left), len(right))
    pcm = array("h", bytes(4 * n))
    for i in range(n):
        lv = max(-1.0, min(1.0, left[i] * gain))
        rv = max(-1.0, min(1.0, right[i] * gain))
        pcm[2 * i] = int(round(lv * 32767.0))
        pcm[2 * i + 1] = int(round(rv * 32767.0))
    return pcm


def mix_document(
    doc: SequenceDocument,
    options: SequenceOptions | None = None,
    *,
    gain: float = 0.3,
    block_frames: int = MIX_BLOCK,
) -> MixResult:
    """Render ``doc`` to a stereo PCM16 buffer.

    Speech-only documents render silence so the cues still have a clock to
    run against. Raises EmptyDocumentError when there is nothing at all.
    """
    opts = options or SequenceOptions(sample_rate=doc.sample_rate)
    sr = doc.sample_rate
    voices = build_voices(doc)

    if voices:
        total = doc.total_samples
        left, right = render_voices(voices, total, block_frames=block_frames)
        apply_fade(left, sr, opts.fade_ms)
        apply_fade(right, sr, opts.fade_ms)
    else:
        if not doc.speech:
            raise EmptyDocumentError("no playable voices")
        total = doc.total_samples or int(sr * opts.default_duration_ms // 1000) or sr
        left = [0.0] * total
        right = [0.0] * total

    _LOGGER.debug("mixed %d voices into %d frames at %d Hz", len(voices), total, sr)
    return MixResult(
        left=left,
        right=right,
        pcm=to_pcm16(left, right, gain),
        sample_rate=sr,
        voice_count=len(voices),
    )
