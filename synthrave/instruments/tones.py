from __future__ import annotations

import math

from synthrave.instruments.base import TWO_PI, BlockConfig, Voice
from synthrave.model.types import Chord, Const, Glide, Sample


def _wrap_cycles(phase: float) -> float:
    if phase >= 1.0 or phase < 0.0:
        phase -= math.floor(phase)
    return phase


class ConstVoice(Voice):
    spec: Const

    def __init__(self, spec: Const, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phase = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        step = self.spec.freq / cfg.sample_rate
        phase = self.phase
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            phase = _wrap_cycles(phase + step)
            out[i] = math.sin(TWO_PI * phase)
        self.phase = phase
        return out


class GlideVoice(Voice):
    """Sine whose frequency moves linearly from f0 to f1 over the event."""

    spec: Glide

    def __init__(self, spec: Glide, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phase = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        f0 = self.spec.f0
        span = self.spec.f1 - f0
        denom = float(self.sample_count - 1 if self.sample_count > 1 else 1)
        phase = self.phase
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            freq = f0 + span * ((self.rendered + i) / denom)
            phase = _wrap_cycles(phase + freq / cfg.sample_rate)
            out[i] = math.sin(TWO_PI * phase)
        self.phase = phase
        return out


class ChordVoice(Voice):
    spec: Chord

    def __init__(self, spec: Chord, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phases = [0.0] * len(spec.freqs)

    def process(self, cfg: BlockConfig) -> list[float]:
        freqs = self.spec.freqs
        count = len(freqs)
        out = [0.0] * cfg.frames
        if count == 0:
            return out
        steps = [f / cfg.sample_rate for f in freqs]
        phases = self.phases
        for i in range(cfg.frames):
            acc = 0.0
            for h in range(count):
                phases[h] = _wrap_cycles(phases[h] + steps[h])
                acc += math.sin(TWO_PI * phases[h])
            out[i] = acc / count
        return out


class SampleVoice(Voice):
    """Plays one channel of a sample, stretched to fill the event window."""

    spec: Sample

    def __init__(self, spec: Sample, **kw: int) -> None:
        super().__init__(spec, **kw)
        data = spec.data
        ch = spec.channel if spec.channel < data.channel_count else 0
        self.src = data.channels[ch]
        self.pos = 0.0
        self.step = data.length / float(self.sample_count) if self.sample_count > 0 else 1.0

    def process(self, cfg: BlockConfig) -> list[float]:
        src = self.src
        last = len(src) - 1
        out = [0.0] * cfg.frames
        if last < 0:
            return out
        pos = self.pos
        for i in range(cfg.frames):
            idx = int(pos)
            if idx >= last:
                out[i] = src[last]
            else:
                a = src[idx]
                out[i] = a + (src[idx + 1] - a) * (pos - idx)
            pos += self.step
        self.pos = pos
        return out
