from __future__ import annotations

from synthrave.instruments.base import BlockConfig, NoiseSource, Voice
from synthrave.model.types import NamedInstrument
from synthrave.util.limits import MAX_PLUCK_DELAY, MIN_PLUCK_DELAY


def pluck_delay(freq: float, sample_rate: int) -> int:
    """Delay-line length (samples) for a string tuned to ``freq``."""
    if freq <= 0:
        freq = 110.0
    return max(MIN_PLUCK_DELAY, min(MAX_PLUCK_DELAY, int(sample_rate / freq)))


class KarplusStrong:
    """Circular delay line seeded with noise; each step averages adjacent taps."""

    def __init__(self, delay: int, damping: float, noise: NoiseSource) -> None:
        self.damping = float(damping)
        self.noise = noise
        self.buf = [noise.next() for _ in range(max(MIN_PLUCK_DELAY, int(delay)))]
        self.idx = 0

    def process(self, frames: int, excitation: float = 1.0) -> list[float]:
        buf = self.buf
        size = len(buf)
        damp = self.damping
        idx = self.idx
        out = [0.0] * frames
        for i in range(frames):
            nxt = (idx + 1) % size
            y = 0.5 * (buf[idx] + buf[nxt]) * damp + excitation * self.noise.next() * 0.01
            buf[idx] = y
            out[i] = y
            idx = nxt
        self.idx = idx
        return out


class PluckVoice(Voice):
    damping: float

    spec: NamedInstrument

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.string = KarplusStrong(pluck_delay(spec.freq, self.sample_rate), self.damping, self.noise)

    def process(self, cfg: BlockConfig) -> list[float]:
        return self.string.process(cfg.frames, excitation=1.0)


class GuitarVoice(PluckVoice):
    damping = 0.995


class KalimbaVoice(PluckVoice):
    damping = 0.98
