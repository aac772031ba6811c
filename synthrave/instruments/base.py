from __future__ import annotations

import math
from dataclasses import dataclass

from synthrave.model.types import Spec

TWO_PI = 2.0 * math.pi

NOISE_SEED = 0x12345678


@dataclass(frozen=True)
class BlockConfig:
    sample_rate: int
    frames: int


class NoiseSource:
    """Linear-congruential white noise in [-1, 1)."""

    def __init__(self, seed: int = NOISE_SEED) -> None:
        self.state = int(seed) & 0xFFFFFFFF

    def next(self) -> float:
        self.state = (self.state * 1664525 + 1013904223) & 0xFFFFFFFF
        return ((self.state >> 8) / 16777216.0) * 2.0 - 1.0


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def softclip(x: float, drive: float = 1.0) -> float:
    return math.tanh(x * drive)


def advance_phase(phase: float, freq: float, sample_rate: int) -> float:
    """Advance a radian phase by one sample of ``freq``, wrapped into [0, 2π)."""
    phase += TWO_PI * freq / sample_rate
    if phase >= TWO_PI or phase < 0.0:
        phase %= TWO_PI
    return phase


def saw(phase: float) -> float:
    return math.fmod(phase / TWO_PI, 1.0) * 2.0 - 1.0


def decay_per_sample(seconds: float, sample_rate: int) -> float:
    """Multiplier that decays an envelope by 1/e over ``seconds``."""
    return math.exp(-1.0 / (sample_rate * seconds))


def voice_seed(start_sample: int, channel: int) -> int:
    return (NOISE_SEED + int(start_sample) * 31 + int(channel) * 9176) & 0xFFFFFFFF


class Voice:
    """One channel of synthesis state bound to a tone event.

    Subclasses implement :meth:`process`, which must return exactly
    ``cfg.frames`` samples. :meth:`render_block` enforces the window: a voice
    never renders past its own ``sample_count``.
    """

    def __init__(self, spec: Spec, *, channel: int, start_sample: int, sample_count: int, sample_rate: int) -> None:
        self.spec = spec
        self.channel = int(channel)
        self.start_sample = int(start_sample)
        self.sample_count = int(sample_count)
        self.sample_rate = int(sample_rate)
        self.rendered = 0
        # per-voice output scale (pan and event gain)
        self.level = 1.0
        self.duration_s = self.sample_count / float(self.sample_rate)
        self.noise = NoiseSource(voice_seed(self.start_sample, self.channel))

    @property
    def end_sample(self) -> int:
        return self.start_sample + self.sample_count

    @property
    def remaining(self) -> int:
        return self.sample_count - self.rendered

    @property
    def done(self) -> bool:
        return self.rendered >= self.sample_count

    def render_block(self, frames: int) -> list[float]:
        n = min(int(frames), self.remaining)
        if n <= 0:
            return []
        out = self.process(BlockConfig(sample_rate=self.sample_rate, frames=n))
        self.rendered += n
        return out

    def process(self, cfg: BlockConfig) -> list[float]:
        raise NotImplementedError
