from __future__ import annotations

import math

from synthrave.instruments.base import BlockConfig, Voice, advance_phase, clamp, lerp, saw
from synthrave.model.types import NamedInstrument
from synthrave.util.limits import MAX_ARP_NOTES


def cents_to_ratio(cents: float) -> float:
    return 2.0 ** (cents / 1200.0)


class LaserVoice(Voice):
    """Resonant sine sweep from ``freq`` to ``end_freq`` across the event."""

    spec: NamedInstrument
    resonance = 3.0

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.base_freq = spec.freq if spec.freq > 0 else 1320.0
        self.target_freq = spec.end_freq if spec.end_freq > 0 else self.base_freq * 0.2
        self.phase = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        total = float(max(self.sample_count, 1))
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            sweep = min(1.0, (self.rendered + i + 1) / total)
            freq = lerp(self.base_freq, self.target_freq, sweep)
            self.phase = advance_phase(self.phase, freq, sr)
            resonant = math.sin(self.phase) * (0.7 + 0.3 * math.sin(self.phase * self.resonance))
            out[i] = resonant * (1.0 - sweep) + math.sin(self.phase * 0.25) * sweep
        return out


class ChoirVoice(Voice):
    """Four detuned sines with a formant partial and a soft swell."""

    spec: NamedInstrument
    detune_cents = (-6.0, 3.0, 7.0)
    softness = 0.4

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        root = spec.freq if spec.freq > 0 else 261.63
        self.freqs = [root] + [root * cents_to_ratio(c) for c in self.detune_cents]
        self.weights = [0.4, 0.2, 0.2, 0.2]
        self.phases = [0.0] * len(self.freqs)
        self.env = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        attack = max(0.02, self.softness)
        release = max(0.5, self.softness * 4.0)
        env_up = 1.0 / (attack * sr)
        env_down = 1.0 / (release * sr)
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            if self.env < 1.0:
                self.env = min(1.0, self.env + env_up)
            else:
                self.env = max(0.6, self.env - env_down * 0.1)
            acc = 0.0
            for v, f in enumerate(self.freqs):
                self.phases[v] = advance_phase(self.phases[v], f, sr)
                acc += math.sin(self.phases[v]) * self.weights[v]
            formant = math.sin(self.phases[0] * 3.0) * 0.15
            out[i] = (acc + formant) * (0.4 + 0.6 * self.env)
        return out


class AnalogLeadVoice(Voice):
    """Saw/pulse lead with portamento toward its target frequency."""

    spec: NamedInstrument
    glide_rate = 0.02

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        start = spec.freq if spec.freq > 0 else 440.0
        self.current = start
        self.target = spec.end_freq if spec.end_freq > 0 else start
        self.phase = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        glide = clamp(self.glide_rate, 0.0001, 0.05)
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            self.current += (self.target - self.current) * glide
            self.phase = advance_phase(self.phase, self.current, sr)
            pulse = 0.5 if math.sin(self.phase * 2.0) > 0.0 else -0.5
            out[i] = 0.7 * saw(self.phase) + 0.3 * pulse
        return out


class _SteppedVoice(Voice):
    """Square/sine source that advances a step counter every ``step_ms``."""

    spec: NamedInstrument
    step_ms = 120.0

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phase = 0.0
        self.step_len = max(self.step_ms, 5.0) / 1000.0
        self.time_in_step = 0.0
        self.step = 0

    def _tick(self, sr: int, steps: int) -> None:
        self.time_in_step += 1.0 / sr
        if self.time_in_step >= self.step_len:
            self.time_in_step -= self.step_len
            self.step = (self.step + 1) % steps


class SidBassVoice(_SteppedVoice):
    """Square bass cycling through three accent levels."""

    step_gains = (0.9, 0.4, 0.2)

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.freq = spec.freq if spec.freq > 0 else 55.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            self.phase = advance_phase(self.phase, self.freq, sr)
            square = 1.0 if math.sin(self.phase) >= 0.0 else -1.0
            out[i] = square * self.step_gains[self.step]
            self._tick(sr, len(self.step_gains))
        return out


class ChipArpVoice(_SteppedVoice):
    """Sine arpeggio over up to four notes, one note per 60 ms tick."""

    step_ms = 60.0

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        if spec.notes:
            self.notes = list(spec.notes[:MAX_ARP_NOTES])
        else:
            self.notes = [spec.freq if spec.freq > 0 else 523.25]

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            self.phase = advance_phase(self.phase, self.notes[self.step], sr)
            out[i] = math.sin(self.phase) * 0.6
            self._tick(sr, len(self.notes))
        return out
