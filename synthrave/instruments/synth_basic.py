from __future__ import annotations

import math

from synthrave.instruments.base import BlockConfig, Voice, advance_phase, decay_per_sample, saw, softclip
from synthrave.model.types import NamedInstrument


class _TonalVoice(Voice):
    spec: NamedInstrument

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.freq = spec.freq


class BassVoice(_TonalVoice):
    """Saw plus sub-octave sine through a one-pole low-pass."""

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phase_main = 0.0
        self.phase_sub = 0.0
        self.lp = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        sub_freq = self.freq * 0.5
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            self.phase_main = advance_phase(self.phase_main, self.freq, sr)
            self.phase_sub = advance_phase(self.phase_sub, sub_freq, sr)
            mixed = 0.6 * saw(self.phase_main) + 0.4 * math.sin(self.phase_sub)
            self.lp = 0.9 * self.lp + 0.1 * mixed
            out[i] = self.lp
        return out


class FluteVoice(_TonalVoice):
    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phase_fund = 0.0
        self.phase_detune = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        detune = self.freq * 1.01
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            self.phase_fund = advance_phase(self.phase_fund, self.freq, sr)
            self.phase_detune = advance_phase(self.phase_detune, detune, sr)
            fundamental = math.sin(self.phase_fund)
            overtone = 0.3 * math.sin(self.phase_detune * 2.0)
            breath = self.noise.next() * 0.1
            out[i] = (fundamental + overtone + breath) * 0.6
        return out


class _PartialsVoice(_TonalVoice):
    """Sum of sine partials, each with its own exponential decay."""

    ratios: tuple[float, ...] = ()
    decays: tuple[float, ...] = ()
    weights: tuple[float, ...] = ()
    output = 1.0

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phases = [0.0] * len(self.ratios)
        self.envs = [1.0] * len(self.ratios)
        self.env_steps = [decay_per_sample(d, self.sample_rate) for d in self.decays]

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        freqs = [self.freq * r for r in self.ratios]
        count = len(freqs)
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            acc = 0.0
            for h in range(count):
                self.phases[h] = advance_phase(self.phases[h], freqs[h], sr)
                acc += math.sin(self.phases[h]) * self.envs[h] * self.weights[h]
                self.envs[h] *= self.env_steps[h]
            out[i] = acc * self.output
        return out


class PianoVoice(_PartialsVoice):
    ratios = (1.0, 2.0, 3.01, 4.2)
    decays = (0.6, 0.4, 0.2, 0.15)
    weights = (1.0, 1.0 / 2, 1.0 / 3, 1.0 / 4)


class BellVoice(_PartialsVoice):
    ratios = (1.0, 2.4, 3.95, 5.4)
    decays = (2.0, 1.2, 0.8, 0.6)
    weights = (1.0, 1.0, 1.0, 1.0)
    output = 0.5


class EgtrVoice(_TonalVoice):
    """Overdriven saw/square blend with slight vibrato."""

    drive = 3.0

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phase = 0.0
        self.vibrato_phase = 0.0
        self.env = 1.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        decay = decay_per_sample(0.5, sr)
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            self.phase = advance_phase(self.phase, self.freq, sr)
            self.vibrato_phase = advance_phase(self.vibrato_phase, 5.5, sr)
            s = saw(self.phase)
            square = 1.0 if s >= 0.0 else -1.0
            vibrato = 0.01 * math.sin(self.vibrato_phase)
            signal = (0.6 * s + 0.4 * square) + vibrato + self.noise.next() * 0.02
            out[i] = softclip(signal, drive=self.drive) * self.env
            self.env *= decay
        return out


class BirdsVoice(_TonalVoice):
    """Randomly wandering chirps over a noise bed."""

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.chirp_phase = 0.0
        self.env = 1.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        decay = decay_per_sample(0.3, sr)
        # chirps wander within +-1/3 of the centre frequency (6 kHz -> 4..8 kHz)
        centre = self.freq
        spread = centre / 3.0
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            freq = centre + spread * self.noise.next()
            self.chirp_phase = advance_phase(self.chirp_phase, freq, sr)
            chirp = math.sin(self.chirp_phase) * (0.5 + 0.5 * self.noise.next())
            out[i] = (chirp + self.noise.next() * 0.4) * self.env
            self.env *= decay
        return out


class StrPadVoice(_TonalVoice):
    """Three slightly detuned sines with a slow swell."""

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phases = [0.0, 0.0, 0.0]
        self.env = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        attack = decay_per_sample(1.5, sr)
        release = decay_per_sample(3.0, sr)
        freqs = [self.freq * (1.0 + 0.01 * p) for p in range(3)]
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            if self.env < 1.0:
                blend = 1.0 - self.env
                self.env = 1.0 - (1.0 - self.env) * attack
            else:
                blend = self.env - 1.0
                self.env *= release
            acc = 0.0
            for p in range(3):
                self.phases[p] = advance_phase(self.phases[p], freqs[p], sr)
                acc += math.sin(self.phases[p]) / (p + 1)
            out[i] = acc * 0.5 * (0.6 + 0.4 * blend)
        return out


class BrassVoice(_TonalVoice):
    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.phase = 0.0
        self.lip = 0.0
        self.env = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        attack = 1.0 / (sr * 0.2)
        release = decay_per_sample(0.8, sr)
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            self.phase = advance_phase(self.phase, self.freq, sr)
            self.lip = 0.9 * self.lip + 0.1 * saw(self.phase)
            self.env = min(1.0, self.env + attack)
            out[i] = softclip(self.lip, drive=2.0) * self.env
            self.env *= release
        return out
