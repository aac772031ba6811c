from __future__ import annotations

import math

from synthrave.instruments.base import BlockConfig, Voice, advance_phase, decay_per_sample, lerp
from synthrave.model.types import NamedInstrument


class KickVoice(Voice):
    """Pitch-swept sine body with a short noise click."""

    spec: NamedInstrument

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.start_freq = spec.freq if spec.freq > 0 else 140.0
        self.end_freq = spec.end_freq if spec.end_freq > 0 else self.start_freq * 0.35
        self.phase = 0.0
        self.sweep_pos = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        sweep_rate = 1.0 / max(self.duration_s * sr, 1.0)
        # ~2.5 ms ramp to remove the onset click
        attack_samples = max(sr * 0.0025, 1.0)
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            self.sweep_pos = min(1.0, self.sweep_pos + sweep_rate)
            freq = lerp(self.start_freq, self.end_freq, self.sweep_pos)
            self.phase = advance_phase(self.phase, freq, sr)
            body = math.sin(self.phase) * math.exp(-4.0 * self.sweep_pos)
            click_env = max(0.0, 1.0 - self.sweep_pos * 8.0)
            click = click_env * (self.noise.next() * 0.4 + 0.6)
            attack = min((self.rendered + i) / attack_samples, 1.0)
            out[i] = (body + click * 0.08) * attack
        return out


class SnareVoice(Voice):
    spec: NamedInstrument

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.body_freq = spec.freq if spec.freq > 0 else 200.0
        self.noise_prev = 0.5
        self.env_noise = 1.0
        self.env_body = 1.0
        self.body_phase = 0.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        noise_decay = decay_per_sample(max(self.duration_s * 0.6, 0.01), sr)
        body_decay = decay_per_sample(max(self.duration_s * 0.3, 0.01), sr)
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            n = self.noise.next()
            hp = n - self.noise_prev
            self.noise_prev = n * 0.6 + self.noise_prev * 0.4
            self.body_phase = advance_phase(self.body_phase, self.body_freq, sr)
            body = math.sin(self.body_phase)
            out[i] = hp * 0.5 * self.env_noise * 0.8 + body * self.env_body * 0.4
            self.env_noise *= noise_decay
            self.env_body *= body_decay
        return out


class HatVoice(Voice):
    """High-passed noise plus two inharmonic partials, 20 ms decay."""

    spec: NamedInstrument

    def __init__(self, spec: NamedInstrument, **kw: int) -> None:
        super().__init__(spec, **kw)
        self.metal_freq = spec.freq if spec.freq > 0 else 8000.0
        self.noise_prev = 0.0
        self.metallic_phase = 0.0
        self.env = 1.0

    def process(self, cfg: BlockConfig) -> list[float]:
        sr = cfg.sample_rate
        decay = decay_per_sample(0.02, sr)
        out = [0.0] * cfg.frames
        for i in range(cfg.frames):
            n = self.noise.next()
            hp = n - 0.6 * self.noise_prev
            self.noise_prev = n
            self.metallic_phase = advance_phase(self.metallic_phase, self.metal_freq, sr)
            metallic = math.sin(self.metallic_phase) * 0.3 + math.sin(self.metallic_phase * 1.5) * 0.2
            out[i] = (hp * 0.7 + metallic) * self.env
            self.env *= decay
        return out
