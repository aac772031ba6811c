from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from synthrave.errors import ConfigError
from synthrave.model.types import SequenceOptions
from synthrave.util.limits import DEFAULT_RING_FRAMES, MIX_BLOCK

CONFIG_ENV = "SYNTHRAVE_CONFIG"


def default_config_dir() -> Path:
    return Path.home() / ".config" / "synthrave"


def default_config_path() -> Path:
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env).expanduser()
    return default_config_dir() / "config.yaml"


@dataclass
class AppConfig:
    sample_rate: int = 44100
    default_duration_ms: int = 120
    fade_ms: int = 8
    gain: float = 0.3
    espeak: str = "espeak"
    stream: bool = False
    ring_frames: int = DEFAULT_RING_FRAMES
    block_frames: int = MIX_BLOCK

    def sequence_options(self) -> SequenceOptions:
        return SequenceOptions(
            sample_rate=self.sample_rate,
            default_duration_ms=self.default_duration_ms,
            fade_ms=self.fade_ms,
        )

    def validate(self) -> None:
        if self.sample_rate <= 0:
            raise ConfigError(f"invalid sample_rate: {self.sample_rate}")
        if self.default_duration_ms <= 0:
            raise ConfigError(f"invalid default_duration_ms: {self.default_duration_ms}")
        if self.fade_ms < 0:
            raise ConfigError(f"invalid fade_ms: {self.fade_ms}")
        if self.gain < 0:
            raise ConfigError(f"invalid gain: {self.gain}")
        if self.ring_frames <= 0 or self.block_frames <= 0:
            raise ConfigError("ring_frames and block_frames must be > 0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "sample_rate": self.sample_rate,
            "default_duration_ms": self.default_duration_ms,
            "fade_ms": self.fade_ms,
            "gain": self.gain,
            "espeak": self.espeak,
            "stream": self.stream,
            "ring_frames": self.ring_frames,
            "block_frames": self.block_frames,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "AppConfig":
        base = AppConfig()
        try:
            cfg = AppConfig(
                sample_rate=int(d.get("sample_rate", base.sample_rate)),
                default_duration_ms=int(d.get("default_duration_ms", base.default_duration_ms)),
                fade_ms=int(d.get("fade_ms", base.fade_ms)),
                gain=float(d.get("gain", base.gain)),
                espeak=str(d.get("espeak") or base.espeak),
                stream=bool(d.get("stream", base.stream)),
                ring_frames=int(d.get("ring_frames", base.ring_frames)),
                block_frames=int(d.get("block_frames", base.block_frames)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid config value ({e})") from e
        cfg.validate()
        return cfg


def _is_json(p: Path) -> bool:
    return p.suffix.lower() == ".json"


def load_config(path: Path | None = None) -> AppConfig:
    p = path or default_config_path()
    if not p.exists():
        return AppConfig()
    text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(text) if _is_json(p) else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"could not parse config {p} ({e})") from e
    if data is None:
        return AppConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"config {p} must be a mapping")
    return AppConfig.from_dict(data)


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    p = path or default_config_path()
    p.parent.mkdir(parents=True, exist_ok=True)
    if _is_json(p):
        p.write_text(json.dumps(cfg.to_dict(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    else:
        p.write_text(yaml.safe_dump(cfg.to_dict(), sort_keys=True), encoding="utf-8")
    return p
