from __future__ import annotations

import logging
from pathlib import Path

from synthrave.audio.wav import read_wav_pcm16
from synthrave.model.types import SampleData

_LOGGER = logging.getLogger("synthrave.audio.samples")


class SampleCache:
    """Path-keyed cache of decoded WAV samples.

    Entries are loaded on first use and shared by reference. Use as a context
    manager (or call :meth:`clear`) to release them deterministically.
    """

    def __init__(self, base_dir: Path | None = None) -> None:
        self.base_dir = base_dir
        self._entries: dict[Path, SampleData] = {}

    def resolve(self, path: str | Path, base_dir: Path | None = None) -> Path:
        p = Path(str(path).strip()).expanduser()
        root = base_dir or self.base_dir
        if not p.is_absolute() and root is not None:
            p = root / p
        return p

    def get(self, path: str | Path, base_dir: Path | None = None) -> SampleData:
        key = self.resolve(path, base_dir)
        data = self._entries.get(key)
        if data is None:
            data = read_wav_pcm16(key)
            self._entries[key] = data
            _LOGGER.debug(
                "loaded sample %s (%d ch, %d Hz, %d frames)", key, data.channel_count, data.sample_rate, data.length
            )
        return data

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        return self.resolve(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __enter__(self) -> "SampleCache":
        return self

    def __exit__(self, *exc: object) -> None:
        self.clear()
