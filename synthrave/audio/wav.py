from __future__ import annotations

import sys
import wave
from array import array
from pathlib import Path

from synthrave.errors import SampleLoadError
from synthrave.model.types import SampleData


def _i16(x: float) -> int:
    v = max(-1.0, min(1.0, float(x)))
    return int(round(v * 32767.0))


def write_wav_pcm16(path: Path, pcm: array, *, sample_rate: int, channels: int = 2) -> None:
    """Write interleaved signed 16-bit frames."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = array("h", pcm)
    if sys.byteorder == "big":
        data.byteswap()
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(int(channels))
        wf.setsampwidth(2)
        wf.setframerate(int(sample_rate))
        wf.writeframes(data.tobytes())


def write_wav_stereo(path: Path, left: list[float], right: list[float], *, sample_rate: int) -> None:
    n = max(len(left), len(right))
    pcm = array("h", bytes(4 * n))
    for i in range(n):
        pcm[2 * i] = _i16(left[i]) if i < len(left) else 0
        pcm[2 * i + 1] = _i16(right[i]) if i < len(right) else 0
    write_wav_pcm16(path, pcm, sample_rate=sample_rate, channels=2)


def write_wav_mono(path: Path, samples: list[float], *, sample_rate: int) -> None:
    pcm = array("h", (_i16(x) for x in samples))
    write_wav_pcm16(path, pcm, sample_rate=sample_rate, channels=1)


def read_wav_pcm16(path: Path) -> SampleData:
    """Decode a 16-bit PCM WAV with one or two channels."""
    try:
        with wave.open(str(path), "rb") as wf:
            channels = wf.getnchannels()
            width = wf.getsampwidth()
            sr = wf.getframerate()
            raw = wf.readframes(wf.getnframes())
    except FileNotFoundError as e:
        raise SampleLoadError("sample not found", path=path) from e
    except (wave.Error, EOFError, OSError) as e:
        raise SampleLoadError(f"could not read wav ({e})", path=path) from e

    if width != 2 or channels not in (1, 2):
        raise SampleLoadError(
            f"unsupported wav format ({channels} ch, {width * 8}-bit); need 16-bit mono or stereo",
            path=path,
        )
    frames = array("h")
    frames.frombytes(raw[: len(raw) - (len(raw) % (2 * channels))])
    if sys.byteorder == "big":
        frames.byteswap()
    if len(frames) == 0:
        raise SampleLoadError("wav has no audio frames", path=path)

    decoded = [array("f", (v / 32768.0 for v in frames[c::channels])) for c in range(channels)]
    return SampleData(channels=decoded, sample_rate=int(sr))
