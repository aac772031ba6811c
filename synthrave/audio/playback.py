from __future__ import annotations

import logging
import sys
import threading
import time
from array import array
from typing import Any, Callable, Protocol, Sequence

from synthrave.audio.ringbuffer import AudioRingBuffer
from synthrave.audio.speech import SpeechDispatcher
from synthrave.errors import PlaybackError
from synthrave.model.types import SpeechEvent
from synthrave.util.limits import DEFAULT_RING_FRAMES, MIX_BLOCK, SPEECH_POLL_SECONDS

_LOGGER = logging.getLogger("synthrave.audio.playback")

CHANNELS = 2
FRAME_BYTES = 2 * CHANNELS


class PlaybackSink(Protocol):
    def start(self, pcm: array, sample_rate: int) -> None:
        ...

    def is_playing(self) -> bool:
        ...

    def stop(self) -> None:
        ...

    def close(self) -> None:
        ...


def load_sounddevice() -> Any:
    try:
        import sounddevice as sd  # type: ignore[import]
    except (ImportError, OSError) as e:
        raise PlaybackError(f"audio output needs sounddevice and PortAudio ({e}); use --out to write a WAV") from e
    return sd


def _le_bytes(pcm: array) -> bytes:
    if sys.byteorder == "big":
        pcm = array("h", pcm)
        pcm.byteswap()
    return pcm.tobytes()


class _SoundDeviceSink:
    """Raw int16 stereo output stream driven by a PortAudio callback."""

    def __init__(self, *, device: int | str | None = None, backend: Any = None) -> None:
        self.device = device
        self._backend = backend
        self._sd: Any = None
        self._stream: Any = None
        self._done = threading.Event()

    def _open(self, sample_rate: int) -> None:
        self._sd = self._backend or load_sounddevice()
        self._done.clear()
        stream = None
        try:
            stream = self._sd.RawOutputStream(
                samplerate=int(sample_rate),
                channels=CHANNELS,
                dtype="int16",
                device=self.device,
                callback=self._callback,
                finished_callback=self._done.set,
            )
            stream.start()
        except (self._sd.PortAudioError, ValueError, OSError) as e:
            if stream is not None:
                stream.close()
            raise PlaybackError(f"could not open audio output ({e})") from e
        self._stream = stream
        _LOGGER.debug("opened output stream at %d Hz (device=%s)", sample_rate, self.device)

    def _fill(self, outdata: Any, nbytes: int) -> bool:
        raise NotImplementedError

    def _callback(self, outdata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            _LOGGER.debug("output stream status: %s", status)
        if not self._fill(outdata, frames * FRAME_BYTES):
            raise self._sd.CallbackStop

    def is_playing(self) -> bool:
        return self._stream is not None and not self._done.is_set()

    def stop(self) -> None:
        if self._stream is not None:
            self._stream.abort()
            self._done.set()

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        self._done.set()


class BufferSink(_SoundDeviceSink):
    """Plays a fully rendered buffer."""

    def start(self, pcm: array, sample_rate: int) -> None:
        self._data = _le_bytes(pcm)
        self._pos = 0
        self._open(sample_rate)

    def _fill(self, outdata: Any, nbytes: int) -> bool:
        chunk = self._data[self._pos : self._pos + nbytes]
        self._pos += len(chunk)
        outdata[: len(chunk)] = chunk
        if len(chunk) < nbytes:
            outdata[len(chunk) : nbytes] = bytes(nbytes - len(chunk))
            return False
        return True


class StreamingSink(_SoundDeviceSink):
    """Feeds the output stream through a bounded ring buffer.

    A producer thread copies the rendered buffer into the ring in blocks,
    waiting while it is full; the audio callback drains it.
    """

    def __init__(
        self,
        *,
        ring_frames: int = DEFAULT_RING_FRAMES,
        block_frames: int = MIX_BLOCK,
        device: int | str | None = None,
        backend: Any = None,
    ) -> None:
        super().__init__(device=device, backend=backend)
        self.ring = AudioRingBuffer(ring_frames, CHANNELS)
        self.block_frames = int(block_frames)
        self._producer: threading.Thread | None = None
        self._produced = threading.Event()
        self._cancel = threading.Event()

    def start(self, pcm: array, sample_rate: int) -> None:
        self.ring.clear()
        self._produced.clear()
        self._cancel.clear()
        self._pcm = pcm
        # prime the ring so the first callbacks have data
        self._pos = self._feed(0)
        self._producer = threading.Thread(target=self._produce, name="synthrave-ring", daemon=True)
        self._producer.start()
        try:
            self._open(sample_rate)
        except PlaybackError:
            self._cancel.set()
            raise

    def _feed(self, pos: int) -> int:
        total = len(self._pcm) // CHANNELS
        while pos < total:
            end = min(pos + self.block_frames, total)
            wrote = self.ring.write(self._pcm[pos * CHANNELS : end * CHANNELS])
            if wrote == 0:
                break
            pos += wrote
        return pos

    def _produce(self) -> None:
        total = len(self._pcm) // CHANNELS
        pos = self._pos
        while pos < total and not self._cancel.is_set():
            pos = self._feed(pos)
            if pos < total:
                time.sleep(SPEECH_POLL_SECONDS)
        self._produced.set()

    def _fill(self, outdata: Any, nbytes: int) -> bool:
        frames = nbytes // FRAME_BYTES
        got = _le_bytes(self.ring.read(frames))
        outdata[: len(got)] = got
        if len(got) < nbytes:
            outdata[len(got) : nbytes] = bytes(nbytes - len(got))
            # underrun: keep going until the producer is done and the ring is empty
            return not (self._produced.is_set() and self.ring.size() == 0)
        return True

    def close(self) -> None:
        self._cancel.set()
        super().close()
        if self._producer is not None:
            self._producer.join(timeout=1.0)
            self._producer = None


def run_playback(
    pcm: array,
    sample_rate: int,
    speech: Sequence[SpeechEvent],
    *,
    sink: PlaybackSink,
    dispatcher: SpeechDispatcher | None = None,
    poll_seconds: float = SPEECH_POLL_SECONDS,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Play ``pcm`` and fire speech cues by wall clock until both are done.

    Returns the number of speech cues dispatched. The sink is always closed.
    """
    cues = sorted(speech, key=lambda ev: ev.start_ms)
    fired = 0
    sink.start(pcm, sample_rate)
    try:
        start = clock()
        while True:
            elapsed_ms = (clock() - start) * 1000.0
            while fired < len(cues) and cues[fired].start_ms <= elapsed_ms:
                if dispatcher is not None:
                    dispatcher.dispatch(cues[fired])
                fired += 1
            if not sink.is_playing() and fired >= len(cues):
                break
            sleep(poll_seconds)
    finally:
        sink.close()
    _LOGGER.debug("playback finished; %d speech cues fired", fired)
    return fired


def output_device_summary(backend: Any = None) -> str:
    """Name of the default output device; raises PlaybackError if there is none."""
    sd = backend or load_sounddevice()
    try:
        info = sd.query_devices(kind="output")
    except (sd.PortAudioError, ValueError) as e:
        raise PlaybackError(f"no audio output device ({e})") from e
    return str(info.get("name", "unknown")) if isinstance(info, dict) else str(info)
