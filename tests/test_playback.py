from __future__ import annotations

from array import array
from types import SimpleNamespace
from typing import Any

import pytest

from synthrave.audio.playback import BufferSink, StreamingSink, run_playback
from synthrave.errors import PlaybackError
from synthrave.model.types import SpeechEvent


class FakeSink:
    def __init__(self, plays_for: int) -> None:
        self.plays_for = plays_for
        self.polls = 0
        self.started: tuple[int, int] | None = None
        self.closed = False

    def start(self, pcm: array, sample_rate: int) -> None:
        self.started = (len(pcm), sample_rate)

    def is_playing(self) -> bool:
        self.polls += 1
        return self.polls <= self.plays_for

    def stop(self) -> None:
        self.plays_for = 0

    def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += 0.01


class RecordingDispatcher:
    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.fired: list[tuple[str, float]] = []

    def dispatch(self, ev: SpeechEvent) -> None:
        self.fired.append((ev.text, self.clock.now))


def test_speech_cues_fire_in_time_order() -> None:
    clock = FakeClock()
    sink = FakeSink(plays_for=3)
    speech = RecordingDispatcher(clock)
    cues = [SpeechEvent(start_ms=50, text="late"), SpeechEvent(start_ms=0, text="now")]

    fired = run_playback(
        array("h", [0] * 20), 8000, cues, sink=sink, dispatcher=speech, clock=clock, sleep=clock.sleep
    )

    assert fired == 2
    assert [t for t, _ in speech.fired] == ["now", "late"]
    assert speech.fired[1][1] >= 0.045
    assert sink.started == (20, 8000)
    assert sink.closed


def test_playback_waits_for_audio_to_finish() -> None:
    clock = FakeClock()
    sink = FakeSink(plays_for=10)
    run_playback(array("h"), 8000, [], sink=sink, clock=clock, sleep=clock.sleep)
    assert sink.polls == 11
    assert sink.closed


class FakeStream:
    def __init__(self, **kw: Any) -> None:
        self.kw = kw
        self.closed = False
        self.fail = kw["samplerate"] == 1

    def start(self) -> None:
        if self.fail:
            raise ValueError("bad rate")

    def close(self) -> None:
        self.closed = True

    def abort(self) -> None:
        pass


class CallbackStop(Exception):
    pass


def _backend() -> SimpleNamespace:
    made: list[FakeStream] = []

    def raw_output_stream(**kw: Any) -> FakeStream:
        s = FakeStream(**kw)
        made.append(s)
        return s

    return SimpleNamespace(
        RawOutputStream=raw_output_stream,
        PortAudioError=RuntimeError,
        CallbackStop=CallbackStop,
        made=made,
    )


def test_buffer_sink_feeds_callback_and_stops_at_end() -> None:
    backend = _backend()
    sink = BufferSink(backend=backend)
    sink.start(array("h", [1, 2, 3, 4, 5, 6]), 8000)
    stream = backend.made[0]
    assert stream.kw["dtype"] == "int16"
    assert stream.kw["channels"] == 2

    out = bytearray(8)
    sink._callback(out, 2, None, None)
    assert bytes(out) == array("h", [1, 2, 3, 4]).tobytes()

    with pytest.raises(CallbackStop):
        sink._callback(out, 2, None, None)
    assert bytes(out[4:]) == bytes(4)
    sink.close()
    assert stream.closed
    assert not sink.is_playing()


def test_failed_stream_is_closed_and_reported() -> None:
    backend = _backend()
    sink = BufferSink(backend=backend)
    with pytest.raises(PlaybackError):
        sink.start(array("h", [0, 0]), 1)
    assert backend.made[0].closed


def test_streaming_sink_drains_through_the_ring() -> None:
    backend = _backend()
    sink = StreamingSink(ring_frames=64, block_frames=16, backend=backend)
    pcm = array("h", range(40))
    sink.start(pcm, 8000)
    try:
        out = bytearray(80)
        sink._callback(out, 20, None, None)
        assert bytes(out) == pcm.tobytes()
        sink._produced.wait(1.0)
        with pytest.raises(CallbackStop):
            sink._callback(out, 4, None, None)
    finally:
        sink.close()
