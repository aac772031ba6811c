from __future__ import annotations

import subprocess
import sys
import time
from typing import Any

from synthrave.audio.speech import SpeechDispatcher, speech_argv
from synthrave.model.types import SpeechEvent
from synthrave.sequence.speech import is_say_row, parse_say


def test_say_rows_are_case_insensitive() -> None:
    assert is_say_row("SAY:hi")
    assert is_say_row("say hello")
    assert not is_say_row("SA")


def test_parse_say_voice_options_and_text() -> None:
    ev = parse_say("SAY @en;s=140;p;variant=+f3:Good evening", 44100, 44100)
    assert ev == SpeechEvent(start_ms=1000, text="Good evening", voice="en+f3", args=("-s", "140", "-p", "1"))


def test_parse_say_text_option_wins() -> None:
    ev = parse_say("SAY;text=override:ignored", 0, 8000)
    assert ev is not None
    assert ev.text == "override"
    assert ev.voice is None


def test_parse_say_without_text_is_nothing() -> None:
    assert parse_say("SAY @en:", 0, 8000) is None
    assert parse_say("SAY", 0, 8000) is None


def test_speech_argv_order() -> None:
    ev = SpeechEvent(start_ms=0, text="hi", voice="en", args=("-s", "120"))
    assert speech_argv(ev, "espeak") == ["espeak", "-v", "en", "-s", "120", "hi"]
    assert speech_argv(SpeechEvent(start_ms=0, text="hi"), "say") == ["say", "hi"]


class FakeProcess:
    def __init__(self, argv: list[str]) -> None:
        self.argv = argv
        self.returncode: int | None = None
        self.waited = False

    def poll(self) -> int | None:
        return self.returncode

    def wait(self) -> int:
        self.waited = True
        self.returncode = 0
        return 0


def test_dispatcher_launches_program_and_swallows_launch_errors() -> None:
    launched: list[FakeProcess] = []

    def launcher(argv: list[str], **kw: Any) -> FakeProcess:
        assert kw["stdout"] is subprocess.DEVNULL
        assert kw["stderr"] is subprocess.DEVNULL
        if argv[-1] == "boom":
            raise FileNotFoundError(argv[0])
        proc = FakeProcess(argv)
        launched.append(proc)
        return proc

    with SpeechDispatcher("espeak", launcher=launcher) as d:
        d.dispatch(SpeechEvent(start_ms=0, text="boom"))
        d.dispatch(SpeechEvent(start_ms=10, text="ok", voice="en"))
        d.dispatch(SpeechEvent(start_ms=20, text=""))
    assert [p.argv for p in launched] == [["espeak", "-v", "en", "ok"]]
    # leaving the block does not wait for speech to finish
    assert not launched[0].waited


def test_dispatcher_without_program_is_silent() -> None:
    def launcher(argv: list[str], **kw: Any) -> FakeProcess:
        raise AssertionError("should not launch")

    SpeechDispatcher("", launcher=launcher).dispatch(SpeechEvent(start_ms=0, text="hi"))


def test_overlapping_cues_all_start_immediately() -> None:
    # each utterance runs for half a second; none may hold up the next cue
    code = "import time; time.sleep(0.5)"
    d = SpeechDispatcher(sys.executable)
    starts: list[float] = []
    t0 = time.monotonic()
    try:
        for i in range(6):
            d.dispatch(SpeechEvent(start_ms=0, text=f"cue{i}", args=("-c", code)))
            starts.append(time.monotonic() - t0)
        assert max(starts) < 0.4
        assert d.reap() == 6
    finally:
        d.shutdown(wait=True)
    assert d.reap() == 0


def test_reap_drops_finished_processes() -> None:
    procs: list[FakeProcess] = []

    def launcher(argv: list[str], **kw: Any) -> FakeProcess:
        procs.append(FakeProcess(argv))
        return procs[-1]

    d = SpeechDispatcher("espeak", launcher=launcher)
    for text in ("a", "b", "c"):
        d.dispatch(SpeechEvent(start_ms=0, text=text))
    procs[1].returncode = 0
    assert d.reap() == 2
    d.shutdown(wait=True)
    assert procs[0].waited and procs[2].waited
    assert not procs[1].waited
