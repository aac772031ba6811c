from __future__ import annotations

import logging
import subprocess
from typing import Any, Callable

from synthrave.model.types import SpeechEvent

_LOGGER = logging.getLogger("synthrave.audio.speech")

Launcher = Callable[..., Any]


def speech_argv(ev: SpeechEvent, program: str) -> list[str]:
    """``[program, -v voice?, option flags..., text]``"""
    argv = [program]
    if ev.voice:
        argv += ["-v", ev.voice]
    argv += list(ev.args)
    argv.append(ev.text)
    return argv


class SpeechDispatcher:
    """Starts one speech process per cue and never waits on it.

    Launch failures are logged at debug level and never reach the caller.
    Finished processes are reaped on later dispatches and on shutdown.
    """

    def __init__(self, program: str = "espeak", *, launcher: Launcher | None = None) -> None:
        self.program = program
        self._launch = launcher or subprocess.Popen
        self._running: list[Any] = []

    def dispatch(self, ev: SpeechEvent) -> None:
        if not self.program or not ev.text:
            return
        self.reap()
        argv = speech_argv(ev, self.program)
        _LOGGER.debug("speech at %d ms: %s", ev.start_ms, argv)
        try:
            proc = self._launch(argv, stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as e:
            _LOGGER.debug("speech program failed to launch (%s): %s", argv[0], e)
            return
        self._running.append(proc)

    def reap(self) -> int:
        """Drop finished processes; returns how many are still speaking."""
        self._running = [p for p in self._running if p.poll() is None]
        return len(self._running)

    def shutdown(self, *, wait: bool = False) -> None:
        # without wait, utterances still in progress keep speaking after we return
        if wait:
            for p in self._running:
                p.wait()
        self.reap()

    def __enter__(self) -> "SpeechDispatcher":
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()
