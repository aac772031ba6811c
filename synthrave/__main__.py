from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
from dataclasses import dataclass, replace
from pathlib import Path

from synthrave.audio.samples import SampleCache
from synthrave.errors import PlaybackError, SynthraveError
from synthrave.model.types import SequenceDocument
from synthrave.util.config import AppConfig, load_config

_LOGGER = logging.getLogger("synthrave.cli")


@dataclass
class DoctorResult:
    ok: bool
    notes: list[str]


def _which(cmd: str) -> str | None:
    return shutil.which(cmd)


def _doctor(espeak: str = "espeak") -> DoctorResult:
    from synthrave.audio.playback import load_sounddevice, output_device_summary

    notes: list[str] = []
    ok = True

    try:
        sd = load_sounddevice()
        notes.append(f"sounddevice: OK ({getattr(sd, '__version__', 'unknown')})")
        try:
            notes.append(f"output device: OK ({output_device_summary(sd)})")
        except PlaybackError as e:
            ok = False
            notes.append(f"output device: MISSING ({e})")
    except PlaybackError as e:
        ok = False
        notes.append(f"sounddevice: MISSING ({e})")

    speaker = _which(espeak)
    if speaker:
        notes.append(f"{espeak}: OK ({speaker})")
    else:
        # speech is optional; SAY rows are skipped silently without it
        notes.append(f"{espeak}: MISSING (needed for SAY rows)")

    notes.append(f"python: {sys.version.split()[0]}")
    notes.append(f"platform: {sys.platform}")

    return DoctorResult(ok=ok, notes=notes)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="synthrave",
        add_help=True,
        formatter_class=argparse.RawTextHelpFormatter,
        description=(
            "synthrave: tracker-style sequencer with procedural instruments\n\n"
            "  synthrave [options] token [token ...]\n"
            "  synthrave -f FILE [options]\n"
            "  synthrave -m FILE.mid [options]\n"
        ),
    )

    p.add_argument("--version", action="store_true", help="Print version and exit.")
    p.add_argument("--doctor", action="store_true", help="Check audio output and speech program availability.")
    p.add_argument("--verbose", action="store_true", help="Debug logging.")

    p.add_argument("-sr", "--sample-rate", dest="sample_rate", type=int, default=None, help="Sample rate (Hz).")
    p.add_argument("-g", "--gain", type=float, default=None, help="Master gain (>= 0).")
    p.add_argument("-l", "--length", type=int, default=None, help="Default note duration (ms).")
    p.add_argument("--fade", type=int, default=None, help="Fade in/out of the whole render (ms).")
    p.add_argument("-f", "--file", default=None, help="Sequence file.")
    p.add_argument("-m", "--midi", default=None, help="Standard MIDI file.")
    p.add_argument("--espeak", default=None, help="Speech program for SAY rows.")
    p.add_argument("--config", default=None, help="Config file (.yaml or .json).")
    p.add_argument("--out", default=None, help="Write a 16-bit stereo WAV instead of playing.")
    p.add_argument("--dump", default=None, help="Write the compiled timeline as JSON.")
    p.add_argument("--stream", action="store_true", default=None, help="Play through the streaming ring buffer.")

    p.add_argument("tokens", nargs="*", help="Sequence tokens, one row each (e.g. A4:250 C5~C6:500 r:100).")
    return p


def resolve_config(args: argparse.Namespace) -> AppConfig:
    """Config file values, overridden by any flags given on the command line."""
    cfg = load_config(Path(args.config).expanduser() if args.config else None)
    overrides = {
        "sample_rate": args.sample_rate,
        "gain": args.gain,
        "default_duration_ms": args.length,
        "fade_ms": args.fade,
        "espeak": args.espeak,
        "stream": args.stream,
    }
    cfg = replace(cfg, **{k: v for k, v in overrides.items() if v is not None})
    cfg.validate()
    return cfg


def compile_input(args: argparse.Namespace, cfg: AppConfig, samples: SampleCache) -> SequenceDocument:
    opts = cfg.sequence_options()
    if args.midi:
        from synthrave.io.midi import load_midi_document

        return load_midi_document(args.midi, opts)
    if args.file:
        from synthrave.sequence import load_sequence_file

        return load_sequence_file(args.file, opts, samples)
    if args.tokens:
        from synthrave.sequence import build_from_tokens

        return build_from_tokens(args.tokens, opts, samples, base_dir=Path.cwd())
    raise SystemExit("ERROR: nothing to play (give tokens, -f FILE or -m FILE.mid)")


def _write_dump(doc: SequenceDocument, path: str) -> Path:
    out = Path(path).expanduser()
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(doc.to_dict(), indent=2) + "\n", encoding="utf-8")
    return out


def run(args: argparse.Namespace) -> None:
    from synthrave.audio.mixer import mix_document

    cfg = resolve_config(args)
    with SampleCache() as samples:
        doc = compile_input(args, cfg, samples)
        _LOGGER.debug("compiled %d tones, %d speech cues", len(doc.tones), len(doc.speech))

        if args.dump:
            print(f"wrote {_write_dump(doc, args.dump)}")
            if not args.out:
                return

        mix = mix_document(doc, cfg.sequence_options(), gain=cfg.gain, block_frames=cfg.block_frames)

        if args.out:
            from synthrave.audio.wav import write_wav_pcm16

            out = Path(args.out).expanduser()
            out.parent.mkdir(parents=True, exist_ok=True)
            write_wav_pcm16(out, mix.pcm, sample_rate=mix.sample_rate, channels=2)
            if doc.speech:
                _LOGGER.warning("%d speech cue(s) are not rendered to WAV", len(doc.speech))
            print(f"wrote {out} ({mix.duration_seconds:.2f}s)")
            return

        from synthrave.audio.playback import BufferSink, StreamingSink, run_playback
        from synthrave.audio.speech import SpeechDispatcher

        if cfg.stream:
            sink = StreamingSink(ring_frames=cfg.ring_frames, block_frames=cfg.block_frames)
        else:
            sink = BufferSink()
        with SpeechDispatcher(cfg.espeak) as speech:
            run_playback(mix.pcm, mix.sample_rate, doc.speech, sink=sink, dispatcher=speech)


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.version:
        try:
            from importlib.metadata import version

            v = version("synthrave")
        except Exception:
            v = "0.0.0"
        print(f"synthrave {v}")
        return

    if args.doctor:
        res = _doctor(args.espeak or "espeak")
        status = "OK" if res.ok else "MISSING_DEPS"
        print(f"synthrave doctor: {status}")
        for n in res.notes:
            print(f"- {n}")
        if not res.ok:
            print("\nLinux (Debian/Ubuntu): sudo apt-get install libportaudio2 espeak")
            print("macOS: brew install portaudio espeak")
        return

    try:
        run(args)
    except (SynthraveError, ValueError) as e:
        raise SystemExit(f"ERROR: {e}") from e


if __name__ == "__main__":
    main()
