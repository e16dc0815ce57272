from __future__ import annotations

import argparse
import logging
from collections.abc import Iterable
from pathlib import Path

import numpy as np
from rich.console import Console
from rich.table import Table

from .config import EngineSettings, GenerationOptions
from .console import ProgressBar, render_error
from .engine import MusicEngine
from .logging_utils import configure_logging, debug_enabled, log_exception
from .profiles import GENRE_PROFILES, MOOD_PROFILES
from .schema import DEFAULT_GENRE, DEFAULT_MOOD, INSTRUMENT_FOCUSES

_LOGGER = logging.getLogger("tunesmith.cli")
_CONSOLE = Console()

_SPARK = " ▁▂▃▄▅▆▇█"


def _parse_mix(entries: Iterable[str]) -> dict[str, float]:
    mix: dict[str, float] = {}
    for entry in entries:
        name, sep, level = entry.partition("=")
        if not sep or not name.strip():
            raise argparse.ArgumentTypeError(f"expected NAME=LEVEL, got {entry!r}")
        try:
            mix[name.strip()] = float(level)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"mix level must be a number, got {level!r}") from exc
    return mix


def _sparkline(waveform: Iterable[float]) -> str:
    steps = len(_SPARK) - 1
    return "".join(_SPARK[int(round(min(max(v, 0.0), 100.0) / 100.0 * steps))] for v in waveform)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tunesmith")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Compose and render a track to WAV.")
    render.add_argument("--genre", type=str, default=DEFAULT_GENRE)
    render.add_argument("--mood", type=str, default=DEFAULT_MOOD)
    render.add_argument("--duration", type=float, default=30.0)
    render.add_argument("--tempo", type=int, default=None)
    render.add_argument("--complexity", type=float, default=50.0)
    render.add_argument("--pitch", type=int, default=0)
    render.add_argument("--focus", type=str, default="balanced", help=", ".join(INSTRUMENT_FOCUSES))
    render.add_argument(
        "--mix",
        action="append",
        default=[],
        metavar="NAME=LEVEL",
        help="Instrument level 0-100, e.g. --mix synth=80 --mix bass=40",
    )
    render.add_argument("--seed", type=int, default=None)
    render.add_argument("--output", type=str, default="track.wav")

    sub.add_parser("profiles", help="List genre and mood profiles.")
    return parser


def _print_profiles() -> None:
    genres = Table(title="Genres")
    genres.add_column("genre", no_wrap=True)
    genres.add_column("scales")
    genres.add_column("progressions")
    for name, genre in GENRE_PROFILES.items():
        progressions = ", ".join("-".join(prog) for prog in genre.progressions)
        genres.add_row(name, ", ".join(genre.scales), progressions)
    _CONSOLE.print(genres)

    moods = Table(title="Moods")
    moods.add_column("mood", no_wrap=True)
    for column in ("tempo", "dynamics", "articulation", "harmony"):
        moods.add_column(column)
    for name, mood in MOOD_PROFILES.items():
        low, high = mood.tempo_range
        moods.add_row(name, f"{low}-{high}", mood.dynamics, mood.articulation, mood.harmony_complexity)
    _CONSOLE.print(moods)


def _render(args: argparse.Namespace) -> int:
    bar = ProgressBar(f"Rendering {args.genre} {args.mood}", total=100)
    options = GenerationOptions(
        genre=args.genre,
        mood=args.mood,
        tempo=args.tempo,
        duration=args.duration,
        instrument_focus=args.focus,
        pitch=args.pitch,
        complexity=args.complexity,
        instrument_mix=_parse_mix(args.mix),
        on_progress=bar.update,
    )
    with MusicEngine(settings=EngineSettings.from_env(), seed=args.seed) as engine, bar:
        result = engine.generate(options)
    if result is None:
        _CONSOLE.print("Rendering was cancelled")
        return 1

    path = result.save(Path(args.output))
    meta = result.metadata
    _CONSOLE.print(f"Wrote {meta.title!r} to {path} (sr={result.sample_rate})")
    _CONSOLE.print(f"Tempo {meta.tempo} BPM, {meta.bars} bars, progression {'-'.join(meta.progression)}")
    _CONSOLE.print(f"Peak {float(np.max(np.abs(result.samples), initial=0.0)):.2f}")
    _CONSOLE.print(_sparkline(result.waveform))
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    try:
        parser = build_parser()
        args = parser.parse_args(argv)

        if args.command == "render":
            return _render(args)

        if args.command == "profiles":
            _print_profiles()
            return 0

        parser.print_help()
        return 1
    except Exception as exc:
        _LOGGER.warning("tunesmith CLI failed: %s", exc, exc_info=debug_enabled())
        log_exception("tunesmith CLI", exc)
        render_error("tunesmith CLI", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
