"""Command-line interface for the cue reveal engine.

WHY: Authors need a quick way to check a chapter without a browser:
which cues parse, where they fire while scrolling, what the reader sees
at a given progress, and whether every effect name and parameter is
valid. The CLI wires the whole pipeline (load, normalize, simulated
scroll, effect dispatch, formatting, saving) behind a single command.

HOW: Uses argparse to accept a chapter file, a list of progress samples
(or a step count for an even sweep from 0 to 1), the viewport window
size, the refire policy, and an output format. Every sample is fed to a
RevealSession whose EffectBus is watched by an EffectDispatcher; fired
and rejected cues are reported on stderr. The render of the last sample
goes to stdout, or to ``{stem}{suffix}`` in --output-dir.

RULES:
- Positional argument: chapter text file (UTF-8)
- --progress may be repeated; otherwise --steps N sweeps 0, 1/N, ..., 1
- --format: one formatter key (default: plain_text)
- Output naming: {stem}{suffix}, numeric suffix for conflicts (-reveal-2.html)
- Status output goes to stderr (not stdout)
- Errors print "Error: ..." to stderr and exit with status 1
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from cue_reveal.config import (
    HYPHENATE,
    KNOWN_CUE_TYPES,
    REARM_ON_RETREAT,
    REVEAL_WINDOW_LINES,
)
from cue_reveal.core.session import RevealSession, RevealUpdate, normalize_content
from cue_reveal.core.stats import text_stats
from cue_reveal.effects import EffectBus, EffectDispatcher, RecordingEffectRenderer
from cue_reveal.formatters import FORMATTERS
from cue_reveal.formatters.base import FormatterOutput

DEFAULT_FORMAT = "plain_text"
DEFAULT_STEPS = 20


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the render can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _fail(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _progress_samples(progress: Optional[List[float]], steps: int) -> List[float]:
    """Progress values to feed, in order.

    Explicit --progress values win; otherwise an even sweep of ``steps``
    intervals from 0 to 1 inclusive.
    """
    if progress:
        return list(progress)
    if steps < 1:
        raise ValueError("--steps must be at least 1, got {}".format(steps))
    return [i / steps for i in range(steps + 1)]


def _resolve_output_path(
    stem: str,
    suffix: str,
    output_dir: Path,
) -> Path:
    """Resolve the output file path, adding numeric suffix on conflict.

    RULES:
    - First attempt: {stem}{suffix} (e.g. chapter1-reveal.html)
    - Conflict: split suffix at last dot, insert counter before extension
      (e.g. chapter1-reveal-2.html)
    - Counter starts at 2 and increments

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx > 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _describe_params(params: dict) -> str:
    if not params:
        return ""
    return " ({})".format(", ".join("{}={}".format(k, v) for k, v in params.items()))


def _run(args: argparse.Namespace) -> None:
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _fail("File not found: {}".format(input_path))

    output_dir: Optional[Path] = None
    if args.output_dir:
        output_dir = Path(args.output_dir).resolve()
        if not output_dir.is_dir():
            _fail("Output directory does not exist: {}".format(output_dir))

    if args.format not in FORMATTERS:
        available = ", ".join(sorted(FORMATTERS.keys()))
        _fail("Unknown format '{}'. Available formats: {}".format(args.format, available))

    try:
        raw = input_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        _fail("Cannot decode {} as UTF-8: {}".format(input_path.name, e))
    text = normalize_content(raw)

    try:
        samples = _progress_samples(args.progress, args.steps)
    except ValueError as e:
        _fail(str(e))

    bus = EffectBus()
    recorder = RecordingEffectRenderer()
    dispatcher = EffectDispatcher()
    for cue_type in sorted(KNOWN_CUE_TYPES):
        dispatcher.register(cue_type, recorder)
    dispatcher.attach(bus)

    try:
        session = RevealSession(
            text,
            window_lines=args.window,
            rearm_on_retreat=args.rearm,
            bus=bus,
            hyphenate=args.hyphenate,
        )
    except ValueError as e:
        _fail(str(e))

    _status("Loaded {}: {} visible chars, {} cues, {} lines".format(
        input_path.name,
        session.total_visible_length,
        len(session.cues),
        session.engine.line_index.line_count,
    ))

    if args.stats:
        stats = text_stats(text)
        _status("  {} words, {} characters ({} with spaces), {} paragraphs, "
                "{} sentences, ~{} min read".format(
                    stats.words,
                    stats.characters,
                    stats.characters_with_spaces,
                    stats.paragraphs,
                    stats.sentences,
                    stats.reading_minutes,
                ))

    update: Optional[RevealUpdate] = None
    for progress in samples:
        rejected_before = len(dispatcher.rejected)
        update = session.update(progress)
        for event in update.fired:
            _status("  [{:6.1%}] fired {}".format(update.state.progress, event.cue.label))
        for event, error in dispatcher.rejected[rejected_before:]:
            _status("  [{:6.1%}] rejected {}: {}".format(
                update.state.progress, event.cue.original_text, error,
            ))

    _status("Played {} effect(s), rejected {}".format(
        len(recorder.history), len(dispatcher.rejected),
    ))
    for command in recorder.history:
        _status("  {}: {}{}".format(
            command.cue_type.upper(), command.effect, _describe_params(command.params),
        ))

    formatter = FORMATTERS[args.format]()
    outputs = formatter.format(update)
    for output in outputs:
        if output_dir is None:
            sys.stdout.write(output.content)
            sys.stdout.flush()
        else:
            saved = _save_output(output, input_path.stem, output_dir)
            _status("Saved: {}".format(saved.name))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable; tests can inspect the parser without running anything.
    """
    parser = argparse.ArgumentParser(
        prog="cue_reveal",
        description="Simulate a progressive reveal of a cue-annotated chapter, "
                    "report fired effects, and render the final viewport.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the chapter text file (UTF-8).",
    )

    parser.add_argument(
        "--progress",
        type=float,
        action="append",
        default=None,
        help="Progress sample in [0, 1]. Can be specified multiple times; "
             "samples are fed in the order given.",
    )

    parser.add_argument(
        "--steps",
        type=int,
        default=DEFAULT_STEPS,
        help="Number of even steps from 0 to 1 when no --progress is given "
             "(default: %(default)s).",
    )

    parser.add_argument(
        "--window",
        type=int,
        default=REVEAL_WINDOW_LINES,
        help="Number of lines in the viewport window (default: %(default)s).",
    )

    parser.add_argument(
        "--format",
        default=DEFAULT_FORMAT,
        help="Output format for the final render. "
             "Available: {}. Default: %(default)s.".format(", ".join(sorted(FORMATTERS.keys()))),
    )

    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save the render into (default: print to stdout).",
    )

    parser.add_argument(
        "--rearm",
        action=argparse.BooleanOptionalAction,
        default=REARM_ON_RETREAT,
        help="Re-arm cues when the reveal moves back past them (default: %(default)s).",
    )

    parser.add_argument(
        "--hyphenate",
        action=argparse.BooleanOptionalAction,
        default=HYPHENATE,
        help="Insert soft hyphens into rendered text (default: %(default)s).",
    )

    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print reading statistics for the chapter.",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )
    _run(args)


if __name__ == "__main__":
    main()
