"""Command line interface for the RSVP reader."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from . import __version__
from .cache import ResultCache
from .config import HIGHLIGHT_COLORS, ReaderConfig, load_config, save_config
from .ingest.sources import extract_text, is_markdown
from .pacing.params import PacingParams
from .playback import PlaybackState
from .scoring import PROVIDERS, estimate_scoring_cost
from .session import PreparationOptions, PreparedSession, SessionPreparer

LOGGER = logging.getLogger(__name__)

DEMO_WPM = 400
DEMO_MAX_ITEMS = 30


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rsvp-read",
        description=(
            "Read a document one word at a time, optionally slowing down on words "
            "a language model finds surprising."
        ),
    )
    parser.add_argument("source", nargs="?", help="Text, Markdown, HTML, PDF or EPUB file, a URL, or - for stdin")
    parser.add_argument("--wpm", type=int, help="Reading speed in words per minute (default: saved setting)")
    parser.add_argument(
        "--intensity",
        type=float,
        help="How strongly surprising words are slowed down, 0.0-2.0 (default: saved setting)",
    )
    parser.add_argument("--adaptive", action="store_true", help="Pace words by language model surprisal")
    parser.add_argument("--provider", choices=sorted(PROVIDERS), help="LLM provider (default: first API key found)")
    parser.add_argument("--model", help="Model used for comprehension questions")
    parser.add_argument(
        "--kernel",
        help="Comma separated smoothing weights of odd length (e.g. 0.3,1,0.3)",
    )
    parser.add_argument("--check", action="store_true", help="Ask comprehension questions while reading")
    parser.add_argument("--questions", type=int, default=10, help="Number of comprehension questions")
    parser.add_argument(
        "--frequency",
        type=int,
        help="Minimum number of words between questions (default: evenly spaced)",
    )
    parser.add_argument("--color", choices=HIGHLIGHT_COLORS, help="Colour of the focus letter")
    parser.add_argument(
        "--demo",
        action="store_true",
        help=f"Quick preview: {DEMO_WPM} WPM, first {DEMO_MAX_ITEMS} words, settings not saved",
    )
    parser.add_argument("--no-cache", action="store_true", help="Always rescore instead of using cached scores")
    parser.add_argument("--clear-cache", action="store_true", help="Delete cached scores and exit")
    parser.add_argument("--cache-dir", type=Path, help="Directory for cached surprisal scores")
    parser.add_argument(
        "--print-schedule",
        action="store_true",
        help="Print each word with its display time in milliseconds instead of opening a window",
    )
    parser.add_argument(
        "--estimate-cost",
        action="store_true",
        help="Print the estimated cost of adaptive scoring and exit",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print warnings and errors")
    parser.add_argument("--version", action="version", version=f"rsvp-read {__version__}")
    return parser


def configure_logging(verbose: bool, quiet: bool) -> None:
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def parse_kernel(value: str) -> Tuple[int, Tuple[float, ...]]:
    """Return ``(radius, weights)`` for a comma separated weight list."""

    try:
        weights = tuple(float(part) for part in value.split(",") if part.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid kernel weights: {value}") from exc
    if len(weights) % 2 == 0:
        raise ValueError(f"Kernel must have an odd number of weights (got {len(weights)})")
    return len(weights) // 2, weights


def create_params(namespace: argparse.Namespace, config: ReaderConfig) -> PacingParams:
    if namespace.wpm is not None:
        wpm = namespace.wpm
    elif namespace.demo:
        wpm = DEMO_WPM
    else:
        wpm = config.wpm
    gamma = config.gamma if namespace.intensity is None else namespace.intensity
    changes = {"target_wpm": wpm, "gamma": gamma}
    if namespace.kernel:
        radius, weights = parse_kernel(namespace.kernel)
        changes.update(kernel_radius=radius, kernel_weights=weights)
    return PacingParams(**changes)


def create_options(namespace: argparse.Namespace, params: PacingParams) -> PreparationOptions:
    return PreparationOptions(
        source=namespace.source,
        params=params,
        adaptive=namespace.adaptive,
        provider=namespace.provider,
        model=namespace.model,
        use_cache=not namespace.no_cache,
        question_count=namespace.questions if namespace.check else 0,
        question_frequency=namespace.frequency,
    )


def report_progress(done: int, total: int) -> None:
    if done < total:
        LOGGER.debug("Scoring chunk %d/%d", done + 1, total)
    else:
        LOGGER.info("Scored %d chunks", total)


def format_schedule(session: PreparedSession, limit: int = 0) -> List[str]:
    pacing = session.pacing
    count = len(pacing.items) if limit <= 0 else min(limit, len(pacing.items))
    return [f"{pacing.items[index].text}\t{pacing.durations[index]}" for index in range(count)]


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        configure_logging(args.verbose, args.quiet)
        cache = ResultCache(args.cache_dir)

        if args.clear_cache:
            removed = cache.clear()
            print(f"Removed {removed} cached entries from {cache.base_dir}")
            if not args.source:
                return 0
        if not args.source:
            parser.error("a source file, URL or - is required")

        config = load_config()
        if args.color:
            config.highlight_color = args.color
        params = create_params(args, config)
        preparer = SessionPreparer(cache=cache)

        if args.estimate_cost:
            document = extract_text(args.source)
            text = preparer.clean_text(document.text, markdown=is_markdown(args.source))
            estimate = estimate_scoring_cost(text, args.provider, params)
            print(f"Model: {estimate.model}")
            print(f"Chunks: {estimate.chunks}")
            print(f"Tokens: ~{estimate.input_tokens} in / ~{estimate.output_tokens} out")
            print(f"Estimated cost: ${estimate.cost_usd:.4f}")
            return 0

        session = preparer.prepare(create_options(args, params), on_progress=report_progress)
        max_items = DEMO_MAX_ITEMS if args.demo else 0

        if args.print_schedule:
            for line in format_schedule(session, max_items):
                print(line)
            return 0

        def remember(state: PlaybackState) -> None:
            config.wpm = state.wpm
            config.gamma = state.gamma
            save_config(config)

        from .app import run_reader

        result = run_reader(
            session,
            config,
            max_items=max_items,
            on_params_changed=None if args.demo else remember,
        )
    except Exception as exc:  # pragma: no cover - CLI safety net
        logging.getLogger(__name__).error(str(exc))
        return 1

    if result is not None:
        print(f"Score: {result.score}/{result.total} ({result.percentage}%)")
        print(f"Time: {result.elapsed_seconds:.1f}s")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
