"""Command line host for browsing leaderboards and generating histograms.

Aggregation runs can be interrupted with Ctrl-C; progress is checkpointed after
every page, so running the same command again resumes where it stopped.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
from pathlib import Path
from typing import List, Optional, Sequence

from .core.config import Settings, get_settings
from .core.errors import (
    CheckpointWriteError,
    CorruptHistogramStateError,
    DirectoryFetchError,
    LeaderboardNotFoundError,
)
from .schemas import HistogramState
from .services import browse_service
from .services.aggregation_service import AggregationOutcome, generate_all, generate_histogram
from .services.histogram_store import HistogramStore
from .services.steam_client import SteamStatsClient

logger = logging.getLogger("lbscraper")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNAVAILABLE = 2


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="lbscraper", description="Build histograms of Steam leaderboards")
    parser.add_argument("--game", help="Steam game identifier (defaults to LBSCRAPER_GAME)")
    parser.add_argument("--output-dir", help="Directory holding histogram checkpoints")
    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="Browse leaderboards by name segment")
    list_cmd.add_argument("path", nargs="*", help="Name segments to descend into")

    gen_cmd = sub.add_parser("generate", help="Generate or resume histogram data")
    target = gen_cmd.add_mutually_exclusive_group(required=True)
    target.add_argument("name", nargs="?", help="Leaderboard name")
    target.add_argument("--all", action="store_true", help="Process every leaderboard in turn")
    gen_cmd.add_argument(
        "--continue-after-cancel",
        action="store_true",
        help="With --all, Ctrl-C only skips the current leaderboard",
    )
    gen_cmd.add_argument(
        "--discard-corrupt",
        action="store_true",
        help="Delete unreadable checkpoints and start those leaderboards over",
    )

    show_cmd = sub.add_parser("show", help="Print a stored histogram")
    show_cmd.add_argument("name", help="Leaderboard name")
    return parser.parse_args(argv)


def _install_cancel_handler(cancel: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancel.set)
        except (NotImplementedError, RuntimeError):
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(cancel.set))


def format_bucket(state: HistogramState, index: int) -> str:
    low = state.min_score + index * state.interval_size
    high = min(low + state.interval_size, state.max_score)
    if state.interval_size == 1:
        return str(low)
    return f"{low}-{high - 1}"


def render_histogram(state: HistogramState) -> List[str]:
    """Human readable summary lines for a stored histogram."""

    lines = [
        f"{state.name}: {state.requested_entries} of {state.total_entries} entries requested"
        + (" (complete)" if state.is_complete else ""),
        f"  range [{state.min_score}, {state.max_score}) in steps of {state.interval_size}",
    ]
    for index, count in enumerate(state.buckets):
        if count:
            lines.append(f"  {format_bucket(state, index)}:\t{count}")
    return lines


async def _list(client: SteamStatsClient, settings: Settings, path: List[str]) -> int:
    directory = await client.get_leaderboards(settings.game)
    print(f"Found {len(directory.leaderboards)} leaderboards.")
    print(f"Browsing /{'/'.join(path)}:")
    nodes = browse_service.browse(directory.leaderboards, path)
    for i, node in enumerate(nodes, start=1):
        suffix = f" ({node.leaderboard.total_entries} entries)" if node.leaderboard else ""
        print(f"  {i}:\t{node.label}{suffix}")
    return EXIT_OK


async def _generate(client: SteamStatsClient, settings: Settings, store: HistogramStore, args: argparse.Namespace) -> int:
    directory = await client.get_leaderboards(settings.game)
    cancel = asyncio.Event()
    _install_cancel_handler(cancel)

    if args.all:
        print("Generating histogram for every leaderboard. Press Ctrl-C to cancel...")
        items = await generate_all(
            directory.leaderboards,
            client,
            store,
            cancel,
            continue_after_cancel=args.continue_after_cancel,
            discard_corrupt=args.discard_corrupt,
        )
        failed = [item for item in items if item.outcome is AggregationOutcome.FAILED or item.outcome is None]
        for item in failed:
            print(f"- {item.name}: {item.error.detail if item.error else 'failed'}")
        return EXIT_FAILED if failed else EXIT_OK

    leaderboard = directory.find(args.name)
    if leaderboard is None:
        raise LeaderboardNotFoundError(args.name)

    print(f"Generating histogram for {leaderboard.display_name}. Press Ctrl-C to cancel...")
    try:
        result = await generate_histogram(leaderboard, client, store, cancel)
    except CorruptHistogramStateError:
        if not args.discard_corrupt:
            raise
        store.delete(leaderboard.name)
        result = await generate_histogram(leaderboard, client, store, cancel)

    print(f"{leaderboard.display_name}: {result.outcome.value.lower()} after {result.pages_fetched} page(s)")
    return EXIT_FAILED if result.outcome is AggregationOutcome.FAILED else EXIT_OK


def _show(store: HistogramStore, name: str) -> int:
    state = store.load(name)
    if state is None:
        print(f"No histogram stored for {name}")
        return EXIT_FAILED
    for line in render_histogram(state):
        print(line)
    return EXIT_OK


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    store = HistogramStore(settings.output_dir)
    if args.command == "show":
        return _show(store, args.name)

    async with SteamStatsClient(settings.steam_base_url, timeout=settings.request_timeout) as client:
        if args.command == "list":
            return await _list(client, settings, args.path)
        return await _generate(client, settings, store, args)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    overrides = {}
    if args.game:
        overrides["game"] = args.game
    if args.output_dir:
        overrides["output_dir"] = Path(args.output_dir)
    if overrides:
        settings = settings.model_copy(update=overrides)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        return asyncio.run(_run(args, settings))
    except (DirectoryFetchError, CorruptHistogramStateError, LeaderboardNotFoundError) as exc:
        logger.error("%s", exc.detail)
        return EXIT_UNAVAILABLE
    except CheckpointWriteError as exc:
        logger.error("%s", exc.detail)
        return EXIT_FAILED
    except ValueError as exc:
        logger.error("%s", exc)
        return EXIT_UNAVAILABLE
