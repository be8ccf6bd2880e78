"""Resumable fetch, merge and checkpoint loop for leaderboard histograms."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, Protocol

from ..core.errors import CheckpointWriteError, CorruptHistogramStateError, PageFetchError, ScraperError
from ..schemas import EntryPage, HistogramState, LeaderboardDescriptor
from .histogram_service import advance_checkpoint, load_or_create, merge_entries
from .histogram_store import HistogramStore
from .steam_client import SteamStatsClient

logger = logging.getLogger(__name__)

PageFetcher = Callable[[str], Awaitable[EntryPage]]
Persist = Callable[[HistogramState], object]
BatchStart = Callable[[LeaderboardDescriptor], None]
BatchFinish = Callable[["BatchItem"], None]


class CancelSignal(Protocol):
    """Cooperative cancellation handle, e.g. :class:`asyncio.Event`."""

    def is_set(self) -> bool: ...

    def clear(self) -> None: ...


class AggregationOutcome(str, enum.Enum):
    """How an aggregation run ended."""

    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


@dataclass
class AggregationResult:
    outcome: AggregationOutcome
    state: HistogramState
    pages_fetched: int = 0
    entries_counted: int = 0
    error: Optional[ScraperError] = None


@dataclass
class BatchItem:
    """Per-leaderboard record of a batch run.

    ``outcome`` is None when the leaderboard never started, e.g. because its
    persisted state was corrupt.
    """

    name: str
    outcome: Optional[AggregationOutcome]
    error: Optional[ScraperError] = None


async def run_aggregation(
    state: HistogramState,
    fetch_page: PageFetcher,
    persist: Persist,
    cancel: CancelSignal,
) -> AggregationResult:
    """Fetch pages from ``state.next_cursor`` until complete, cancelled or failed.

    Cancellation is polled before every fetch and again once the fetch has
    returned; a page fetched after cancellation is discarded without touching
    the state. Every merged page is persisted before the next fetch. A page
    that cannot be fetched or a checkpoint that cannot be written ends the run
    as FAILED with the error recorded on the result.
    """

    result = AggregationResult(outcome=AggregationOutcome.COMPLETED, state=state)

    while not cancel.is_set() and state.requested_entries < state.total_entries:
        try:
            page = await fetch_page(state.next_cursor)
        except PageFetchError as exc:
            logger.error("aggregation of %s stopped: %s", state.name, exc.detail)
            result.outcome = AggregationOutcome.FAILED
            result.error = exc
            return result
        result.pages_fetched += 1

        if cancel.is_set():
            logger.info("aggregation of %s cancelled, discarding fetched page", state.name)
            result.outcome = AggregationOutcome.CANCELLED
            return result

        logger.info("%s: fetched %d of %d entries", state.name, page.entry_end, page.total_entries)

        summary = merge_entries(state, page.entries)
        result.entries_counted += summary.counted
        advance_checkpoint(state, page)
        if summary.ceiling_reached:
            state.requested_entries = state.total_entries

        try:
            persist(state)
        except CheckpointWriteError as exc:
            logger.error("aggregation of %s stopped: %s", state.name, exc.detail)
            result.outcome = AggregationOutcome.FAILED
            result.error = exc
            return result
        except OSError as exc:
            error = CheckpointWriteError(f"Could not save checkpoint for {state.name}: {exc}")
            logger.error("aggregation of %s stopped: %s", state.name, error.detail)
            result.outcome = AggregationOutcome.FAILED
            result.error = error
            return result

    if state.requested_entries < state.total_entries:
        logger.info("aggregation of %s cancelled", state.name)
        result.outcome = AggregationOutcome.CANCELLED
    return result


async def generate_histogram(
    leaderboard: LeaderboardDescriptor,
    client: SteamStatsClient,
    store: HistogramStore,
    cancel: CancelSignal,
) -> AggregationResult:
    """Resume or start the histogram of one leaderboard.

    Raises :class:`CorruptHistogramStateError` when the stored checkpoint is
    unusable; discarding it is left to the caller.
    """

    state = load_or_create(store, leaderboard)
    return await run_aggregation(state, client.get_leaderboard_entries, store.save, cancel)


async def _generate_or_discard(
    leaderboard: LeaderboardDescriptor,
    client: SteamStatsClient,
    store: HistogramStore,
    cancel: CancelSignal,
    discard_corrupt: bool,
) -> AggregationResult:
    try:
        return await generate_histogram(leaderboard, client, store, cancel)
    except CorruptHistogramStateError as exc:
        if not discard_corrupt:
            raise
        logger.warning("discarding corrupt checkpoint for %s: %s", leaderboard.name, exc.detail)
        store.delete(leaderboard.name)
        return await generate_histogram(leaderboard, client, store, cancel)


async def generate_all(
    leaderboards: Iterable[LeaderboardDescriptor],
    client: SteamStatsClient,
    store: HistogramStore,
    cancel: CancelSignal,
    *,
    continue_after_cancel: bool = False,
    discard_corrupt: bool = False,
    on_start: Optional[BatchStart] = None,
    on_finish: Optional[BatchFinish] = None,
) -> List[BatchItem]:
    """Generate histograms for ``leaderboards`` one after another.

    A failed page only ends its own leaderboard. A leaderboard that cannot be
    started (corrupt checkpoint, unusable name, unwritable store) is recorded
    with no outcome and the batch moves on. A cancel ends the current
    leaderboard; with ``continue_after_cancel`` the signal is cleared and the
    batch moves on, otherwise the batch stops there.

    ``on_start`` is called with each leaderboard before it is processed and
    ``on_finish`` with its :class:`BatchItem` afterwards.
    """

    items: List[BatchItem] = []
    for leaderboard in leaderboards:
        logger.info("processing %s", leaderboard.display_name)
        if on_start is not None:
            on_start(leaderboard)
        try:
            result = await _generate_or_discard(leaderboard, client, store, cancel, discard_corrupt)
        except ScraperError as exc:
            logger.error("skipping %s: %s", leaderboard.name, exc.detail)
            item = BatchItem(name=leaderboard.name, outcome=None, error=exc)
        else:
            item = BatchItem(name=leaderboard.name, outcome=result.outcome, error=result.error)

        items.append(item)
        if on_finish is not None:
            on_finish(item)

        if item.outcome is AggregationOutcome.CANCELLED:
            if not continue_after_cancel:
                logger.info("batch stopped after cancelling %s", leaderboard.name)
                break
            cancel.clear()

    return items
