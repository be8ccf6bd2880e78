"""Histogram bucket merging and checkpoint bookkeeping."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ..schemas import EntryPage, EntryRecord, HistogramState, LeaderboardDescriptor
from .histogram_store import HistogramStore

logger = logging.getLogger(__name__)


@dataclass
class MergeSummary:
    """Counts describing how one page of entries was merged."""

    counted: int = 0
    skipped: int = 0
    ceiling_reached: bool = False


def load_or_create(store: HistogramStore, leaderboard: LeaderboardDescriptor) -> HistogramState:
    """Resume the persisted histogram for ``leaderboard`` or start an empty one.

    A persisted state is used verbatim, including bucket geometry that may
    differ from what a fresh histogram would get today.
    """

    state = store.load(leaderboard.name)
    if state is not None:
        logger.info(
            "resuming %s at %d of %d entries",
            leaderboard.name,
            state.requested_entries,
            state.total_entries,
        )
        return state
    return HistogramState.for_leaderboard(leaderboard)


def merge_entries(state: HistogramState, entries: Iterable[EntryRecord]) -> MergeSummary:
    """Count ``entries`` into the state's buckets, in order.

    Scores below ``min_score`` are dropped. The first score at or above
    ``max_score`` marks the whole leaderboard as requested and ends the scan,
    since entries are ranked and no later entry can fall back into range.
    """

    summary = MergeSummary()
    for entry in entries:
        if entry.score < state.min_score:
            summary.skipped += 1
            continue
        if entry.score >= state.max_score:
            logger.info("%s reached max score %d", state.name, state.max_score)
            state.requested_entries = state.total_entries
            summary.ceiling_reached = True
            break

        state.buckets[(entry.score - state.min_score) // state.interval_size] += 1
        summary.counted += 1
    return summary


def advance_checkpoint(state: HistogramState, page: EntryPage) -> bool:
    """Move the resume point past ``page`` unless it is behind current progress.

    Buckets are merged regardless; only the progress fields are guarded so a
    stale cursor cannot rewind ``requested_entries``.
    """

    if page.entry_end <= state.requested_entries:
        return False
    state.requested_entries = page.entry_end
    state.total_entries = max(page.total_entries, page.entry_end)
    state.next_cursor = page.next_cursor
    return True
