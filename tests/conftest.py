from typing import Callable, Dict, Iterable, List, Optional, Union

import pytest

from lbscraper.schemas import (
	DisplayType,
	EntryPage,
	EntryRecord,
	LeaderboardDescriptor,
	SortMethod,
)
from lbscraper.services.histogram_store import HistogramStore

BASE_STEAM_ID = 76561197960265728


def build_page(
	scores: Iterable[int],
	*,
	end: int,
	total: int,
	start: int = 1,
	next_cursor: Optional[str] = None,
) -> EntryPage:
	entries = [
		EntryRecord(identity=BASE_STEAM_ID + i, score=score, rank=start + i, supplementary_id=0)
		for i, score in enumerate(scores)
	]
	return EntryPage(
		total_entries=total,
		entry_start=start,
		entry_end=end,
		next_cursor=next_cursor,
		entries=entries,
	)


class FakePageFetcher:
	"""Serves canned pages by cursor and records every request."""

	def __init__(
		self,
		pages: Dict[str, Union[EntryPage, Exception]],
		on_fetch: Optional[Callable[[str], None]] = None,
	) -> None:
		self.pages = pages
		self.on_fetch = on_fetch
		self.calls: List[str] = []

	async def __call__(self, cursor: str) -> EntryPage:
		self.calls.append(cursor)
		if self.on_fetch is not None:
			self.on_fetch(cursor)
		result = self.pages[cursor]
		if isinstance(result, Exception):
			raise result
		return result

	# Lets the fake stand in for SteamStatsClient in service-level tests.
	async def get_leaderboard_entries(self, cursor: str) -> EntryPage:
		return await self(cursor)


def make_leaderboard(
	name: str = "challenge_besttime_sp_a1_intro1",
	*,
	total: int = 3,
	display_type: DisplayType = DisplayType.SCORE,
	url: Optional[str] = None,
	identity: int = 47458,
) -> LeaderboardDescriptor:
	return LeaderboardDescriptor(
		url=url or f"page:{name}:1",
		identity=identity,
		name=name,
		display_name=name.replace("_", " ").title(),
		total_entries=total,
		sort_method=SortMethod.ASCENDING,
		display_type=display_type,
	)


@pytest.fixture
def store(tmp_path) -> HistogramStore:
	return HistogramStore(tmp_path / "leaderboards")


@pytest.fixture
def page_factory():
	return build_page


@pytest.fixture
def leaderboard_factory():
	return make_leaderboard


@pytest.fixture
def fetcher_factory():
	return FakePageFetcher
