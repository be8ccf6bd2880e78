"""
Steam Community stats client
Fetches leaderboard listings and pages of ranked entries as typed records.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Optional

import httpx

from ..core.errors import DirectoryFetchError, PageFetchError
from ..schemas import (
    DisplayType,
    EntryPage,
    EntryRecord,
    LeaderboardDescriptor,
    LeaderboardDirectory,
    SortMethod,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://steamcommunity.com"


def leaderboards_url(base_url: str, game: str) -> str:
    """Build the XML directory URL for a game."""
    return f"{base_url.rstrip('/')}/stats/{game}/leaderboards/?xml=1"


def _text(element: ET.Element, tag: str) -> Optional[str]:
    child = element.find(tag)
    if child is None or child.text is None:
        return None
    return child.text.strip()


def _required(element: ET.Element, tag: str) -> str:
    value = _text(element, tag)
    if value is None:
        raise ValueError(f"missing <{tag}>")
    return value


def _int(element: ET.Element, tag: str, default: Optional[int] = None) -> int:
    value = _text(element, tag)
    if value is None or value == "":
        if default is None:
            raise ValueError(f"missing <{tag}>")
        return default
    return int(value)


def _parse_root(body: bytes) -> ET.Element:
    root = ET.fromstring(body)
    if root.tag != "response":
        raise ValueError(f"unexpected root element <{root.tag}>")
    error = _text(root, "error")
    if error:
        raise ValueError(error)
    return root


def parse_leaderboards(body: bytes) -> LeaderboardDirectory:
    """Parse a directory listing document."""
    root = _parse_root(body)
    leaderboards = [
        LeaderboardDescriptor(
            url=_required(node, "url"),
            identity=_int(node, "lbid"),
            name=_required(node, "name"),
            display_name=_text(node, "display_name") or _required(node, "name"),
            total_entries=_int(node, "entries", 0),
            sort_method=SortMethod(_int(node, "sortmethod", SortMethod.DESCENDING.value)),
            display_type=DisplayType(_int(node, "displaytype", DisplayType.SCORE.value)),
        )
        for node in root.findall("leaderboard")
    ]
    return LeaderboardDirectory(
        app_id=_int(root, "appID", 0),
        app_friendly_name=_text(root, "appFriendlyName") or "",
        leaderboard_count=_int(root, "leaderboardCount", len(leaderboards)),
        leaderboards=leaderboards,
    )


def parse_entries(body: bytes) -> EntryPage:
    """Parse one page of leaderboard entries."""
    root = _parse_root(body)
    records = [
        EntryRecord(
            identity=_int(node, "steamid"),
            score=_int(node, "score"),
            rank=_int(node, "rank"),
            supplementary_id=_int(node, "ugcid", 0),
        )
        for node in root.findall("entries/entry")
    ]
    return EntryPage(
        total_entries=_int(root, "totalLeaderboardEntries"),
        entry_start=_int(root, "entryStart", 0),
        entry_end=_int(root, "entryEnd"),
        next_cursor=_text(root, "nextRequestURL") or None,
        entries=records,
    )


class SteamStatsClient:
    """Thin async wrapper around the Steam community XML endpoints."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def __aenter__(self) -> "SteamStatsClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_leaderboards(self, game: str) -> LeaderboardDirectory:
        """Fetch every leaderboard published for ``game``."""
        url = leaderboards_url(self.base_url, game)
        try:
            r = await self._client.get(url)
            r.raise_for_status()
            directory = parse_leaderboards(r.content)
        except (httpx.HTTPError, ET.ParseError, ValueError) as exc:
            raise DirectoryFetchError(f"Could not list leaderboards for {game}: {exc}") from exc
        logger.info("found %d leaderboards for %s", len(directory.leaderboards), game)
        return directory

    async def get_leaderboard_entries(self, cursor: str) -> EntryPage:
        """Fetch the page of entries located by ``cursor``."""
        if not cursor:
            raise PageFetchError("No cursor left to fetch", cursor=cursor)
        try:
            r = await self._client.get(cursor)
            r.raise_for_status()
            return parse_entries(r.content)
        except (httpx.HTTPError, ET.ParseError, ValueError) as exc:
            raise PageFetchError(f"Could not fetch entries from {cursor}: {exc}", cursor=cursor) from exc
